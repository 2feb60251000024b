"""Spell extractor for the scraped spell page stat block."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from beyondimport.extract.helpers import new_partial, node_text, put, report_absent, soup_of
from beyondimport.extract.spell_api import split_higher_level
from beyondimport.models import Channel, Confidence, ContentKind, PartialFields, RawDocument
from beyondimport.parsing.abilities import ABILITY_KEYS, ability_key
from beyondimport.parsing.dice import damage_from_text, healing_from_text

logger = logging.getLogger(__name__)

_HEURISTIC = Confidence.HEURISTIC

_LEVEL_RE = re.compile(r"(\d+)")
_MATERIAL_BLURB_RE = re.compile(r"^\*\s*-\s*")
_ATTACK_TEXT_RE = re.compile(r"\b(melee|ranged)\s+spell\s+attack\b", re.IGNORECASE)
_SAVE_TEXT_RE = re.compile(
    r"\b(?:makes?|succeeds?\s+on|fails?)\s+an?\s+(" + "|".join(name.title() for name in ABILITY_KEYS) + r")\s+saving\s+throw",
    re.IGNORECASE,
)
_SAVE_STAT_RE = re.compile(r"^([A-Za-z]+)\s+save\b", re.IGNORECASE)


def _stat(soup: BeautifulSoup, prop: str, label: str) -> tuple[str, bool]:
    """Return ``(value, via_fallback)`` for a stat block property."""

    value = soup.select_one(f".ddb-statblock-item-{prop} .ddb-statblock-item-value")
    if value is not None:
        return node_text(value), False
    for label_node in soup.select(".ddb-statblock-item-label"):
        if node_text(label_node).casefold() != label.casefold():
            continue
        sibling = label_node.find_next_sibling(class_="ddb-statblock-item-value")
        if sibling is not None:
            return node_text(sibling), True
    return "", False


def _put_stat(partial: PartialFields, name: str, value: str, via_fallback: bool) -> None:
    put(partial, name, value, _HEURISTIC if via_fallback else Confidence.EXACT)


def _level(text: str) -> int | None:
    if not text:
        return None
    if "cantrip" in text.casefold():
        return 0
    match = _LEVEL_RE.search(text)
    return int(match.group(1)) if match else None


def _description_paragraphs(soup: BeautifulSoup) -> tuple[list[str], bool]:
    paragraphs = [node_text(node) for node in soup.select(".more-info-content p")]
    via_fallback = False
    if not any(paragraphs):
        paragraphs = [node_text(node) for node in soup.select(".spell-details p")]
        via_fallback = True
    kept = [text for text in paragraphs if text and not _MATERIAL_BLURB_RE.match(text)]
    return kept, via_fallback


class SpellHtmlExtractor:
    """Stat block anchors with label-text fallbacks; prose-derived values are heuristic."""

    content_kind = ContentKind.SPELL
    channel = Channel.HTML

    def extract(self, document: RawDocument) -> PartialFields:
        partial = new_partial(document)
        if not isinstance(document.payload, str) or not document.payload.strip():
            logger.warning("Spell HTML payload is empty or not text: id=%s", document.content_id)
            report_absent(document, partial)
            return partial

        soup = soup_of(document.payload)
        statblock = soup.select_one(".ddb-statblock-spell") or soup

        name_node = soup.select_one(".page-title") or soup.find("h1")
        put(partial, "name", node_text(name_node))

        level_text, _level_fallback = _stat(soup, "level", "Level")
        level = _level(level_text)
        if level is not None:
            put(partial, "level", level, _HEURISTIC)

        for field_name, prop, label in (
            ("school", "school", "School"),
            ("casting_time", "casting-time", "Casting Time"),
            ("range", "range-area", "Range/Area"),
            ("duration", "duration", "Duration"),
        ):
            value, via_fallback = _stat(soup, prop, label)
            _put_stat(partial, field_name, value, via_fallback)

        components_text, _components_fallback = _stat(soup, "components", "Components")
        if components_text:
            tokens = {token.strip(" *").upper() for token in components_text.split(",")}
            components = {"verbal": "V" in tokens, "somatic": "S" in tokens, "material": "M" in tokens}
            put(partial, "components", components, _HEURISTIC)

        blurb = node_text(soup.select_one(".components-blurb"))
        if blurb:
            put(partial, "materials", _MATERIAL_BLURB_RE.sub("", blurb).strip().strip("()").strip(), _HEURISTIC)

        duration_text = partial.values["duration"].value if partial.is_present("duration") else ""
        put(partial, "ritual", statblock.select_one(".i-ritual") is not None, _HEURISTIC)
        concentration = (
            statblock.select_one(".i-concentration") is not None or "concentration" in duration_text.casefold()
        )
        put(partial, "concentration", concentration, _HEURISTIC)

        paragraphs, description_fallback = _description_paragraphs(soup)
        main, higher_level_text = split_higher_level(paragraphs)
        description = "\n".join(main)
        put(partial, "description", description, _HEURISTIC if description_fallback else Confidence.EXACT)
        put(partial, "higher_level_description", higher_level_text, _HEURISTIC)

        tags = [node_text(tag) for tag in soup.select(".spell-tags .spell-tag")]
        if not any(tags):
            tags = [node_text(tag) for tag in soup.select(".spell-tags .tag")]
        put(partial, "tags", [tag for tag in tags if tag])
        put(partial, "classes", [node_text(tag) for tag in soup.select(".available-for .class-tag") if node_text(tag)])
        put(partial, "source", node_text(soup.select_one(".spell-source")))

        self._put_attack_and_save(soup, partial, description)

        put(partial, "damage", damage_from_text(description).value, _HEURISTIC)
        put(partial, "healing", healing_from_text(description).value, _HEURISTIC)

        report_absent(document, partial)
        return partial

    def _put_attack_and_save(self, soup: BeautifulSoup, partial: PartialFields, description: str) -> None:
        stat, _via_fallback = _stat(soup, "attack-save", "Attack/Save")
        attack_type = ""
        save_ability = ""

        stat_key = stat.casefold()
        if stat_key in {"melee", "ranged"}:
            attack_type = stat_key
        else:
            save_match = _SAVE_STAT_RE.match(stat)
            if save_match is not None:
                save_ability = ability_key(save_match.group(1)) or ""

        if not attack_type:
            attack_match = _ATTACK_TEXT_RE.search(description)
            if attack_match is not None:
                attack_type = attack_match.group(1).lower()
        if not save_ability:
            save_text = _SAVE_TEXT_RE.search(description)
            if save_text is not None:
                save_ability = ability_key(save_text.group(1)) or ""

        if attack_type:
            put(partial, "attack_type", attack_type, _HEURISTIC)
            put(partial, "requires_attack_roll", True, _HEURISTIC)
        if save_ability:
            put(partial, "save_ability", save_ability, _HEURISTIC)
            put(partial, "requires_saving_throw", True, _HEURISTIC)
