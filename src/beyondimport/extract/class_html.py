"""Class extractor for the scraped compendium page.

Every field has a primary structural anchor and a secondary fallback. Values
read from a primary anchor are exact; values recovered through a fallback
anchor or a text pattern are heuristic.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from beyondimport.extract.helpers import (
    following_blocks,
    is_level_heading,
    new_partial,
    node_text,
    put,
    report_absent,
    soup_of,
    split_level_heading,
    table_record,
    table_title,
)
from beyondimport.models import Channel, Confidence, ContentKind, PartialFields, RawDocument
from beyondimport.parsing.abilities import parse_spellcasting_ability

logger = logging.getLogger(__name__)

_EXACT = Confidence.EXACT
_HEURISTIC = Confidence.HEURISTIC

_CORE_TRAITS_RE = re.compile(r"\bcore\b.*\btraits\b", re.IGNORECASE)
_FEATURES_TABLE_RE = re.compile(r"\bfeatures\b", re.IGNORECASE)
_SPELLCASTING_RE = re.compile(r"spellcasting", re.IGNORECASE)
_SKIP_ADDITIONAL_RE = re.compile(r"core|feature|progression|spellcasting", re.IGNORECASE)
_SUBCLASS_HEADING_RE = re.compile(r"\bsubclass\s*:\s*(.+)$", re.IGNORECASE)
_SPELL_LIST_RE = re.compile(
    r"\b(Artificer|Bard|Cleric|Druid|Paladin|Ranger|Sorcerer|Warlock|Wizard)\s+spell\s+list\b",
    re.IGNORECASE,
)
_CASTER_PROGRESSIONS = (
    (re.compile(r"full[- ]?caster", re.IGNORECASE), "full"),
    (re.compile(r"half[- ]?caster", re.IGNORECASE), "half"),
    (re.compile(r"third[- ]?caster", re.IGNORECASE), "third"),
)
_SIDEBAR_HEADING_RE = re.compile(r"^As an? (?:Level 1|Multiclass) Character", re.IGNORECASE)
_SUBCLASS_ITEM = "subitems-list-details-item"


def _in_subclass(node: Tag) -> bool:
    return node.find_parent(class_=_SUBCLASS_ITEM) is not None


def _extract_name(soup: BeautifulSoup) -> tuple[str, Confidence]:
    heading = soup.find("h1")
    name = node_text(heading).replace("Class Details", "").strip()
    if name:
        return name, _EXACT
    title = node_text(soup.find("title"))
    if title:
        return title.split(" - ")[0].strip(), _HEURISTIC
    return "", _EXACT


def _extract_description(soup: BeautifulSoup) -> str:
    container = soup.select_one(".static-container-details") or soup.body or soup
    paragraphs: list[str] = []
    for node in container.find_all(["p", "h2", "h3", "h4", "table"]):
        if node.name != "p":
            if paragraphs:
                break
            continue
        if node.find_parent("table") is not None or _in_subclass(node):
            continue
        text = node_text(node)
        if text and "Becoming a" not in text:
            paragraphs.append(text)
    return "\n\n".join(paragraphs)


def _extract_core_traits(soup: BeautifulSoup) -> tuple[dict[str, str], Confidence]:
    for table in soup.find_all("table"):
        if not _CORE_TRAITS_RE.search(table_title(table)):
            continue
        traits: dict[str, str] = {}
        for row in table.find_all("tr"):
            label = node_text(row.find("th"))
            value = node_text(row.find("td"))
            if label and value:
                traits[label] = value
        if traits:
            return traits, _EXACT

    for heading in soup.find_all(["h2", "h3"]):
        if not _CORE_TRAITS_RE.search(node_text(heading)):
            continue
        traits = {}
        for sibling in heading.find_next_siblings():
            if sibling.name in {"h1", "h2", "h3"}:
                break
            strong = sibling.find("strong") if sibling.name == "p" else None
            if strong is None:
                continue
            label = node_text(strong).rstrip(":").strip()
            value = node_text(sibling)[len(node_text(strong)) :].lstrip(" :").strip()
            if label and value:
                traits[label] = value
        if traits:
            return traits, _HEURISTIC
    return {}, _EXACT


def _progression_rows(table: Tag) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for row in table.find_all("tr"):
        cells = [node_text(cell) for cell in row.find_all("td")]
        if not cells:
            continue
        digits = re.match(r"\d+", cells[0])
        if digits is None:
            continue
        rows.append({"level": int(digits.group(0)), "columns": cells})
    return rows


def _extract_progression(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], Confidence]:
    for table in soup.find_all("table"):
        if _in_subclass(table):
            continue
        title = table_title(table)
        if _FEATURES_TABLE_RE.search(title) and not _CORE_TRAITS_RE.search(title):
            rows = _progression_rows(table)
            if rows:
                return rows, _EXACT

    for table in soup.find_all("table"):
        if _in_subclass(table):
            continue
        first_header = table.find("th")
        if node_text(first_header).casefold() == "level":
            rows = _progression_rows(table)
            if rows:
                return rows, _HEURISTIC
    return [], _EXACT


def _feature_from_heading(heading: Tag) -> dict[str, Any]:
    level, name = split_level_heading(node_text(heading))
    return {
        "name": name,
        "description": "\n\n".join(following_blocks(heading)),
        "required_level": level,
    }


def _extract_features(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], Confidence]:
    for tag_name, confidence in (("h4", _EXACT), ("h3", _HEURISTIC)):
        features = [
            _feature_from_heading(heading)
            for heading in soup.find_all(tag_name)
            if not _in_subclass(heading) and is_level_heading(node_text(heading))
        ]
        if features:
            return features, confidence
    return [], _EXACT


def _subclass_from_item(item: Tag) -> dict[str, Any]:
    features = [
        _feature_from_heading(heading)
        for heading in item.find_all("h4")
        if node_text(heading)
    ]
    tables = [table_record(table) for table in item.find_all("table") if table.find("caption") is not None]
    title = node_text(item.find("h2"))
    match = _SUBCLASS_HEADING_RE.search(title)
    return {
        "name": match.group(1).strip() if match else title,
        "overview": node_text(item.find("p")),
        "features": features,
        "tables": tables,
    }


def _extract_subclasses(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], Confidence]:
    items = soup.find_all(class_=_SUBCLASS_ITEM)
    subclasses = [_subclass_from_item(item) for item in items]
    subclasses = [entry for entry in subclasses if entry["name"]]
    if subclasses:
        return subclasses, _EXACT

    for heading in soup.find_all("h2"):
        match = _SUBCLASS_HEADING_RE.search(node_text(heading))
        if match is None:
            continue
        overview = following_blocks(heading, stop={"h2", "h3", "h4"})
        features: list[dict[str, Any]] = []
        for sibling in heading.find_next_siblings():
            if sibling.name == "h2":
                break
            if sibling.name in {"h3", "h4"} and is_level_heading(node_text(sibling)):
                features.append(_feature_from_heading(sibling))
        subclasses.append(
            {
                "name": match.group(1).strip(),
                "overview": overview[0] if overview else "",
                "features": features,
                "tables": [],
            }
        )
    return subclasses, _HEURISTIC


def _extract_spellcasting(
    soup: BeautifulSoup,
    features: list[dict[str, Any]],
    subclasses: list[dict[str, Any]],
) -> tuple[dict[str, Any], Confidence]:
    all_features = list(features)
    for subclass in subclasses:
        all_features.extend(subclass["features"])
    spell_features = [feature for feature in all_features if _SPELLCASTING_RE.search(feature["name"])]
    feature_text = "\n".join(feature["description"] for feature in spell_features)

    lists: list[dict[str, str]] = []
    for match in _SPELL_LIST_RE.finditer(feature_text):
        label = match.group(1).title()
        if all(entry["label"] != label for entry in lists):
            lists.append({"label": label, "url": f"/spells/{label.lower()}"})
    ability = parse_spellcasting_ability(feature_text).value

    for table in soup.find_all("table"):
        caption = table.find("caption")
        if caption is not None and _SPELLCASTING_RE.search(node_text(caption)):
            return {"progression": node_text(caption), "ability": ability, "lists": lists}, _EXACT

    if not spell_features:
        return {}, _EXACT

    progression = "partial"
    for pattern, label in _CASTER_PROGRESSIONS:
        if pattern.search(feature_text):
            progression = label
            break
    return {"progression": progression, "ability": ability, "lists": lists}, _HEURISTIC


def _extract_sidebars(soup: BeautifulSoup) -> list[str]:
    sidebars: list[str] = []
    for heading in soup.find_all(["h2", "h3"]):
        if not node_text(heading).startswith("Becoming a"):
            continue
        parts: list[str] = []
        for sibling in heading.find_next_siblings():
            if sibling.name == "h2":
                break
            text = sibling.get_text("\n", strip=True)
            if text:
                parts.append(text)
        if parts:
            sidebars.append("\n".join(parts))

    for heading in soup.find_all("h4"):
        title = node_text(heading)
        if not _SIDEBAR_HEADING_RE.match(title):
            continue
        parts = following_blocks(heading, stop={"h2", "h4"})
        if parts:
            sidebars.append(f"{title}\n" + "\n\n".join(parts))
    return sidebars


def _extract_additional_tables(soup: BeautifulSoup) -> list[dict[str, Any]]:
    tables: list[dict[str, Any]] = []
    for table in soup.find_all("table"):
        if _in_subclass(table) or table.find("caption") is None:
            continue
        record = table_record(table)
        if record["title"] and not _SKIP_ADDITIONAL_RE.search(record["title"]):
            tables.append(record)
    return tables


class ClassHtmlExtractor:
    """Structural extraction from the class compendium page."""

    content_kind = ContentKind.CLASS
    channel = Channel.HTML

    def extract(self, document: RawDocument) -> PartialFields:
        partial = new_partial(document)
        if not isinstance(document.payload, str) or not document.payload.strip():
            logger.warning("Class HTML payload is empty or not text: id=%s", document.content_id)
            report_absent(document, partial)
            return partial

        soup = soup_of(document.payload)

        name, name_confidence = _extract_name(soup)
        put(partial, "name", name, name_confidence)
        put(partial, "description", _extract_description(soup))
        put(partial, "source", node_text(soup.select_one(".source, .source-description")))
        put(partial, "tags", [node_text(tag) for tag in soup.select(".tags .tag") if node_text(tag)])
        put(
            partial,
            "prerequisites",
            [node_text(item) for item in soup.select(".prerequisites li, .prerequisite") if node_text(item)],
        )

        traits, traits_confidence = _extract_core_traits(soup)
        put(partial, "core_traits", traits, traits_confidence)

        progression, progression_confidence = _extract_progression(soup)
        put(partial, "progression", progression, progression_confidence)

        features, features_confidence = _extract_features(soup)
        put(partial, "features", features, features_confidence)

        subclasses, subclasses_confidence = _extract_subclasses(soup)
        put(partial, "subclasses", subclasses, subclasses_confidence)

        spellcasting, spellcasting_confidence = _extract_spellcasting(soup, features, subclasses)
        put(partial, "spellcasting", spellcasting, spellcasting_confidence)

        put(partial, "sidebars", _extract_sidebars(soup))
        put(partial, "additional_tables", _extract_additional_tables(soup))

        report_absent(document, partial)
        return partial
