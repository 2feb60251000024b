"""Class extractor for the provider's JSON class payload."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from beyondimport.extract.helpers import (
    as_int,
    as_list,
    as_text,
    item_label,
    lookup,
    new_partial,
    put,
    report_absent,
)
from beyondimport.models import Channel, ContentKind, PartialFields, RawDocument
from beyondimport.parsing.abilities import ABILITY_IDS, ability_key
from beyondimport.parsing.normalization import markup_to_text

logger = logging.getLogger(__name__)

# payload key -> (trait label, list joiner)
_TRAIT_SOURCES: tuple[tuple[str, str, str], ...] = (
    ("primaryAbility", "Primary Ability", " or "),
    ("savingThrowProficiencies", "Saving Throws", " and "),
    ("armorProficiencies", "Armor Training", ", "),
    ("weaponProficiencies", "Weapon Proficiencies", ", "),
    ("toolProficiencies", "Tool Proficiencies", ", "),
    ("skillProficiencies", "Skill Proficiencies", ", "),
    ("startingEquipment", "Starting Equipment", "; "),
)


def _joined(value: Any, joiner: str) -> str:
    if isinstance(value, (list, tuple)):
        return joiner.join(label for label in (item_label(item) for item in value) if label)
    return as_text(value)


def _core_traits(payload: Mapping[str, Any], name: str) -> dict[str, str]:
    traits: dict[str, str] = {}
    hit_die = as_int(lookup(payload, "hitDie"))
    if hit_die > 0:
        traits["Hit Die"] = f"D{hit_die} per {name or 'class'} level"
    for key, label, joiner in _TRAIT_SOURCES:
        text = _joined(lookup(payload, key), joiner)
        if text:
            traits[label] = text
    return traits


def _feature(entry: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": as_text(entry.get("name")),
        "description": markup_to_text(str(entry.get("description") or entry.get("snippet") or "")),
        "required_level": as_int(entry.get("requiredLevel"), 1) or 1,
    }


def _features(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    entries = lookup(payload, "classFeatures")
    if not isinstance(entries, list):
        return []
    return [_feature(entry) for entry in entries if isinstance(entry, Mapping)]


def _progression(features: list[dict[str, Any]]) -> list[dict[str, Any]]:
    grouped: dict[int, list[str]] = {}
    for feature in features:
        grouped.setdefault(feature["required_level"], []).append(feature["name"])
    return [
        {"level": level, "columns": [str(level), *names]}
        for level, names in sorted(grouped.items())
    ]


def _subclasses(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    entries = lookup(payload, "subclasses")
    if not isinstance(entries, list):
        return []
    subclasses: list[dict[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        features_raw = entry.get("classFeatures") or entry.get("features") or []
        subclasses.append(
            {
                "name": as_text(entry.get("name")),
                "overview": markup_to_text(str(entry.get("description") or entry.get("snippet") or "")),
                "features": [_feature(item) for item in features_raw if isinstance(item, Mapping)],
                "tables": [],
            }
        )
    return subclasses


def _spellcasting(payload: Mapping[str, Any]) -> dict[str, Any]:
    block = lookup(payload, "spellcasting")
    if isinstance(block, Mapping):
        lists = [
            {"label": item_label(item), "url": as_text(item.get("url")) if isinstance(item, Mapping) else ""}
            for item in block.get("lists") or []
        ]
        raw_ability = as_text(block.get("ability"))
        return {
            "progression": as_text(block.get("progression")),
            "ability": ability_key(raw_ability) or raw_ability.casefold(),
            "lists": [entry for entry in lists if entry["label"]],
        }

    ability_id = as_int(lookup(payload, "spellCastingAbilityId"))
    if ability_id in ABILITY_IDS:
        return {"progression": "", "ability": ABILITY_IDS[ability_id], "lists": []}
    return {}


class ClassApiExtractor:
    """Direct key lookups on the class payload or its ``definition``."""

    content_kind = ContentKind.CLASS
    channel = Channel.API

    def extract(self, document: RawDocument) -> PartialFields:
        partial = new_partial(document)
        payload = document.payload
        if not isinstance(payload, Mapping):
            logger.warning("Class API payload is not an object: id=%s", document.content_id)
            report_absent(document, partial)
            return partial

        name = as_text(lookup(payload, "name"))
        features = _features(payload)

        put(partial, "name", name)
        put(partial, "description", markup_to_text(str(lookup(payload, "description") or "")))
        put(partial, "source", as_text(lookup(payload, "source")))
        put(partial, "tags", as_list(lookup(payload, "tags")))
        put(partial, "prerequisites", as_list(lookup(payload, "prerequisites")))
        put(partial, "core_traits", _core_traits(payload, name))
        put(partial, "progression", _progression(features))
        put(partial, "features", features)
        put(partial, "subclasses", _subclasses(payload))
        put(partial, "spellcasting", _spellcasting(payload))
        sidebars = lookup(payload, "sidebars")
        put(partial, "sidebars", [as_text(sidebars)] if isinstance(sidebars, str) else as_list(sidebars))

        report_absent(document, partial)
        return partial
