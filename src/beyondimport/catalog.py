"""Canonical field catalog per content kind: names, empty defaults and required sets."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from beyondimport.models import ContentKind


@dataclass(frozen=True, slots=True)
class FieldSpec:
    name: str
    default: Any
    required: bool = False
    derived: bool = False


CLASS_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("name", "", required=True),
    FieldSpec("description", ""),
    FieldSpec("source", ""),
    FieldSpec("tags", [], required=True),
    FieldSpec("prerequisites", [], required=True),
    FieldSpec("core_traits", {}, required=True),
    FieldSpec("progression", [], required=True),
    FieldSpec("features", [], required=True),
    FieldSpec("subclasses", [], required=True),
    FieldSpec("spellcasting", {}),
    FieldSpec("sidebars", [], required=True),
    FieldSpec("additional_tables", []),
    FieldSpec("hit_die", "", derived=True),
    FieldSpec("primary_abilities", [], derived=True),
    FieldSpec("saving_throws", [], derived=True),
    FieldSpec("advancement", [], derived=True),
    FieldSpec("starting_equipment", [], derived=True),
)

SPELL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("name", "", required=True),
    FieldSpec("level", 0, required=True),
    FieldSpec("school", "", required=True),
    FieldSpec("casting_time", ""),
    FieldSpec("range", ""),
    FieldSpec("duration", ""),
    FieldSpec("components", {"verbal": False, "somatic": False, "material": False}),
    FieldSpec("materials", ""),
    FieldSpec("ritual", False),
    FieldSpec("concentration", False),
    FieldSpec("description", "", required=True),
    FieldSpec("higher_level_description", ""),
    FieldSpec("tags", [], required=True),
    FieldSpec("classes", []),
    FieldSpec("source", ""),
    FieldSpec("attack_type", ""),
    FieldSpec("requires_attack_roll", False),
    FieldSpec("requires_saving_throw", False),
    FieldSpec("save_ability", ""),
    FieldSpec("fixed_save_dc", 0),
    FieldSpec("damage", []),
    FieldSpec("healing", ""),
    FieldSpec("higher_levels", []),
    FieldSpec("activities", [], derived=True),
)

_CATALOG: dict[ContentKind, tuple[FieldSpec, ...]] = {
    ContentKind.CLASS: CLASS_FIELDS,
    ContentKind.SPELL: SPELL_FIELDS,
}


def field_names(kind: ContentKind) -> list[str]:
    return [entry.name for entry in _CATALOG[kind]]


def extracted_field_names(kind: ContentKind) -> list[str]:
    """Fields a channel extractor may populate (everything that is not derived)."""

    return [entry.name for entry in _CATALOG[kind] if not entry.derived]


def required_fields(kind: ContentKind) -> list[str]:
    return [entry.name for entry in _CATALOG[kind] if entry.required]


def derived_fields(kind: ContentKind) -> list[str]:
    return [entry.name for entry in _CATALOG[kind] if entry.derived]


def default_for(kind: ContentKind, name: str) -> Any:
    """Return a fresh copy of the declared empty default for a field."""

    for entry in _CATALOG[kind]:
        if entry.name == name:
            return copy.deepcopy(entry.default)
    raise ValueError(f"Unknown {kind.value} field: {name}")
