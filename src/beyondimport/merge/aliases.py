"""Alias tables mapping every known spelling of a label to one canonical key."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from beyondimport.parsing.normalization import label_key

HIT_DIE = "Hit Die"
PRIMARY_ABILITY = "Primary Ability"
SAVING_THROWS = "Saving Throws"
SKILL_PROFICIENCIES = "Skill Proficiencies"
WEAPON_PROFICIENCIES = "Weapon Proficiencies"
TOOL_PROFICIENCIES = "Tool Proficiencies"
ARMOR_TRAINING = "Armor Training"
STARTING_EQUIPMENT = "Starting Equipment"

# Keys are compared after label_key(), so case and trailing colons never matter.
_TRAIT_ALIASES: dict[str, str] = {
    "hit die": HIT_DIE,
    "hit dice": HIT_DIE,
    "hit point die": HIT_DIE,
    "primary ability": PRIMARY_ABILITY,
    "primary abilities": PRIMARY_ABILITY,
    "saving throws": SAVING_THROWS,
    "saving throw proficiencies": SAVING_THROWS,
    "saving throws proficiencies": SAVING_THROWS,
    "saving throw": SAVING_THROWS,
    "skill proficiencies": SKILL_PROFICIENCIES,
    "skills": SKILL_PROFICIENCIES,
    "weapon proficiencies": WEAPON_PROFICIENCIES,
    "weapon training": WEAPON_PROFICIENCIES,
    "weapons": WEAPON_PROFICIENCIES,
    "tool proficiencies": TOOL_PROFICIENCIES,
    "tools": TOOL_PROFICIENCIES,
    "armor training": ARMOR_TRAINING,
    "armor proficiencies": ARMOR_TRAINING,
    "armor": ARMOR_TRAINING,
    "starting equipment": STARTING_EQUIPMENT,
    "equipment": STARTING_EQUIPMENT,
}

_FIELD_ALIASES: dict[str, str] = {
    "hitdie": "hit_die",
    "coretraits": "core_traits",
    "additionaltables": "additional_tables",
    "castingtime": "casting_time",
    "higherleveldescription": "higher_level_description",
    "higherlevels": "higher_levels",
    "attacktype": "attack_type",
    "requiresattackroll": "requires_attack_roll",
    "requiressavingthrow": "requires_saving_throw",
    "savedcabilityid": "save_ability",
    "saveability": "save_ability",
    "fixedsavedc": "fixed_save_dc",
    "primaryability": "primary_abilities",
    "savingthrowproficiencies": "saving_throws",
    "startingequipment": "starting_equipment",
}


def canonical_trait_label(label: str) -> str:
    """Return the canonical trait label; unknown labels keep their trimmed spelling."""

    key = label_key(label)
    return _TRAIT_ALIASES.get(key, label.strip().rstrip(":").strip())


def canonical_field_name(name: str) -> str:
    compact = name.replace("_", "").replace("-", "").replace(" ", "").casefold()
    return _FIELD_ALIASES.get(compact, name)


def canonicalize_traits(traits: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Rename trait keys to canonical labels; the first non-empty spelling wins a collision.

    Returns the renamed mapping and the source labels whose non-empty values
    lost a collision.
    """

    canonical: dict[str, Any] = {}
    shadowed: list[str] = []
    for label, value in traits.items():
        key = canonical_trait_label(str(label))
        if key in canonical and canonical[key]:
            if value:
                shadowed.append(str(label))
            continue
        canonical[key] = value
    return canonical, shadowed
