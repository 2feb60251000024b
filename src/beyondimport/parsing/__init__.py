"""Stateless text-to-structure parsers."""

from .abilities import ABILITY_IDS, ABILITY_KEYS, parse_ability_list, parse_spellcasting_ability
from .choices import parse_choice_count, parse_proficiency_pool
from .dice import (
    DAMAGE_TYPES,
    damage_from_text,
    delta_from_table,
    delta_from_text,
    format_dice,
    healing_from_text,
    parse_dice,
)
from .equipment import parse_equipment_alternatives
from .outcome import ParseOutcome

__all__ = [
    "ABILITY_IDS",
    "ABILITY_KEYS",
    "DAMAGE_TYPES",
    "ParseOutcome",
    "damage_from_text",
    "delta_from_table",
    "delta_from_text",
    "format_dice",
    "healing_from_text",
    "parse_ability_list",
    "parse_choice_count",
    "parse_dice",
    "parse_equipment_alternatives",
    "parse_proficiency_pool",
    "parse_spellcasting_ability",
]
