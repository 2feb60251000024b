"""Typed activity descriptors emitted for spells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

PER_LEVEL = "perLevel"
NO_SCALING = "none"
SPELLCASTING_DC = "spellcasting"


@dataclass(frozen=True, slots=True)
class ScalingRule:
    mode: str = NO_SCALING
    formula: str = ""

    def __post_init__(self) -> None:
        if self.mode not in {PER_LEVEL, NO_SCALING}:
            raise ValueError(f"Unknown scaling mode: {self.mode}")

    def to_dict(self) -> dict[str, str]:
        return {"mode": self.mode, "formula": self.formula}


@dataclass(frozen=True, slots=True)
class Activity:
    """Fields shared by every activity kind."""

    activity_type: ClassVar[str] = ""

    id: str
    name: str
    activation: str
    range: str
    scaling: ScalingRule

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.activity_type,
            "id": self.id,
            "name": self.name,
            "activation": self.activation,
            "range": self.range,
            "scaling": self.scaling.to_dict(),
        }
        payload.update(self._details())
        return payload

    def _details(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class AttackActivity(Activity):
    activity_type: ClassVar[str] = "attack"

    attack_type: str = ""
    ability: str = ""
    classification: str = "spell"
    damage_parts: tuple[dict[str, Any], ...] = ()

    def _details(self) -> dict[str, Any]:
        return {
            "attack": {"type": self.attack_type, "classification": self.classification, "ability": self.ability},
            "damage": {"parts": [dict(part) for part in self.damage_parts]},
        }


@dataclass(frozen=True, slots=True)
class SaveActivity(Activity):
    activity_type: ClassVar[str] = "save"

    abilities: tuple[str, ...] = ()
    dc_calculation: str = SPELLCASTING_DC
    dc_formula: str = ""
    damage_parts: tuple[dict[str, Any], ...] = ()
    on_save: str = "none"

    def _details(self) -> dict[str, Any]:
        return {
            "save": {
                "ability": list(self.abilities),
                "dc": {"calculation": self.dc_calculation, "formula": self.dc_formula},
            },
            "damage": {"parts": [dict(part) for part in self.damage_parts], "onSave": self.on_save},
        }


@dataclass(frozen=True, slots=True)
class HealActivity(Activity):
    activity_type: ClassVar[str] = "heal"

    formula: str = ""

    def _details(self) -> dict[str, Any]:
        return {"healing": {"formula": self.formula}}


@dataclass(frozen=True, slots=True)
class UtilityActivity(Activity):
    activity_type: ClassVar[str] = "utility"

    description: str = ""

    def _details(self) -> dict[str, Any]:
        return {"description": self.description}
