"""Derived class sub-records computed from already-merged core trait text."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import re
from typing import Any

from beyondimport.merge.aliases import (
    ARMOR_TRAINING,
    HIT_DIE,
    PRIMARY_ABILITY,
    SAVING_THROWS,
    SKILL_PROFICIENCIES,
    STARTING_EQUIPMENT,
    TOOL_PROFICIENCIES,
    WEAPON_PROFICIENCIES,
)
from beyondimport.models import (
    AdvancementEntry,
    AdvancementKind,
    Confidence,
    Diagnostic,
    DiagnosticKind,
    FieldValue,
)
from beyondimport.parsing.abilities import parse_ability_list
from beyondimport.parsing.choices import parse_choice_count, parse_proficiency_pool
from beyondimport.parsing.equipment import parse_equipment_alternatives
from beyondimport.parsing.outcome import ParseOutcome

_HIT_DIE_RE = re.compile(r"(?:\b|(?<=\d))d\s*(\d+)\b", re.IGNORECASE)

# trait label -> advancement trait name
_PROFICIENCY_TRAITS: tuple[tuple[str, str], ...] = (
    (SKILL_PROFICIENCIES, "skills"),
    (TOOL_PROFICIENCIES, "tools"),
    (ARMOR_TRAINING, "armor"),
    (WEAPON_PROFICIENCIES, "weapons"),
)


@dataclass(slots=True)
class DerivedFields:
    values: dict[str, Any] = field(default_factory=dict)
    provenance: dict[str, FieldValue] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def set(self, name: str, value: Any, source: FieldValue, confidence: Confidence) -> None:
        self.values[name] = value
        self.provenance[name] = FieldValue(value=value, provenance=source.provenance, confidence=confidence)

    def ambiguity(self, name: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(kind=DiagnosticKind.PARSE_AMBIGUITY, field=name, message=message))


def _confidence(*outcomes: ParseOutcome) -> Confidence:
    if all(outcome.confidence is Confidence.EXACT for outcome in outcomes):
        return Confidence.EXACT
    return Confidence.HEURISTIC


def _trait_text(traits: Mapping[str, Any], label: str) -> str:
    value = traits.get(label)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if str(item).strip())
    return ""


def _proficiency_entry(
    derived: DerivedFields,
    label: str,
    trait: str,
    text: str,
) -> tuple[AdvancementEntry | None, list[ParseOutcome]]:
    count = parse_choice_count(text)
    pool = parse_proficiency_pool(text)
    if not pool.matched:
        derived.ambiguity("advancement", f"No {trait} pool recognized in '{label}'")
        return None, [count, pool]

    items = tuple(pool.value)
    if not count.matched:
        return AdvancementEntry(kind=AdvancementKind.GRANT, level=1, trait=trait, pool=items), [pool]

    chosen = count.value
    if chosen > len(items):
        derived.ambiguity(
            "advancement",
            f"'{label}' asks to choose {chosen} from a pool of {len(items)}; count clamped",
        )
        chosen = len(items)
    entry = AdvancementEntry(kind=AdvancementKind.CHOICE, level=1, trait=trait, pool=items, count=chosen)
    return entry, [count, pool]


def derive_class_fields(traits: Mapping[str, Any], trait_sources: Mapping[str, FieldValue]) -> DerivedFields:
    """Compute hit die, abilities, advancement and equipment from canonical traits.

    ``trait_sources`` maps each canonical trait label to the FieldValue that
    won the merge, so every derived field inherits that trait's provenance.
    """

    derived = DerivedFields()

    hit_die_text = _trait_text(traits, HIT_DIE)
    if hit_die_text:
        match = _HIT_DIE_RE.search(hit_die_text)
        if match is None:
            derived.ambiguity("hit_die", f"No die size recognized in '{HIT_DIE}'")
        else:
            derived.set("hit_die", f"d{match.group(1)}", trait_sources[HIT_DIE], Confidence.HEURISTIC)

    primary_text = _trait_text(traits, PRIMARY_ABILITY)
    if primary_text:
        primary = parse_ability_list(primary_text)
        if primary.dropped:
            derived.ambiguity("primary_abilities", f"Dropped unrecognized tokens: {', '.join(primary.dropped)}")
        if primary.matched:
            derived.set("primary_abilities", primary.value, trait_sources[PRIMARY_ABILITY], _confidence(primary))

    advancement: list[AdvancementEntry] = []
    advancement_outcomes: list[ParseOutcome] = []
    advancement_source: FieldValue | None = None

    saves_text = _trait_text(traits, SAVING_THROWS)
    if saves_text:
        saves = parse_ability_list(saves_text)
        if saves.dropped:
            derived.ambiguity("saving_throws", f"Dropped unrecognized tokens: {', '.join(saves.dropped)}")
        if saves.matched:
            source = trait_sources[SAVING_THROWS]
            derived.set("saving_throws", saves.value, source, _confidence(saves))
            advancement.append(
                AdvancementEntry(kind=AdvancementKind.GRANT, level=1, trait="saves", pool=tuple(saves.value))
            )
            advancement_outcomes.append(saves)
            advancement_source = source

    for label, trait in _PROFICIENCY_TRAITS:
        text = _trait_text(traits, label)
        if not text or text.rstrip(".").casefold() == "none":
            continue
        entry, outcomes = _proficiency_entry(derived, label, trait, text)
        if entry is None:
            continue
        advancement.append(entry)
        advancement_outcomes.extend(outcomes)
        advancement_source = advancement_source or trait_sources[label]

    if advancement and advancement_source is not None:
        derived.set(
            "advancement",
            [entry.to_dict() for entry in advancement],
            advancement_source,
            _confidence(*advancement_outcomes),
        )

    equipment_text = _trait_text(traits, STARTING_EQUIPMENT)
    if equipment_text:
        equipment = parse_equipment_alternatives(equipment_text)
        if equipment.matched:
            derived.set("starting_equipment", equipment.value, trait_sources[STARTING_EQUIPMENT], _confidence(equipment))
        else:
            derived.ambiguity("starting_equipment", f"No items recognized in '{STARTING_EQUIPMENT}'")

    return derived