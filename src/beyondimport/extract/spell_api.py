"""Spell extractor for the provider's JSON spell definition."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import re
from typing import Any

from beyondimport.extract.helpers import as_int, as_list, as_text, lookup, new_partial, put, report_absent
from beyondimport.models import Channel, Confidence, ContentKind, FieldValue, PartialFields, Provenance, RawDocument
from beyondimport.parsing.abilities import ABILITY_IDS
from beyondimport.parsing.dice import DAMAGE_TYPES, SPELLCASTING_MOD, format_dice
from beyondimport.parsing.normalization import markup_paragraphs

logger = logging.getLogger(__name__)

_ACTIVATION_TYPES: dict[int, str] = {
    0: "No Action",
    1: "Action",
    2: "No Action",
    3: "Bonus Action",
    4: "Reaction",
    5: "Special",
    6: "Minute",
    7: "Hour",
    8: "Special",
}
_ATTACK_TYPES: dict[int, str] = {1: "melee", 2: "ranged"}
_COMPONENT_IDS: dict[int, str] = {1: "verbal", 2: "somatic", 3: "material"}
HIGHER_LEVEL_LABEL_RE = re.compile(
    r"^(?:At Higher Levels|Using a Higher-Level Spell Slot|Cantrip Upgrade)\s*[.:]\s*",
    re.IGNORECASE,
)


def split_higher_level(paragraphs: list[str]) -> tuple[list[str], str]:
    """Separate the labelled higher-level paragraph from the main description."""

    main: list[str] = []
    higher: list[str] = []
    for paragraph in paragraphs:
        if HIGHER_LEVEL_LABEL_RE.match(paragraph):
            higher.append(HIGHER_LEVEL_LABEL_RE.sub("", paragraph))
        else:
            main.append(paragraph)
    return main, " ".join(higher)


def _casting_time(activation: Any) -> str:
    if not isinstance(activation, Mapping):
        return as_text(activation)
    label = _ACTIVATION_TYPES.get(as_int(activation.get("activationType"), -1), "")
    if not label:
        return ""
    amount = as_int(activation.get("activationTime"), 1) or 1
    if label in {"Minute", "Hour"} and amount != 1:
        label += "s"
    return f"{amount} {label}"


def _range(value: Any) -> str:
    if not isinstance(value, Mapping):
        return as_text(value)
    origin = as_text(value.get("origin"))
    distance = as_int(value.get("rangeValue"))
    text = f"{distance} ft." if origin == "Ranged" and distance else origin
    aoe_value = as_int(value.get("aoeValue"))
    aoe_type = as_text(value.get("aoeType"))
    if aoe_value and aoe_type:
        text = f"{text} ({aoe_value} ft. {aoe_type})".strip()
    return text


def _duration(value: Any) -> str:
    if not isinstance(value, Mapping):
        return as_text(value)
    kind = as_text(value.get("durationType"))
    interval = as_int(value.get("durationInterval"))
    unit = as_text(value.get("durationUnit"))
    span = ""
    if interval and unit:
        span = f"{interval} {unit}{'s' if interval != 1 else ''}"
    if kind == "Concentration":
        return f"Concentration, up to {span}" if span else kind
    if kind == "Time":
        return span
    return kind


def _components(value: Any) -> dict[str, bool]:
    flags = {"verbal": False, "somatic": False, "material": False}
    if isinstance(value, Mapping):
        for key in flags:
            flags[key] = bool(value.get(key))
        return flags
    if isinstance(value, (list, tuple)):
        for item in value:
            name = _COMPONENT_IDS.get(as_int(item))
            if name:
                flags[name] = True
    return flags


def _dice_formula(dice: Any) -> str:
    if not isinstance(dice, Mapping):
        return ""
    formula = format_dice(
        as_int(dice.get("diceCount")),
        as_int(dice.get("diceValue")),
        as_int(dice.get("fixedValue")),
    )
    return formula or as_text(dice.get("diceString"))


def _modifiers(payload: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    value = lookup(payload, "modifiers")
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _damage_type(entry: Mapping[str, Any]) -> str:
    type_id = as_int(entry.get("damageTypeId"))
    if 1 <= type_id <= len(DAMAGE_TYPES):
        return DAMAGE_TYPES[type_id - 1]
    return as_text(entry.get("subType") or entry.get("damageType")).lower()


def _damage(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    parts: list[dict[str, Any]] = []
    for modifier in _modifiers(payload):
        if as_text(modifier.get("type")).lower() != "damage":
            continue
        formula = _dice_formula(modifier.get("die"))
        damage_type = _damage_type(modifier)
        if formula:
            parts.append({"formula": formula, "types": [damage_type] if damage_type else []})

    if parts:
        return parts

    raw = lookup(payload, "damageDice")
    entries = raw if isinstance(raw, list) else [raw] if isinstance(raw, Mapping) else []
    fallback_types = as_list(lookup(payload, "damageTypes"))
    for entry in entries:
        formula = _dice_formula(entry)
        if not formula:
            continue
        damage_type = _damage_type(entry)
        types = [damage_type] if damage_type else [item.lower() for item in fallback_types]
        parts.append({"formula": formula, "types": types})
    return parts


def _healing(payload: Mapping[str, Any]) -> str:
    dice = lookup(payload, "healingDice")
    if isinstance(dice, list):
        dice = dice[0] if dice else None
    formula = _dice_formula(dice)
    uses_modifier = isinstance(dice, Mapping) and bool(dice.get("usePrimaryStat"))

    if not formula:
        for modifier in _modifiers(payload):
            if as_text(modifier.get("subType")).lower() == "hit-points" and as_text(modifier.get("type")).lower() == "bonus":
                formula = _dice_formula(modifier.get("die"))
                uses_modifier = bool(modifier.get("usePrimaryStat"))
                if formula:
                    break

    if formula and uses_modifier:
        return f"{formula} + {SPELLCASTING_MOD}"
    return formula


def _higher_levels(payload: Mapping[str, Any], base_level: int) -> list[dict[str, Any]]:
    sources: list[Any] = [lookup(payload, "atHigherLevels")]
    sources.extend(modifier.get("atHigherLevels") for modifier in _modifiers(payload))
    for source in sources:
        if not isinstance(source, Mapping):
            continue
        definitions = source.get("higherLevelDefinitions")
        if not isinstance(definitions, list):
            continue
        rows: list[dict[str, Any]] = []
        for entry in definitions:
            if not isinstance(entry, Mapping):
                continue
            formula = _dice_formula(entry.get("dice"))
            if not formula:
                continue
            rows.append({"level": as_int(entry.get("level")) or base_level + 1, "formula": formula})
        if rows:
            return rows

    scale = lookup(payload, "scaleType")
    if isinstance(scale, list):
        for entry in scale:
            formula = _dice_formula(entry) if isinstance(entry, Mapping) else ""
            if formula:
                return [{"level": base_level + 1, "formula": formula}]
    return []


def _put_flag(partial: PartialFields, name: str, raw: Any) -> None:
    # Missing keys stay absent.
    if raw is None:
        return
    partial.values[name] = FieldValue(value=bool(raw), provenance=Provenance.API, confidence=Confidence.EXACT)


class SpellApiExtractor:
    """Structured lookups on a spell ``definition``; every value is exact."""

    content_kind = ContentKind.SPELL
    channel = Channel.API

    def extract(self, document: RawDocument) -> PartialFields:
        partial = new_partial(document)
        payload = document.payload
        if not isinstance(payload, Mapping):
            logger.warning("Spell API payload is not an object: id=%s", document.content_id)
            report_absent(document, partial)
            return partial

        level_raw = lookup(payload, "level")
        level = as_int(level_raw, -1)
        paragraphs, higher_level_text = split_higher_level(
            markup_paragraphs(str(lookup(payload, "description") or ""))
        )
        explicit_higher = lookup(payload, "higherLevelDescription")
        if explicit_higher:
            higher_level_text = " ".join(markup_paragraphs(str(explicit_higher)))

        put(partial, "name", as_text(lookup(payload, "name")))
        if level >= 0:
            put(partial, "level", level)
        put(partial, "school", as_text(lookup(payload, "school")))
        put(partial, "casting_time", _casting_time(lookup(payload, "activation")))
        put(partial, "range", _range(lookup(payload, "range")))
        put(partial, "duration", _duration(lookup(payload, "duration")))

        components = lookup(payload, "components")
        if components is not None:
            put(partial, "components", _components(components))
        put(partial, "materials", as_text(lookup(payload, "componentsDescription")))
        _put_flag(partial, "ritual", lookup(payload, "ritual"))
        _put_flag(partial, "concentration", lookup(payload, "concentration"))
        put(partial, "description", "\n".join(paragraphs))
        put(partial, "higher_level_description", higher_level_text)
        put(partial, "tags", as_list(lookup(payload, "tags")))
        put(partial, "classes", as_list(lookup(payload, "classes", "availableFor")))
        put(partial, "source", as_text(lookup(payload, "source")))

        attack_type = _ATTACK_TYPES.get(as_int(lookup(payload, "attackType")), "")
        put(partial, "attack_type", attack_type)
        _put_flag(partial, "requires_attack_roll", lookup(payload, "requiresAttackRoll"))
        _put_flag(partial, "requires_saving_throw", lookup(payload, "requiresSavingThrow"))
        put(partial, "save_ability", ABILITY_IDS.get(as_int(lookup(payload, "saveDcAbilityId")), ""))
        fixed_dc = as_int(lookup(payload, "fixedSaveDc", "overrideSaveDc"))
        if fixed_dc > 0:
            put(partial, "fixed_save_dc", fixed_dc)
        put(partial, "damage", _damage(payload))
        put(partial, "healing", _healing(payload))
        put(partial, "higher_levels", _higher_levels(payload, max(level, 0)))

        report_absent(document, partial)
        return partial
