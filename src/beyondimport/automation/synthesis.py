"""Classify a merged spell record and emit one activity per behavior kind."""

from __future__ import annotations

from dataclasses import replace
import logging
import re
from typing import Any

from beyondimport.automation.activities import (
    NO_SCALING,
    PER_LEVEL,
    SPELLCASTING_DC,
    Activity,
    AttackActivity,
    HealActivity,
    SaveActivity,
    ScalingRule,
    UtilityActivity,
)
from beyondimport.models import (
    CanonicalRecord,
    Confidence,
    ContentKind,
    Diagnostic,
    DiagnosticKind,
    FieldValue,
    Provenance,
)
from beyondimport.parsing.dice import delta_from_table, delta_from_text

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_HALF_DAMAGE_RE = re.compile(r"half as much damage|half damage|half the damage", re.IGNORECASE)
_NO_DAMAGE_RE = re.compile(
    r"no damage on a success|takes? no damage|on a successful save[^.]*\bno\b[^.]*damage|\bor take\b",
    re.IGNORECASE,
)
_TRIGGER_FIELDS = ("requires_attack_roll", "attack_type", "requires_saving_throw", "save_ability", "healing")


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.casefold()).strip("-")


def _on_save(damage_parts: list[dict[str, Any]], description: str) -> str:
    if not damage_parts:
        return "none"
    if _HALF_DAMAGE_RE.search(description):
        return "half"
    if _NO_DAMAGE_RE.search(description):
        return "none"
    return "half"


def _scaling(fields: dict[str, Any], diagnostics: list[Diagnostic]) -> tuple[ScalingRule, Confidence]:
    table = fields.get("higher_levels") or []
    if table:
        outcome = delta_from_table(table)
        if outcome.matched:
            return ScalingRule(mode=PER_LEVEL, formula=outcome.value), outcome.confidence
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.PARSE_AMBIGUITY,
                field="activities",
                message="higher-level table has no consistent per-level delta",
            )
        )

    text = fields.get("higher_level_description") or ""
    if text:
        outcome = delta_from_text(text)
        if outcome.matched:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.HEURISTIC_PARSE,
                    field="activities",
                    message=f"scaling delta {outcome.value} read from higher-level text",
                )
            )
            return ScalingRule(mode=PER_LEVEL, formula=outcome.value), Confidence.HEURISTIC

    return ScalingRule(mode=NO_SCALING, formula=""), Confidence.EXACT


def build_activities(record: CanonicalRecord) -> tuple[list[Activity], list[Diagnostic], Confidence]:
    """Return the activities for a spell record plus the diagnostics raised on the way."""

    fields = dict(record.fields)
    diagnostics: list[Diagnostic] = []
    name = str(fields.get("name") or "")
    slug = slugify(name) or slugify(record.content_id) or "spell"
    scaling, confidence = _scaling(fields, diagnostics)
    common = {
        "name": name,
        "activation": str(fields.get("casting_time") or ""),
        "range": str(fields.get("range") or ""),
        "scaling": scaling,
    }

    damage_parts: list[dict[str, Any]] = [dict(part) for part in fields.get("damage") or []]
    description = str(fields.get("description") or "")
    fixed_dc = int(fields.get("fixed_save_dc") or 0)
    is_attack = bool(fields.get("requires_attack_roll")) or bool(fields.get("attack_type"))
    is_save = bool(fields.get("requires_saving_throw")) or bool(fields.get("save_ability")) or fixed_dc > 0
    healing = str(fields.get("healing") or "")

    activities: list[Activity] = []
    if is_attack:
        activities.append(
            AttackActivity(
                id=f"{slug}-attack",
                attack_type=str(fields.get("attack_type") or ""),
                damage_parts=tuple(damage_parts),
                **common,
            )
        )
    if is_save:
        # Damage rides on the attack when both fire.
        save_parts = [] if is_attack else damage_parts
        save_ability = str(fields.get("save_ability") or "")
        activities.append(
            SaveActivity(
                id=f"{slug}-save",
                abilities=(save_ability,) if save_ability else (),
                dc_calculation="" if fixed_dc > 0 else SPELLCASTING_DC,
                dc_formula=str(fixed_dc) if fixed_dc > 0 else "",
                damage_parts=tuple(save_parts),
                on_save=_on_save(save_parts, description),
                **common,
            )
        )
    if healing:
        activities.append(HealActivity(id=f"{slug}-heal", formula=healing, **common))

    if not activities:
        activities.append(UtilityActivity(id=f"{slug}-utility", description=description, **common))
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.UNCLASSIFIED_AUTOMATION,
                field="activities",
                message="no attack, save or healing signal; emitted a utility activity",
            )
        )
        logger.info("Unclassified spell automation: id=%s", record.content_id)

    return activities, diagnostics, confidence


def _activity_provenance(record: CanonicalRecord, confidence: Confidence) -> FieldValue:
    sources = [
        record.provenance[name]
        for name in _TRIGGER_FIELDS
        if name in record.provenance and record.provenance[name].provenance is not Provenance.DEFAULT
    ]
    if not sources and "description" in record.provenance:
        sources = [record.provenance["description"]]
    provenance = sources[0].provenance if sources else Provenance.DEFAULT
    if any(source.confidence is Confidence.HEURISTIC for source in sources):
        confidence = Confidence.HEURISTIC
    return FieldValue(value=None, provenance=provenance, confidence=confidence)


def synthesize(record: CanonicalRecord) -> CanonicalRecord:
    """Return a copy of a spell record with ``activities`` populated (never empty)."""

    if record.content_kind is not ContentKind.SPELL:
        raise ValueError(f"Activities are synthesized for spells only, got {record.content_kind.value}")

    activities, diagnostics, confidence = build_activities(record)
    fields = dict(record.fields)
    fields["activities"] = [activity.to_dict() for activity in activities]
    provenance = dict(record.provenance)
    provenance["activities"] = _activity_provenance(record, confidence)
    return replace(
        record,
        fields=fields,
        provenance=provenance,
        diagnostics=record.diagnostics + tuple(diagnostics),
    )
