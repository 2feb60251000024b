"""Deterministic reconciliation of per-channel fields into one canonical record.

Precedence is applied per catalog field, and per trait label inside
``core_traits``: a non-empty API value wins, then a non-empty HTML value, then
the declared default. Every non-empty input that does not become the record's
value is reported as a ``superseded_value`` diagnostic, so nothing is dropped
silently.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any

from beyondimport.catalog import default_for, derived_fields, extracted_field_names, field_names, required_fields
from beyondimport.merge.aliases import canonical_field_name, canonical_trait_label, canonicalize_traits
from beyondimport.merge.derived import derive_class_fields
from beyondimport.models import (
    CanonicalRecord,
    Channel,
    Confidence,
    ContentKind,
    Diagnostic,
    DiagnosticKind,
    FieldValue,
    PartialFields,
    Provenance,
    is_empty,
)

logger = logging.getLogger(__name__)

_PRECEDENCE: tuple[Channel, ...] = (Channel.API, Channel.HTML)


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    record: CanonicalRecord
    consulted: tuple[Channel, ...]

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return self.record.diagnostics


def _shadowed_spelling(name: str, label: str, channel: Channel) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.SUPERSEDED_VALUE,
        field=name,
        message=f"'{label}' shadowed by another {channel.value} spelling of the same field",
        channel=channel,
    )


def _canonical_values(partial: PartialFields) -> tuple[dict[str, FieldValue], list[Diagnostic]]:
    values: dict[str, FieldValue] = {}
    diagnostics: list[Diagnostic] = []
    for name, field_value in partial.values.items():
        canonical = canonical_field_name(name)
        if is_empty(field_value.value):
            continue
        if canonical == "core_traits" and isinstance(field_value.value, Mapping):
            traits, lost = canonicalize_traits(field_value.value)
            for label in lost:
                trait_field = f"core_traits.{canonical_trait_label(label)}"
                diagnostics.append(_shadowed_spelling(trait_field, label, partial.channel))
            field_value = FieldValue(
                value=traits,
                provenance=field_value.provenance,
                confidence=field_value.confidence,
            )
        if canonical in values:
            diagnostics.append(_shadowed_spelling(canonical, name, partial.channel))
            continue
        values[canonical] = field_value
    return values, diagnostics


def _by_channel(
    api_fields: PartialFields | None,
    html_fields: PartialFields | None,
    kind: ContentKind,
) -> tuple[dict[Channel, dict[str, FieldValue]], list[Diagnostic]]:
    inputs: dict[Channel, dict[str, FieldValue]] = {}
    shadowed: dict[Channel, list[Diagnostic]] = {}
    for partial in (api_fields, html_fields):
        if partial is None:
            continue
        if partial.content_kind is not kind:
            raise ValueError(f"Cannot merge {partial.content_kind.value} fields into a {kind.value} record")
        if partial.channel in inputs:
            raise ValueError(f"Two field sets supplied for channel {partial.channel.value}")
        inputs[partial.channel], shadowed[partial.channel] = _canonical_values(partial)
    diagnostics = [item for channel in _PRECEDENCE for item in shadowed.get(channel, [])]
    return inputs, diagnostics


def _superseded(name: str, shadowed: Channel, winner: Channel) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.SUPERSEDED_VALUE,
        field=name,
        message=f"{shadowed.value} value shadowed by {winner.value}",
        channel=shadowed,
    )


def _merge_traits(
    inputs: dict[Channel, dict[str, FieldValue]],
    diagnostics: list[Diagnostic],
) -> tuple[dict[str, Any], dict[str, FieldValue]]:
    merged: dict[str, Any] = {}
    sources: dict[str, FieldValue] = {}
    for channel in _PRECEDENCE:
        field_value = inputs.get(channel, {}).get("core_traits")
        if field_value is None or not isinstance(field_value.value, Mapping):
            continue
        for label, text in field_value.value.items():
            if is_empty(text):
                continue
            if label in sources:
                winner = Channel(sources[label].provenance.value)
                diagnostics.append(_superseded(f"core_traits.{label}", channel, winner))
                continue
            merged[label] = text
            sources[label] = FieldValue(value=text, provenance=field_value.provenance, confidence=field_value.confidence)
    return merged, sources


def _traits_summary(sources: dict[str, FieldValue]) -> FieldValue | None:
    if not sources:
        return None
    provenances = [source.provenance for source in sources.values()]
    provenance = Provenance.API if Provenance.API in provenances else Provenance.HTML
    confidence = (
        Confidence.EXACT
        if all(source.confidence is Confidence.EXACT for source in sources.values())
        else Confidence.HEURISTIC
    )
    return FieldValue(value=None, provenance=provenance, confidence=confidence)


def merge(
    api_fields: PartialFields | None,
    html_fields: PartialFields | None,
    kind: ContentKind,
) -> MergeOutcome:
    """Merge the two channels' fields into a fully keyed CanonicalRecord.

    Either input may be None when its channel was not consulted. Inputs are
    keyed by their own channel, so swapping the arguments cannot change the
    result.
    """

    inputs, shadowed = _by_channel(api_fields, html_fields, kind)
    content_ids = sorted({partial.content_id for partial in (api_fields, html_fields) if partial is not None})
    if not content_ids:
        raise ValueError("merge needs at least one field set")
    content_id = content_ids[0]

    required = set(required_fields(kind))
    fields: dict[str, Any] = {}
    provenance: dict[str, FieldValue] = {}
    diagnostics: list[Diagnostic] = list(shadowed)

    for name in extracted_field_names(kind):
        if name == "core_traits":
            traits, trait_sources = _merge_traits(inputs, diagnostics)
            summary = _traits_summary(trait_sources)
            fields[name] = traits
            if summary is None:
                provenance[name] = FieldValue(value=None, provenance=Provenance.DEFAULT)
            else:
                provenance[name] = summary
                for label, source in trait_sources.items():
                    provenance[f"core_traits.{label}"] = FieldValue(
                        value=None,
                        provenance=source.provenance,
                        confidence=source.confidence,
                    )
            winner_value = summary
        else:
            winner_value = None
            winner_channel: Channel | None = None
            for channel in _PRECEDENCE:
                candidate = inputs.get(channel, {}).get(name)
                if candidate is None:
                    continue
                if winner_value is None:
                    winner_value = candidate
                    winner_channel = channel
                elif winner_channel is not None:
                    diagnostics.append(_superseded(name, channel, winner_channel))

            if winner_value is None:
                fields[name] = default_for(kind, name)
                provenance[name] = FieldValue(value=None, provenance=Provenance.DEFAULT)
            else:
                fields[name] = winner_value.value
                provenance[name] = FieldValue(
                    value=None,
                    provenance=winner_value.provenance,
                    confidence=winner_value.confidence,
                )

        if winner_value is None:
            if name in required:
                diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.EXTRACTION_GAP,
                        field=name,
                        message="absent from every consulted channel; declared default used",
                    )
                )
                logger.warning("Extraction gap: kind=%s id=%s field=%s", kind.value, content_id, name)
        elif winner_value.confidence is Confidence.HEURISTIC:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.HEURISTIC_PARSE,
                    field=name,
                    message="value obtained by pattern matching",
                    channel=Channel(winner_value.provenance.value),
                )
            )

    for name in derived_fields(kind):
        fields[name] = default_for(kind, name)
        provenance[name] = FieldValue(value=None, provenance=Provenance.DEFAULT)

    if kind is ContentKind.CLASS:
        derived = derive_class_fields(fields["core_traits"], _trait_sources(provenance, fields["core_traits"]))
        for name, value in derived.values.items():
            fields[name] = value
            source = derived.provenance[name]
            provenance[name] = FieldValue(value=None, provenance=source.provenance, confidence=source.confidence)
        diagnostics.extend(derived.diagnostics)

    record = CanonicalRecord(
        content_id=content_id,
        content_kind=kind,
        fields={name: fields[name] for name in field_names(kind)},
        provenance=provenance,
        diagnostics=tuple(diagnostics),
    )
    return MergeOutcome(record=record, consulted=tuple(channel for channel in _PRECEDENCE if channel in inputs))


def _trait_sources(provenance: Mapping[str, FieldValue], traits: Mapping[str, Any]) -> dict[str, FieldValue]:
    return {label: provenance[f"core_traits.{label}"] for label in traits}
