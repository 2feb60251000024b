"""Canonical data structures shared by fetchers, extractors, merge and synthesis."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import hashlib
import json
import os
from typing import Any

EXCERPT_BYTES = 2048
SCHEMA_VERSION = "2025-06-11"


class ContentKind(str, Enum):
    CLASS = "class"
    SPELL = "spell"


class Channel(str, Enum):
    API = "api"
    HTML = "html"


class Provenance(str, Enum):
    API = "api"
    HTML = "html"
    DEFAULT = "default"


class Confidence(str, Enum):
    EXACT = "exact"
    HEURISTIC = "heuristic"


class DiagnosticKind(str, Enum):
    EXTRACTION_GAP = "extraction_gap"
    HEURISTIC_PARSE = "heuristic_parse"
    PARSE_AMBIGUITY = "parse_ambiguity"
    UNCLASSIFIED_AUTOMATION = "unclassified_automation"
    SUPERSEDED_VALUE = "superseded_value"
    FETCH_FAILED = "fetch_failed"


class AdvancementKind(str, Enum):
    GRANT = "grant"
    CHOICE = "choice"


def provenance_for(channel: Channel) -> Provenance:
    return Provenance.API if channel is Channel.API else Provenance.HTML


def is_empty(value: Any) -> bool:
    """Return True for values that carry no data.

    Booleans and numbers always count as data; a mapping is empty when all of
    its values are empty.
    """

    if value is None:
        return True
    if isinstance(value, (bool, int, float)):
        return False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Mapping):
        return all(is_empty(item) for item in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Opaque provider credential valid for one pipeline run."""

    bearer_token: str = ""
    cobalt_session: str = ""

    @property
    def is_present(self) -> bool:
        return bool(self.bearer_token.strip() or self.cobalt_session.strip())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AuthContext":
        source: Mapping[str, str] = os.environ if environ is None else environ
        return cls(
            bearer_token=source.get("BEYOND_BEARER_TOKEN", "").strip(),
            cobalt_session=source.get("BEYOND_COBALT_SESSION", "").strip(),
        )

    def __repr__(self) -> str:
        return f"AuthContext(present={self.is_present})"


@dataclass(frozen=True, slots=True)
class ContentRequest:
    """One inbound import call."""

    content_id: str
    content_kind: ContentKind
    auth: AuthContext = field(default_factory=AuthContext)


@dataclass(frozen=True, slots=True)
class RawDocument:
    """Payload returned by a fetcher: a JSON mapping (api) or markup (html)."""

    content_id: str
    content_kind: ContentKind
    channel: Channel
    payload: Any
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def excerpt_hash(self) -> str:
        """Short stable hash of the payload head, safe to put in logs."""

        if isinstance(self.payload, str):
            text = self.payload
        else:
            try:
                text = json.dumps(self.payload, sort_keys=True, default=str)
            except (TypeError, ValueError):
                text = repr(self.payload)
        head = text.encode("utf-8", errors="replace")[:EXCERPT_BYTES]
        return hashlib.sha256(head).hexdigest()[:12]


@dataclass(frozen=True, slots=True)
class FieldValue:
    """An extracted datum tagged with where it came from and how it was obtained."""

    value: Any
    provenance: Provenance
    confidence: Confidence = Confidence.EXACT

    def to_dict(self) -> dict[str, str]:
        return {"source": self.provenance.value, "confidence": self.confidence.value}


@dataclass(slots=True)
class PartialFields:
    """Per-channel extraction output; a missing key means the field is absent."""

    content_id: str
    content_kind: ContentKind
    channel: Channel
    values: dict[str, FieldValue] = field(default_factory=dict)

    def get(self, name: str) -> FieldValue | None:
        return self.values.get(name)

    def is_present(self, name: str) -> bool:
        found = self.values.get(name)
        return found is not None and not is_empty(found.value)

    def absent(self, required: Iterable[str]) -> list[str]:
        return [name for name in required if not self.is_present(name)]

    def present_names(self) -> list[str]:
        return [name for name in self.values if self.is_present(name)]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Field-level note attached to a record for logging and review."""

    kind: DiagnosticKind
    field: str
    message: str
    channel: Channel | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind.value,
            "field": self.field,
            "message": self.message,
            "channel": self.channel.value if self.channel is not None else None,
        }


@dataclass(frozen=True, slots=True)
class AdvancementEntry:
    """Structured proficiency grant or choice derived from trait text."""

    kind: AdvancementKind
    level: int
    trait: str
    pool: tuple[str, ...]
    count: int | None = None

    def __post_init__(self) -> None:
        if self.kind is AdvancementKind.CHOICE:
            if self.count is None or not 0 <= self.count <= len(self.pool):
                raise ValueError(f"choice count {self.count} outside 0..{len(self.pool)} for {self.trait}")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "level": self.level,
            "trait": self.trait,
            "pool": list(self.pool),
        }
        if self.count is not None:
            payload["count"] = self.count
        return payload


EquipmentChoiceSet = list[list[str]]


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """Merged, fully keyed representation of one content entity."""

    content_id: str
    content_kind: ContentKind
    fields: Mapping[str, Any]
    provenance: Mapping[str, FieldValue]
    diagnostics: tuple[Diagnostic, ...] = ()
    schema_version: str = SCHEMA_VERSION

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.content_id,
            "kind": self.content_kind.value,
            "schema_version": self.schema_version,
        }
        payload.update(json.loads(json.dumps(dict(self.fields))))
        payload["provenance"] = {name: value.to_dict() for name, value in sorted(self.provenance.items())}
        payload["diagnostics"] = [item.to_dict() for item in self.diagnostics]
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)
