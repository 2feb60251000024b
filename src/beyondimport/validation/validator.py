"""JSON Schema validation of canonical records with field-path diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from beyondimport.models import CanonicalRecord, ContentKind
from beyondimport.result import Err, Ok

_SCHEMA_DIR = Path(__file__).parent / "schemas"
_SCHEMA_FILES: dict[ContentKind, str] = {
    ContentKind.CLASS: "class-record.schema.json",
    ContentKind.SPELL: "spell-record.schema.json",
}


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One schema violation located by its dotted field path."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


@lru_cache(maxsize=None)
def load_schema(kind: ContentKind) -> dict[str, Any]:
    return json.loads((_SCHEMA_DIR / _SCHEMA_FILES[kind]).read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(kind: ContentKind) -> Draft202012Validator:
    schema = load_schema(kind)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _dotted(path: Any) -> str:
    return ".".join(str(part) for part in path) or "(root)"


def validate_payload(payload: dict[str, Any], kind: ContentKind) -> list[ValidationIssue]:
    """Return every violation of ``payload`` against the kind's schema, sorted by path."""

    errors = sorted(_validator(kind).iter_errors(payload), key=lambda err: [str(part) for part in err.path])
    issues = [ValidationIssue(path=_dotted(err.path), message=err.message) for err in errors]
    return sorted(issues, key=lambda issue: (issue.path, issue.message))


def validate_record(record: CanonicalRecord) -> Ok[CanonicalRecord] | Err[list[ValidationIssue]]:
    """Validate without correcting: the record is returned unchanged or rejected."""

    issues = validate_payload(record.to_dict(), record.content_kind)
    if issues:
        return Err(issues)
    return Ok(record)
