"""Schema validation of canonical records."""

from .validator import ValidationIssue, load_schema, validate_payload, validate_record

__all__ = ["ValidationIssue", "load_schema", "validate_payload", "validate_record"]
