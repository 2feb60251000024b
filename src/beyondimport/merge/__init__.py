"""Channel reconciliation, key canonicalization and derived class sub-records."""

from .aliases import canonical_field_name, canonical_trait_label, canonicalize_traits
from .derived import DerivedFields, derive_class_fields
from .engine import MergeOutcome, merge

__all__ = [
    "DerivedFields",
    "MergeOutcome",
    "canonical_field_name",
    "canonical_trait_label",
    "canonicalize_traits",
    "derive_class_fields",
    "merge",
]
