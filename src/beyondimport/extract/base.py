"""Shared extractor contract and completeness policy."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from beyondimport.catalog import required_fields
from beyondimport.models import Channel, ContentKind, PartialFields, RawDocument


@runtime_checkable
class FieldExtractor(Protocol):
    """Protocol that every per-kind, per-channel extractor must implement."""

    content_kind: ContentKind
    channel: Channel

    def extract(self, document: RawDocument) -> PartialFields:
        """Map a raw document to provenance-tagged fields without raising."""


def is_incomplete(partial: PartialFields | None, kind: ContentKind) -> bool:
    """Return True when any required field of ``kind`` is absent."""

    if partial is None:
        return True
    return bool(partial.absent(required_fields(kind)))
