"""Per-kind, per-channel field extractors and their default registry."""

from beyondimport.models import Channel, ContentKind

from .base import FieldExtractor, is_incomplete
from .class_api import ClassApiExtractor
from .class_html import ClassHtmlExtractor
from .spell_api import SpellApiExtractor
from .spell_html import SpellHtmlExtractor


def build_default_extractors() -> dict[tuple[ContentKind, Channel], FieldExtractor]:
    """Return the extractor map keyed by ``(content kind, channel)``."""
    extractors: list[FieldExtractor] = [
        ClassApiExtractor(),
        ClassHtmlExtractor(),
        SpellApiExtractor(),
        SpellHtmlExtractor(),
    ]
    return {(extractor.content_kind, extractor.channel): extractor for extractor in extractors}


__all__ = [
    "ClassApiExtractor",
    "ClassHtmlExtractor",
    "FieldExtractor",
    "SpellApiExtractor",
    "SpellHtmlExtractor",
    "build_default_extractors",
    "is_incomplete",
]
