"""Result value shared by every text-to-structure parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from beyondimport.models import Confidence


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Parsed value plus how it was obtained.

    ``matched`` is False when no pattern applied and ``value`` is the parser's
    empty result. ``dropped`` lists input tokens the parser refused to keep.
    """

    value: Any
    confidence: Confidence
    matched: bool = True
    dropped: tuple[str, ...] = ()

    @classmethod
    def exact(cls, value: Any, dropped: tuple[str, ...] = ()) -> "ParseOutcome":
        return cls(value=value, confidence=Confidence.EXACT, matched=True, dropped=dropped)

    @classmethod
    def heuristic(cls, value: Any, dropped: tuple[str, ...] = ()) -> "ParseOutcome":
        return cls(value=value, confidence=Confidence.HEURISTIC, matched=True, dropped=dropped)

    @classmethod
    def miss(cls, value: Any, dropped: tuple[str, ...] = ()) -> "ParseOutcome":
        return cls(value=value, confidence=Confidence.HEURISTIC, matched=False, dropped=dropped)
