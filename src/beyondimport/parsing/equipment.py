"""Starting-equipment alternative parser: "(A) ...; or (B) ..." into item bundles."""

from __future__ import annotations

import re

from beyondimport.parsing.normalization import clean_item, normalize_whitespace, split_top_level
from beyondimport.parsing.outcome import ParseOutcome

_MARKER_RE = re.compile(r"\(([A-Z])\)\s*")
_BRANCH_TAIL_RE = re.compile(r"(?:[;,]\s*)?(?:\bor\b\s*)?$", re.IGNORECASE)
_ITEM_SPLIT_RE = re.compile(r",\s*|;\s*")
_PREAMBLE_RE = re.compile(r"^choose\s+[A-Z](?:\s*,\s*[A-Z])*\s+or\s+[A-Z]\s*:\s*", re.IGNORECASE)


def _bundle(text: str) -> list[str]:
    items: list[str] = []
    for part in split_top_level(text, _ITEM_SPLIT_RE):
        item = clean_item(part)
        if item:
            items.append(item)
    return items


def parse_equipment_alternatives(text: str) -> ParseOutcome:
    """Split equipment text into ordered alternative bundles.

    Commas inside parentheses never split an item, so "a quiver (20 arrows)"
    survives intact. Text without lettered markers is one bundle.
    """

    cleaned = normalize_whitespace(text or "")
    if not cleaned:
        return ParseOutcome.miss([])

    markers = list(_MARKER_RE.finditer(cleaned))
    if len(markers) < 2:
        bundle = _bundle(_PREAMBLE_RE.sub("", cleaned))
        if not bundle:
            return ParseOutcome.miss([])
        return ParseOutcome.heuristic([bundle])

    bundles: list[list[str]] = []
    for index, marker in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(cleaned)
        branch = _BRANCH_TAIL_RE.sub("", cleaned[marker.end() : end].strip())
        bundle = _bundle(branch)
        if bundle:
            bundles.append(bundle)

    if not bundles:
        return ParseOutcome.miss([])
    return ParseOutcome.heuristic(bundles)
