"""Text normalization helpers shared by extractors and parsers."""

from __future__ import annotations

import re
import unicodedata

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCT_RE = re.compile(r"[\s.;:,]+$")
_LEADING_CONNECTOR_RE = re.compile(r"^(?:and|or)\s+", re.IGNORECASE)
_BLOCK_TAGS = ["p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def label_key(text: str) -> str:
    """Stable comparison key for a human label: NFKC, casefolded, no trailing colon."""

    normalized = unicodedata.normalize("NFKC", text)
    return normalize_whitespace(normalized).rstrip(":").strip().casefold()


def clean_item(text: str) -> str:
    """Strip a leading and/or connector and trailing punctuation from a list item."""

    cleaned = normalize_whitespace(text)
    cleaned = _LEADING_CONNECTOR_RE.sub("", cleaned)
    return _TRAILING_PUNCT_RE.sub("", cleaned).strip()


def markup_paragraphs(markup: str) -> list[str]:
    """Split markup (or plain text) into normalized block texts."""

    if not markup:
        return []
    if "<" not in markup:
        return [part for part in (normalize_whitespace(chunk) for chunk in re.split(r"\n\s*\n", markup)) if part]

    soup = BeautifulSoup(markup, "html.parser")
    parts: list[str] = []
    for node in soup.find_all(_BLOCK_TAGS):
        if node.find_parent(_BLOCK_TAGS) is not None:
            continue
        text = normalize_whitespace(node.get_text(" ", strip=True))
        if text:
            parts.append(text)
    if parts:
        return parts

    fallback = normalize_whitespace(soup.get_text(" ", strip=True))
    return [fallback] if fallback else []


def markup_to_text(markup: str) -> str:
    """Render markup as plain text with one paragraph per line."""

    return "\n".join(markup_paragraphs(markup))


def split_top_level(text: str, separator: re.Pattern[str]) -> list[str]:
    """Split on separator matches that sit outside any parentheses."""

    depth_at: list[int] = []
    depth = 0
    for char in text:
        depth_at.append(depth)
        if char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1

    parts: list[str] = []
    start = 0
    for match in separator.finditer(text):
        if depth_at[match.start()] != 0:
            continue
        parts.append(text[start : match.start()])
        start = match.end()
    parts.append(text[start:])
    return parts
