"""Small lookup, coercion and markup helpers used by every extractor."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from beyondimport.catalog import extracted_field_names, required_fields
from beyondimport.models import (
    Confidence,
    FieldValue,
    PartialFields,
    RawDocument,
    is_empty,
    provenance_for,
)
from beyondimport.parsing.normalization import normalize_whitespace

logger = logging.getLogger(__name__)

_LEVEL_HEADING_RE = re.compile(r"^Level\s*(\d+)\s*:?\s*(.*)$", re.IGNORECASE)
_HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}


def new_partial(document: RawDocument) -> PartialFields:
    return PartialFields(
        content_id=document.content_id,
        content_kind=document.content_kind,
        channel=document.channel,
    )


def put(partial: PartialFields, name: str, value: Any, confidence: Confidence = Confidence.EXACT) -> None:
    """Record a field unless the value is empty; empty values stay absent."""

    if is_empty(value):
        return
    partial.values[name] = FieldValue(
        value=value,
        provenance=provenance_for(partial.channel),
        confidence=confidence,
    )


def report_absent(document: RawDocument, partial: PartialFields) -> None:
    """Log every absent field with the payload excerpt hash, never the content."""

    required = set(required_fields(document.content_kind))
    excerpt = document.excerpt_hash()
    for name in extracted_field_names(document.content_kind):
        if partial.is_present(name):
            continue
        level = logging.WARNING if name in required else logging.DEBUG
        logger.log(
            level,
            "Field absent: kind=%s channel=%s id=%s field=%s excerpt=%s",
            document.content_kind.value,
            document.channel.value,
            document.content_id,
            name,
            excerpt,
        )


def lookup(payload: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among ``keys`` on the payload or its ``definition``."""

    definition = payload.get("definition")
    scopes: list[Mapping[str, Any]] = [payload]
    if isinstance(definition, Mapping):
        scopes.append(definition)
    for scope in scopes:
        for key in keys:
            value = scope.get(key)
            if not is_empty(value):
                return value
    return None


def as_text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return ""
    return normalize_whitespace(str(value))


def item_label(item: Any) -> str:
    """Text of a list entry that may be a plain string or a ``{"name": ...}`` mapping."""

    if isinstance(item, Mapping):
        for key in ("name", "label", "description", "value"):
            text = as_text(item.get(key))
            if text:
                return text
        return ""
    return as_text(item)


def as_list(value: Any) -> list[str]:
    """Coerce an array-or-string value into a list of non-empty strings."""

    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        parts = [value]
    items: list[str] = []
    for part in parts:
        text = item_label(part)
        if text and text not in items:
            items.append(text)
    return items


def as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def soup_of(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def node_text(node: Tag | None) -> str:
    if node is None:
        return ""
    return normalize_whitespace(node.get_text(" ", strip=True))


def split_level_heading(text: str) -> tuple[int | None, str]:
    """Split "Level 3: Steady Aim" into ``(3, "Steady Aim")``."""

    match = _LEVEL_HEADING_RE.match(text)
    if match is None:
        return None, text
    name = match.group(2).strip() or text
    return int(match.group(1)), name


def is_level_heading(text: str) -> bool:
    return _LEVEL_HEADING_RE.match(text) is not None


def following_blocks(heading: Tag, stop: set[str] | None = None) -> list[str]:
    """Texts of the ``p``/``ul``/``ol`` siblings after a heading, up to the next stop tag."""

    stop_tags = _HEADINGS if stop is None else stop
    parts: list[str] = []
    for sibling in heading.find_next_siblings():
        if sibling.name in stop_tags:
            break
        if sibling.name == "p":
            text = node_text(sibling)
            if text:
                parts.append(text)
        elif sibling.name in {"ul", "ol"}:
            items = [f"- {node_text(li)}" for li in sibling.find_all("li") if node_text(li)]
            if items:
                parts.append("\n".join(items))
    return parts


def table_title(table: Tag) -> str:
    caption = table.find("caption")
    if caption is not None:
        return node_text(caption)
    inner_heading = table.find(["h2", "h3", "h4"])
    if inner_heading is not None:
        return node_text(inner_heading)
    return ""


def table_rows(table: Tag) -> list[list[str]]:
    rows: list[list[str]] = []
    for row in table.find_all("tr"):
        cells = [node_text(cell) for cell in row.find_all(["th", "td"])]
        if any(cells):
            rows.append(cells)
    return rows


def table_record(table: Tag) -> dict[str, Any]:
    rows = table_rows(table)
    return {
        "title": table_title(table),
        "headers": rows[0] if rows else [],
        "rows": rows[1:],
    }
