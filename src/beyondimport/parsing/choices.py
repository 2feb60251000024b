"""Choice-count and proficiency-pool parsers for trait text."""

from __future__ import annotations

import re

from beyondimport.parsing.normalization import clean_item, normalize_whitespace, split_top_level
from beyondimport.parsing.outcome import ParseOutcome

_NUMBER_WORDS: dict[str, int] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

_CHOOSE_RE = re.compile(
    r"\bchoose\s+(?:any\s+)?(\d+|one|two|three|four|five|six|seven|eight|nine|ten)\b",
    re.IGNORECASE,
)
_PARENTHESISED_RE = re.compile(r"^\s*(?:[^()]*?)\(([^()]+)\)")
_LIST_LEAD_RE = re.compile(r"^\s*(?:skills?\s+)?(?:[:\-]|from(?:\s+the\s+following)?:?|among:?)\s*", re.IGNORECASE)
_CHOICE_SPLIT_RE = re.compile(r",\s*(?:and\s+|or\s+)?|\s+and\s+|\s+or\s+", re.IGNORECASE)
_GRANT_SPLIT_RE = re.compile(r",\s*(?:and\s+)?|;\s*|\s+and\s+", re.IGNORECASE)
_NONE_VALUES = {"none", "no", "-", "\u2014", "n/a"}


def parse_choice_count(text: str) -> ParseOutcome:
    """Extract N from "choose N"; absent means not a choice and yields 0."""

    match = _CHOOSE_RE.search(text or "")
    if match is None:
        return ParseOutcome.miss(0)
    raw = match.group(1).casefold()
    count = int(raw) if raw.isdigit() else _NUMBER_WORDS[raw]
    return ParseOutcome.heuristic(count)


def _split_pool(text: str, separator: re.Pattern[str]) -> list[str]:
    items: list[str] = []
    for part in split_top_level(text, separator):
        item = clean_item(part)
        if item and item.casefold() not in _NONE_VALUES and item not in items:
            items.append(item)
    return items


def parse_proficiency_pool(text: str) -> ParseOutcome:
    """Return the option pool of a trait.

    With a ``choose N`` clause the pool is the parenthesised list or the text
    after a colon or "from", split on commas, "and" and "or". Without one the
    whole text is a grant and is split on commas and "and" only, so "Finesse
    or Light" stays one item.
    """

    cleaned = normalize_whitespace(text or "")
    if not cleaned:
        return ParseOutcome.miss([])

    choose = _CHOOSE_RE.search(cleaned)
    if choose is None:
        items = _split_pool(cleaned, _GRANT_SPLIT_RE)
        if not items:
            return ParseOutcome.miss([])
        return ParseOutcome.heuristic(items)

    remainder = cleaned[choose.end() :]
    parenthesised = _PARENTHESISED_RE.match(remainder)
    if parenthesised is not None and ":" not in remainder[: parenthesised.start(1)]:
        pool_text = parenthesised.group(1)
    else:
        lead = _LIST_LEAD_RE.match(remainder)
        pool_text = remainder[lead.end() :] if lead is not None else remainder
        if ":" in pool_text:
            pool_text = pool_text.split(":", 1)[1]

    items = _split_pool(pool_text, _CHOICE_SPLIT_RE)
    if not items:
        return ParseOutcome.miss([])
    return ParseOutcome.heuristic(items)
