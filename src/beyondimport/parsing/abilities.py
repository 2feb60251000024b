"""Ability-list and spellcasting-ability parsers."""

from __future__ import annotations

from collections.abc import Sequence
import logging
import re

from beyondimport.parsing.normalization import clean_item, normalize_whitespace
from beyondimport.parsing.outcome import ParseOutcome

logger = logging.getLogger(__name__)

ABILITY_KEYS: dict[str, str] = {
    "strength": "str",
    "dexterity": "dex",
    "constitution": "con",
    "intelligence": "int",
    "wisdom": "wis",
    "charisma": "cha",
}

# Provider numeric ability ids.
ABILITY_IDS: dict[int, str] = {1: "str", 2: "dex", 3: "con", 4: "int", 5: "wis", 6: "cha"}

_ABBREVIATIONS = set(ABILITY_KEYS.values())
_SPLIT_RE = re.compile(r",\s*|\s+and\s+|\s+or\s+|\s*/\s*", re.IGNORECASE)
_PAREN_RE = re.compile(r"\([^)]*\)")
_SUFFIX_RE = re.compile(r"\s+(?:saving throws?|saves?|score)$", re.IGNORECASE)
_SPELLCASTING_RE = re.compile(
    r"\b(Strength|Dexterity|Constitution|Intelligence|Wisdom|Charisma)\s+is\s+your\s+spellcasting\s+ability\b",
    re.IGNORECASE,
)


def ability_key(token: str) -> str | None:
    """Map a full ability name or three-letter abbreviation to its key."""

    word = _SUFFIX_RE.sub("", clean_item(_PAREN_RE.sub("", token))).casefold()
    if word in ABILITY_KEYS:
        return ABILITY_KEYS[word]
    if word in _ABBREVIATIONS:
        return word
    return None


def parse_ability_list(source: str | Sequence[str]) -> ParseOutcome:
    """Parse "Strength and Constitution" style text into ``["str", "con"]``.

    A pre-split sequence is validated token by token and reported as exact.
    Unrecognized tokens are dropped, logged, and listed in ``dropped``.
    """

    if isinstance(source, str):
        text = normalize_whitespace(source)
        tokens = [token for token in _SPLIT_RE.split(text) if token.strip()] if text else []
        structured = False
    else:
        tokens = [str(token) for token in source if str(token).strip()]
        structured = True

    keys: list[str] = []
    dropped: list[str] = []
    for token in tokens:
        key = ability_key(token)
        if key is None:
            dropped.append(normalize_whitespace(token))
            continue
        if key not in keys:
            keys.append(key)

    if dropped:
        logger.warning("Dropped unrecognized ability tokens: %s", ", ".join(dropped))

    if not keys:
        return ParseOutcome.miss([], dropped=tuple(dropped))
    if structured:
        return ParseOutcome.exact(keys, dropped=tuple(dropped))
    return ParseOutcome.heuristic(keys, dropped=tuple(dropped))


def parse_spellcasting_ability(text: str) -> ParseOutcome:
    """Find "<Ability> is your spellcasting ability"; absent yields an empty key."""

    match = _SPELLCASTING_RE.search(text or "")
    if match is None:
        return ParseOutcome.miss("")
    return ParseOutcome.heuristic(ABILITY_KEYS[match.group(1).casefold()])
