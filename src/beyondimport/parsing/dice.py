"""Dice formula helpers: formatting, parsing, and damage/healing/scaling extraction."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import re
from typing import Any

from beyondimport.parsing.outcome import ParseOutcome

# Provider damage type ids, 1-based.
DAMAGE_TYPES: tuple[str, ...] = (
    "acid",
    "cold",
    "fire",
    "force",
    "lightning",
    "necrotic",
    "poison",
    "psychic",
    "radiant",
    "thunder",
    "bludgeoning",
    "piercing",
    "slashing",
)

_DICE_RE = re.compile(r"(\d+)\s*d\s*(\d+)(?:\s*([+-])\s*(\d+))?", re.IGNORECASE)
_FULL_DICE_RE = re.compile(r"^\s*(\d+)\s*d\s*(\d+)(?:\s*([+-])\s*(\d+))?\s*$", re.IGNORECASE)
_DAMAGE_RE = re.compile(
    r"(\d+d\d+(?:\s*[+-]\s*\d+)?)\s+(?:(" + "|".join(DAMAGE_TYPES) + r")\s+)?damage",
    re.IGNORECASE,
)
_HEAL_EQUAL_RE = re.compile(
    r"regains?\s+(?:a\s+number\s+of\s+)?hit\s+points\s+equal\s+to\s+(\d+d\d+)"
    r"(\s*(?:\+|plus)\s*your\s+spellcasting\s+ability\s+modifier)?",
    re.IGNORECASE,
)
_HEAL_FLAT_RE = re.compile(r"regains?\s+(\d+d\d+(?:\s*[+-]\s*\d+)?)\s+hit\s+points", re.IGNORECASE)

# Ordered most to least specific.
_DELTA_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"increases?\s+by\s+(\d+d\d+)", re.IGNORECASE),
    re.compile(r"(\d+d\d+)\s+for\s+each\s+(?:spell\s+)?slot\s+level", re.IGNORECASE),
    re.compile(r"additional\s+(\d+d\d+)", re.IGNORECASE),
    re.compile(r"extra\s+(\d+d\d+)", re.IGNORECASE),
    re.compile(r"(\d+d\d+)\s+additional", re.IGNORECASE),
)

SPELLCASTING_MOD = "@mod"


@dataclass(frozen=True, slots=True)
class DiceFormula:
    count: int
    faces: int
    bonus: int = 0

    def __str__(self) -> str:
        return format_dice(self.count, self.faces, self.bonus)


def format_dice(count: int | None, faces: int | None, bonus: int | None = 0) -> str:
    """Render ``NdF[+B]``; a bare bonus renders as the number, nothing as ""."""

    bonus = bonus or 0
    if count and faces:
        formula = f"{count}d{faces}"
        if bonus > 0:
            formula += f"+{bonus}"
        elif bonus < 0:
            formula += f"-{abs(bonus)}"
        return formula
    if bonus:
        return str(bonus)
    return ""


def _formula_from_match(match: re.Match[str]) -> DiceFormula:
    bonus = 0
    if match.group(3) and match.group(4):
        bonus = int(match.group(4)) * (-1 if match.group(3) == "-" else 1)
    return DiceFormula(count=int(match.group(1)), faces=int(match.group(2)), bonus=bonus)


def parse_dice(text: str) -> ParseOutcome:
    """Parse a dice expression; a bare expression is exact, one found in prose is heuristic."""

    if not text:
        return ParseOutcome.miss(None)
    full = _FULL_DICE_RE.match(text)
    if full is not None:
        return ParseOutcome.exact(_formula_from_match(full))
    found = _DICE_RE.search(text)
    if found is None:
        return ParseOutcome.miss(None)
    return ParseOutcome.heuristic(_formula_from_match(found))


def _normalize_formula(raw: str) -> str:
    parsed = parse_dice(raw)
    return str(parsed.value) if parsed.value is not None else raw.replace(" ", "")


def damage_from_text(text: str) -> ParseOutcome:
    """Collect ``{"formula", "types"}`` parts from "8d6 fire damage" phrases."""

    parts: list[dict[str, Any]] = []
    for match in _DAMAGE_RE.finditer(text or ""):
        part = {
            "formula": _normalize_formula(match.group(1)),
            "types": [match.group(2).lower()] if match.group(2) else [],
        }
        if part not in parts:
            parts.append(part)
    if not parts:
        return ParseOutcome.miss([])
    return ParseOutcome.heuristic(parts)


def healing_from_text(text: str) -> ParseOutcome:
    """Find a healing formula such as "regains hit points equal to 2d8 + modifier"."""

    match = _HEAL_EQUAL_RE.search(text or "")
    if match is not None:
        formula = _normalize_formula(match.group(1))
        if match.group(2):
            formula = f"{formula} + {SPELLCASTING_MOD}"
        return ParseOutcome.heuristic(formula)
    flat = _HEAL_FLAT_RE.search(text or "")
    if flat is not None:
        return ParseOutcome.heuristic(_normalize_formula(flat.group(1)))
    return ParseOutcome.miss("")


def delta_from_text(text: str) -> ParseOutcome:
    """Per-slot increment from higher-level prose ("increases by 1d6 for each ...")."""

    for pattern in _DELTA_PATTERNS:
        match = pattern.search(text or "")
        if match is not None:
            return ParseOutcome.heuristic(_normalize_formula(match.group(1)))
    return ParseOutcome.miss("")


def delta_from_table(rows: Sequence[Mapping[str, Any]]) -> ParseOutcome:
    """Per-level increment from a ``{"level", "formula"}`` table.

    One row, or rows that all repeat the same formula, is a per-slot increment
    table and its formula is the delta. Otherwise the delta is the difference
    between consecutive rows; inconsistent steps fall back to the first step
    at heuristic confidence.
    """

    parsed: list[tuple[int, DiceFormula]] = []
    for row in rows:
        formula = parse_dice(str(row.get("formula", "")))
        if formula.value is None:
            continue
        try:
            level = int(row.get("level") or 0)
        except (TypeError, ValueError):
            level = 0
        parsed.append((level, formula.value))

    if not parsed:
        return ParseOutcome.miss("")

    parsed.sort(key=lambda item: item[0])
    formulas = [formula for _level, formula in parsed]
    if len(set(formulas)) == 1:
        return ParseOutcome.exact(str(formulas[0]))

    steps: list[DiceFormula] = []
    for previous, current in zip(formulas, formulas[1:]):
        if previous.faces != current.faces:
            return ParseOutcome.miss("")
        steps.append(
            DiceFormula(
                count=current.count - previous.count,
                faces=current.faces,
                bonus=current.bonus - previous.bonus,
            )
        )

    first = steps[0]
    if first.count <= 0:
        return ParseOutcome.miss("")
    if all(step == first for step in steps):
        return ParseOutcome.exact(str(first))
    return ParseOutcome.heuristic(str(first))
