"""Phrase normalization and heuristic quantity parsing."""

import re
from dataclasses import dataclass

_WHITESPACE = re.compile(r"\s+")
_MASS_VOLUME = re.compile(
    r"\b(\d+(?:\.\d+)?)\s*(g|gram|grams|ml|milliliter|milliliters)\b"
)
_INFORMAL = re.compile(
    r"\b(\d+(?:\.\d+)?)\s*(scoop|scoops|serving|servings|slice|slices|cup|cups)\b"
)
_MULTIPLIER = re.compile(r"\b(\d+(?:\.\d+)?)\s*x\b")


@dataclass(frozen=True)
class QtyUnit:
    """Quantity with its unit, e.g. 200 g or 2 x."""

    qty: float
    unit: str


def normalize_phrase(text: str) -> str:
    """Trim, collapse whitespace and lowercase a phrase for cache keys."""
    return _WHITESPACE.sub(" ", text.strip()).lower()


def try_parse_qty_unit(text: str) -> QtyUnit | None:
    """Extract a quantity and unit from a phrase.

    Mass and volume units win over informal ones, which win over a bare
    ``2x`` multiplier. The result is a display hint only.
    """
    lowered = text.lower()
    match = _MASS_VOLUME.search(lowered)
    if match:
        return QtyUnit(qty=float(match.group(1)), unit=_singular(match.group(2)))
    match = _INFORMAL.search(lowered)
    if match:
        return QtyUnit(qty=float(match.group(1)), unit=_singular(match.group(2)))
    match = _MULTIPLIER.search(lowered)
    if match:
        return QtyUnit(qty=float(match.group(1)), unit="x")
    return None


def _singular(unit: str) -> str:
    return unit[:-1] if unit.endswith("s") else unit
