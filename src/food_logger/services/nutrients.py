"""Projection of sparse nutrient records onto a portion size."""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal

from food_logger.domain.log import MacroSet

KCAL_PER_KJ = 0.239006
MACROS_UNAVAILABLE_NOTE = "Macros unavailable from source"

_ENERGY_KCAL = "energy-kcal"
_ENERGY_KJ_KEYS = ("energy-kj", "energy")
_PROTEIN = "proteins"
_CARBS = "carbohydrates"
_FAT = "fat"
_FIBER = "fiber"

COMPLETENESS_KEYS = (_ENERGY_KCAL, _PROTEIN, _CARBS, _FAT)


def project_macros(
    nutrients: Mapping[str, object],
    grams: float,
    serving_g: float | None = None,
) -> MacroSet:
    """Convert a per-100g or per-serving nutrient record into portion macros.

    Per-100g values win; per-serving values are used only when a serving
    size is known, either passed in or embedded as ``serving_size_g``.
    Energy rounds to whole kcal, other macros to one decimal.
    """
    serving_size = (
        serving_g if serving_g is not None else _num(nutrients.get("serving_size_g"))
    )

    def scale(per_100g: float | None, per_serving: float | None) -> float | None:
        if per_100g is not None:
            return per_100g * grams / 100
        if per_serving is not None and serving_size is not None and serving_size > 0:
            return per_serving * grams / serving_size
        return None

    kcal = scale(energy_kcal(nutrients, "100g"), energy_kcal(nutrients, "serving"))
    return MacroSet(
        kcal=None if kcal is None else int(_round_half_up(kcal, 0)),
        protein_g=_round_tenth(scale(*_pair(nutrients, _PROTEIN))),
        carbs_g=_round_tenth(scale(*_pair(nutrients, _CARBS))),
        fat_g=_round_tenth(scale(*_pair(nutrients, _FAT))),
        fiber_g=_round_tenth(scale(*_pair(nutrients, _FIBER))),
    )


def energy_kcal(nutrients: Mapping[str, object], basis: str) -> float | None:
    """Return kcal on a basis ("100g" or "serving"), converting kJ if needed."""
    kcal = _num(nutrients.get(f"{_ENERGY_KCAL}_{basis}"))
    if kcal is not None:
        return kcal
    for prefix in _ENERGY_KJ_KEYS:
        kilojoules = _num(nutrients.get(f"{prefix}_{basis}"))
        if kilojoules is not None:
            return kilojoules * KCAL_PER_KJ
    return None


def has_energy(nutrients: Mapping[str, object]) -> bool:
    """Return True when energy is known per-100g or per-serving."""
    return (
        energy_kcal(nutrients, "100g") is not None
        or energy_kcal(nutrients, "serving") is not None
    )


def has_nutrient(nutrients: Mapping[str, object], key: str) -> bool:
    """Return True when a nutrient is present on either basis."""
    if key == _ENERGY_KCAL:
        return has_energy(nutrients)
    return any(
        _num(nutrients.get(f"{key}_{basis}")) is not None
        for basis in ("100g", "serving")
    )


def per_100g_record(macros: MacroSet, grams: float) -> dict[str, float]:
    """Build a per-100g record from macros entered for a portion."""
    if grams <= 0:
        return {}
    values = {
        f"{_ENERGY_KCAL}_100g": macros.kcal,
        f"{_PROTEIN}_100g": macros.protein_g,
        f"{_CARBS}_100g": macros.carbs_g,
        f"{_FAT}_100g": macros.fat_g,
        f"{_FIBER}_100g": macros.fiber_g,
    }
    return {
        key: float(value) * 100 / grams
        for key, value in values.items()
        if value is not None
    }


def _pair(
    nutrients: Mapping[str, object], key: str
) -> tuple[float | None, float | None]:
    return _num(nutrients.get(f"{key}_100g")), _num(nutrients.get(f"{key}_serving"))


def _num(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _round_tenth(value: float | None) -> float | None:
    if value is None:
        return None
    return _round_half_up(value, 1)


def _round_half_up(value: float, digits: int) -> float:
    exponent = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))
