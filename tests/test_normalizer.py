"""Tests for phrase normalization and quantity parsing."""

from food_logger.services.normalizer import (
    QtyUnit,
    normalize_phrase,
    try_parse_qty_unit,
)


def test_normalize_phrase_trims_collapses_and_lowercases() -> None:
    assert normalize_phrase("  Skyr   Vanilla\tCup ") == "skyr vanilla cup"


def test_normalize_phrase_is_idempotent() -> None:
    once = normalize_phrase("  Oats  WITH  Milk ")
    assert normalize_phrase(once) == once


def test_mass_unit_wins_over_informal_and_multiplier() -> None:
    assert try_parse_qty_unit("2x 1 scoop whey 30 g") == QtyUnit(qty=30.0, unit="g")


def test_plural_units_are_singularized() -> None:
    assert try_parse_qty_unit("250 milliliters milk") == QtyUnit(
        qty=250.0, unit="milliliter"
    )
    assert try_parse_qty_unit("2 slices bread") == QtyUnit(qty=2.0, unit="slice")
    assert try_parse_qty_unit("200 grams rice") == QtyUnit(qty=200.0, unit="gram")


def test_bare_multiplier() -> None:
    assert try_parse_qty_unit("2x banana") == QtyUnit(qty=2.0, unit="x")


def test_no_quantity_returns_none() -> None:
    assert try_parse_qty_unit("banana") is None
