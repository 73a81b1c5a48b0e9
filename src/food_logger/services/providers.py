"""Product search providers mapping raw API payloads onto products."""

import re
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from food_logger.adapters.fdc_client import FdcClient
from food_logger.adapters.nutritionix_client import NutritionixClient
from food_logger.adapters.off_client import OpenFoodFactsClient
from food_logger.domain.products import Product
from food_logger.errors import ProviderUnavailableError

_FDC_NUTRIENT_KEYS = {
    1008: "energy-kcal_100g",
    1003: "proteins_100g",
    1005: "carbohydrates_100g",
    1004: "fat_100g",
    1079: "fiber_100g",
}
_NUTRITIONIX_FIELDS = {
    "nf_calories": "energy-kcal",
    "nf_protein": "proteins",
    "nf_total_carbohydrate": "carbohydrates",
    "nf_total_fat": "fat",
    "nf_dietary_fiber": "fiber",
}
_SERVING_GRAMS = re.compile(r"(\d+(?:\.\d+)?)\s*g", re.IGNORECASE)
_NUTRIENT_SUFFIXES = ("_100g", "_serving")
_MALFORMED = (AttributeError, KeyError, TypeError, ValueError)


@dataclass
class OpenFoodFactsProvider:
    """Open Food Facts search and barcode lookup."""

    client: OpenFoodFactsClient
    page_size: int = 10
    source: str = "off"

    async def search(self, query: str) -> list[Product]:
        """Search OFF products by free text."""
        try:
            payload = await self.client.search_products(query, page_size=self.page_size)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(self.source, str(exc)) from exc
        return _map_rows(self.source, payload, "products", _off_product)

    async def lookup(self, barcode: str) -> Product | None:
        """Fetch a product by barcode; None when OFF does not know it."""
        try:
            payload = await self.client.get_product(barcode)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(self.source, str(exc)) from exc
        if not isinstance(payload, dict):
            raise ProviderUnavailableError(self.source, "unexpected payload")
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            return None
        try:
            return _off_product(product, name_fallback=product.get("generic_name"))
        except _MALFORMED as exc:
            raise ProviderUnavailableError(
                self.source, f"malformed product: {exc}"
            ) from exc


@dataclass
class FdcProvider:
    """USDA FoodData Central search for generic foods."""

    client: FdcClient
    page_size: int = 6
    source: str = "fdc"

    async def search(self, query: str) -> list[Product]:
        """Search FDC foods; nutrient values are per 100 g."""
        try:
            payload = await self.client.search_foods(query, page_size=self.page_size)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(self.source, str(exc)) from exc
        return _map_rows(self.source, payload, "foods", _fdc_product)


@dataclass
class NutritionixProvider:
    """Nutritionix branded food search."""

    client: NutritionixClient
    limit: int = 6
    source: str = "nutrix"

    async def search(self, query: str) -> list[Product]:
        """Search branded foods, scaling per-serving values to 100 g."""
        try:
            payload = await self.client.search_instant(query)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(self.source, str(exc)) from exc
        return _map_rows(
            self.source, payload, "branded", _nutritionix_product, limit=self.limit
        )


def parse_serving_grams(serving_size: object) -> float | None:
    """Read grams from an OFF serving size such as "30 g" or "1 bar (45g)"."""
    if not isinstance(serving_size, str) or not serving_size:
        return None
    match = _SERVING_GRAMS.search(serving_size)
    return float(match.group(1)) if match else None


def _map_rows(
    source: str,
    payload: object,
    key: str,
    mapper: Callable[[dict[str, object]], Product],
    limit: int | None = None,
) -> list[Product]:
    """Map a list of result rows, treating any unexpected shape as an outage."""
    if not isinstance(payload, dict):
        raise ProviderUnavailableError(source, "unexpected payload")
    rows = payload.get(key) or []
    if not isinstance(rows, list):
        raise ProviderUnavailableError(source, f"unexpected {key!r} field")
    try:
        return [mapper(row) for row in rows[:limit]]
    except _MALFORMED as exc:
        raise ProviderUnavailableError(source, f"malformed row: {exc}") from exc


def _off_product(row: dict[str, object], name_fallback: object = None) -> Product:
    code = str(row.get("code", ""))
    return Product(
        id=f"off:{code}",
        source="off",
        source_id=code,
        brand=row.get("brands") or row.get("brand_owner") or None,
        name=str(row.get("product_name") or name_fallback or "Unknown product"),
        barcode=code or None,
        default_serving_g=parse_serving_grams(row.get("serving_size")),
        attribution="Open Food Facts (ODbL)",
        nutrients=_numeric_nutrients(row.get("nutriments") or {}),
    )


def _fdc_product(food: dict[str, object]) -> Product:
    fdc_id = str(food.get("fdcId", ""))
    nutrients: dict[str, float] = {}
    for nutrient in food.get("foodNutrients") or []:
        info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient.get("nutrientId") or info.get("id")
        amount = nutrient.get("value", nutrient.get("amount"))
        key = _FDC_NUTRIENT_KEYS.get(nutrient_id)
        if key and _is_number(amount):
            nutrients[key] = float(amount)
    unit = str(food.get("servingSizeUnit") or "").lower()
    serving_size = food.get("servingSize")
    return Product(
        id=f"fdc:{fdc_id}",
        source="fdc",
        source_id=fdc_id,
        brand=food.get("brandName") or None,
        name=str(
            food.get("description") or food.get("lowercaseDescription") or "Unknown"
        ),
        default_serving_g=(
            float(serving_size)
            if unit in {"g", "grm"} and _is_number(serving_size)
            else None
        ),
        attribution="USDA FDC (CC0)",
        nutrients=nutrients,
    )


def _nutritionix_product(row: dict[str, object]) -> Product:
    item_id = str(row.get("nix_item_id") or row.get("item_id") or row.get("food_name"))
    weight = row.get("serving_weight_grams")
    serving_g = float(weight) if _is_number(weight) and weight > 0 else None
    nutrients: dict[str, float] = {}
    for field_name, key in _NUTRITIONIX_FIELDS.items():
        value = row.get(field_name)
        if not _is_number(value):
            continue
        if serving_g:
            nutrients[f"{key}_100g"] = float(value) / (serving_g / 100)
        else:
            nutrients[f"{key}_serving"] = float(value)
    return Product(
        id=f"nutrix:{item_id}",
        source="nutrix",
        source_id=item_id,
        brand=row.get("brand_name") or None,
        name=str(row.get("food_name") or "Unknown"),
        default_serving_g=serving_g,
        attribution="Nutritionix",
        nutrients=nutrients,
    )


def _numeric_nutrients(raw: dict[str, object]) -> dict[str, float]:
    return {
        key: float(value)
        for key, value in raw.items()
        if key.endswith(_NUTRIENT_SUFFIXES) and _is_number(value)
    }


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
