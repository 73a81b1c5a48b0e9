"""Supabase repository for entries, items and daily totals."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from food_logger.domain.log import Entry, Item, MacroSet, Totals
from food_logger.services.day import FoodLogRepository

_ITEM_COLUMNS = (
    "id, entry_id, product_id, date_local, food_name, qty, unit, grams, kcal, "
    "protein_g, carbs_g, fat_g, fiber_g, confidence, notes"
)
_TOTALS_COLUMNS = "date_local, kcal, protein_g, carbs_g, fat_g, fiber_g"


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository):
    """Supabase implementation of the append-style food log."""

    client: Client

    def create_entry(self, entry: Entry) -> None:
        """Insert an entry row."""
        self.client.table("entries").insert(
            {
                "id": str(entry.id),
                "timestamp_utc": entry.timestamp_utc.isoformat(),
                "date_local": entry.date_local,
                "text_raw": entry.text_raw,
            }
        ).execute()

    def create_item(self, item: Item) -> None:
        """Insert an item row."""
        self.client.table("items").insert(
            {
                "id": str(item.id),
                "entry_id": str(item.entry_id),
                "product_id": item.product_id,
                "date_local": item.date_local,
                "food_name": item.food_name,
                "qty": item.qty,
                "unit": item.unit,
                "grams": item.grams,
                "kcal": item.macros.kcal,
                "protein_g": item.macros.protein_g,
                "carbs_g": item.macros.carbs_g,
                "fat_g": item.macros.fat_g,
                "fiber_g": item.macros.fiber_g,
                "confidence": item.confidence,
                "notes": item.notes,
            }
        ).execute()

    def list_day_items(self, date_local: str) -> list[Item]:
        """Return items for a local date."""
        response = (
            self.client.table("items")
            .select(_ITEM_COLUMNS)
            .eq("date_local", date_local)
            .execute()
        )
        return [_parse_item(row) for row in response.data or []]

    def get_totals(self, date_local: str) -> Totals | None:
        """Return the totals row for a local date."""
        response = (
            self.client.table("daily_totals")
            .select(_TOTALS_COLUMNS)
            .eq("date_local", date_local)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_totals(response.data[0])

    def add_to_totals(self, date_local: str, macros: MacroSet) -> Totals:
        """Increment totals in a single database call."""
        response = self.client.rpc(
            "add_daily_totals",
            {
                "p_date_local": date_local,
                "p_kcal": macros.kcal or 0,
                "p_protein_g": macros.protein_g or 0.0,
                "p_carbs_g": macros.carbs_g or 0.0,
                "p_fat_g": macros.fat_g or 0.0,
                "p_fiber_g": macros.fiber_g or 0.0,
            },
        ).execute()
        if not response.data:
            raise RuntimeError("Failed to update daily totals")
        return _parse_totals(response.data[0])

    def put_totals(self, totals: Totals) -> None:
        """Replace the totals row for a local date."""
        self.client.table("daily_totals").upsert(
            {
                "date_local": totals.date_local,
                "kcal": totals.kcal,
                "protein_g": totals.protein_g,
                "carbs_g": totals.carbs_g,
                "fat_g": totals.fat_g,
                "fiber_g": totals.fiber_g,
            },
            on_conflict="date_local",
        ).execute()


def _parse_item(row: dict[str, object]) -> Item:
    kcal = row.get("kcal")
    return Item(
        id=UUID(row["id"]),
        entry_id=UUID(row["entry_id"]),
        product_id=str(row.get("product_id", "")),
        date_local=str(row.get("date_local", "")),
        food_name=str(row.get("food_name", "")),
        qty=float(row.get("qty") or 1),
        unit=str(row.get("unit") or "g"),
        grams=float(row.get("grams", 0.0)),
        macros=MacroSet(
            kcal=int(kcal) if kcal is not None else None,
            protein_g=_optional_float(row.get("protein_g")),
            carbs_g=_optional_float(row.get("carbs_g")),
            fat_g=_optional_float(row.get("fat_g")),
            fiber_g=_optional_float(row.get("fiber_g")),
        ),
        confidence=float(row.get("confidence") or 0.0),
        notes=row.get("notes"),
    )


def _parse_totals(row: dict[str, object]) -> Totals:
    return Totals(
        date_local=str(row["date_local"]),
        kcal=float(row.get("kcal") or 0.0),
        protein_g=float(row.get("protein_g") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        fiber_g=float(row.get("fiber_g") or 0.0),
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
