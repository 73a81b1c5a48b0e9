"""Supabase repository for daily targets."""

from dataclasses import dataclass

from supabase import Client

from food_logger.domain.log import Targets
from food_logger.services.day import TargetsRepository

_SINGLETON_ID = 1


@dataclass
class SupabaseTargetsRepository(TargetsRepository):
    """Stores the singleton targets row."""

    client: Client

    def get_targets(self) -> Targets | None:
        """Return the stored targets, if any."""
        response = (
            self.client.table("targets")
            .select("kcal, protein_g, carbs_g, fat_g, fiber_g")
            .eq("id", _SINGLETON_ID)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return Targets(
            kcal=float(row.get("kcal", 0.0)),
            protein_g=float(row.get("protein_g", 0.0)),
            carbs_g=float(row.get("carbs_g", 0.0)),
            fat_g=float(row.get("fat_g", 0.0)),
            fiber_g=float(row.get("fiber_g", 0.0)),
        )

    def set_targets(self, targets: Targets) -> None:
        """Replace the targets row."""
        self.client.table("targets").upsert(
            {
                "id": _SINGLETON_ID,
                "kcal": targets.kcal,
                "protein_g": targets.protein_g,
                "carbs_g": targets.carbs_g,
                "fat_g": targets.fat_g,
                "fiber_g": targets.fiber_g,
            },
            on_conflict="id",
        ).execute()
