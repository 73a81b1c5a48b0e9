"""Supabase repository for phrase aliases."""

from dataclasses import dataclass

from supabase import Client

from food_logger.domain.aliases import Alias
from food_logger.services.aliases import AliasRepository

_COLUMNS = "user_phrase, product_id, serving_label, grams_override"


@dataclass
class SupabaseAliasRepository(AliasRepository):
    """Supabase-backed alias cache."""

    client: Client

    def get_alias(self, user_phrase: str) -> Alias | None:
        """Return the alias for a phrase."""
        response = (
            self.client.table("aliases")
            .select(_COLUMNS)
            .eq("user_phrase", user_phrase)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_alias(response.data[0])

    def upsert_alias(self, alias: Alias) -> None:
        """Insert or replace an alias by phrase."""
        self.client.table("aliases").upsert(
            {
                "user_phrase": alias.user_phrase,
                "product_id": alias.product_id,
                "serving_label": alias.serving_label,
                "grams_override": alias.grams_override,
            },
            on_conflict="user_phrase",
        ).execute()

    def delete_alias(self, user_phrase: str) -> None:
        """Delete the alias for a phrase."""
        self.client.table("aliases").delete().eq("user_phrase", user_phrase).execute()

    def list_aliases(self) -> list[Alias]:
        """Return all aliases."""
        response = (
            self.client.table("aliases")
            .select(_COLUMNS)
            .order("user_phrase", desc=False)
            .execute()
        )
        return [_parse_alias(row) for row in response.data or []]


def _parse_alias(row: dict[str, object]) -> Alias:
    grams = row.get("grams_override")
    return Alias(
        user_phrase=str(row["user_phrase"]),
        product_id=str(row["product_id"]),
        serving_label=row.get("serving_label"),
        grams_override=float(grams) if grams is not None else None,
    )
