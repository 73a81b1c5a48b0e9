"""Alias cache for phrases that were resolved before."""

from dataclasses import dataclass
from typing import Protocol

from food_logger.domain.aliases import Alias
from food_logger.services.normalizer import normalize_phrase
from food_logger.services.products import ProductService


class AliasRepository(Protocol):
    """Persistence interface for aliases keyed by normalized phrase."""

    def get_alias(self, user_phrase: str) -> Alias | None:
        """Return the alias for a normalized phrase, if present."""

    def upsert_alias(self, alias: Alias) -> None:
        """Insert or replace an alias by phrase."""

    def delete_alias(self, user_phrase: str) -> None:
        """Delete the alias for a normalized phrase."""

    def list_aliases(self) -> list[Alias]:
        """Return all aliases."""


@dataclass
class AliasService:
    """Application service for alias lookups and learning."""

    repository: AliasRepository
    product_service: ProductService

    def get(self, phrase: str) -> Alias | None:
        """Return the alias bound to a phrase."""
        return self.repository.get_alias(normalize_phrase(phrase))

    def set(
        self,
        phrase: str,
        product_id: str,
        serving_label: str | None = None,
        grams_override: float | None = None,
    ) -> Alias:
        """Bind a phrase to a product, replacing any existing binding."""
        alias = Alias(
            user_phrase=normalize_phrase(phrase),
            product_id=product_id,
            serving_label=serving_label,
            grams_override=grams_override,
        )
        self.repository.upsert_alias(alias)
        return alias

    def delete(self, phrase: str) -> None:
        """Remove the alias for a phrase."""
        self.repository.delete_alias(normalize_phrase(phrase))

    def list(self) -> list[Alias]:
        """Return aliases sorted by phrase."""
        return sorted(self.repository.list_aliases(), key=lambda a: a.user_phrase)

    def resolve_grams(self, alias: Alias) -> float | None:
        """Return grams for an alias hit: override, then serving label.

        None means the caller has to ask for grams.
        """
        if alias.grams_override:
            return alias.grams_override
        if alias.serving_label:
            wanted = alias.serving_label.lower()
            for serving in self.product_service.servings(alias.product_id):
                if serving.label.lower() == wanted:
                    return serving.grams
        return None
