"""Domain model for phrase aliases."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Alias:
    """Learned or confirmed mapping from a normalized phrase to a product."""

    user_phrase: str
    product_id: str
    serving_label: str | None = None
    grams_override: float | None = None
