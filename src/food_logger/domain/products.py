"""Domain models for products and servings."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Product:
    """Normalized food from an external provider or entered by the user."""

    id: str
    source: str
    source_id: str
    name: str
    brand: str | None = None
    barcode: str | None = None
    default_serving_g: float | None = None
    attribution: str | None = None
    nutrients: dict[str, float] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Return the "brand — name" label shown to users."""
        return " — ".join(part for part in (self.brand, self.name) if part)


@dataclass(frozen=True)
class Serving:
    """Named household measure for a product."""

    product_id: str
    label: str
    grams: float


@dataclass(frozen=True)
class Candidate:
    """Product scored against a parsed descriptor."""

    product: Product
    confidence: float

    @property
    def label(self) -> str:
        return self.product.display_name
