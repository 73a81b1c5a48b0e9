"""Models for structured free-text parser output."""

from pydantic import BaseModel, Field

MAX_PARSED_ITEMS = 10


class ParsedItem(BaseModel):
    """Single food descriptor extracted from a phrase."""

    name: str = Field(min_length=1)
    brand: str | None = None
    qty: float | None = None
    unit: str | None = None
    grams: float | None = None
    notes: str | None = None

    @property
    def query(self) -> str:
        """Return the "brand name" search query."""
        return " ".join(part for part in (self.brand, self.name) if part)


class ParsedPhrase(BaseModel):
    """Strict parser result."""

    items: list[ParsedItem] = Field(max_length=MAX_PARSED_ITEMS)


class LooseParsedItem(BaseModel):
    """Parser item as a model may return it, before sanitizing."""

    name: str
    brand: str | None = None
    qty: float | str | None = None
    unit: str | None = None
    grams: float | str | None = None
    notes: str | None = None


class LooseParsedPhrase(BaseModel):
    """Parser payload as a model may return it, before sanitizing."""

    items: list[LooseParsedItem]
