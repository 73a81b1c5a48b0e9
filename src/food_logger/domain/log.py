"""Domain models for the food log."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class MacroSet:
    """Absolute macros for a logged portion; missing values stay None."""

    kcal: int | None
    protein_g: float | None
    carbs_g: float | None
    fat_g: float | None
    fiber_g: float | None

    @classmethod
    def empty(cls) -> "MacroSet":
        return cls(kcal=None, protein_g=None, carbs_g=None, fat_g=None, fiber_g=None)

    @property
    def energy_available(self) -> bool:
        return self.kcal is not None


@dataclass(frozen=True)
class Entry:
    """One logging action."""

    id: UUID
    timestamp_utc: datetime
    date_local: str
    text_raw: str


@dataclass(frozen=True)
class Item:
    """One resolved food within an entry."""

    id: UUID
    entry_id: UUID
    product_id: str
    date_local: str
    food_name: str
    grams: float
    macros: MacroSet
    confidence: float
    qty: float = 1
    unit: str = "g"
    notes: str | None = None


@dataclass(frozen=True)
class Totals:
    """Running macro sums for a local date."""

    date_local: str
    kcal: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0

    def plus(self, macros: MacroSet) -> "Totals":
        """Return totals with a portion added; missing macros count as zero."""
        return Totals(
            date_local=self.date_local,
            kcal=self.kcal + (macros.kcal or 0),
            protein_g=self.protein_g + (macros.protein_g or 0.0),
            carbs_g=self.carbs_g + (macros.carbs_g or 0.0),
            fat_g=self.fat_g + (macros.fat_g or 0.0),
            fiber_g=self.fiber_g + (macros.fiber_g or 0.0),
        )


@dataclass(frozen=True)
class Targets:
    """Daily macro goals."""

    kcal: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float


DEFAULT_TARGETS = Targets(kcal=2400, protein_g=160, carbs_g=260, fat_g=80, fiber_g=30)
