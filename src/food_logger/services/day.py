"""Day ledger: entries, items, totals and targets."""

from dataclasses import dataclass
from typing import Protocol

from food_logger.domain.log import (
    DEFAULT_TARGETS,
    Entry,
    Item,
    MacroSet,
    Targets,
    Totals,
)
from food_logger.services.clock import LocalClock


class FoodLogRepository(Protocol):
    """Append-style persistence for entries, items and daily totals."""

    def create_entry(self, entry: Entry) -> None:
        """Append an entry."""

    def create_item(self, item: Item) -> None:
        """Append an item."""

    def list_day_items(self, date_local: str) -> list[Item]:
        """Return items logged on a local date."""

    def get_totals(self, date_local: str) -> Totals | None:
        """Return totals for a local date, if any were recorded."""

    def add_to_totals(self, date_local: str, macros: MacroSet) -> Totals:
        """Atomically add macros to a day's totals and return the new totals."""

    def put_totals(self, totals: Totals) -> None:
        """Replace totals for a local date."""


class TargetsRepository(Protocol):
    """Persistence for the singleton daily targets."""

    def get_targets(self) -> Targets | None:
        """Return stored targets, if set."""

    def set_targets(self, targets: Targets) -> None:
        """Store targets."""


@dataclass(frozen=True)
class Remaining:
    """What is left of one daily target."""

    macro: str
    target: float
    consumed: float

    @property
    def left(self) -> float:
        return self.target - self.consumed

    @property
    def label(self) -> str:
        unit = "" if self.macro == "kcal" else "g"
        if self.left >= 0:
            return f"{round(self.left)}{unit} left"
        return f"over by {round(abs(self.left))}{unit}"


@dataclass(frozen=True)
class DaySummary:
    """Items, totals and remaining targets for one local date."""

    date_local: str
    items: list[Item]
    totals: Totals
    targets: Targets
    remaining: list[Remaining]


@dataclass
class DayService:
    """Reads and maintains per-day aggregates."""

    repository: FoodLogRepository
    targets_repository: TargetsRepository
    clock: LocalClock

    def today(self) -> str:
        return self.clock.date_key()

    def get_totals(self, date_local: str) -> Totals:
        """Return totals for a date, zero when nothing was logged."""
        return self.repository.get_totals(date_local) or Totals(date_local=date_local)

    def add_item(self, item: Item) -> Totals:
        """Record an item's macros in its day's totals."""
        return self.repository.add_to_totals(item.date_local, item.macros)

    def recompute_totals(self, date_local: str) -> Totals:
        """Rebuild a day's totals from its items and store them."""
        totals = Totals(date_local=date_local)
        for item in self.repository.list_day_items(date_local):
            totals = totals.plus(item.macros)
        self.repository.put_totals(totals)
        return totals

    def get_targets(self) -> Targets:
        return self.targets_repository.get_targets() or DEFAULT_TARGETS

    def set_targets(self, targets: Targets) -> Targets:
        self.targets_repository.set_targets(targets)
        return targets

    def summary(self, date_local: str | None = None) -> DaySummary:
        """Return the day's items with totals and remaining targets."""
        day = date_local or self.today()
        totals = self.get_totals(day)
        targets = self.get_targets()
        return DaySummary(
            date_local=day,
            items=self.repository.list_day_items(day),
            totals=totals,
            targets=targets,
            remaining=_remaining(targets, totals),
        )


def _remaining(targets: Targets, totals: Totals) -> list[Remaining]:
    return [
        Remaining(
            macro=macro,
            target=getattr(targets, macro),
            consumed=getattr(totals, macro),
        )
        for macro in ("kcal", "protein_g", "carbs_g", "fat_g", "fiber_g")
    ]
