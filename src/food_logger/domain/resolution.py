"""Domain models for phrase resolution and suspended logging actions."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from pydantic import BaseModel

from food_logger.domain.log import Entry, Item, Totals
from food_logger.domain.products import Candidate


class ResolveStatus(str, Enum):
    """Confidence band of a resolution."""

    OK = "ok"
    CHOICES = "choices"
    ASK = "ask"


@dataclass(frozen=True)
class ResolveResult:
    """Arbiter outcome over a ranked candidate pool."""

    status: ResolveStatus
    best: Candidate | None = None
    choices: list[Candidate] = field(default_factory=list)


class InputKind(str, Enum):
    """Kind of input a suspended logging action waits for."""

    GRAMS = "grams"
    DISAMBIGUATION = "disambiguation"
    CORRECTION = "correction"
    MANUAL_ENTRY = "manual_entry"


@dataclass(frozen=True)
class InputRequest:
    """Returned when a logging action needs an answer before it can continue."""

    session_id: UUID
    kind: InputKind
    prompt: str
    quick_grams: list[float] = field(default_factory=list)
    choices: list[Candidate] = field(default_factory=list)
    suggestion: str | None = None


class InputAnswer(BaseModel):
    """Answer to an InputRequest; ``cancel`` skips the current sub-item."""

    cancel: bool = False
    grams: float | None = None
    choice_index: int | None = None
    phrase: str | None = None
    name: str | None = None
    kcal: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    save_alias: bool = False
    bind_grams: bool = False


@dataclass(frozen=True)
class LogResult:
    """Outcome of a finished logging action; entry is None when cancelled."""

    entry: Entry | None
    items: list[Item]
    totals: Totals
    alias_saved: bool = False


LogStep = LogResult | InputRequest
