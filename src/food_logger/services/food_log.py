"""Logging orchestrator: phrase or barcode in, entries and items out.

Every public operation returns either a ``LogResult`` or an ``InputRequest``.
An input request suspends the action; the caller answers it through
``resume`` with the request's session id.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID, uuid4

from food_logger.domain.log import Entry, Item, MacroSet
from food_logger.domain.parsing import ParsedItem
from food_logger.domain.products import Candidate, Product
from food_logger.domain.resolution import (
    InputAnswer,
    InputKind,
    InputRequest,
    LogResult,
    LogStep,
    ResolveResult,
    ResolveStatus,
)
from food_logger.errors import InvalidAnswerError, UnknownSessionError
from food_logger.services.aliases import AliasService
from food_logger.services.cache import Cache
from food_logger.services.day import DayService, FoodLogRepository
from food_logger.services.normalizer import try_parse_qty_unit
from food_logger.services.nutrients import (
    MACROS_UNAVAILABLE_NOTE,
    per_100g_record,
    project_macros,
)
from food_logger.services.parser import ParserService
from food_logger.services.products import ProductService
from food_logger.services.resolver import ResolverService

UNRESOLVED_CONFIDENCE = 0.3
DEFAULT_GRAMS = 100.0
BARCODE_QUICK_GRAMS = (100.0, 250.0)

_logger = logging.getLogger(__name__)


class _Mode(str, Enum):
    ALIAS = "alias"
    BARCODE = "barcode"
    PARSED = "parsed"
    MANUAL = "manual"


@dataclass
class _PendingLog:
    """State of a logging action between suspensions."""

    session_id: UUID
    mode: _Mode
    phrase_raw: str
    date_local: str
    kind: InputKind | None = None
    entry: Entry | None = None
    product_id: str | None = None
    product: Product | None = None
    descriptors: list[ParsedItem] = field(default_factory=list)
    index: int = 0
    grams: float | None = None
    choices: list[Candidate] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    alias_saved: bool = False
    suggested_grams: float = DEFAULT_GRAMS

    @property
    def descriptor(self) -> ParsedItem:
        return self.descriptors[self.index]


@dataclass
class FoodLogService:
    """Sequences alias lookup, parsing, resolution and persistence."""

    repository: FoodLogRepository
    day_service: DayService
    alias_service: AliasService
    parser_service: ParserService
    resolver_service: ResolverService
    product_service: ProductService
    pending: Cache
    pending_ttl_seconds: int = 3600

    async def log_text(self, phrase: str) -> LogStep:
        """Log a free-text phrase."""
        phrase_raw = phrase.strip()
        if not phrase_raw:
            raise ValueError("Phrase must not be empty")
        date_local = self.day_service.today()

        alias = self.alias_service.get(phrase_raw)
        if alias is not None:
            _logger.info("Alias hit for %r -> %s", phrase_raw, alias.product_id)
            state = self._new_state(_Mode.ALIAS, phrase_raw, date_local)
            state.product_id = alias.product_id
            state.product = self.product_service.get(alias.product_id)
            grams = self.alias_service.resolve_grams(alias)
            if grams is None:
                return self._suspend(
                    state,
                    InputKind.GRAMS,
                    prompt=f'Enter grams for "{phrase_raw}"',
                    quick_grams=[DEFAULT_GRAMS],
                )
            return self._log_bound_product(state, grams)

        descriptors = await self.parser_service.parse(phrase_raw)
        if not descriptors:
            state = self._new_state(_Mode.MANUAL, phrase_raw, date_local)
            qty_unit = try_parse_qty_unit(phrase_raw)
            if qty_unit is not None:
                state.suggested_grams = float(round(qty_unit.qty))
            return self._suspend(
                state,
                InputKind.MANUAL_ENTRY,
                prompt="Enter name, grams and macros for this food",
                quick_grams=[state.suggested_grams],
                suggestion=phrase_raw,
            )

        state = self._new_state(_Mode.PARSED, phrase_raw, date_local)
        state.descriptors = list(descriptors)
        state.entry = self._create_entry(phrase_raw, date_local)
        return await self._advance(state)

    async def log_barcode(self, barcode: str) -> LogStep:
        """Log a product identified by its barcode."""
        product = await self.product_service.find_by_barcode(barcode)
        state = self._new_state(
            _Mode.BARCODE, f"barcode:{barcode.strip()}", self.day_service.today()
        )
        state.product = product
        state.product_id = product.id
        servings = self.product_service.servings(product.id)
        serving_grams = product.default_serving_g or (
            servings[0].grams if servings else None
        )
        quick = [BARCODE_QUICK_GRAMS[0], serving_grams, BARCODE_QUICK_GRAMS[1]]
        return self._suspend(
            state,
            InputKind.GRAMS,
            prompt=f'Enter grams of "{product.display_name}"',
            quick_grams=[grams for grams in quick if grams],
        )

    async def resume(self, session_id: UUID, answer: InputAnswer) -> LogStep:
        """Continue a suspended logging action with the user's answer."""
        state = self.pending.get(_pending_key(session_id))
        if not isinstance(state, _PendingLog):
            raise UnknownSessionError(f"No pending logging action {session_id}")

        if state.kind == InputKind.GRAMS:
            return await self._resume_grams(state, answer)
        if state.kind == InputKind.DISAMBIGUATION:
            return await self._resume_choice(state, answer)
        if state.kind == InputKind.CORRECTION:
            return await self._resume_correction(state, answer)
        return self._resume_manual(state, answer)

    async def _resume_grams(self, state: _PendingLog, answer: InputAnswer) -> LogStep:
        if answer.cancel:
            if state.mode == _Mode.PARSED:
                return await self._skip(state)
            return self._finish(state)
        grams = _interactive_grams(answer.grams)
        if state.mode in (_Mode.ALIAS, _Mode.BARCODE):
            return self._log_bound_product(state, grams)
        state.grams = grams
        return await self._advance(state)

    async def _resume_choice(self, state: _PendingLog, answer: InputAnswer) -> LogStep:
        if answer.cancel:
            return await self._skip(state)
        picked = _pick(state.choices, answer.choice_index)
        self._log_candidate(state, picked, learn=True)
        return await self._next(state)

    async def _resume_correction(
        self, state: _PendingLog, answer: InputAnswer
    ) -> LogStep:
        if answer.cancel:
            return await self._skip(state)
        grams = state.grams or DEFAULT_GRAMS
        if answer.choice_index is not None:
            picked = _pick(state.choices, answer.choice_index)
            self._log_candidate(state, picked, learn=True)
            return await self._next(state)
        corrected = (answer.phrase or "").strip()
        if not corrected:
            raise InvalidAnswerError("A corrected phrase is required")
        retry = await self.resolver_service.resolve(ParsedItem(name=corrected))
        if retry.status == ResolveStatus.OK and retry.best is not None:
            self._log_candidate(state, retry.best, learn=True, fallback_name=corrected)
        else:
            _logger.info("Still unresolved after correction: %r", corrected)
            self._log_placeholder(state, corrected, grams)
        return await self._next(state)

    def _resume_manual(self, state: _PendingLog, answer: InputAnswer) -> LogStep:
        if answer.cancel:
            return self._finish(state)
        grams = answer.grams if answer.grams is not None else state.suggested_grams
        if grams <= 0:
            raise InvalidAnswerError("Grams must be positive")
        macros = MacroSet(
            kcal=None if answer.kcal is None else _whole(answer.kcal),
            protein_g=answer.protein_g,
            carbs_g=answer.carbs_g,
            fat_g=answer.fat_g,
            fiber_g=answer.fiber_g,
        )
        name = (answer.name or "").strip() or "Manual item"
        custom_id = str(uuid4())
        product = Product(
            id=f"custom:{custom_id}",
            source="custom",
            source_id=custom_id,
            name=name,
            nutrients=per_100g_record(macros, grams),
        )
        self.product_service.save(product)
        state.entry = self._create_entry(state.phrase_raw, state.date_local)
        self._append_item(
            state,
            product_id=product.id,
            food_name=name,
            grams=grams,
            macros=macros,
            confidence=1.0,
            notes="manual",
        )
        if answer.save_alias:
            self.alias_service.set(
                state.phrase_raw,
                product.id,
                grams_override=grams if answer.bind_grams else None,
            )
            state.alias_saved = True
        return self._finish(state)

    async def _advance(self, state: _PendingLog) -> LogStep:
        """Resolve descriptors from the current index until one needs input."""
        while state.index < len(state.descriptors):
            descriptor = state.descriptor
            if state.grams is None:
                if not descriptor.grams:
                    return self._suspend(
                        state,
                        InputKind.GRAMS,
                        prompt=f'Grams for "{descriptor.query}"',
                        quick_grams=[DEFAULT_GRAMS],
                    )
                state.grams = descriptor.grams
            result = await self.resolver_service.resolve(descriptor)
            step = self._apply(state, descriptor, result)
            if step is not None:
                return step
            state.index += 1
            state.grams = None
            state.choices = []
        return self._finish(state)

    def _apply(
        self, state: _PendingLog, descriptor: ParsedItem, result: ResolveResult
    ) -> InputRequest | None:
        if result.status == ResolveStatus.OK and result.best is not None:
            self._log_candidate(state, result.best, learn=True)
            return None
        state.choices = list(result.choices)
        if result.status == ResolveStatus.CHOICES and result.choices:
            return self._suspend(
                state,
                InputKind.DISAMBIGUATION,
                prompt="Which did you mean?",
                choices=state.choices,
                suggestion=descriptor.query,
            )
        return self._suspend(
            state,
            InputKind.CORRECTION,
            prompt=(
                f"Couldn't resolve \"{descriptor.name}\". "
                "Add brand/variant and try again"
            ),
            choices=state.choices,
            suggestion=descriptor.query,
        )

    async def _next(self, state: _PendingLog) -> LogStep:
        state.index += 1
        state.grams = None
        state.choices = []
        return await self._advance(state)

    async def _skip(self, state: _PendingLog) -> LogStep:
        _logger.info("Skipped item %s of %r", state.index + 1, state.phrase_raw)
        return await self._next(state)

    def _log_bound_product(self, state: _PendingLog, grams: float) -> LogResult:
        state.entry = self._create_entry(state.phrase_raw, state.date_local)
        if state.product is not None:
            self._log_product(state, state.product, grams, confidence=1.0)
        else:
            self._append_item(
                state,
                product_id=state.product_id or "",
                food_name=state.phrase_raw,
                grams=grams,
                macros=MacroSet.empty(),
                confidence=1.0,
                notes=MACROS_UNAVAILABLE_NOTE,
            )
        return self._finish(state)

    def _log_candidate(
        self,
        state: _PendingLog,
        candidate: Candidate,
        *,
        learn: bool,
        fallback_name: str | None = None,
    ) -> None:
        grams = state.grams or DEFAULT_GRAMS
        self._log_product(
            state,
            candidate.product,
            grams,
            confidence=candidate.confidence,
            fallback_name=fallback_name or state.descriptor.name,
            qty=state.descriptor.qty or 1,
            unit=state.descriptor.unit or "g",
        )
        if learn:
            self._learn_alias(state, candidate.product, grams)

    def _log_product(  # noqa: PLR0913
        self,
        state: _PendingLog,
        product: Product,
        grams: float,
        *,
        confidence: float,
        fallback_name: str | None = None,
        qty: float = 1,
        unit: str = "g",
    ) -> None:
        self.product_service.save(product)
        macros = project_macros(product.nutrients, grams, product.default_serving_g)
        self._append_item(
            state,
            product_id=product.id,
            food_name=product.display_name or fallback_name or state.phrase_raw,
            grams=grams,
            macros=macros,
            confidence=confidence,
            notes=None if macros.energy_available else MACROS_UNAVAILABLE_NOTE,
            qty=qty,
            unit=unit,
        )

    def _log_placeholder(self, state: _PendingLog, name: str, grams: float) -> None:
        self._append_item(
            state,
            product_id=f"parsed:{uuid4()}",
            food_name=name,
            grams=grams,
            macros=MacroSet.empty(),
            confidence=UNRESOLVED_CONFIDENCE,
            notes="unresolved",
        )

    def _append_item(  # noqa: PLR0913
        self,
        state: _PendingLog,
        *,
        product_id: str,
        food_name: str,
        grams: float,
        macros: MacroSet,
        confidence: float,
        notes: str | None,
        qty: float = 1,
        unit: str = "g",
    ) -> None:
        if state.entry is None:
            raise RuntimeError("Items require an entry")
        item = Item(
            id=uuid4(),
            entry_id=state.entry.id,
            product_id=product_id,
            date_local=state.entry.date_local,
            food_name=food_name,
            grams=grams,
            macros=macros,
            confidence=confidence,
            notes=notes,
            qty=qty,
            unit=unit,
        )
        self.repository.create_item(item)
        self.day_service.add_item(item)
        state.items.append(item)

    def _learn_alias(self, state: _PendingLog, product: Product, grams: float) -> None:
        if len(state.descriptors) > 1:
            _logger.info(
                "Not learning alias for multi-item phrase %r", state.phrase_raw
            )
            return
        self.alias_service.set(state.phrase_raw, product.id, grams_override=grams)
        state.alias_saved = True

    def _create_entry(self, phrase_raw: str, date_local: str) -> Entry:
        entry = Entry(
            id=uuid4(),
            timestamp_utc=self.day_service.clock.now_utc(),
            date_local=date_local,
            text_raw=phrase_raw,
        )
        self.repository.create_entry(entry)
        return entry

    def _new_state(self, mode: _Mode, phrase_raw: str, date_local: str) -> _PendingLog:
        return _PendingLog(
            session_id=uuid4(),
            mode=mode,
            phrase_raw=phrase_raw,
            date_local=date_local,
        )

    def _suspend(  # noqa: PLR0913
        self,
        state: _PendingLog,
        kind: InputKind,
        *,
        prompt: str,
        quick_grams: list[float] | None = None,
        choices: list[Candidate] | None = None,
        suggestion: str | None = None,
    ) -> InputRequest:
        state.kind = kind
        self.pending.set(
            _pending_key(state.session_id), state, ttl_seconds=self.pending_ttl_seconds
        )
        return InputRequest(
            session_id=state.session_id,
            kind=kind,
            prompt=prompt,
            quick_grams=quick_grams or [],
            choices=choices or [],
            suggestion=suggestion,
        )

    def _finish(self, state: _PendingLog) -> LogResult:
        self.pending.delete(_pending_key(state.session_id))
        return LogResult(
            entry=state.entry,
            items=list(state.items),
            totals=self.day_service.get_totals(state.date_local),
            alias_saved=state.alias_saved,
        )


def _pending_key(session_id: UUID) -> str:
    return f"pending-log:{session_id}"


def _interactive_grams(value: float | None) -> float:
    if value is None:
        raise InvalidAnswerError("Grams are required")
    return float(max(1, _whole(value)))


def _pick(choices: list[Candidate], index: int | None) -> Candidate:
    if index is None or not 0 <= index < len(choices):
        raise InvalidAnswerError(f"Choice must be between 0 and {len(choices) - 1}")
    return choices[index]


def _whole(value: float) -> int:
    return int(Decimal(repr(float(value))).quantize(Decimal(1), rounding=ROUND_HALF_UP))
