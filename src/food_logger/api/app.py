"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from food_logger.app_logging import configure_logging
from food_logger.containers import AppContainer
from food_logger.domain.log import Targets
from food_logger.domain.resolution import InputAnswer, InputRequest, LogStep
from food_logger.errors import (
    InvalidAnswerError,
    InvalidBarcodeError,
    ProductNotFoundError,
    ProviderUnavailableError,
    UnknownSessionError,
)


class TextLogRequest(BaseModel):
    text: str = Field(min_length=1)


class BarcodeLogRequest(BaseModel):
    barcode: str


class ParseRequest(BaseModel):
    text: str = Field(min_length=1)


class AliasRequest(BaseModel):
    phrase: str = Field(min_length=1)
    product_id: str = Field(min_length=1)
    serving_label: str | None = None
    grams_override: float | None = Field(default=None, gt=0)


class TargetsRequest(BaseModel):
    kcal: float = Field(ge=0)
    protein_g: float = Field(ge=0)
    carbs_g: float = Field(ge=0)
    fat_g: float = Field(ge=0)
    fiber_g: float = Field(ge=0)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/log/text")
    async def log_text(body: TextLogRequest, request: Request) -> dict[str, object]:
        """Log a free-text phrase."""
        state_container: AppContainer = request.app.state.container
        try:
            step = await state_container.food_log_service.log_text(body.text)
        except ValueError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
        return _step_payload(step)

    @app.post("/log/barcode")
    async def log_barcode(
        body: BarcodeLogRequest, request: Request
    ) -> dict[str, object]:
        """Start logging a scanned product."""
        state_container: AppContainer = request.app.state.container
        try:
            step = await state_container.food_log_service.log_barcode(body.barcode)
        except InvalidBarcodeError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
        except ProductNotFoundError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc)) from exc
        except ProviderUnavailableError as exc:
            logger.warning("Barcode lookup failed: %s", exc)
            raise HTTPException(
                status.HTTP_503_SERVICE_UNAVAILABLE, str(exc)
            ) from exc
        return _step_payload(step)

    @app.post("/log/{session_id}/answer")
    async def answer(
        session_id: UUID, body: InputAnswer, request: Request
    ) -> dict[str, object]:
        """Answer a pending input request."""
        state_container: AppContainer = request.app.state.container
        try:
            step = await state_container.food_log_service.resume(session_id, body)
        except UnknownSessionError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc)) from exc
        except InvalidAnswerError as exc:
            raise HTTPException(
                status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
            ) from exc
        return _step_payload(step)

    @app.get("/days/today")
    async def today(request: Request) -> dict[str, object]:
        """Return today's items, totals and remaining targets."""
        state_container: AppContainer = request.app.state.container
        return jsonable_encoder(state_container.day_service.summary())

    @app.get("/days/{day}")
    async def day_summary(day: date, request: Request) -> dict[str, object]:
        """Return a day's items, totals and remaining targets."""
        state_container: AppContainer = request.app.state.container
        return jsonable_encoder(state_container.day_service.summary(day.isoformat()))

    @app.post("/days/{day}/recompute")
    async def recompute(day: date, request: Request) -> dict[str, object]:
        """Rebuild a day's totals from its items."""
        state_container: AppContainer = request.app.state.container
        totals = state_container.day_service.recompute_totals(day.isoformat())
        return jsonable_encoder(totals)

    @app.get("/targets")
    async def get_targets(request: Request) -> dict[str, object]:
        """Return the daily targets."""
        state_container: AppContainer = request.app.state.container
        return jsonable_encoder(state_container.day_service.get_targets())

    @app.put("/targets")
    async def put_targets(body: TargetsRequest, request: Request) -> dict[str, object]:
        """Replace the daily targets."""
        state_container: AppContainer = request.app.state.container
        targets = state_container.day_service.set_targets(
            Targets(**body.model_dump())
        )
        return jsonable_encoder(targets)

    @app.get("/aliases")
    async def list_aliases(request: Request) -> dict[str, object]:
        """Return saved phrase aliases."""
        state_container: AppContainer = request.app.state.container
        return {"aliases": jsonable_encoder(state_container.alias_service.list())}

    @app.put("/aliases")
    async def save_alias(body: AliasRequest, request: Request) -> dict[str, object]:
        """Bind a phrase to a stored product."""
        state_container: AppContainer = request.app.state.container
        if state_container.product_service.get(body.product_id) is None:
            raise HTTPException(
                status.HTTP_404_NOT_FOUND, f"Unknown product {body.product_id}"
            )
        alias = state_container.alias_service.set(
            body.phrase,
            body.product_id,
            serving_label=body.serving_label,
            grams_override=body.grams_override,
        )
        return jsonable_encoder(alias)

    @app.delete("/aliases")
    async def delete_alias(phrase: str, request: Request) -> dict[str, str]:
        """Remove the alias for a phrase."""
        state_container: AppContainer = request.app.state.container
        state_container.alias_service.delete(phrase)
        return {"status": "ok"}

    @app.post("/parse")
    async def parse(body: ParseRequest, request: Request) -> dict[str, object]:
        """Run the text parser alone; null items mean the parser is unavailable."""
        state_container: AppContainer = request.app.state.container
        items = await state_container.parser_service.parse(body.text)
        if items is None:
            return {"items": None}
        return {"items": [item.model_dump(exclude_none=True) for item in items]}

    return app


def _step_payload(step: LogStep) -> dict[str, object]:
    if isinstance(step, InputRequest):
        return {"status": "input_required", "request": jsonable_encoder(step)}
    return {"status": "logged", "result": jsonable_encoder(step)}
