"""Free-text parsing into structured food descriptors."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from food_logger.domain.parsing import (
    LooseParsedPhrase,
    ParsedItem,
    ParsedPhrase,
)
from food_logger.errors import ParserUnavailableError

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = " ".join(
    [
        "You are a nutrition free-text parser.",
        'Return STRICT JSON with an "items" array.',
        "Each item: {name, brand?, qty?, unit?, grams?, notes?}.",
        "CRITICAL RULES:",
        "- qty and grams MUST be numbers (not strings).",
        "- If a field is unknown, set it to null.",
        "- Do NOT include calories or macros.",
        'If grams are explicitly stated (e.g., "200 g"), set grams.',
        'When only household units (e.g., "1 scoop") are present, '
        "keep qty/unit and set grams to null.",
        'Split the text into multiple items if separated by "+" or commas.',
        "Return ONLY JSON, no prose.",
    ]
)

_NULLABLE_STRING = {"anyOf": [{"type": "string"}, {"type": "null"}]}
_NULLABLE_NUMBER = {"anyOf": [{"type": "number"}, {"type": "null"}]}

PARSER_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "brand": _NULLABLE_STRING,
                    "qty": _NULLABLE_NUMBER,
                    "unit": _NULLABLE_STRING,
                    "grams": _NULLABLE_NUMBER,
                    "notes": _NULLABLE_STRING,
                },
                "required": ["name", "brand", "qty", "unit", "grams", "notes"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_MOCK_AMOUNT = re.compile(r"\b(\d+(?:\.\d+)?)\s*(g|ml)\b", re.IGNORECASE)
_DOUBLE_SPACE = re.compile(r"\s{2,}")


class TextParserClient(Protocol):
    """Interface for the language-model text parser."""

    async def parse(
        self,
        *,
        model: str,
        system_prompt: str,
        text: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return the raw JSON object produced for a phrase.

        Raises ParserUnavailableError when the model cannot be reached or
        does not return JSON.
        """


@dataclass
class ParserService:
    """Turns a phrase into at most ten descriptors, or None on failure."""

    client: TextParserClient | None
    model: str
    mock: bool = False

    async def parse(self, text: str) -> list[ParsedItem] | None:
        """Parse a phrase; None tells the caller to fall back to manual entry."""
        if self.mock:
            raw: object = mock_parse(text)
        elif self.client is None:
            return None
        else:
            try:
                raw = await self.client.parse(
                    model=self.model,
                    system_prompt=SYSTEM_PROMPT,
                    text=f"Text: {text}",
                    schema=PARSER_SCHEMA,
                )
            except ParserUnavailableError as exc:
                _logger.warning("Parser unavailable: %s", exc)
                return None
        try:
            return sanitize(raw).items
        except ValidationError as exc:
            _logger.warning("Parser returned invalid items: %s", exc)
            return None


def sanitize(payload: object) -> ParsedPhrase:
    """Coerce loose model output into the strict descriptor schema.

    Raises ValidationError when the payload cannot be coerced.
    """
    loose = LooseParsedPhrase.model_validate(payload)
    items: list[dict[str, object]] = []
    for item in loose.items:
        name = item.name.strip()
        if not name:
            continue
        cleaned: dict[str, object] = {"name": name}
        if item.brand and item.brand.strip():
            cleaned["brand"] = item.brand.strip()
        qty = _to_number(item.qty)
        if qty is not None:
            cleaned["qty"] = qty
        if item.unit and item.unit.strip():
            cleaned["unit"] = item.unit.strip()
        grams = _to_number(item.grams)
        if grams is not None:
            cleaned["grams"] = grams
        if item.notes and item.notes.strip():
            cleaned["notes"] = item.notes.strip()
        items.append(cleaned)
    return ParsedPhrase.model_validate({"items": items})


def mock_parse(text: str) -> dict[str, object]:
    """Split on "+" and pick up "N g"/"N ml" amounts without calling a model."""
    items: list[dict[str, object]] = []
    for part in (chunk.strip() for chunk in text.split("+")):
        if not part:
            continue
        match = _MOCK_AMOUNT.search(part)
        name = _DOUBLE_SPACE.sub(" ", _MOCK_AMOUNT.sub("", part, count=1).strip())
        item: dict[str, object] = {"name": name or "item"}
        if match:
            item["grams"] = float(match.group(1))
        items.append(item)
    return {"items": items}


def _to_number(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
