"""OpenAI Responses API client for free-text parsing."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from food_logger.errors import ParserUnavailableError
from food_logger.services.parser import TextParserClient


@dataclass
class OpenAITextParserClient(TextParserClient):
    """Text parser backed by the OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAITextParserClient":
        """Create an OpenAI parser client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def parse(
        self,
        *,
        model: str,
        system_prompt: str,
        text: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Call OpenAI with structured outputs and return the decoded JSON."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "parsed_phrase",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": False,
        }
        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise ParserUnavailableError(str(exc)) from exc
        output_text = response.output_text
        if not output_text:
            raise ParserUnavailableError("OpenAI returned an empty response")
        try:
            return json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise ParserUnavailableError("OpenAI returned invalid JSON") from exc
