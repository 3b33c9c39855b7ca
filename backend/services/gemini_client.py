"""Model gateway: Google Gemini API wrapper with bounded waits.

Wire contract: a request is an (instructions, payload) pair; the response is
raw text expected to contain a single JSON object, optionally wrapped in a
fenced code block. Parsing lives here too so every caller strips fences the
same way.
"""

import asyncio
import json
import logging
import re
from typing import Any, Protocol

from google import genai
from google.genai import types

from config import settings
from services.errors import GatewayError, GatewayTimeout, GatewayUnavailable, ResponseParseError

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

_client: genai.Client | None = None


class ModelGateway(Protocol):
    async def complete(self, instructions: str, payload: str) -> str:
        """Return raw model text, or raise GatewayError."""
        ...


def get_client() -> genai.Client | None:
    global _client
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - Gemini features disabled")
        return None
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


class GeminiGateway:
    """Sends one (instructions, payload) pair to Gemini per call."""

    def __init__(
        self,
        client: genai.Client | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> None:
        self._client = client
        self._model = model or settings.gemini_model
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds
        self._temperature = temperature if temperature is not None else settings.gateway_temperature
        self._max_output_tokens = max_output_tokens or settings.gateway_max_output_tokens

    @property
    def is_configured(self) -> bool:
        return (self._client or get_client()) is not None

    async def complete(self, instructions: str, payload: str) -> str:
        client = self._client or get_client()
        if client is None:
            raise GatewayUnavailable("Gemini client not configured")

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self._model,
                    contents=payload,
                    config=types.GenerateContentConfig(
                        system_instruction=instructions,
                        temperature=self._temperature,
                        max_output_tokens=self._max_output_tokens,
                    ),
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise GatewayTimeout(f"Gemini call exceeded {self._timeout:.0f}s") from e
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise GatewayError(str(e)) from e

        text = response.text
        if not text:
            raise GatewayError("Empty response from Gemini")
        return text


def strip_code_fences(text: str) -> str:
    """Remove an optional fenced block wrapper around the payload."""
    text = text.strip()
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse model text as a single JSON object or raise ResponseParseError."""
    body = strip_code_fences(text)
    try:
        parsed = json.loads(body)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; deeply nested input overflows the decoder
        raise ResponseParseError(f"Response is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
