"""Tests for the model gateway wrapper and response parsing."""

import asyncio

import pytest

from services.errors import GatewayError, GatewayTimeout, GatewayUnavailable, ResponseParseError
from services.gemini_client import GeminiGateway, parse_json_object, strip_code_fences


class TestStripCodeFences:
    def test_plain_text_untouched(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_with_preamble(self):
        text = 'Here is the result:\n```json\n{"a": 1}\n```\nThanks'
        assert strip_code_fences(text) == '{"a": 1}'


class TestParseJsonObject:
    def test_object(self):
        assert parse_json_object('```json\n{"score": 7.5}\n```') == {"score": 7.5}

    def test_prose_is_parse_error(self):
        with pytest.raises(ResponseParseError, match="not valid JSON"):
            parse_json_object("I think the student is strong.")

    def test_array_is_parse_error(self):
        with pytest.raises(ResponseParseError, match="Expected a JSON object"):
            parse_json_object("[1, 2, 3]")

    def test_truncated_object(self):
        with pytest.raises(ResponseParseError):
            parse_json_object('{"dimension_score": 8.0, "strengths": [')

    def test_deeply_nested_is_parse_error(self):
        with pytest.raises(ResponseParseError, match="not valid JSON"):
            parse_json_object("[" * 100000 + "]" * 100000)


class _Response:
    def __init__(self, text):
        self.text = text


class _Models:
    def __init__(self, text="", delay=0.0, error=None):
        self._text = text
        self._delay = delay
        self._error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return _Response(self._text)


class _Aio:
    def __init__(self, models):
        self.models = models


class _Client:
    def __init__(self, **kwargs):
        self.aio = _Aio(_Models(**kwargs))


class TestGeminiGateway:
    @pytest.mark.asyncio
    async def test_returns_text_and_sends_instructions(self):
        client = _Client(text='{"ok": true}')
        gateway = GeminiGateway(client=client, model="gemini-test", timeout_seconds=1)
        assert await gateway.complete("be precise", "data") == '{"ok": true}'
        model, contents, config = client.aio.models.calls[0]
        assert model == "gemini-test"
        assert contents == "data"
        assert config.system_instruction == "be precise"

    @pytest.mark.asyncio
    async def test_timeout(self):
        gateway = GeminiGateway(client=_Client(text="{}", delay=1.0), timeout_seconds=0.05)
        with pytest.raises(GatewayTimeout):
            await gateway.complete("i", "p")

    @pytest.mark.asyncio
    async def test_service_error_wrapped(self):
        gateway = GeminiGateway(client=_Client(error=RuntimeError("quota exceeded")), timeout_seconds=1)
        with pytest.raises(GatewayError, match="quota exceeded"):
            await gateway.complete("i", "p")

    @pytest.mark.asyncio
    async def test_empty_response(self):
        gateway = GeminiGateway(client=_Client(text=""), timeout_seconds=1)
        with pytest.raises(GatewayError, match="Empty response"):
            await gateway.complete("i", "p")

    @pytest.mark.asyncio
    async def test_unconfigured(self, monkeypatch):
        monkeypatch.setattr("services.gemini_client.get_client", lambda: None)
        gateway = GeminiGateway()
        assert gateway.is_configured is False
        with pytest.raises(GatewayUnavailable):
            await gateway.complete("i", "p")
