"""
Tests for LLM retry and fallback behaviour.
"""

from typing import Any, Dict, List, Optional

import httpx
import pytest

from app.core.gateway import AI_UNAVAILABLE, LLMGateway
from app.providers.llm import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderRateLimitError,
    LLMResponse,
)
from app.providers.llm.openai_compat import OpenAICompatibleProvider
from app.types import ChatMessage


class ScriptedProvider(LLMProvider):
    """Replays a list of outcomes: strings are replies, exceptions are raised."""

    def __init__(self, outcomes: List[Any]):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []
        super().__init__("test-key", "test-model")

    def _setup_client(self, **kwargs) -> None:
        pass

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> LLMResponse:
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, Exception):
            raise outcome
        return self._create_response(content=outcome)

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_gateway(provider, sleep=None, **kwargs) -> LLMGateway:
    return LLMGateway(
        provider,
        max_attempts=3,
        retry_delay=1.0,
        history_limit=10,
        max_tokens=1000,
        temperature=0.7,
        sleep=sleep or SleepRecorder(),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_success_first_try():
    provider = ScriptedProvider(["gm 👋"])
    gateway = make_gateway(provider)

    reply = await gateway.complete("system", [], "hi")

    assert reply == "gm 👋"
    assert len(provider.calls) == 1
    assert provider.calls[0]["max_tokens"] == 1000


@pytest.mark.asyncio
async def test_three_transient_failures_then_data_fallback():
    provider = ScriptedProvider([LLMProviderAPIError("down", status_code=503)] * 3)
    sleep = SleepRecorder()
    gateway = make_gateway(provider, sleep=sleep)

    reply = await gateway.complete("system", [], "balance?", context_block="USER WALLET DATA FROM ALCHEMY API:")

    assert len(provider.calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert "AI formatting unavailable" in reply
    assert "USER WALLET DATA FROM ALCHEMY API:" in reply


@pytest.mark.asyncio
async def test_transient_failure_then_success():
    provider = ScriptedProvider([LLMProviderAPIError("timeout"), "recovered"])
    gateway = make_gateway(provider)

    assert await gateway.complete("system", [], "hi") == "recovered"
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    provider = ScriptedProvider([LLMProviderAPIError("bad request", status_code=400)])
    sleep = SleepRecorder()
    gateway = make_gateway(provider, sleep=sleep)

    reply = await gateway.complete("system", [], "hi")

    assert len(provider.calls) == 1
    assert sleep.delays == []
    assert reply == AI_UNAVAILABLE


@pytest.mark.asyncio
async def test_rate_limit_is_not_retried():
    provider = ScriptedProvider([LLMProviderRateLimitError("slow down", status_code=429)])
    gateway = make_gateway(provider)

    await gateway.complete("system", [], "hi")

    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_no_provider_falls_back_without_calls():
    gateway = make_gateway(None)

    assert gateway.available is False
    assert await gateway.complete("system", [], "hi") == AI_UNAVAILABLE
    assert await gateway.analyze("system", "content") is None


def test_build_messages_trims_history():
    gateway = make_gateway(ScriptedProvider([]))
    gateway.history_limit = 2
    past = [
        ChatMessage(role="user", content="one"),
        ChatMessage(role="assistant", content="two"),
        ChatMessage(role="user", content=""),
        ChatMessage(role="assistant", content="three"),
    ]

    messages = gateway.build_messages("system prompt", past, "four")

    assert [m.role for m in messages] == ["system", "assistant", "user"]
    assert messages[0].content == "system prompt"
    assert messages[-1].content == "four"


def test_build_messages_with_image():
    gateway = make_gateway(ScriptedProvider([]))

    messages = gateway.build_messages("system", [], "", image="data:image/png;base64,AAAA")

    parts = messages[-1].content
    assert parts[0]["type"] == "text"
    assert parts[1]["image_url"]["url"] == "data:image/png;base64,AAAA"


@pytest.mark.asyncio
async def test_analyze_passes_overrides():
    provider = ScriptedProvider(["looks safe"])
    gateway = make_gateway(provider)

    result = await gateway.analyze("auditor", "contract source", max_tokens=300, temperature=0.3)

    assert result == "looks safe"
    assert provider.calls[0]["max_tokens"] == 300
    assert provider.calls[0]["temperature"] == 0.3


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"<html>oops</html>", b'{"choices": {"a": 1}}'])
async def test_malformed_provider_body_falls_back_without_retry(body):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})

    provider = OpenAICompatibleProvider(
        "sk-test",
        "gpt-4o",
        base_url="https://llm.test/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    sleep = SleepRecorder()
    gateway = make_gateway(provider, sleep=sleep)

    reply = await gateway.complete("system", [], "balance?", context_block="DATA")

    assert len(calls) == 1
    assert sleep.delays == []
    assert "AI formatting unavailable" in reply
    assert "DATA" in reply
