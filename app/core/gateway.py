"""
LLM gateway: bounded retries around a chat-completion provider with a
data-only fallback when the model cannot be reached.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from ..config import settings
from ..providers.llm import LLMMessage, LLMProvider, LLMProviderError, get_llm_provider
from ..types import ChatMessage

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_WITH_DATA = (
    "⚠️ AI formatting unavailable right now, so here is the raw data I fetched for you:\n\n{context}"
)
AI_UNAVAILABLE = (
    "⚠️ The AI service is temporarily unavailable. Please try again in a moment. 🙏"
)
DEFAULT_IMAGE_PROMPT = "Analyze this blockchain/crypto-related image"


class LLMGateway:
    """Send assembled conversations to the provider with retry and fallback.

    Only transient failures (5xx or transport errors) are retried, with a
    linear backoff of ``attempt * retry_delay`` seconds. Client errors abort
    immediately.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider],
        *,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        history_limit: Optional[int] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.max_attempts = max(1, max_attempts or settings.llm_max_attempts)
        self.retry_delay = settings.llm_retry_delay_seconds if retry_delay is None else retry_delay
        self.history_limit = history_limit or settings.history_limit
        self.max_tokens = max_tokens or settings.max_tokens
        self.temperature = settings.temperature if temperature is None else temperature
        self._sleep = sleep

    @property
    def available(self) -> bool:
        return self.provider is not None

    async def aclose(self) -> None:
        if self.provider is not None:
            await self.provider.aclose()

    def build_messages(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage],
        user_message: str,
        image: Optional[str] = None,
    ) -> List[LLMMessage]:
        messages = [LLMMessage(role="system", content=system_prompt)]
        for item in list(history)[-self.history_limit:]:
            if item.content:
                messages.append(LLMMessage(role=item.role, content=item.content))
        if image:
            messages.append(LLMMessage.with_image(user_message or DEFAULT_IMAGE_PROMPT, image))
        else:
            messages.append(LLMMessage(role="user", content=user_message))
        return messages

    async def generate(
        self,
        messages: List[LLMMessage],
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Call the provider, retrying transient failures; raises the last error."""

        if self.provider is None:
            raise LLMProviderError("No LLM provider configured")

        last_error: Optional[LLMProviderError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self.provider.generate_response(
                    messages,
                    max_tokens=max_tokens or self.max_tokens,
                    temperature=self.temperature if temperature is None else temperature,
                )
                return response.content or ""
            except LLMProviderError as exc:
                last_error = exc
                logger.warning(
                    "LLM attempt %s/%s failed status=%s error=%s",
                    attempt,
                    self.max_attempts,
                    exc.status_code,
                    exc,
                )
                if not exc.is_transient:
                    break
                if attempt < self.max_attempts:
                    await self._sleep(attempt * self.retry_delay)

        raise last_error or LLMProviderError("LLM request failed")

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage],
        user_message: str,
        context_block: Optional[str] = None,
        image: Optional[str] = None,
    ) -> str:
        """Reply text for the conversation, or a fallback when the model is down."""

        messages = self.build_messages(system_prompt, history, user_message, image)
        try:
            return await self.generate(messages)
        except LLMProviderError as exc:
            logger.error("LLM unavailable, using fallback reply: %s", exc)
            if context_block:
                return AI_UNAVAILABLE_WITH_DATA.format(context=context_block)
            return AI_UNAVAILABLE

    async def analyze(
        self,
        system_prompt: str,
        content: str,
        *,
        image: Optional[str] = None,
        max_tokens: int = 800,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        """Best-effort single-turn analysis; ``None`` when the model is unavailable."""

        messages = [LLMMessage(role="system", content=system_prompt)]
        if image:
            messages.append(LLMMessage.with_image(content or DEFAULT_IMAGE_PROMPT, image))
        else:
            messages.append(LLMMessage(role="user", content=content))
        try:
            return await self.generate(messages, max_tokens=max_tokens, temperature=temperature)
        except LLMProviderError as exc:
            logger.warning("LLM analysis skipped: %s", exc)
            return None


def build_gateway() -> LLMGateway:
    """Gateway over the configured provider; provider-less when no API key is set."""

    if not settings.has_llm_key:
        logger.warning("No LLM API key configured; chat replies will use the data-only fallback")
        return LLMGateway(None)
    try:
        return LLMGateway(get_llm_provider())
    except ValueError as exc:
        logger.error("LLM provider unavailable: %s", exc)
        return LLMGateway(None)


__all__ = ["LLMGateway", "build_gateway", "AI_UNAVAILABLE", "AI_UNAVAILABLE_WITH_DATA"]
