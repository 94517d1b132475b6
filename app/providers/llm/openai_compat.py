"""Async provider for OpenAI-compatible chat completion APIs (AI/ML API, OpenAI)."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx

from .base import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderError,
    LLMProviderRateLimitError,
    LLMResponse,
)


class OpenAICompatibleProvider(LLMProvider):
    """Chat completions over ``POST {base_url}/chat/completions``."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        *,
        base_url: str | None = None,
        timeout: float = 40.0,
        http_client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ) -> None:
        self.base_url = (base_url or "https://api.aimlapi.com/v1").rstrip("/")
        self.timeout = timeout
        self._chat_completions_path = "/chat/completions"
        self._http_client = http_client
        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, **kwargs: Any) -> None:
        self._owns_client = self._http_client is None
        self._client = self._http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
        )
        self._headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _post(self, path: str, json: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self.base_url}{path}",
                json=json,
                headers=self._headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise LLMProviderAuthError("Chat completion authentication failed", status_code=status) from exc
            if status == 429:
                raise LLMProviderRateLimitError("Chat completion rate limit exceeded", status_code=status) from exc
            raise LLMProviderAPIError(f"Chat completion API error ({status})", status_code=status) from exc
        except httpx.RequestError as exc:
            raise LLMProviderAPIError(f"Chat completion request error: {type(exc).__name__}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMProviderAPIError("Chat completion returned invalid JSON", transient=False) from exc
        if not isinstance(data, dict):
            raise LLMProviderAPIError("Chat completion returned an unexpected payload", transient=False)
        return data

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        start_time = time.time()

        payload = self._build_payload(
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            extra=kwargs,
        )

        data = await self._post(self._chat_completions_path, json=payload)

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise LLMProviderAPIError("Chat completion response missing choices", transient=False)

        choice = choices[0]
        message = choice.get("message")
        if not isinstance(message, dict):
            message = {}
        content = self._normalize_content(message.get("content"))

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return self._create_response(
            content=content,
            tokens_used=usage.get("total_tokens"),
            finish_reason=choice.get("finish_reason"),
            response_time_ms=self._measure_time(start_time),
        )

    async def health_check(self) -> Dict[str, Any]:
        try:
            response = await self.generate_response(
                messages=[LLMMessage(role="user", content="ping")],
                max_tokens=4,
                temperature=0.0,
            )
            return {
                "status": "healthy",
                "provider": "openai",
                "model": self.model,
                "response_preview": (response.content or "")[:32],
            }
        except LLMProviderRateLimitError:
            return {
                "status": "degraded",
                "provider": "openai",
                "model": self.model,
                "error": "rate_limited",
            }
        except LLMProviderError as exc:
            return {
                "status": "error",
                "provider": "openai",
                "model": self.model,
                "error": str(exc),
            }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_payload(
        self,
        *,
        messages: List[LLMMessage],
        max_tokens: Optional[int],
        temperature: Optional[float],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": msg.role, "content": msg.content}
                for msg in messages
            ],
        }

        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature

        if extra:
            for key, value in extra.items():
                if value is not None:
                    payload[key] = value

        return payload

    def _normalize_content(self, content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: List[str] = []
            for item in content:
                if isinstance(item, str):
                    parts.append(item)
                elif isinstance(item, dict) and item.get("text") is not None:
                    parts.append(str(item["text"]))
            return "".join(parts)
        return str(content)
