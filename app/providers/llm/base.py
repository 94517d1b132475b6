from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel
import time
import logging


# =============================================================================
# Message Models
# =============================================================================

ContentPart = Dict[str, Any]


class LLMMessage(BaseModel):
    """Standardized message format for LLM communication"""
    role: str  # "system", "user", "assistant"
    content: Union[str, List[ContentPart]] = ""

    @classmethod
    def with_image(cls, text: str, image_url: str) -> "LLMMessage":
        """User message carrying text plus an image (data URL or https URL)."""
        return cls(
            role="user",
            content=[
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        )


class LLMResponse(BaseModel):
    """Standardized response from LLM providers"""
    content: Optional[str] = None
    tokens_used: Optional[int] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    response_time_ms: Optional[float] = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    def __init__(self, api_key: str, model: str, **kwargs):
        self.api_key = api_key
        self.model = model
        self.logger = logging.getLogger(f"{self.__class__.__name__}")
        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs) -> None:
        """Initialize the provider-specific client"""
        pass

    @abstractmethod
    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a response from the LLM

        Args:
            messages: List of messages in the conversation
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the reply text
        """
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Check if the provider is healthy and responding"""
        pass

    async def aclose(self) -> None:
        """Release network resources held by the provider"""
        return None

    def _create_response(self, content: str, **metadata) -> LLMResponse:
        """Helper method to create standardized responses"""
        return LLMResponse(
            content=content,
            model=self.model,
            **metadata
        )

    def _measure_time(self, start_time: float) -> float:
        """Helper to measure response time in milliseconds"""
        return (time.time() - start_time) * 1000


class LLMProviderError(Exception):
    """Base exception for LLM provider errors"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transient: Optional[bool] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self._transient = transient

    @property
    def is_transient(self) -> bool:
        """Server-side (5xx) and transport failures are worth retrying.

        A malformed response body is permanent regardless of status.
        """
        if self._transient is not None:
            return self._transient
        return self.status_code is None or self.status_code >= 500


class LLMProviderRateLimitError(LLMProviderError):
    """Raised when hitting rate limits"""
    pass


class LLMProviderAuthError(LLMProviderError):
    """Raised when authentication fails"""
    pass


class LLMProviderAPIError(LLMProviderError):
    """Raised when API request fails"""
    pass
