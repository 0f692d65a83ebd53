"""
DeepSeek chat-completion client.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
from fastapi import Request

from src.common.config import settings
from src.models.models import AIModel

logger = logging.getLogger(__name__)


class DeepSeekError(Exception):
    """Raised when a chat completion cannot be obtained."""


@dataclass
class ChatCompletion:
    """The parts of a chat completion response the application uses."""
    content: str
    total_tokens: int
    model: str


class DeepSeekClient:
    """Thin async wrapper around the DeepSeek `/chat/completions` endpoint."""

    def __init__(
        self,
        api_key: str = settings.DEEPSEEK_API_KEY,
        base_url: str = settings.DEEPSEEK_API_BASE_URL,
        timeout: float = settings.AI_REQUEST_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            logger.warning("DEEPSEEK_API_KEY is not set; AI requests will be rejected upstream.")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = AIModel.CHAT.value,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> ChatCompletion:
        """
        Request a single, non-streamed chat completion.

        Args:
            messages: Chat messages, each with `role` and `content`
            model: DeepSeek model name
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature

        Returns:
            ChatCompletion with the first choice's text and the total token usage

        Raises:
            DeepSeekError: on transport failure, timeout, non-2xx status or an
                unexpected response body
        """
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }

        try:
            response = await self._client.post(
                f"{self.base_url}/chat/completions",
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Error calling DeepSeek API: {e}")
            raise DeepSeekError("Failed to get DeepSeek chat completion") from e

        if response.status_code != 200:
            logger.error(f"DeepSeek API error: {response.status_code} - {response.text}")
            raise DeepSeekError(f"DeepSeek API error: {response.status_code}")

        try:
            data = response.json()
            return ChatCompletion(
                content=data["choices"][0]["message"]["content"],
                total_tokens=int((data.get("usage") or {}).get("total_tokens") or 0),
                model=data.get("model", model),
            )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise DeepSeekError("Unexpected DeepSeek response format") from e

    async def close(self) -> None:
        await self._client.aclose()


def get_ai_client(request: Request) -> DeepSeekClient:
    """
    Dependency returning the DeepSeek client created at startup.
    """
    return request.app.state.ai_client
