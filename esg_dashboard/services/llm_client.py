from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)

PROVIDER = "anthropic"
ANTHROPIC_VERSION = "2023-06-01"


class TextGenerator(Protocol):
    async def complete(self, prompt: str) -> str: ...


class AnthropicClient:
    """Single-turn text completion over the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com",
        max_tokens: int = 5000,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "AnthropicClient":
        return cls(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            base_url=settings.anthropic_base_url,
            max_tokens=settings.anthropic_max_tokens,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamError(PROVIDER, "API key not set")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.base_url}/v1/messages",
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": ANTHROPIC_VERSION,
                        "content-type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "max_tokens": self.max_tokens,
                        "messages": [{"role": "user", "content": prompt}],
                    },
                )
                resp.raise_for_status()
                payload: dict[str, Any] = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(PROVIDER, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise UpstreamError(PROVIDER, "invalid JSON payload") from e

        content = payload.get("content") if isinstance(payload, dict) else None
        if not content or not isinstance(content[0], dict):
            raise UpstreamError(PROVIDER, "empty completion")
        first = content[0]
        if first.get("type") != "text":
            return "[]"
        if payload.get("stop_reason") == "max_tokens":
            logger.warning("Completion hit max_tokens=%d; reply may be truncated", self.max_tokens)
        return str(first.get("text") or "")
