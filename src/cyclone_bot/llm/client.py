"""Anthropic Messages API client for generating reviews."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from cyclone_bot.config import DEFAULT_CLAUDE_BASE_URL, DEFAULT_CLAUDE_MODEL

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
ERROR_PLACEHOLDER = "Error generating AI review"
EMPTY_RESPONSE_PLACEHOLDER = "No response from Claude"


class ModelResponseError(Exception):
    """Raised when the Messages API returns something we cannot use."""

    pass


@dataclass
class ClaudeConfig:
    """Configuration for the Claude client."""

    api_key: str
    model: str = DEFAULT_CLAUDE_MODEL
    base_url: str = DEFAULT_CLAUDE_BASE_URL
    timeout: float = 60.0
    max_tokens: int = 8000


class ClaudeClient:
    """Text-in, text-out client for the Anthropic Messages API."""

    def __init__(self, config: ClaudeConfig, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the Claude client.

        Args:
            config: Configuration for the client
            http_client: Optional preconfigured client (mainly for tests)
        """
        self.config = config
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "x-api-key": config.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
            timeout=config.timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ClaudeClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _build_request(self, prompt: str) -> dict[str, Any]:
        """Request body with the prompt as a single user message."""
        return {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the text of the first content block.

        Args:
            prompt: Fully substituted prompt

        Returns:
            Model text, or a fixed placeholder if the reply has no content

        Raises:
            httpx.HTTPError: On timeout, transport failure or non-2xx status
            ModelResponseError: If the body is not the expected JSON shape
        """
        logger.info(f"Claude request: model={self.config.model}, prompt={len(prompt)} chars")
        response = await self._client.post("/messages", json=self._build_request(prompt))
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise ModelResponseError(f"Claude returned an undecodable body: {e}") from e

        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            logger.warning("Claude returned no content blocks")
            return EMPTY_RESPONSE_PLACEHOLDER

        first = content[0]
        if not isinstance(first, dict) or not isinstance(first.get("text"), str):
            raise ModelResponseError(f"Unexpected content block from Claude: {first!r}")

        text = first["text"]
        logger.info(f"Claude response: {len(text)} chars")
        return text

    async def generate_review_text(self, prompt: str) -> str:
        """Like complete(), but failures become a placeholder instead of raising.

        A failed model call still yields a (near-empty) review rather than none.
        """
        try:
            return await self.complete(prompt)
        except httpx.TimeoutException as e:
            logger.error(f"Claude request timed out after {self.config.timeout}s: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Claude API returned status {e.response.status_code}: {e.response.text}")
        except httpx.HTTPError as e:
            logger.error(f"Error calling Claude API: {e}")
        except ModelResponseError as e:
            logger.error(f"Error decoding Claude response: {e}")
        return ERROR_PLACEHOLDER
