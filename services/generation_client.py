# ============================================================================
# GENERATION HTTP CLIENT
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Service - Async HTTP client for the generation collaborator
# PURPOSE: Chat-completion calls for SQL scripts and schema modifications
# CREATED: 14 SEP 2026
# ============================================================================
"""
Generation HTTP Client

Async httpx client for an OpenAI-compatible chat-completions endpoint
(POST {api_url}/chat/completions). The model is opaque: this client only
sends a system and user prompt and returns the assistant's text.

Every failure (unreachable, timeout, non-2xx, malformed body, empty
content) surfaces as GenerationError so callers can fall back.
"""

import logging
import re
from typing import Any, Dict, Optional

import httpx

from core.config.defaults import GenerationDefaults
from core.errors import GenerationError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a single surrounding ```lang ... ``` fence, if present."""
    match = _FENCE.match(text.strip())
    return match.group(1).strip() if match else text.strip()


class GenerationClient:
    """Async HTTP client for chat completions."""

    def __init__(self, config: Optional[GenerationDefaults] = None, timeout: Optional[httpx.Timeout] = None):
        self.config = config or GenerationDefaults.from_env()
        self._base_url = self.config.api_url.rstrip("/")
        self._timeout = timeout or httpx.Timeout(
            connect=self.config.connect_timeout,
            read=self.config.read_timeout,
            write=self.config.connect_timeout,
            pool=self.config.connect_timeout,
        )

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=headers)
        except httpx.ConnectError as e:
            logger.error(f"Cannot reach generation service at {url}: {e}")
            raise GenerationError(f"Generation service unreachable: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Generation service timeout: {url}: {e}")
            raise GenerationError(f"Generation service timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Generation request failed: {url}: {e}")
            raise GenerationError(f"Generation request failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"Generation service error {resp.status_code}: {resp.text[:200]}")
            raise GenerationError(
                f"Generation service returned {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise GenerationError("Generation service returned non-JSON body") from e

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Run one chat completion.

        Returns:
            Assistant message content, code fence stripped

        Raises:
            GenerationError: disabled, transport failure or unusable response
        """
        if not self.enabled:
            raise GenerationError("Generation service not configured (GENERATION_API_KEY unset)")

        body = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        data = await self._post("/chat/completions", body)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Generation response missing choices[0].message.content") from e
        if not content or not content.strip():
            raise GenerationError("Generation service returned empty content")

        logger.debug(f"Generation completed ({len(content)} chars)")
        return strip_code_fence(content)


__all__ = ["GenerationClient", "strip_code_fence"]
