"""Low-level Gemini HTTP client.

This module is private to the ``rewriter`` package (indicated by the leading
underscore).  Build clients with :func:`build_generative_client`.

Error handling maps HTTP status codes to typed exceptions:
- HTTP 429 -> :class:`~article_enricher.core.exceptions.GenerationRateLimitError`
- HTTP 401/403 -> :class:`~article_enricher.core.exceptions.GenerationAuthError`
- Other non-2xx, network errors, timeouts, unparseable or blocked
  responses -> :class:`~article_enricher.core.exceptions.GenerationError`
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from article_enricher.config.settings import Settings
from article_enricher.core.exceptions import (
    GenerationAuthError,
    GenerationError,
    GenerationRateLimitError,
)
from article_enricher.rewriter.config import GEMINI_API_BASE, GENERATION_TIMEOUT
from article_enricher.scraper.http_fetcher import retry_after_seconds

logger = logging.getLogger(__name__)


class GeminiClient:
    """Calls ``models/{model}:generateContent`` and returns the answer text.

    Args:
        api_key: Gemini API key, sent in the ``x-goog-api-key`` header.
        model: Model identifier, e.g. ``"gemini-1.5-flash"``.
        client: Optional shared HTTP client.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = GENERATION_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._client = client
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_API_BASE}/models/{self.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        """Send ``prompt`` and return the concatenated text of the first candidate.

        Raises:
            GenerationRateLimitError: On HTTP 429.
            GenerationAuthError: On HTTP 401 or 403.
            GenerationError: On any other failure.
        """
        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if self._client is not None:
            data = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient() as client:
                data = await self._post(client, payload)
        return extract_text(data, self.model)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }
        try:
            response = await client.post(
                self.endpoint, json=payload, headers=headers, timeout=self._timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            if code == 429:
                retry_after = retry_after_seconds(exc.response.headers)
                raise GenerationRateLimitError(
                    f"gemini: HTTP 429 — rate limited",
                    retry_after=retry_after,
                    model=self.model,
                ) from exc
            if code in (401, 403):
                raise GenerationAuthError(
                    f"gemini: HTTP {code} — invalid API key",
                    model=self.model,
                ) from exc
            raise GenerationError(
                f"gemini: HTTP {code} — {exc.response.text[:200]}",
                model=self.model,
            ) from exc
        except httpx.TimeoutException as exc:
            raise GenerationError(
                f"gemini: no response within {self._timeout:.0f}s", model=self.model
            ) from exc
        except httpx.RequestError as exc:
            raise GenerationError(f"gemini: network error — {exc}", model=self.model) from exc

        try:
            return response.json()  # type: ignore[no-any-return]
        except Exception as exc:  # noqa: BLE001
            raise GenerationError(f"gemini: JSON parse error — {exc}", model=self.model) from exc


def extract_text(data: dict[str, Any], model: Optional[str] = None) -> str:
    """Return the text parts of the first candidate, joined.

    Raises:
        GenerationError: If the response carries no candidate, e.g. because
            the prompt was blocked.
    """
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
        raise GenerationError(f"gemini: empty response ({reason})", model=model)
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


def build_generative_client(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> GeminiClient:
    """Return a :class:`GeminiClient` configured from ``settings``.

    Raises:
        ConfigurationError: If ``GEMINI_API_KEY`` is not set.
    """
    return GeminiClient(
        settings.require_gemini_api_key(),
        settings.gemini_model,
        client=client,
    )
