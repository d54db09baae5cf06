from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from triplecheck.core.config import settings
from triplecheck.core.exceptions import NarrativeServiceError
from triplecheck.core.logger import logger


class BaseCompletionClient(ABC):
    """Text-in, text-out generative completion service."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        pass

    async def close(self):
        pass


class GeminiCompletionClient(BaseCompletionClient):
    """
    Client for the Google Generative Language API (``generateContent``).

    Constraints:
    - Every request has an explicit timeout (NARRATIVE_TIMEOUT_SECONDS)
    - Transport errors and timeouts are retried at most NARRATIVE_MAX_ATTEMPTS times
    - Non-2xx answers are not retried
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.GOOGLE_API_KEY
        self.model = model or settings.NARRATIVE_MODEL
        self.base_url = (base_url or settings.NARRATIVE_BASE_URL).rstrip("/")
        self.max_attempts = max_attempts or settings.NARRATIVE_MAX_ATTEMPTS

        self.client = httpx.AsyncClient(
            timeout=timeout or settings.NARRATIVE_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

        logger.info(f"🔧 GeminiCompletionClient initialized (model: {self.model})")

    async def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the concatenated text of the first candidate.

        Endpoint: POST /models/{model}:generateContent

        Raises:
            NarrativeServiceError: missing API key, transport failure, non-2xx
                status or a response without candidate text.
        """
        if not self.api_key:
            raise NarrativeServiceError("GOOGLE_API_KEY is not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(min=1, max=5),
                reraise=True,
            ):
                with attempt:
                    logger.debug(f"📡 POST {url} (attempt {attempt.retry_state.attempt_number})")
                    response = await self.client.post(url, params={"key": self.api_key}, json=payload)
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NarrativeServiceError(
                f"Completion service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NarrativeServiceError(f"Completion service request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise NarrativeServiceError("Completion service returned invalid JSON") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """
        Pull the text out of a generateContent response:

            {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
        """
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise NarrativeServiceError("Completion service response has no candidates") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise NarrativeServiceError("Completion service returned empty text")
        return text

    async def close(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            logger.info("✅ GeminiCompletionClient closed")
