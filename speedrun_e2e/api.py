"""
SpeedrunApiClient - async client for the Speedrun status API.
"""
import asyncio
import logging
import urllib.parse
from typing import Optional

import httpx
from pydantic import ValidationError

from ._rate_limited_log import rate_limited_log
from .config import DEFAULT_API_URL
from .exceptions import ConfigurationError, StatusApiError
from .models import IntentRecord


class SpeedrunApiClient:
    """
    Client for ``GET /intents/{intentId}``.

    A 404 means "not indexed yet" and is returned as ``None``. Server errors
    and transport failures are retried with exponential backoff; anything
    else becomes a ``StatusApiError``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        retry_count: int = 3,
        backoff_factor: float = 0.5,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the SpeedrunApiClient

        Args:
            base_url: API root, e.g. "https://api.speedrun.exchange/api/v1"
            retry_count: Attempts per request for 5xx and connection errors
            backoff_factor: Base of the exponential backoff in seconds
            timeout: Timeout for HTTP requests in seconds
            client: Optional pre-configured httpx.AsyncClient
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ConfigurationError: If the URL doesn't use https (unless it's localhost/127.0.0.1)
        """
        parsed = urllib.parse.urlparse(base_url)
        host = parsed.hostname or ''
        is_local = host in ('localhost', '127.0.0.1')
        if parsed.scheme != 'https' and not is_local:
            raise ConfigurationError(f"base_url must use https:// (got: {parsed.scheme}://)")

        self.base_url = base_url.rstrip('/')
        self.retry_count = max(1, retry_count)
        self.backoff_factor = backoff_factor
        self.logger = logger or logging.getLogger(__name__)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"accept": "application/json"}
        )

    async def __aenter__(self) -> "SpeedrunApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_intent(self, intent_id: str) -> Optional[IntentRecord]:
        """
        Fetch intent details from the Speedrun API

        Args:
            intent_id: The intent ID to query (bytes32 hex string)

        Returns:
            Intent details or None if not found

        Raises:
            StatusApiError: If the API fails after retries or returns an invalid body
        """
        url = f"{self.base_url}/intents/{intent_id}"
        attempt = 0

        while True:
            attempt += 1
            try:
                response = await self._client.get(url)
            except httpx.RequestError as e:
                if attempt < self.retry_count:
                    await self._backoff(attempt, f"Status API request failed ({type(e).__name__}), retrying")
                    continue
                self.logger.error(f"Status API request failed: {e}")
                raise StatusApiError(f"Status API request failed: {e}") from e

            if response.status_code == 404:
                return None

            if response.status_code >= 500 and attempt < self.retry_count:
                await self._backoff(attempt, f"Status API returned {response.status_code}, retrying")
                continue

            if response.status_code >= 400:
                raise StatusApiError(
                    f"Status API returned {response.status_code} for intent {intent_id}",
                    status_code=response.status_code
                )

            try:
                return IntentRecord.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                self.logger.error(f"Invalid intent payload from status API: {e}")
                raise StatusApiError(f"Invalid response from status API: {e}") from e

    async def _backoff(self, attempt: int, message: str) -> None:
        wait_time = self.backoff_factor * (2 ** (attempt - 1))
        rate_limited_log(f"{message} (after {wait_time}s)", "warning", 60, self.logger)
        await asyncio.sleep(wait_time)
