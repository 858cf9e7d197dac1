"""HTTP source loader."""

import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from code_variants.loaders.protocol import LoadSourceResult

logger = logging.getLogger("code_variants.loaders.http")

# Transient failures worth another attempt
RETRYABLE_ERRORS = (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.ConnectError)


class HttpSourceLoader:
    """Loads sources over HTTP(S) with retries on transient failures."""

    def __init__(
        self,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the HTTP loader.

        Args:
            timeout: Request timeout in seconds.
            retry_attempts: Attempts per request, including the first one.
            retry_delay: Base delay for exponential backoff in seconds.
            client: Optional preconfigured client (mainly for testing).
        """
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def load_source(self, url: str) -> LoadSourceResult:
        """Fetch ``url`` and return its body as the source.

        Raises:
            httpx.HTTPStatusError: On a non-success response.
            httpx.TransportError: When all attempts failed.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_delay, max=30),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self._client.get(url)
                response.raise_for_status()

        return LoadSourceResult(source=response.text)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HttpSourceLoader":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
