"""HTTP client for downloading iCalendar feeds."""

import asyncio
import logging
import random
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from .exceptions import FetchAuthError, FetchError, FetchNetworkError, FetchTimeoutError

logger = logging.getLogger(__name__)

# Backoff calculation constants
MAX_BACKOFF_SECONDS = 30.0
JITTER_MIN_FACTOR = 0.1
JITTER_MAX_FACTOR = 0.3

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "calgrid/0.1 (+https://github.com/calgrid/calgrid)",
    "Accept": "text/calendar, text/plain, application/octet-stream, */*",
}


class ICalFetcher:
    """Async HTTP client for downloading ICS feeds.

    Can be used as an async context manager; a client passed in by the caller
    is used as-is and never closed here.
    """

    def __init__(self, settings: Any = None, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize ICS fetcher.

        Args:
            settings: Object exposing request_timeout, max_retries and
                retry_backoff_factor (missing attributes fall back to defaults)
            client: Optional externally managed HTTP client
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

        logger.debug("ICS fetcher initialized (external_client: %s)", not self._owns_client)

    async def __aenter__(self) -> "ICalFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.aclose()

    @property
    def request_timeout(self) -> float:
        return float(getattr(self.settings, "request_timeout", 30))

    @property
    def max_retries(self) -> int:
        return int(getattr(self.settings, "max_retries", 3))

    @property
    def retry_backoff_factor(self) -> float:
        return float(getattr(self.settings, "retry_backoff_factor", 1.5))

    async def _ensure_client(self) -> None:
        if self.client is None or self.client.is_closed:
            timeout = httpx.Timeout(connect=10.0, read=self.request_timeout, write=10.0, pool=30.0)
            self.client = httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers=DEFAULT_HEADERS,
            )
            self._owns_client = True

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self.client is not None and self._owns_client and not self.client.is_closed:
            await self.client.aclose()
            logger.debug("Closed HTTP client")
        if self._owns_client:
            self.client = None

    @staticmethod
    def normalize_url(url: str) -> str:
        """Validate a feed URL, rewriting ``webcal://`` to ``https://``.

        Raises:
            FetchError: If the URL is not an http(s) URL with a hostname
        """
        if not isinstance(url, str) or not url.strip():
            raise FetchError("Calendar URL is empty")

        url = url.strip()
        parsed = urlparse(url)
        if parsed.scheme == "webcal":
            url = "https://" + url[len("webcal://"):]
            parsed = urlparse(url)

        if parsed.scheme not in ("http", "https"):
            logger.debug("Blocked non-HTTP(S) URL: %s", url)
            raise FetchError(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")
        if not parsed.hostname:
            logger.debug("Blocked URL with missing hostname: %s", url)
            raise FetchError("Calendar URL is missing a hostname")

        return url

    async def fetch(self, url: str) -> str:
        """Download the ICS text behind ``url``.

        Timeouts and connection errors are retried with jittered exponential
        backoff; HTTP error statuses are not.

        Raises:
            FetchAuthError: HTTP 401/403
            FetchTimeoutError: The server did not answer in time
            FetchNetworkError: DNS or connection failure
            FetchError: Any other HTTP failure or an empty body
        """
        target = self.normalize_url(url)
        await self._ensure_client()

        try:
            response = await self._get_with_retry(target)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.exception("HTTP error fetching ICS from %s: %s", target, status)
            if status == 401:
                raise FetchAuthError("Authentication failed - check credentials", status) from e
            if status == 403:
                raise FetchAuthError("Access forbidden - insufficient permissions", status) from e
            raise FetchError(f"HTTP {status}: {e.response.reason_phrase}", status) from e
        except httpx.TimeoutException as e:
            logger.exception("Timeout fetching ICS from %s", target)
            raise FetchTimeoutError(f"Request timeout after {self.request_timeout}s") from e
        except httpx.NetworkError as e:
            logger.exception("Network error fetching ICS from %s", target)
            raise FetchNetworkError(f"Network error: {e}") from e
        except httpx.HTTPError as e:
            logger.exception("Unexpected HTTP failure fetching ICS from %s", target)
            raise FetchError(f"Unexpected error: {e}") from e

        content = response.text
        if not content or not content.strip():
            logger.error("Empty ICS content received from %s", target)
            raise FetchError("Empty content received", response.status_code)

        content_type = response.headers.get("content-type", "").lower()
        if content_type and not any(ct in content_type for ct in ("text/calendar", "text/plain")):
            logger.warning("Unexpected content type: %s", content_type)

        logger.debug("Successfully fetched ICS content (%d bytes)", len(content))
        return content

    def _calculate_backoff(self, attempt: int) -> float:
        """Exponential backoff with jitter for retry ``attempt`` (0-indexed)."""
        base_backoff = min(self.retry_backoff_factor**attempt, MAX_BACKOFF_SECONDS)
        jitter = random.uniform(JITTER_MIN_FACTOR, JITTER_MAX_FACTOR) * base_backoff  # nosec B311 - jitter not cryptographic
        return base_backoff + jitter

    async def _get_with_retry(self, url: str) -> httpx.Response:
        if self.client is None:
            raise FetchError("HTTP client not initialized")

        max_retries = self.max_retries
        attempt = 0
        while True:
            try:
                response = await self.client.get(url, timeout=self.request_timeout)
                response.raise_for_status()
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt >= max_retries:
                    logger.error("All %d attempts failed for %s", attempt + 1, url)
                    raise
                backoff_time = self._calculate_backoff(attempt)
                logger.warning(
                    "Request failed (attempt %s/%s), retrying in %.1fs: %s",
                    attempt + 1,
                    max_retries + 1,
                    backoff_time,
                    e,
                )
                await asyncio.sleep(backoff_time)
                attempt += 1
                continue

            logger.debug(
                "Fetched ICS from %s (attempt %d) - %d bytes",
                url,
                attempt + 1,
                len(response.content),
            )
            return response
