"""Async HTTP fetcher with bounded retries.

``fetch_with_retry`` never raises: every failure ends up in the returned
:class:`PageFetchResult` so the scheduler can aggregate outcomes without
exception handling.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from .config import DownloadConfig
from .models import PageFetchResult

logger = logging.getLogger("medex_scraper")


class Fetcher:
    def __init__(self, config: DownloadConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
                transport=self._transport,
            )
        return self._client

    async def aclose(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def fetch_html(self, url: str) -> httpx.Response:
        """Single GET. Raises ``httpx.HTTPError`` on transport errors and non-2xx."""
        resp = await self.client.get(url)
        resp.raise_for_status()
        return resp

    async def fetch_with_retry(self, identity: Any, url: str,
                               max_attempts: Optional[int] = None,
                               base_delay: Optional[float] = None) -> PageFetchResult:
        attempts_allowed = max(1, max_attempts if max_attempts is not None else self.config.max_retries)
        delay = self.config.retry_delay if base_delay is None else base_delay
        backoff = self.config.backoff_factor or 1

        last_error = "unknown"
        for attempt in range(1, attempts_allowed + 1):
            try:
                resp = await self.fetch_html(url)
                return PageFetchResult(
                    identity=identity,
                    url=url,
                    html=resp.text,
                    final_url=str(resp.url),
                    attempts=attempt,
                )
            except httpx.InvalidURL as e:
                logger.warning(f"Invalid URL {url!r}: {e}")
                return PageFetchResult(identity=identity, url=url, reason=f"invalid_url: {e}", attempts=attempt)
            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__
                if attempt < attempts_allowed:
                    wait = delay * backoff ** (attempt - 1)
                    logger.warning(f"Retry {attempt}/{attempts_allowed} for {url}: {last_error} (wait {wait}s)")
                    await asyncio.sleep(wait)
                else:
                    logger.warning(f"Giving up on {url} after {attempt} attempt(s): {last_error}")

        return PageFetchResult(identity=identity, url=url, reason=last_error, attempts=attempts_allowed)
