"""
Abstract movie-data provider.

A provider wraps one external movie database and translates its records into
`Movie` values. The scoring engine never sees raw API payloads; adapters own
every backend quirk (id formats, sentinel strings, credit sub-objects).

Network failures stop here: `search*` methods return an empty list and
`get_details` returns None when the upstream request fails.
"""
import asyncio
import logging
import re
from abc import ABC, abstractmethod

import httpx

from .config import HTTP2_ENABLED, HTTP_TIMEOUT, MAX_CONCURRENT_REQUESTS
from .models import Movie, MovieSummary
from .utils import async_retry_with_backoff

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; movie-rec/1.0)"

_YEAR_RE = re.compile(r"\d{4}")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


class RateLimitedError(Exception):
    """Raised on HTTP 429 so the retry decorator backs off and tries again."""


def parse_year(text: str | None) -> int:
    """
    First four-digit year in a date or date-range string, or 0.

    Handles "1999-03-31", "2019–2020", "2019-" and "N/A".
    """
    if not text:
        return 0
    match = _YEAR_RE.search(str(text))
    return int(match.group(0)) if match else 0


def parse_leading_int(text: str | int | None) -> int:
    """Parse values like "148 min" or 148; anything unparseable is 0."""
    if isinstance(text, int):
        return text
    if not text:
        return 0
    match = _LEADING_INT_RE.match(str(text))
    return int(match.group(1)) if match else 0


def parse_float(text: str | float | None) -> float:
    if text is None:
        return 0.0
    try:
        return float(text)
    except (TypeError, ValueError):
        return 0.0


def split_names(text: str | None, missing: str = "N/A") -> list[str]:
    """Split a comma-separated name list, dropping blanks and the missing-value marker."""
    if not text or text.strip() == missing:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


class MovieDataProvider(ABC):
    """
    Base class for async movie-database clients.

    Use as an async context manager:

        async with TMDBProvider() as provider:
            hits = await provider.search("Heat")

    A pre-built `httpx.AsyncClient` may be injected (e.g. with a MockTransport
    in tests); an injected client is not closed by the provider.
    """

    name = "base"
    base_url = ""

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    ):
        self.api_key = api_key
        self.client = client
        self._owns_client = client is None
        self.semaphore = asyncio.Semaphore(max_concurrent)
        if not api_key:
            logger.warning(f"{self.name} API key not set; requests will fail until one is configured")

    async def __aenter__(self):
        if self.client is None:
            self.client = httpx.AsyncClient(
                headers=self._default_headers(),
                follow_redirects=True,
                timeout=HTTP_TIMEOUT,
                http2=HTTP2_ENABLED,
            )
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None

    def _default_headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT}

    @async_retry_with_backoff(exceptions=(httpx.TransportError, RateLimitedError))
    async def _fetch(self, url: str, params: dict) -> httpx.Response:
        resp = await self.client.get(url, params=params, headers=self._default_headers())
        if resp.status_code == 429:
            raise RateLimitedError(f"Rate limited on {url}")
        return resp

    async def _get_json(self, path: str, params: dict | None = None) -> dict | None:
        """
        GET `base_url + path` and decode JSON.

        Transient errors (timeouts, connection errors, 429) are retried with
        backoff. Returns None on 404, other HTTP errors, exhausted retries or
        an undecodable body.
        """
        if self.client is None:
            raise RuntimeError(f"{type(self).__name__} must be used as an async context manager")

        url = f"{self.base_url}{path}"
        async with self.semaphore:
            try:
                resp = await self._fetch(url, self._auth_params(params or {}))
                if resp.status_code == 404:
                    logger.debug(f"Not found: {url}")
                    return None
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as exc:
                logger.error(f"HTTP {exc.response.status_code} on {url}: {exc}")
                return None
            except (httpx.HTTPError, RateLimitedError) as exc:
                logger.error(f"Request error on {url}: {type(exc).__name__}: {exc}")
                return None
            except ValueError as exc:
                logger.error(f"Invalid JSON from {url}: {exc}")
                return None

    def _auth_params(self, params: dict) -> dict:
        """Hook for providers that authenticate via query string."""
        return params

    @abstractmethod
    async def search(self, query: str) -> list[MovieSummary]:
        """Search movies by title."""

    @abstractmethod
    async def search_by_genre(self, genre: str, page: int = 1) -> list[MovieSummary]:
        """Movies in (or loosely matching) a genre."""

    @abstractmethod
    async def search_by_director(self, name: str) -> list[MovieSummary]:
        """Movies associated with a director."""

    @abstractmethod
    async def get_details(self, movie_id: str) -> Movie | None:
        """Full, normalized record for one movie, or None if unavailable."""
