"""OMDb (omdbapi.com) provider adapter."""
import logging

import httpx

from .config import (
    MAX_ACTORS,
    MAX_CONCURRENT_REQUESTS,
    NO_PLOT,
    OMDB_API_KEY,
    OMDB_BASE_URL,
    PLACEHOLDER_POSTER,
    SEARCH_PAGE,
    UNKNOWN_DIRECTOR,
)
from .models import Movie, MovieSummary
from .provider import MovieDataProvider, parse_float, parse_leading_int, parse_year, split_names

logger = logging.getLogger(__name__)

MISSING = "N/A"


def _field(raw: dict, key: str, default: str) -> str:
    value = (raw.get(key) or "").strip()
    return value if value and value != MISSING else default


def omdb_summary(raw: dict) -> MovieSummary:
    return MovieSummary(
        id=raw.get('imdbID', ''),
        title=raw.get('Title', ''),
        year=parse_year(raw.get('Year')),
        poster=_field(raw, 'Poster', PLACEHOLDER_POSTER),
    )


def omdb_to_movie(raw: dict) -> Movie:
    """
    Translate an OMDb `?i=<imdbID>` payload into a Movie.

    OMDb reports every missing field as the literal string "N/A"; those map to
    the shared sentinels. Series-style years ("2019–2020") keep the first year.
    """
    return Movie(
        id=raw.get('imdbID', ''),
        title=raw.get('Title', ''),
        year=parse_year(raw.get('Year')),
        poster=_field(raw, 'Poster', PLACEHOLDER_POSTER),
        genres=split_names(raw.get('Genre'), MISSING),
        director=_field(raw, 'Director', UNKNOWN_DIRECTOR),
        actors=split_names(raw.get('Actors'), MISSING)[:MAX_ACTORS],
        plot=_field(raw, 'Plot', NO_PLOT),
        rating=parse_float(raw.get('imdbRating')),
        runtime=parse_leading_int(raw.get('Runtime')),
    )


class OMDbProvider(MovieDataProvider):
    """
    Client for the OMDb API.

    OMDb has no discover endpoint, so genre and director lookups are title
    searches on the term itself. They return loosely related movies; the
    scorer sorts out which ones actually match.
    """

    name = "OMDb"
    base_url = OMDB_BASE_URL

    def __init__(
        self,
        api_key: str = OMDB_API_KEY,
        client: httpx.AsyncClient | None = None,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    ):
        super().__init__(api_key, client=client, max_concurrent=max_concurrent)

    def _auth_params(self, params: dict) -> dict:
        return {"apikey": self.api_key, **params}

    async def _search_titles(self, term: str, page: int = SEARCH_PAGE) -> list[MovieSummary]:
        if not term.strip():
            return []
        data = await self._get_json("", {"s": term, "type": "movie", "page": page})
        if not data:
            return []
        if data.get('Response') == 'False':
            logger.debug(f"OMDb search for '{term}' returned no results: {data.get('Error')}")
            return []
        return [omdb_summary(r) for r in data.get('Search') or [] if r.get('imdbID')]

    async def search(self, query: str) -> list[MovieSummary]:
        return await self._search_titles(query)

    async def search_by_genre(self, genre: str, page: int = SEARCH_PAGE) -> list[MovieSummary]:
        return await self._search_titles(genre, page)

    async def search_by_director(self, name: str) -> list[MovieSummary]:
        return await self._search_titles(name)

    async def get_details(self, movie_id: str) -> Movie | None:
        data = await self._get_json("", {"i": movie_id, "plot": "full"})
        if not data:
            return None
        if data.get('Response') == 'False':
            logger.warning(f"OMDb has no record for {movie_id}: {data.get('Error', 'Movie not found')}")
            return None
        return omdb_to_movie(data)
