"""TMDB (themoviedb.org) provider adapter."""
import logging

import httpx

from .config import (
    MAX_ACTORS,
    MAX_CONCURRENT_REQUESTS,
    NO_PLOT,
    PLACEHOLDER_POSTER,
    SEARCH_PAGE,
    TMDB_API_KEY,
    TMDB_BASE_URL,
    TMDB_IMAGE_BASE_URL,
    UNKNOWN_DIRECTOR,
)
from .models import Movie, MovieSummary
from .provider import MovieDataProvider, parse_float, parse_leading_int, parse_year

logger = logging.getLogger(__name__)

# Genre name -> TMDB genre id, keyed by lowercased name
GENRE_IDS = {
    'action': 28,
    'adventure': 12,
    'animation': 16,
    'comedy': 35,
    'crime': 80,
    'documentary': 99,
    'drama': 18,
    'family': 10751,
    'fantasy': 14,
    'history': 36,
    'horror': 27,
    'music': 10402,
    'mystery': 9648,
    'romance': 10749,
    'science fiction': 878,
    'sci-fi': 878,
    'tv movie': 10770,
    'thriller': 53,
    'war': 10752,
    'western': 37,
}


def genre_id(name: str) -> int | None:
    return GENRE_IDS.get(name.strip().lower())


def _poster_url(path: str | None) -> str:
    return f"{TMDB_IMAGE_BASE_URL}{path}" if path else PLACEHOLDER_POSTER


def tmdb_summary(raw: dict) -> MovieSummary:
    return MovieSummary(
        id=str(raw.get('id', '')),
        title=raw.get('title') or raw.get('original_title') or '',
        year=parse_year(raw.get('release_date')),
        poster=_poster_url(raw.get('poster_path')),
    )


def tmdb_to_movie(raw: dict) -> Movie:
    """
    Translate a `/movie/{id}?append_to_response=credits` payload into a Movie.

    The TMDB numeric id is used as the identifier so that search hits and
    detail records share one id space.
    """
    credits = raw.get('credits') or {}
    crew = credits.get('crew') or []
    cast = credits.get('cast') or []

    director = next(
        (person.get('name') for person in crew if person.get('job') == 'Director' and person.get('name')),
        UNKNOWN_DIRECTOR,
    )
    actors = [person['name'] for person in cast[:MAX_ACTORS] if person.get('name')]
    genres = [g['name'] for g in raw.get('genres') or [] if g.get('name')]

    return Movie(
        id=str(raw.get('id', '')),
        title=raw.get('title') or raw.get('original_title') or '',
        year=parse_year(raw.get('release_date')),
        poster=_poster_url(raw.get('poster_path')),
        genres=genres,
        director=director,
        actors=actors,
        plot=raw.get('overview') or NO_PLOT,
        rating=parse_float(raw.get('vote_average')),
        runtime=parse_leading_int(raw.get('runtime')),
    )


class TMDBProvider(MovieDataProvider):
    """Client for the TMDB v3 API, authenticated with a v4 read-access bearer token."""

    name = "TMDB"
    base_url = TMDB_BASE_URL

    def __init__(
        self,
        api_key: str = TMDB_API_KEY,
        client: httpx.AsyncClient | None = None,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    ):
        super().__init__(api_key, client=client, max_concurrent=max_concurrent)

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        headers["Authorization"] = f"Bearer {self.api_key}"
        headers["Accept"] = "application/json"
        return headers

    def _summaries(self, data: dict | None) -> list[MovieSummary]:
        if not data:
            return []
        return [tmdb_summary(r) for r in data.get('results') or [] if r.get('id') is not None]

    async def search(self, query: str) -> list[MovieSummary]:
        if not query.strip():
            return []
        data = await self._get_json("/search/movie", {"query": query})
        return self._summaries(data)

    async def search_by_genre(self, genre: str, page: int = SEARCH_PAGE) -> list[MovieSummary]:
        """Discover popular movies in a genre; unmapped genre names fall back to a keyword search."""
        gid = genre_id(genre)
        if gid is None:
            logger.debug(f"No TMDB genre id for '{genre}', falling back to keyword search")
            data = await self._get_json("/search/movie", {"query": genre, "page": page})
        else:
            data = await self._get_json(
                "/discover/movie",
                {"with_genres": gid, "page": page, "sort_by": "popularity.desc"},
            )
        return self._summaries(data)

    async def search_by_director(self, name: str) -> list[MovieSummary]:
        people = await self._get_json("/search/person", {"query": name})
        results = (people or {}).get('results') or []
        person = next((p for p in results if p.get('known_for_department') == 'Directing'), None)
        if person is None and results:
            person = results[0]
        if person is None:
            logger.debug(f"No TMDB person found for director '{name}'")
            return []

        data = await self._get_json(
            "/discover/movie",
            {"with_crew": person['id'], "sort_by": "popularity.desc"},
        )
        return self._summaries(data)

    async def get_details(self, movie_id: str) -> Movie | None:
        data = await self._get_json(f"/movie/{movie_id}", {"append_to_response": "credits"})
        if not data:
            return None
        return tmdb_to_movie(data)
