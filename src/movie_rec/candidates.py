"""
Candidate discovery: gather a bounded pool of movies worth scoring.

Searches run concurrently (one per genre/director term), then details are
fetched concurrently for the de-duplicated ids. A failing sub-request only
loses its own candidates; the batch always completes.
"""
import asyncio
import logging
from typing import Callable, Sequence

from .config import (
    CANDIDATE_POOL_LIMIT,
    MAX_DIRECTOR_QUERIES,
    MAX_GENRE_QUERIES,
    UNKNOWN_DIRECTOR,
)
from .models import Movie, MovieSummary
from .provider import MovieDataProvider

logger = logging.getLogger(__name__)


def _unique(values: Sequence[str]) -> list[str]:
    """De-duplicate case-insensitively, keeping the first spelling and order."""
    seen: set[str] = set()
    result = []
    for value in values:
        key = value.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(value.strip())
    return result


def search_terms(
    references: Sequence[Movie],
    max_genres: int = MAX_GENRE_QUERIES,
    max_directors: int = MAX_DIRECTOR_QUERIES,
) -> tuple[list[str], list[str]]:
    """Genres and directors to query for, in reference order."""
    genres = _unique([g for movie in references for g in movie.genres])
    directors = _unique([
        movie.director for movie in references
        if movie.director.strip().lower() != UNKNOWN_DIRECTOR.lower()
    ])
    return genres[:max_genres], directors[:max_directors]


class CandidateFinder:
    """Collects candidate movies for a set of references from one provider."""

    def __init__(
        self,
        provider: MovieDataProvider,
        pool_limit: int = CANDIDATE_POOL_LIMIT,
        max_genres: int = MAX_GENRE_QUERIES,
        max_directors: int = MAX_DIRECTOR_QUERIES,
        on_fetched: Callable[[], None] | None = None,
    ):
        self.provider = provider
        self.pool_limit = pool_limit
        self.max_genres = max_genres
        self.max_directors = max_directors
        # Called once per finished detail fetch (progress reporting)
        self.on_fetched = on_fetched

    async def find(self, references: Sequence[Movie]) -> list[Movie]:
        """
        Return up to `pool_limit` fully detailed candidates.

        Reference movies and duplicate ids are excluded.
        """
        excluded = {movie.id for movie in references}
        candidate_ids = await self._collect_ids(references, excluded)
        if not candidate_ids:
            logger.info("Candidate search returned no usable ids")
            return []

        movies = await self._fetch_details(candidate_ids)

        candidates: list[Movie] = []
        seen: set[str] = set()
        for movie in movies:
            # Detail ids can differ from search ids on some backends
            if movie.id in excluded or movie.id in seen:
                continue
            seen.add(movie.id)
            candidates.append(movie)

        logger.info(f"Found {len(candidates)} candidates from {len(candidate_ids)} ids")
        return candidates

    async def _collect_ids(self, references: Sequence[Movie], excluded: set[str]) -> list[str]:
        genres, directors = search_terms(references, self.max_genres, self.max_directors)
        logger.debug(f"Searching genres={genres} directors={directors}")

        labels = [f"genre '{g}'" for g in genres] + [f"director '{d}'" for d in directors]
        tasks = [self.provider.search_by_genre(g) for g in genres]
        tasks += [self.provider.search_by_director(d) for d in directors]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        ids: list[str] = []
        seen: set[str] = set()
        for label, result in zip(labels, results):
            if isinstance(result, Exception):
                logger.warning(f"Search for {label} failed: {type(result).__name__}: {result}")
                continue
            hits: list[MovieSummary] = result
            for hit in hits:
                if not hit.id or hit.id in excluded or hit.id in seen:
                    continue
                seen.add(hit.id)
                ids.append(hit.id)

        if len(ids) > self.pool_limit:
            logger.debug(f"Capping candidate pool at {self.pool_limit} (had {len(ids)})")
        return ids[:self.pool_limit]

    async def _fetch_one(self, movie_id: str) -> Movie | None:
        try:
            return await self.provider.get_details(movie_id)
        finally:
            if self.on_fetched:
                self.on_fetched()

    async def _fetch_details(self, movie_ids: list[str]) -> list[Movie]:
        tasks = [self._fetch_one(movie_id) for movie_id in movie_ids]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        successful = []
        error_summary: dict[str, int] = {}
        for movie_id, result in zip(movie_ids, results):
            if isinstance(result, Exception):
                error_type = type(result).__name__
                logger.error(f"Failed to fetch details for {movie_id}: {error_type}: {result}")
                error_summary[error_type] = error_summary.get(error_type, 0) + 1
            elif result is not None:
                successful.append(result)
            else:
                logger.debug(f"No details for {movie_id}")

        failed = len(movie_ids) - len(successful)
        if failed:
            logger.warning(f"Detail fetch complete: {len(successful)}/{len(movie_ids)} successful, {failed} failed")
            if error_summary:
                logger.info(f"Error breakdown: {error_summary}")
        return successful
