"""
Ranking pipeline: score every candidate against the user's 1-3 selections,
explain each score, and order the results.

`rank`, `get_top` and `get_top_n` are pure and synchronous. `MovieRecommender`
adds candidate retrieval from a provider in front of them.
"""
import logging
from typing import Sequence

from .candidates import CandidateFinder
from .config import DEFAULT_TOP_N, MAX_REFERENCE_MOVIES, MIN_REFERENCE_MOVIES
from .explanation import explain
from .models import Movie, RecommendationResult
from .provider import MovieDataProvider
from .similarity import score_against_set

logger = logging.getLogger(__name__)


def validate_references(references: Sequence[Movie]) -> None:
    """Raise ValueError unless there are between 1 and 3 reference movies."""
    if len(references) < MIN_REFERENCE_MOVIES:
        raise ValueError("At least one movie is required for recommendation")
    if len(references) > MAX_REFERENCE_MOVIES:
        raise ValueError(
            f"Maximum of {MAX_REFERENCE_MOVIES} movies allowed for recommendation "
            f"(got {len(references)})"
        )


def rank(candidates: Sequence[Movie], references: Sequence[Movie]) -> list[RecommendationResult]:
    """
    Score and explain every candidate, best first.

    The sort is stable: candidates with equal totals keep their input order.
    Candidates sharing an id with a reference are dropped.
    """
    validate_references(references)
    reference_ids = {movie.id for movie in references}

    results = []
    for candidate in candidates:
        if candidate.id in reference_ids:
            logger.debug(f"Skipping candidate {candidate.id} ({candidate.title}): it is a reference movie")
            continue
        score = score_against_set(candidate, references)
        results.append(RecommendationResult(
            movie=candidate,
            score=score,
            explanation=explain(candidate, references, score),
        ))

    return sorted(results, key=lambda r: r.score.total, reverse=True)


def get_top(candidates: Sequence[Movie], references: Sequence[Movie]) -> RecommendationResult | None:
    """Best match, or None when there is nothing to recommend."""
    ranked = rank(candidates, references)
    return ranked[0] if ranked else None


def get_top_n(
    candidates: Sequence[Movie],
    references: Sequence[Movie],
    n: int = DEFAULT_TOP_N,
) -> list[RecommendationResult]:
    if n < 0:
        raise ValueError(f"n must be non-negative (got {n})")
    return rank(candidates, references)[:n]


class MovieRecommender:
    """
    Recommend movies from a provider based on 1-3 movies the user likes.

    Reference validation happens before any request is made, so a bad
    selection fails fast without touching the network.
    """

    def __init__(self, provider: MovieDataProvider, finder: CandidateFinder | None = None):
        self.provider = provider
        self.finder = finder or CandidateFinder(provider)

    async def _candidates(self, references: Sequence[Movie]) -> list[Movie]:
        validate_references(references)
        titles = ", ".join(m.title for m in references)
        logger.info(f"Finding candidates for: {titles}")
        return await self.finder.find(references)

    async def recommend(self, references: Sequence[Movie]) -> RecommendationResult | None:
        candidates = await self._candidates(references)
        top = get_top(candidates, references)
        if top is None:
            logger.info("No recommendation found")
        else:
            logger.info(f"Top match: {top.movie.title} ({top.score.percentage}%)")
        return top

    async def recommend_many(
        self,
        references: Sequence[Movie],
        n: int = DEFAULT_TOP_N,
    ) -> list[RecommendationResult]:
        if n < 0:
            raise ValueError(f"n must be non-negative (got {n})")
        candidates = await self._candidates(references)
        return get_top_n(candidates, references, n)
