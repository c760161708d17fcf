"""
Similarity metrics and the weighted movie-vs-movie scorer.

Each component metric returns a value in [0, 1]:
- genre and actor overlap use the Jaccard index over normalized names
- director is an exact (normalized) match
- release year is full credit within YEAR_TOLERANCE, then decays linearly
  to zero at YEAR_DECAY_SPAN years apart

The composite is a fixed-weight linear combination (SCORE_WEIGHTS).
"""
import math
from typing import Iterable, Sequence

from .config import SCORE_WEIGHTS, YEAR_DECAY_SPAN, YEAR_TOLERANCE
from .models import Movie, SimilarityScore


def _normalize(value: str) -> str:
    return value.strip().lower()


def set_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """
    Jaccard index |A ∩ B| / |A ∪ B| over case- and whitespace-normalized names.

    Returns 0.0 when either side is empty, including when both are: missing
    data on both movies is not evidence that they are alike.
    """
    set_a = {_normalize(item) for item in a}
    set_b = {_normalize(item) for item in b}
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def categorical_equality(a: str, b: str) -> float:
    """1.0 if the normalized strings are equal, else 0.0."""
    return 1.0 if _normalize(a) == _normalize(b) else 0.0


def year_proximity(a: int, b: int) -> float:
    """
    Closeness of two release years.

    Examples (YEAR_TOLERANCE=5, YEAR_DECAY_SPAN=50):
    - 0-5 years apart → 1.0
    - 10 years apart → 0.8
    - 25 years apart → 0.5
    - 50+ years apart → 0.0
    """
    difference = abs(a - b)
    if difference <= YEAR_TOLERANCE:
        return 1.0
    return max(0.0, 1.0 - difference / YEAR_DECAY_SPAN)


def weighted_total(genre: float, director: float, actor: float, year: float) -> float:
    # fsum keeps a perfect match at exactly 1.0
    return math.fsum((
        SCORE_WEIGHTS['genre'] * genre,
        SCORE_WEIGHTS['director'] * director,
        SCORE_WEIGHTS['actor'] * actor,
        SCORE_WEIGHTS['year'] * year,
    ))


def score_pair(candidate: Movie, reference: Movie) -> SimilarityScore:
    """Score one candidate against one reference movie."""
    genre = set_similarity(candidate.genres, reference.genres)
    director = categorical_equality(candidate.director, reference.director)
    actor = set_similarity(candidate.actors, reference.actors)
    year = year_proximity(candidate.year, reference.year)

    return SimilarityScore(
        genre=genre,
        director=director,
        actor=actor,
        year=year,
        total=weighted_total(genre, director, actor, year),
    )


def score_against_set(candidate: Movie, references: Sequence[Movie]) -> SimilarityScore:
    """
    Average the pairwise scores of a candidate across all reference movies.

    Every component and the total are averaged independently, so the result's
    total is the mean of the pairwise totals.
    """
    if not references:
        return SimilarityScore.zero()

    pairs = [score_pair(candidate, reference) for reference in references]
    count = len(pairs)

    return SimilarityScore(
        genre=math.fsum(s.genre for s in pairs) / count,
        director=math.fsum(s.director for s in pairs) / count,
        actor=math.fsum(s.actor for s in pairs) / count,
        year=math.fsum(s.year for s in pairs) / count,
        total=math.fsum(s.total for s in pairs) / count,
    )
