"""Value types shared by the providers, the scoring engine and the CLI."""

import math
from dataclasses import asdict, dataclass

from .config import NO_PLOT, PLACEHOLDER_POSTER, UNKNOWN_DIRECTOR


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Movie:
    """A normalized movie record. Built once by a provider adapter, never mutated."""
    id: str
    title: str
    year: int = 0
    poster: str = PLACEHOLDER_POSTER
    genres: tuple[str, ...] = ()
    director: str = UNKNOWN_DIRECTOR
    actors: tuple[str, ...] = ()
    plot: str = NO_PLOT
    rating: float = 0.0
    runtime: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so the record stays hashable
        object.__setattr__(self, "genres", tuple(self.genres))
        object.__setattr__(self, "actors", tuple(self.actors))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["genres"] = list(self.genres)
        data["actors"] = list(self.actors)
        return data


@dataclass(frozen=True)
class MovieSummary:
    """A search hit: enough to identify a movie before its details are fetched."""
    id: str
    title: str
    year: int = 0
    poster: str = PLACEHOLDER_POSTER


@dataclass(frozen=True)
class SimilarityScore:
    genre: float
    director: float
    actor: float
    year: float
    total: float

    @classmethod
    def zero(cls) -> "SimilarityScore":
        return cls(genre=0.0, director=0.0, actor=0.0, year=0.0, total=0.0)

    @property
    def percentage(self) -> int:
        return round_half_up(self.total * 100)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RecommendationResult:
    movie: Movie
    score: SimilarityScore
    explanation: str

    def to_dict(self) -> dict:
        return {
            "movie": self.movie.to_dict(),
            "score": self.score.to_dict(),
            "percentage": self.score.percentage,
            "explanation": self.explanation,
        }
