"""Human-readable reasons for a recommendation, derived from its score breakdown."""
from typing import Sequence

from .config import (
    EXPLAIN_ACTOR_THRESHOLD,
    EXPLAIN_DIRECTOR_THRESHOLD,
    EXPLAIN_GENRE_THRESHOLD,
    EXPLAIN_MAX_ITEMS,
    UNKNOWN_DIRECTOR,
    YEAR_TOLERANCE,
)
from .models import Movie, SimilarityScore, round_half_up


def _shared_names(candidate_names: Sequence[str], reference_lists: list[Sequence[str]]) -> list[str]:
    """Candidate names (in candidate order) that appear in any reference list, ignoring case."""
    seen = {name.strip().lower() for names in reference_lists for name in names}
    return [name for name in candidate_names if name.strip().lower() in seen]


def _genre_clause(candidate: Movie, references: Sequence[Movie]) -> str | None:
    common = _shared_names(candidate.genres, [m.genres for m in references])
    if not common:
        return None
    plural = 's' if len(common) > 1 else ''
    return f"Shares {' and '.join(common[:EXPLAIN_MAX_ITEMS])} genre{plural}"


def _director_clause(candidate: Movie, references: Sequence[Movie]) -> str | None:
    director = candidate.director.strip().lower()
    # A shared placeholder is not a shared director
    if director == UNKNOWN_DIRECTOR.lower():
        return None
    match = next((m for m in references if m.director.strip().lower() == director), None)
    if match is None:
        return None
    return f'Same director as "{match.title}" ({candidate.director})'


def _actor_clause(candidate: Movie, references: Sequence[Movie]) -> str | None:
    common = _shared_names(candidate.actors, [m.actors for m in references])
    if not common:
        return None
    return f"Features {' and '.join(common[:EXPLAIN_MAX_ITEMS])}"


def _era_clause(candidate: Movie, references: Sequence[Movie]) -> str | None:
    if not references:
        return None
    mean_year = round_half_up(sum(m.year for m in references) / len(references))
    if abs(candidate.year - mean_year) <= YEAR_TOLERANCE:
        return f"Released around the same time ({candidate.year})"
    return None


def explain(candidate: Movie, references: Sequence[Movie], score: SimilarityScore) -> str:
    """
    Build a short explanation such as:

        Same director as "Heat" (Michael Mann). Released around the same time (1999).
        Overall 64% match.

    Clauses are only added when the matching component clears its threshold
    and the overlapping items can actually be named.
    """
    clauses: list[str] = []

    if score.genre > EXPLAIN_GENRE_THRESHOLD:
        clauses.append(_genre_clause(candidate, references))
    if score.director > EXPLAIN_DIRECTOR_THRESHOLD:
        clauses.append(_director_clause(candidate, references))
    if score.actor > EXPLAIN_ACTOR_THRESHOLD:
        clauses.append(_actor_clause(candidate, references))
    clauses.append(_era_clause(candidate, references))

    clauses = [c for c in clauses if c]
    percentage = score.percentage

    if not clauses:
        return f"This movie has a {percentage}% similarity match based on your selections."
    return f"{'. '.join(clauses)}. Overall {percentage}% match."
