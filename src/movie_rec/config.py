"""
Configuration constants for the movie recommender.

This module centralizes the scoring weights, thresholds and HTTP settings.
Network settings can be overridden via environment variables; the scoring
constants are fixed so that tests can assert on them directly.
"""
import os
import logging

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Safely parse float from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated float value
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Safely parse integer from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated integer value
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_bool_env(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Provider Configuration
TMDB_API_KEY = os.environ.get("TMDB_API_KEY", "")
OMDB_API_KEY = os.environ.get("OMDB_API_KEY", "")
DEFAULT_PROVIDER = os.environ.get("MOVIE_REC_PROVIDER", "tmdb").strip().lower()

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
OMDB_BASE_URL = "https://www.omdbapi.com/"

# HTTP Configuration
HTTP_TIMEOUT = _get_float_env("MOVIE_REC_HTTP_TIMEOUT", 10.0, min_val=1.0)
HTTP2_ENABLED = _get_bool_env("MOVIE_REC_HTTP2", False)
MAX_CONCURRENT_REQUESTS = _get_int_env("MOVIE_REC_MAX_CONCURRENT", 5, min_val=1)

# Retry
MAX_HTTP_RETRIES = 3
RETRY_INITIAL_DELAY = 0.5  # seconds before the first retry
RETRY_BACKOFF = 2.0

# Candidate Retrieval
CANDIDATE_POOL_LIMIT = _get_int_env("MOVIE_REC_CANDIDATE_LIMIT", 50, min_val=1)
MAX_GENRE_QUERIES = 3
MAX_DIRECTOR_QUERIES = 2
SEARCH_PAGE = 1

# Selection limits
MIN_REFERENCE_MOVIES = 1
MAX_REFERENCE_MOVIES = 3
DEFAULT_TOP_N = 5

# Normalization sentinels
MAX_ACTORS = 5  # Top-billed cast members kept per movie
UNKNOWN_DIRECTOR = "Unknown"
NO_PLOT = "No plot available"
PLACEHOLDER_POSTER = "/placeholder-poster.png"

# Similarity Weights (must sum to 1.0)
SCORE_WEIGHTS = {
    'genre': 0.40,
    'director': 0.25,
    'actor': 0.20,
    'year': 0.15,
}

# Year proximity
YEAR_TOLERANCE = 5     # Years apart that still count as the same era
YEAR_DECAY_SPAN = 50   # Gap at which year similarity reaches zero

# Explanation thresholds (component score must exceed these)
EXPLAIN_GENRE_THRESHOLD = 0.5
EXPLAIN_DIRECTOR_THRESHOLD = 0.0
EXPLAIN_ACTOR_THRESHOLD = 0.3
EXPLAIN_MAX_ITEMS = 2  # Genres/actors named per clause
