import argparse
import asyncio
import json
import logging
import sys

from tqdm import tqdm

from .candidates import CandidateFinder
from .config import DEFAULT_PROVIDER, DEFAULT_TOP_N, MAX_REFERENCE_MOVIES
from .models import Movie, RecommendationResult
from .omdb import OMDbProvider
from .provider import MovieDataProvider
from .recommender import MovieRecommender
from .tmdb import TMDBProvider

logger = logging.getLogger(__name__)

PROVIDERS = {
    "tmdb": TMDBProvider,
    "omdb": OMDbProvider,
}


def make_provider(name: str) -> MovieDataProvider:
    """Instantiate a provider by name ('tmdb' or 'omdb')."""
    try:
        return PROVIDERS[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown provider '{name}'. Choose from: {', '.join(sorted(PROVIDERS))}") from None


def _validate_selection(values: list[str]) -> list[str]:
    """
    Check the user's selection before any request is made.
    Raises ValueError for an empty selection, duplicates, or more than 3 movies.
    """
    cleaned = [v.strip() for v in values if v.strip()]
    if not cleaned:
        raise ValueError("Please select at least one movie")
    if len(cleaned) > MAX_REFERENCE_MOVIES:
        raise ValueError(f"Maximum of {MAX_REFERENCE_MOVIES} movies allowed")
    lowered = [v.lower() for v in cleaned]
    if len(set(lowered)) != len(lowered):
        raise ValueError("The same movie was selected more than once")
    return cleaned


async def _resolve_references(
    provider: MovieDataProvider,
    values: list[str],
    by_title: bool,
) -> list[Movie]:
    """Fetch full records for the selected ids (or the best title match per value)."""
    ids = []
    for value in values:
        if by_title:
            hits = await provider.search(value)
            if not hits:
                raise ValueError(f"No movie found matching '{value}'")
            logger.debug(f"Resolved '{value}' to {hits[0].title} ({hits[0].year}) [{hits[0].id}]")
            ids.append(hits[0].id)
        else:
            ids.append(value)

    if len(set(ids)) != len(ids):
        raise ValueError("The same movie was selected more than once")

    movies = await asyncio.gather(*(provider.get_details(movie_id) for movie_id in ids))
    missing = [movie_id for movie_id, movie in zip(ids, movies) if movie is None]
    if missing:
        raise ValueError(f"Could not load details for: {', '.join(missing)}")
    return list(movies)


def _format_movie_line(movie: Movie) -> str:
    genres = ", ".join(movie.genres) or "n/a"
    return f"{movie.title} ({movie.year or '?'}) - {movie.director} - {genres}"


def _output_results(results: list[RecommendationResult], references: list[Movie], output_format: str) -> None:
    """Log recommendations in the requested format."""
    if output_format == 'json':
        payload = {
            "selections": [m.to_dict() for m in references],
            "recommendations": [r.to_dict() for r in results],
        }
        logger.info(json.dumps(payload, indent=2))
        return

    titles = ", ".join(m.title for m in references)
    logger.info(f"\nBecause you liked {titles}:")
    for i, r in enumerate(results, 1):
        logger.info(f"{i}. {_format_movie_line(r.movie)} - {r.score.percentage}% match")
        logger.info(f"   Why: {r.explanation}")
        logger.info(
            f"   Breakdown: genre {r.score.genre:.0%}, director {r.score.director:.0%}, "
            f"actors {r.score.actor:.0%}, year {r.score.year:.0%}"
        )


async def _cmd_search_async(args: argparse.Namespace) -> int:
    async with make_provider(args.provider) as provider:
        hits = await provider.search(args.query)

    if not hits:
        logger.info(f"No movies found for '{args.query}'")
        return 0

    logger.info(f"\nResults for '{args.query}':")
    for hit in hits[:args.limit]:
        logger.info(f"  [{hit.id}] {hit.title} ({hit.year or '?'})")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search movies by title and print their ids."""
    return asyncio.run(_cmd_search_async(args))


async def _cmd_details_async(args: argparse.Namespace) -> int:
    async with make_provider(args.provider) as provider:
        movie = await provider.get_details(args.movie_id)

    if movie is None:
        logger.error(f"No movie found with id '{args.movie_id}'")
        return 1

    if args.format == 'json':
        logger.info(json.dumps(movie.to_dict(), indent=2))
        return 0

    logger.info(f"\n{movie.title} ({movie.year or '?'}) [{movie.id}]")
    logger.info(f"  Director: {movie.director}")
    logger.info(f"  Genres: {', '.join(movie.genres) or 'n/a'}")
    logger.info(f"  Cast: {', '.join(movie.actors) or 'n/a'}")
    logger.info(f"  Rating: {movie.rating or 'n/a'}  Runtime: {movie.runtime or '?'} min")
    logger.info(f"  {movie.plot}")
    return 0


def cmd_details(args: argparse.Namespace) -> int:
    """Show the normalized record for one movie."""
    return asyncio.run(_cmd_details_async(args))


async def _cmd_recommend_async(args: argparse.Namespace) -> int:
    async with make_provider(args.provider) as provider:
        references = await _resolve_references(provider, args.movies, args.titles)

        with tqdm(desc="Fetching candidates", unit="movie", disable=args.no_progress) as pbar:
            finder = CandidateFinder(provider, on_fetched=pbar.update)
            recommender = MovieRecommender(provider, finder=finder)
            results = await recommender.recommend_many(references, n=args.top)

    if not results:
        logger.info("No recommendations found. Try selecting different movies.")
        return 0

    _output_results(results, references, args.format)
    return 0


def cmd_recommend(args: argparse.Namespace) -> int:
    """Recommend movies similar to 1-3 selected movies."""
    try:
        args.movies = _validate_selection(args.movies)
        if args.top < 1:
            raise ValueError("--top must be at least 1")
        return asyncio.run(_cmd_recommend_async(args))
    except ValueError as exc:
        logger.error(str(exc))
        return 2


def main():
    parser = argparse.ArgumentParser(description="Movie Recommender")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), default=DEFAULT_PROVIDER,
                        help="Movie database backend (default from MOVIE_REC_PROVIDER)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search movies by title")
    search_parser.add_argument("query", help="Title to search for")
    search_parser.add_argument("--limit", type=int, default=10, help="Maximum results to show")
    search_parser.set_defaults(func=cmd_search)

    details_parser = subparsers.add_parser("details", help="Show details for a movie id")
    details_parser.add_argument("movie_id", help="Provider movie id (TMDB id or IMDb id)")
    details_parser.add_argument("--format", choices=["text", "json"], default="text")
    details_parser.set_defaults(func=cmd_details)

    rec_parser = subparsers.add_parser("recommend", help="Recommend movies like 1-3 you enjoyed")
    rec_parser.add_argument("movies", nargs="+", help="Movie ids (or titles with --titles)")
    rec_parser.add_argument("--titles", action="store_true",
                            help="Treat arguments as titles and use the best search match")
    rec_parser.add_argument("--top", type=int, default=1,
                            help=f"Number of recommendations (default 1, e.g. {DEFAULT_TOP_N})")
    rec_parser.add_argument("--format", choices=["text", "json"], default="text")
    rec_parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    rec_parser.set_defaults(func=cmd_recommend)

    args = parser.parse_args()

    # argparse does not check defaults against choices
    if args.provider not in PROVIDERS:
        parser.error(
            f"invalid provider '{args.provider}' (from MOVIE_REC_PROVIDER); "
            f"choose from: {', '.join(sorted(PROVIDERS))}"
        )

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    status = args.func(args)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
