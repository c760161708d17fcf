import httpx
import pytest

from movie_rec import config, utils
from movie_rec.omdb import OMDbProvider, omdb_to_movie
from movie_rec.provider import parse_leading_int, parse_year, split_names
from movie_rec.tmdb import TMDBProvider, genre_id, tmdb_to_movie


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


TMDB_HEAT = {
    "id": 949,
    "imdb_id": "tt0113277",
    "title": "Heat",
    "release_date": "1995-12-15",
    "poster_path": "/heat.jpg",
    "genres": [{"id": 28, "name": "Action"}, {"id": 80, "name": "Crime"}],
    "overview": "Obsessive master thief Neil McCauley leads a top-notch crew.",
    "vote_average": 7.9,
    "runtime": 170,
    "credits": {
        "cast": [{"name": f"Actor {i}"} for i in range(8)],
        "crew": [
            {"name": "Art Linson", "job": "Producer"},
            {"name": "Michael Mann", "job": "Director"},
        ],
    },
}

OMDB_HEAT = {
    "Title": "Heat",
    "Year": "1995",
    "Runtime": "170 min",
    "Genre": "Action, Crime, Drama",
    "Director": "Michael Mann",
    "Actors": "Al Pacino, Robert De Niro, Val Kilmer",
    "Plot": "A group of high-end professional thieves...",
    "Poster": "https://example.test/heat.jpg",
    "imdbRating": "8.3",
    "imdbID": "tt0113277",
    "Response": "True",
}


def test_parsing_helpers():
    assert parse_year("1995-12-15") == 1995
    assert parse_year("2019–2020") == 2019
    assert parse_year("2019-") == 2019
    assert parse_year("N/A") == 0
    assert parse_year(None) == 0

    assert parse_leading_int("148 min") == 148
    assert parse_leading_int(96) == 96
    assert parse_leading_int("N/A") == 0

    assert split_names("A, B ,C") == ["A", "B", "C"]
    assert split_names("N/A") == []


def test_tmdb_to_movie_normalizes_credits_and_poster():
    movie = tmdb_to_movie(TMDB_HEAT)

    assert movie.id == "949"
    assert movie.title == "Heat"
    assert movie.year == 1995
    assert movie.poster == f"{config.TMDB_IMAGE_BASE_URL}/heat.jpg"
    assert movie.genres == ("Action", "Crime")
    assert movie.director == "Michael Mann"
    assert movie.actors == tuple(f"Actor {i}" for i in range(config.MAX_ACTORS))
    assert movie.rating == 7.9
    assert movie.runtime == 170


def test_tmdb_to_movie_fills_sentinels_for_missing_fields():
    movie = tmdb_to_movie({"id": 1, "title": "Bare"})

    assert movie.year == 0
    assert movie.poster == config.PLACEHOLDER_POSTER
    assert movie.genres == ()
    assert movie.director == config.UNKNOWN_DIRECTOR
    assert movie.actors == ()
    assert movie.plot == config.NO_PLOT
    assert movie.rating == 0.0
    assert movie.runtime == 0


def test_tmdb_genre_map_is_case_insensitive():
    assert genre_id("Science Fiction") == 878
    assert genre_id(" sci-fi ") == 878
    assert genre_id("Mumblecore") is None


def test_omdb_to_movie_maps_na_to_sentinels():
    raw = dict(OMDB_HEAT, Year="2019–2020", Director="N/A", Plot="N/A", Poster="N/A",
               imdbRating="N/A", Runtime="N/A", Genre="N/A",
               Actors="A, B, C, D, E, F, G")

    movie = omdb_to_movie(raw)

    assert movie.year == 2019
    assert movie.director == config.UNKNOWN_DIRECTOR
    assert movie.plot == config.NO_PLOT
    assert movie.poster == config.PLACEHOLDER_POSTER
    assert movie.rating == 0.0
    assert movie.runtime == 0
    assert movie.genres == ()
    assert movie.actors == ("A", "B", "C", "D", "E")


def test_omdb_to_movie_parses_full_record():
    movie = omdb_to_movie(OMDB_HEAT)

    assert movie.id == "tt0113277"
    assert movie.genres == ("Action", "Crime", "Drama")
    assert movie.actors == ("Al Pacino", "Robert De Niro", "Val Kilmer")
    assert movie.rating == 8.3
    assert movie.runtime == 170


@pytest.mark.asyncio
async def test_tmdb_provider_details_and_genre_discover():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, dict(request.url.params), request.headers.get("authorization")))
        if request.url.path == "/3/movie/949":
            return httpx.Response(200, json=TMDB_HEAT)
        if request.url.path == "/3/discover/movie":
            return httpx.Response(200, json={"results": [
                {"id": 1, "title": "One", "release_date": "2001-01-01"},
                {"id": 2, "title": "Two", "release_date": ""},
            ]})
        return httpx.Response(404)

    async with _mock_client(handler) as client:
        provider = TMDBProvider(api_key="token", client=client)
        movie = await provider.get_details("949")
        hits = await provider.search_by_genre("Crime")
        missing = await provider.get_details("404")

    assert movie.title == "Heat"
    assert [(h.id, h.year) for h in hits] == [("1", 2001), ("2", 0)]
    assert missing is None

    path, params, auth = seen[0]
    assert params["append_to_response"] == "credits"
    assert auth == "Bearer token"
    assert seen[1][1]["with_genres"] == "80"


@pytest.mark.asyncio
async def test_tmdb_provider_director_search_uses_person_lookup():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/3/search/person":
            return httpx.Response(200, json={"results": [
                {"id": 7, "name": "Michael Mann (actor)", "known_for_department": "Acting"},
                {"id": 8, "name": "Michael Mann", "known_for_department": "Directing"},
            ]})
        if request.url.path == "/3/discover/movie":
            assert request.url.params["with_crew"] == "8"
            return httpx.Response(200, json={"results": [{"id": 949, "title": "Heat"}]})
        return httpx.Response(404)

    async with _mock_client(handler) as client:
        hits = await TMDBProvider(api_key="token", client=client).search_by_director("Michael Mann")

    assert [h.id for h in hits] == ["949"]


@pytest.mark.asyncio
async def test_provider_http_errors_degrade_to_empty_results():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"status_message": "server error"})

    async with _mock_client(handler) as client:
        provider = TMDBProvider(api_key="token", client=client)
        assert await provider.search("Heat") == []
        assert await provider.get_details("949") is None


@pytest.mark.asyncio
async def test_omdb_provider_search_and_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        assert params["apikey"] == "key"
        if "s" in params:
            return httpx.Response(200, json={"Search": [
                {"Title": "Heat", "Year": "1995", "imdbID": "tt0113277", "Poster": "N/A"},
            ], "Response": "True"})
        if params.get("i") == "tt0113277":
            assert params["plot"] == "full"
            return httpx.Response(200, json=OMDB_HEAT)
        return httpx.Response(200, json={"Response": "False", "Error": "Incorrect IMDb ID."})

    async with _mock_client(handler) as client:
        provider = OMDbProvider(api_key="key", client=client)
        hits = await provider.search_by_genre("Heat")
        movie = await provider.get_details("tt0113277")
        missing = await provider.get_details("tt0000000")

    assert [(h.id, h.year, h.poster) for h in hits] == [("tt0113277", 1995, config.PLACEHOLDER_POSTER)]
    assert movie.director == "Michael Mann"
    assert missing is None


@pytest.mark.asyncio
async def test_provider_requires_client():
    provider = OMDbProvider(api_key="key")
    with pytest.raises(RuntimeError):
        await provider.get_details("tt0113277")


@pytest.mark.asyncio
async def test_provider_context_manager_owns_its_client():
    async with TMDBProvider(api_key="token") as provider:
        assert isinstance(provider.client, httpx.AsyncClient)
    assert provider.client is None


@pytest.fixture
def no_backoff(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(utils.asyncio, "sleep", fake_sleep)
    return sleeps


@pytest.mark.asyncio
async def test_provider_retries_after_rate_limit(no_backoff):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) == 1:
            return httpx.Response(429, json={"status_message": "slow down"})
        return httpx.Response(200, json={"results": [{"id": 949, "title": "Heat", "release_date": "1995-12-15"}]})

    async with _mock_client(handler) as client:
        hits = await TMDBProvider(api_key="token", client=client).search("Heat")

    assert calls == ["/3/search/movie", "/3/search/movie"]
    assert [(h.id, h.year) for h in hits] == [("949", 1995)]
    assert no_backoff == [config.RETRY_INITIAL_DELAY]


@pytest.mark.asyncio
async def test_provider_gives_up_after_repeated_connection_errors(no_backoff):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as client:
        provider = OMDbProvider(api_key="key", client=client)
        movie = await provider.get_details("tt0113277")

    assert movie is None
    assert len(calls) == config.MAX_HTTP_RETRIES
    assert len(no_backoff) == config.MAX_HTTP_RETRIES - 1
