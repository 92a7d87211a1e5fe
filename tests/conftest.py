from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
import respx

from pokedex.api.deps import get_catalog_service, get_session_store
from pokedex.clients.pokeapi import PokeApiClient, create_http_client
from pokedex.main import app
from pokedex.services.catalog import CatalogService
from pokedex.services.sessions import SessionStore, StaticCredentialVerifier

POKEAPI_BASE = "https://pokeapi.test/api/v2"

# (id, name) in upstream id order. Name order differs from id order.
SAMPLE_POKEMON = [
    (1, "bulbasaur"),
    (4, "charmander"),
    (25, "pikachu"),
    (63, "abra"),
    (133, "eevee"),
    (731, "pikipek"),
]


def pokemon_url(pokemon_id: int) -> str:
    return f"{POKEAPI_BASE}/pokemon/{pokemon_id}/"


def species_url(pokemon_id: int) -> str:
    return f"{POKEAPI_BASE}/pokemon-species/{pokemon_id}/"


def artwork_url(pokemon_id: int) -> str:
    return f"https://img.test/artwork/{pokemon_id}.png"


def pokemon_body(pokemon_id: int, name: str) -> dict[str, Any]:
    """Trimmed PokeAPI /pokemon/{id} document."""
    return {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "base_experience": 64,
        "sprites": {
            "front_default": f"https://img.test/sprites/{pokemon_id}.png",
            "front_shiny": f"https://img.test/sprites/shiny/{pokemon_id}.png",
            "other": {"official-artwork": {"front_default": artwork_url(pokemon_id)}},
        },
        "types": [
            {"slot": 1, "type": {"name": "grass", "url": f"{POKEAPI_BASE}/type/12/"}},
            {"slot": 2, "type": {"name": "poison", "url": f"{POKEAPI_BASE}/type/4/"}},
        ],
        "abilities": [
            {
                "ability": {"name": "overgrow", "url": f"{POKEAPI_BASE}/ability/65/"},
                "is_hidden": False,
                "slot": 1,
            },
            {
                "ability": {"name": "chlorophyll", "url": f"{POKEAPI_BASE}/ability/34/"},
                "is_hidden": True,
                "slot": 3,
            },
        ],
        "moves": [
            {"move": {"name": "tackle", "url": f"{POKEAPI_BASE}/move/33/"}},
            {"move": {"name": "vine-whip", "url": f"{POKEAPI_BASE}/move/22/"}},
        ],
        "forms": [{"name": name, "url": f"{POKEAPI_BASE}/pokemon-form/{pokemon_id}/"}],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": {"name": "hp"}},
            {"base_stat": 49, "effort": 1, "stat": {"name": "attack"}},
        ],
        "species": {"name": name, "url": species_url(pokemon_id)},
    }


def species_body(name: str) -> dict[str, Any]:
    """Trimmed PokeAPI species document with mixed-language entries."""
    return {
        "name": name,
        "flavor_text_entries": [
            {"flavor_text": "Una rara semilla.", "language": {"name": "es"}},
            {
                "flavor_text": "A strange seed was\fplanted on its\nback at birth.",
                "language": {"name": "en"},
            },
            {"flavor_text": "Second English entry.", "language": {"name": "en"}},
        ],
        "genera": [
            {"genus": "Pokémon Semilla", "language": {"name": "es"}},
            {"genus": "Seed Pokémon", "language": {"name": "en"}},
        ],
    }


class FakePokeApi:
    """
    respx-backed stand-in for PokeAPI serving a fixed catalog.

    The listing endpoint honours limit/offset; unknown /pokemon/{x} lookups
    return 404.
    """

    def __init__(self, router: respx.MockRouter, pokemon: list[tuple[int, str]]) -> None:
        self.router = router
        self.pokemon = list(pokemon)

        self.listing = router.get(f"{POKEAPI_BASE}/pokemon").mock(side_effect=self._listing)
        self.details: dict[int, respx.Route] = {}
        self.lookups: dict[int, respx.Route] = {}
        self.species: dict[int, respx.Route] = {}

        for pokemon_id, name in self.pokemon:
            body = pokemon_body(pokemon_id, name)
            self.details[pokemon_id] = router.get(pokemon_url(pokemon_id)).mock(
                return_value=httpx.Response(200, json=body)
            )
            self.lookups[pokemon_id] = router.get(
                url__regex=rf"^{POKEAPI_BASE}/pokemon/({pokemon_id}|{name})$"
            ).mock(return_value=httpx.Response(200, json=body))
            self.species[pokemon_id] = router.get(species_url(pokemon_id)).mock(
                return_value=httpx.Response(200, json=species_body(name))
            )

        router.get(url__regex=rf"^{POKEAPI_BASE}/pokemon/[^?]+$").mock(
            return_value=httpx.Response(404, text="Not Found")
        )

    def _listing(self, request: httpx.Request) -> httpx.Response:
        limit = int(request.url.params.get("limit", "20"))
        offset = int(request.url.params.get("offset", "0"))
        rows = self.pokemon[offset : offset + limit]

        next_url = None
        if offset + limit < len(self.pokemon):
            next_url = f"{POKEAPI_BASE}/pokemon?offset={offset + limit}&limit={limit}"
        previous_url = None
        if offset > 0:
            previous_offset = max(offset - limit, 0)
            previous_url = f"{POKEAPI_BASE}/pokemon?offset={previous_offset}&limit={limit}"

        return httpx.Response(
            200,
            json={
                "count": len(self.pokemon),
                "next": next_url,
                "previous": previous_url,
                "results": [{"name": name, "url": pokemon_url(pid)} for pid, name in rows],
            },
        )

    def listing_calls(self, limit: int) -> int:
        """Number of listing requests made with the given page size."""
        return sum(
            1 for call in self.listing.calls if call.request.url.params.get("limit") == str(limit)
        )

    def fail_detail(self, pokemon_id: int, status_code: int = 500) -> None:
        self.details[pokemon_id].mock(return_value=httpx.Response(status_code))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Manually advanced UTC wall clock for session expiry."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def upstream() -> Iterator[FakePokeApi]:
    """Fake PokeAPI for the sample catalog."""
    with respx.mock(assert_all_called=False) as router:
        yield FakePokeApi(router, SAMPLE_POKEMON)


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with create_http_client(timeout=5.0) as client:
        yield client


@pytest.fixture
def pokeapi_client(http_client: httpx.AsyncClient) -> PokeApiClient:
    return PokeApiClient(POKEAPI_BASE, http_client)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog(pokeapi_client: PokeApiClient, clock: FakeClock) -> CatalogService:
    """Catalog service with a small batch size so batching is exercised."""
    return CatalogService(pokeapi_client, ttl_seconds=3600, batch_size=2, clock=clock)


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def session_store(wall_clock: FakeWallClock) -> SessionStore:
    return SessionStore(StaticCredentialVerifier("admin", "admin"), now=wall_clock)


@pytest.fixture
async def api_client(
    catalog: CatalogService, session_store: SessionStore
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client for the app with fresh services swapped in for app.state ones."""
    app.dependency_overrides[get_catalog_service] = lambda: catalog
    app.dependency_overrides[get_session_store] = lambda: session_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(session_store: SessionStore) -> dict[str, str]:
    token = session_store.authenticate("admin", "admin").token
    return {"Authorization": f"Bearer {token}"}
