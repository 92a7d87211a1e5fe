"""
PokeAPI HTTP client.

Thin async wrapper around a shared httpx.AsyncClient. Every failure is
raised as FetchError so callers decide between not-found and generic
upstream handling from the status code alone.

API docs: https://pokeapi.co/docs/v2
"""

from typing import Any
from urllib.parse import quote

import httpx

USER_AGENT = "Pokedex/1.0"


class FetchError(Exception):
    """Raised when an upstream request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def create_http_client(timeout: float = 12.0) -> httpx.AsyncClient:
    """Build the shared client used for all upstream traffic."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        follow_redirects=True,
    )


class PokeApiClient:
    """Client for the three upstream calls the catalog needs."""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http_client

    async def list_pokemon(self, limit: int, offset: int) -> dict[str, Any]:
        """
        Fetch one page of the name/URL listing.

        Returns:
            Upstream body: ``count``, ``next``, ``previous`` and ``results``
            (list of ``{name, url}``)

        Raises:
            FetchError: If the request fails
        """
        return await self.get_resource(
            f"{self.base_url}/pokemon",
            params={"limit": limit, "offset": offset},
        )

    async def get_pokemon(self, id_or_name: str | int) -> dict[str, Any]:
        """
        Fetch the detail document for one Pokemon by id or name.

        Raises:
            FetchError: If the request fails (status_code 404 when unknown)
        """
        key = quote(str(id_or_name), safe="")
        return await self.get_resource(f"{self.base_url}/pokemon/{key}")

    async def get_resource(
        self, url: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        GET an absolute upstream URL and decode the JSON body.

        Used directly for URLs embedded in other documents (listing rows,
        species links).
        """
        try:
            response = await self._http.get(url, params=params)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"GET {url} failed: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise FetchError(f"GET {url} failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise FetchError(f"GET {url} returned invalid JSON") from e

        return data
