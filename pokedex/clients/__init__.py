from pokedex.clients.pokeapi import FetchError, PokeApiClient, create_http_client

__all__ = [
    "FetchError",
    "PokeApiClient",
    "create_http_client",
]
