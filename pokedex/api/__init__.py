from pokedex.api.auth import router as auth_router
from pokedex.api.health import router as health_router
from pokedex.api.pokemon import router as pokemon_router

__all__ = [
    "auth_router",
    "health_router",
    "pokemon_router",
]
