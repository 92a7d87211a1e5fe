from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Pokedex API"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3001
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]

    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    upstream_timeout_seconds: float = 12.0

    # Single fixed account, no user registry
    admin_username: str = "admin"
    admin_password: str = "admin"

    session_duration_seconds: int = 24 * 60 * 60
    session_sweep_interval_seconds: int = 60 * 60

    catalog_cache_ttl_seconds: int = 60 * 60
    # Sort and search only see this many entries of the upstream catalog
    catalog_index_limit: int = 2000
    detail_batch_size: int = 50


settings = Settings()


# =============================================================================
# PAGINATION LIMITS
# =============================================================================

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

SORT_KEYS = ("number", "name")
