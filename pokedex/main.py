import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import timedelta
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pokedex.api import auth_router, health_router, pokemon_router
from pokedex.clients.pokeapi import PokeApiClient, create_http_client
from pokedex.config import Settings, settings
from pokedex.models.failure import ErrorResponse, FailureKind, KnownError
from pokedex.services.catalog import CatalogService
from pokedex.services.sessions import (
    SessionStore,
    StaticCredentialVerifier,
    run_session_sweeper,
)

logger = logging.getLogger(__name__)


async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render a KnownError with its own status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed query parameters or bodies are client errors (400), not 422."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid {location}: {first.get('msg', 'invalid value')}"

    body = ErrorResponse(error=message, kind=FailureKind.INVALID_INPUT)
    return JSONResponse(status_code=400, content=body.model_dump(mode="json"))


async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Last resort: no raw 500 reaches the client without an error body."""
    logger.error("Unhandled error: %s", exc, exc_info=exc)
    body = ErrorResponse(error="Internal server error", kind=FailureKind.UNKNOWN)
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


def create_app(config: Settings = settings) -> FastAPI:
    """Build the application. Services are created in the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        http_client = create_http_client(config.upstream_timeout_seconds)
        app.state.catalog = CatalogService(
            PokeApiClient(config.pokeapi_base_url, http_client),
            ttl_seconds=config.catalog_cache_ttl_seconds,
            index_limit=config.catalog_index_limit,
            batch_size=config.detail_batch_size,
        )
        app.state.sessions = SessionStore(
            StaticCredentialVerifier(config.admin_username, config.admin_password),
            session_duration=timedelta(seconds=config.session_duration_seconds),
        )
        sweeper = asyncio.create_task(
            run_session_sweeper(app.state.sessions, config.session_sweep_interval_seconds)
        )
        logger.info("%s started, upstream %s", config.app_name, config.pokeapi_base_url)

        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await http_client.aclose()

    app = FastAPI(
        title=config.app_name,
        version=pkg_version("pokedex"),
        debug=config.debug,
        lifespan=lifespan,
    )

    app.include_router(auth_router, prefix=config.api_prefix)
    app.include_router(pokemon_router, prefix=config.api_prefix)
    app.include_router(health_router)

    app.add_exception_handler(KnownError, known_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


def main() -> None:
    """CLI entry point."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
