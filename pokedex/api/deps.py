"""
Request dependencies.

Services are created once in the app lifespan and stored on app.state.
Routers reach them only through these dependencies, so tests can swap in
fresh instances with app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from pokedex.models.failure import AuthError
from pokedex.models.session import Session
from pokedex.services.catalog import CatalogService
from pokedex.services.sessions import SessionStore

BEARER_PREFIX = "Bearer "


def get_catalog_service(request: Request) -> CatalogService:
    catalog: CatalogService = request.app.state.catalog
    return catalog


def get_session_store(request: Request) -> SessionStore:
    store: SessionStore = request.app.state.sessions
    return store


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header, if present."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


def require_session(
    store: Annotated[SessionStore, Depends(get_session_store)],
    authorization: Annotated[str | None, Header()] = None,
) -> Session:
    """
    Authentication gate for protected routes.

    Raises:
        AuthError: If the header is missing or the token is unknown/expired
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError("No authentication token provided")

    session = store.validate(token)
    if session is None:
        raise AuthError("Invalid or expired token")

    return session
