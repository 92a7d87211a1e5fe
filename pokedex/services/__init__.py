"""
Pokedex services.

Catalog aggregation/caching and session management.
"""

from pokedex.services.catalog import CatalogService
from pokedex.services.sessions import (
    CredentialVerifier,
    SessionStore,
    StaticCredentialVerifier,
    run_session_sweeper,
)

__all__ = [
    "CatalogService",
    "CredentialVerifier",
    "SessionStore",
    "StaticCredentialVerifier",
    "run_session_sweeper",
]
