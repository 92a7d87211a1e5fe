from pokedex.models.catalog import (
    CatalogDetail,
    CatalogEntry,
    CatalogPage,
    CatalogSnapshot,
    IndexEntry,
)
from pokedex.models.failure import (
    AuthError,
    ErrorResponse,
    FailureKind,
    KnownError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from pokedex.models.session import AuthResult, Session

__all__ = [
    "AuthError",
    "AuthResult",
    "CatalogDetail",
    "CatalogEntry",
    "CatalogPage",
    "CatalogSnapshot",
    "ErrorResponse",
    "FailureKind",
    "IndexEntry",
    "KnownError",
    "NotFoundError",
    "Session",
    "UpstreamError",
    "ValidationError",
]
