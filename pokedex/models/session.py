from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Session:
    """
    Bearer-token authentication record.

    Attributes:
        token: Opaque random token, the session's key
        username: Account the token was issued to
        created_at: Issue time (UTC)
        expires_at: Absolute expiry (UTC)
    """

    token: str
    username: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Single expiry predicate shared by lookups and the sweeper."""
        return now > self.expires_at


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Outcome of a login attempt."""

    success: bool
    token: str | None = None
    expires_at: datetime | None = None
    error: str | None = None
