"""
Session store: bearer tokens for a single configured account.

Tokens live in process memory only. There is no user registry: a
CredentialVerifier decides whether a username/password pair is accepted.

EXPIRY:
Session.is_expired is the one expiry rule. It is applied lazily when a
token is validated and proactively by sweep_expired, which the app runs
on a fixed interval. Expired sessions never become valid again.
"""

import asyncio
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from pokedex.models.session import AuthResult, Session

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DURATION = timedelta(hours=24)
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60

# 32 random bytes, hex encoded
TOKEN_BYTES = 32

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CredentialVerifier(Protocol):
    """Decides whether a username/password pair may log in."""

    def verify(self, username: str, password: str) -> bool: ...


class StaticCredentialVerifier:
    """Accepts exactly one configured username/password pair."""

    def __init__(self, username: str, password: str) -> None:
        self._username = username
        self._password = password

    def verify(self, username: str, password: str) -> bool:
        username_ok = secrets.compare_digest(username.encode(), self._username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        return username_ok and password_ok


class SessionStore:
    """
    In-memory mapping of token -> Session.

    Create one per application (or per test); nothing here is global.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        session_duration: timedelta = DEFAULT_SESSION_DURATION,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._verifier = verifier
        self.session_duration = session_duration
        self._now = now
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def authenticate(self, username: str, password: str) -> AuthResult:
        """
        Check credentials and issue a new session on success.

        Returns:
            AuthResult with token and absolute expiry, or with an error
            message when the credentials are rejected.
        """
        if not self._verifier.verify(username, password):
            logger.info("LOGIN_REJECTED", extra={"username": username})
            return AuthResult(success=False, error=INVALID_CREDENTIALS_MESSAGE)

        now = self._now()
        session = Session(
            token=secrets.token_hex(TOKEN_BYTES),
            username=username,
            created_at=now,
            expires_at=now + self.session_duration,
        )
        self._sessions[session.token] = session

        logger.info(
            "SESSION_CREATED",
            extra={"username": username, "expires_at": session.expires_at.isoformat()},
        )
        return AuthResult(success=True, token=session.token, expires_at=session.expires_at)

    def validate(self, token: str) -> Session | None:
        """
        Look up a token.

        Returns:
            The session if the token is known and unexpired, else None.
            An expired session found here is deleted.
        """
        session = self._sessions.get(token)
        if session is None:
            return None

        if session.is_expired(self._now()):
            del self._sessions[token]
            return None

        return session

    def invalidate(self, token: str) -> bool:
        """Delete a session. Returns True if it existed; safe to repeat."""
        return self._sessions.pop(token, None) is not None

    def sweep_expired(self) -> int:
        """
        Delete every expired session.

        Returns:
            Number of sessions removed.
        """
        now = self._now()
        expired = [token for token, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        return len(expired)


async def run_session_sweeper(
    store: SessionStore,
    interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
) -> None:
    """Sweep expired sessions every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = store.sweep_expired()
        logger.info(
            "SESSION_SWEEP",
            extra={"removed": removed, "remaining": len(store)},
        )
