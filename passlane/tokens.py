"""
Access token persistence and refresh for the online vault.

The token file is not encrypted: it holds bearer credentials for the online
vault and is only protected by owner-only file permissions.
"""

import io
import os
import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from passlane import config
from passlane.exceptions import (
    CorruptDataError,
    NotAuthenticatedError,
    RemoteVaultError,
    TokenRefreshError,
)
from passlane.storage import SingleSlotStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccessToken:
    """Tokens issued by the auth server, plus when they were obtained."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[timedelta] = None
    created_timestamp: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A token without expires_in never expires."""
        if self.expires_in is None:
            return False
        now = now or _utcnow()
        return self.created_timestamp + self.expires_in <= now

    def serialize(self) -> str:
        """
        Render as ``access_token,refresh_token,expires_in_seconds,created_timestamp``.

        Fields are CSV-quoted, so a comma inside a token survives the round trip.
        """
        expires = int(self.expires_in.total_seconds()) if self.expires_in else 0
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="").writerow([
            self.access_token,
            self.refresh_token or "",
            str(expires),
            self.created_timestamp.isoformat(),
        ])
        return buffer.getvalue()

    @classmethod
    def deserialize(cls, content: str) -> "AccessToken":
        try:
            rows = list(csv.reader(io.StringIO(content.strip())))
        except csv.Error as exc:
            raise CorruptDataError("Access token file is corrupt; please log in again") from exc
        parts = rows[0] if len(rows) == 1 else []
        if len(parts) != 4 or not parts[0]:
            raise CorruptDataError("Access token file is corrupt; please log in again")
        try:
            expires = int(parts[2])
            created = datetime.fromisoformat(parts[3])
        except ValueError as exc:
            raise CorruptDataError("Access token file is corrupt; please log in again") from exc
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return cls(
            access_token=parts[0],
            refresh_token=parts[1] or None,
            expires_in=timedelta(seconds=expires) if expires > 0 else None,
            created_timestamp=created,
        )

    def __repr__(self) -> str:
        return (
            f"AccessToken(expires_in={self.expires_in!r}, "
            f"created_timestamp={self.created_timestamp.isoformat()!r})"
        )


RefreshFn = Callable[[AccessToken], AccessToken]
LoginFn = Callable[[], AccessToken]


def refresh_or_login(token: AccessToken, refresh_fn: RefreshFn, login_fn: LoginFn) -> AccessToken:
    """Exchange the refresh token; if the server rejects it, log in from scratch."""
    try:
        return refresh_fn(token)
    except (TokenRefreshError, RemoteVaultError) as exc:
        logger.warning(f"Failed to refresh access token: {exc}")
    return login_fn()


class TokenStore:
    """The single persisted access token slot."""

    def __init__(self, directory: str) -> None:
        self.slot: SingleSlotStore[AccessToken] = SingleSlotStore(
            os.path.join(directory, config.ACCESS_TOKEN_FILE),
            serialize=AccessToken.serialize,
            deserialize=AccessToken.deserialize,
        )

    def has_token(self) -> bool:
        return self.slot.exists()

    def store(self, token: AccessToken) -> None:
        logger.debug(f"Storing token with timestamp {token.created_timestamp.isoformat()}")
        self.slot.store(token)

    def load(self) -> AccessToken:
        token = self.slot.load()
        if token is None:
            raise NotAuthenticatedError(
                "You are not logged in to the Passlane Online Vault. "
                "Please run `passlane login` to login (or signup) first."
            )
        return token

    def clear(self) -> bool:
        return self.slot.clear()

    def get_or_refresh(self, refresh_fn: RefreshFn, login_fn: LoginFn) -> AccessToken:
        """
        Return a usable token, refreshing or re-authenticating if it has expired.

        The stored token is replaced only by a complete new token; if both the
        refresh and the login fail the previous token stays in place.
        """
        token = self.load()
        logger.debug(f"Token expired? {token.is_expired()}")
        if not token.is_expired():
            return token
        fresh = refresh_or_login(token, refresh_fn, login_fn)
        self.store(fresh)
        return fresh
