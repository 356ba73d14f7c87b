from datetime import datetime, timedelta, timezone

import pytest

from passlane.exceptions import (
    CorruptDataError,
    NotAuthenticatedError,
    RemoteVaultError,
    TokenRefreshError,
)
from passlane.tokens import AccessToken, TokenStore, refresh_or_login


def _expired(access: str = "old-access") -> AccessToken:
    return AccessToken(
        access_token=access,
        refresh_token="refresh-1",
        expires_in=timedelta(seconds=60),
        created_timestamp=datetime.now(timezone.utc) - timedelta(hours=1),
    )


def _fail_refresh(token: AccessToken) -> AccessToken:
    raise TokenRefreshError("refresh token revoked")


def test_is_expired() -> None:
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    token = AccessToken("t", expires_in=timedelta(seconds=30), created_timestamp=now)

    assert not token.is_expired(now + timedelta(seconds=29))
    assert token.is_expired(now + timedelta(seconds=30))
    assert not AccessToken("t", created_timestamp=now).is_expired(now + timedelta(days=365))


def test_load_without_token_requires_login(vault_dir) -> None:
    store = TokenStore(vault_dir)

    with pytest.raises(NotAuthenticatedError):
        store.load()


def test_store_then_load_returns_same_token(vault_dir) -> None:
    store = TokenStore(vault_dir)
    token = AccessToken(
        access_token="access-abc",
        refresh_token="refresh-def",
        expires_in=timedelta(seconds=3600),
        created_timestamp=datetime(2024, 5, 1, 8, 30, 15, tzinfo=timezone.utc),
    )

    store.store(token)

    assert store.load() == token


def test_token_without_optional_fields_roundtrips(vault_dir) -> None:
    store = TokenStore(vault_dir)
    token = AccessToken("access-only", created_timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc))

    store.store(token)

    loaded = store.load()
    assert loaded.refresh_token is None
    assert loaded.expires_in is None


def test_serialized_layout() -> None:
    token = AccessToken(
        "a", "r", timedelta(seconds=90), datetime(2024, 5, 1, tzinfo=timezone.utc)
    )

    assert token.serialize() == "a,r,90,2024-05-01T00:00:00+00:00"


def test_token_containing_commas_survives_reload(vault_dir) -> None:
    store = TokenStore(vault_dir)
    token = AccessToken(
        access_token="acc,ess",
        refresh_token="re,fresh,",
        expires_in=timedelta(seconds=90),
        created_timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )

    store.store(token)

    assert store.load() == token


def test_corrupt_token_file(vault_dir) -> None:
    store = TokenStore(vault_dir)
    store.slot.store(AccessToken("a"))
    with open(store.slot.filepath, "w", encoding="utf-8") as f:
        f.write("garbage")

    with pytest.raises(CorruptDataError):
        store.load()


def test_valid_token_is_returned_unchanged(vault_dir) -> None:
    store = TokenStore(vault_dir)
    token = AccessToken("fresh", expires_in=timedelta(hours=1))
    store.store(token)

    def fail(*_):
        raise AssertionError("should not be called")

    assert store.get_or_refresh(fail, fail) == token


def test_expired_token_is_refreshed_and_stored(vault_dir) -> None:
    store = TokenStore(vault_dir)
    store.store(_expired())
    refreshed = AccessToken("refreshed", "refresh-1", timedelta(hours=1))
    calls = []

    def refresh(token: AccessToken) -> AccessToken:
        calls.append(token.refresh_token)
        return refreshed

    assert store.get_or_refresh(refresh, lambda: pytest.fail("login not expected")) == refreshed
    assert calls == ["refresh-1"]
    assert store.load() == refreshed


def test_failed_refresh_falls_back_to_login(vault_dir) -> None:
    store = TokenStore(vault_dir)
    store.store(_expired())
    t2 = AccessToken("from-login", "refresh-2", timedelta(hours=1))

    assert store.get_or_refresh(_fail_refresh, lambda: t2) == t2
    assert store.load() == t2


def test_failed_login_keeps_previous_token(vault_dir) -> None:
    store = TokenStore(vault_dir)
    old = _expired()
    store.store(old)

    def login() -> AccessToken:
        raise RemoteVaultError("auth server down")

    with pytest.raises(RemoteVaultError):
        store.get_or_refresh(_fail_refresh, login)

    assert store.load() == old


def test_refresh_or_login_prefers_refresh() -> None:
    refreshed = AccessToken("refreshed")

    assert refresh_or_login(_expired(), lambda t: refreshed, lambda: pytest.fail("no login")) == refreshed


def test_clear_logs_out(vault_dir) -> None:
    store = TokenStore(vault_dir)
    store.store(AccessToken("a"))

    assert store.clear()
    assert not store.has_token()
