"""Exceptions raised by the vault core."""


class VaultError(Exception):
    """Base class for all errors reported to the user as a failed command."""


class NotAuthenticatedError(VaultError):
    """No access token is stored; the user has to log in first."""


class IncorrectPassphraseError(VaultError):
    """The master password does not match the stored hash or a record's key."""


class PassphraseMismatchError(VaultError):
    """The re-entered master password differs from the first entry."""


class CorruptDataError(VaultError):
    """A record, hash or token file could not be parsed."""


class TokenRefreshError(VaultError):
    """The auth server rejected a refresh token.

    Only raised inside the token refresh chain, which always follows it up
    with a fresh login.
    """


class StorageIOError(VaultError):
    """The vault directory or one of its files could not be read or written."""


class RemoteVaultError(VaultError):
    """The online vault or the auth server reported a failure."""


class VaultLockedError(VaultError):
    """The vault has not been unlocked with `passlane unlock`."""


class SelectionCancelled(VaultError):
    """The user quit an index prompt without choosing a row."""


__all__ = [
    "VaultError",
    "NotAuthenticatedError",
    "IncorrectPassphraseError",
    "PassphraseMismatchError",
    "CorruptDataError",
    "TokenRefreshError",
    "StorageIOError",
    "RemoteVaultError",
    "VaultLockedError",
    "SelectionCancelled",
]
