"""
Where credentials live: the local encrypted store or the online vault.

Both backends expose the same operations so the vault manager can pick one
per command without branching anywhere else.
"""

import abc
import logging
from typing import Callable, List, Optional, Sequence

from passlane.crypto import CryptoManager
from passlane.exceptions import VaultError
from passlane.master_password import MasterPassphraseGuard
from passlane.models import Credentials
from passlane.online_vault import OnlineVaultClient
from passlane.storage import RecordStore
from passlane.tokens import AccessToken

logger = logging.getLogger(__name__)


class CredentialBackend(abc.ABC):
    """Operations every credential backend supports."""

    name = "backend"

    @abc.abstractmethod
    def save_one(self, master_password: str, credentials: Credentials) -> int:
        """Store one record. Returns the number stored."""

    @abc.abstractmethod
    def save_many(self, master_password: str, credentials: Sequence[Credentials]) -> int:
        """Store several records. Returns the number stored."""

    @abc.abstractmethod
    def search(self, master_password: Optional[str], grep: str) -> List[Credentials]:
        """Return records matching grep, decrypted when a master password is given."""

    @abc.abstractmethod
    def delete(self, grep: str, index: Optional[int]) -> int:
        """
        Delete the index-th record among those matching grep, or all of them
        when index is None. Returns the number deleted.
        """

    @abc.abstractmethod
    def export_all(self, master_password: str) -> List[Credentials]:
        """Return every record, decrypted."""

    @abc.abstractmethod
    def rotate_passphrase(self, old: str, new: str) -> int:
        """Re-encrypt everything under a new master password."""


class LocalBackend(CredentialBackend):
    """Credentials kept in the local store file."""

    name = "local"

    def __init__(self, records: RecordStore, guard: MasterPassphraseGuard):
        self.records = records
        self.guard = guard

    def save_one(self, master_password: str, credentials: Credentials) -> int:
        self.records.append(master_password, credentials)
        return 1

    def save_many(self, master_password: str, credentials: Sequence[Credentials]) -> int:
        return self.records.import_records(credentials, master_password)

    def search(self, master_password: Optional[str], grep: str) -> List[Credentials]:
        return self.records.search(master_password, grep)

    def delete(self, grep: str, index: Optional[int]) -> int:
        positions = [position for position, _ in self.records.find(grep)]
        if index is not None:
            if index < 0 or index >= len(positions):
                raise VaultError(f"No match at index {index}")
            positions = [positions[index]]
        return self.records.delete(positions)

    def export_all(self, master_password: str) -> List[Credentials]:
        return self.records.decrypt_all(master_password)

    def rotate_passphrase(self, old: str, new: str) -> int:
        return self.guard.rotate(old, new)


class RemoteBackend(CredentialBackend):
    """Credentials kept in the online vault."""

    name = "online"

    def __init__(self, client: OnlineVaultClient, get_token: Callable[[], AccessToken],
                 crypto: CryptoManager, guard: MasterPassphraseGuard):
        self.client = client
        self.get_token = get_token
        self.crypto = crypto
        self.guard = guard

    def save_one(self, master_password: str, credentials: Credentials) -> int:
        token = self.get_token()
        return self.client.push_one(token, self.crypto.encrypt(credentials, master_password))

    def save_many(self, master_password: str, credentials: Sequence[Credentials]) -> int:
        token = self.get_token()
        encrypted = [self.crypto.encrypt(creds, master_password) for creds in credentials]
        return self.client.push_many(token, encrypted)

    def search(self, master_password: Optional[str], grep: str) -> List[Credentials]:
        return self.client.search(self.get_token(), master_password, grep)

    def delete(self, grep: str, index: Optional[int]) -> int:
        return self.client.delete(self.get_token(), grep, index)

    def export_all(self, master_password: str) -> List[Credentials]:
        # An empty pattern matches every record
        return self.client.search(self.get_token(), master_password, "")

    def rotate_passphrase(self, old: str, new: str) -> int:
        self.guard.register_or_verify(old, store_if_new=False)
        count = self.client.rotate_passphrase(self.get_token(), old, new)
        logger.info(f"Online vault re-encrypted {count} record(s)")
        # Local records stay readable with the new password after logout
        if self.guard.is_initialized():
            self.guard.rotate(old, new)
        return count
