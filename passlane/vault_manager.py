"""
The vault as seen by the commands: picks the local store or the online vault
for each operation and wires the stores, the guard and the token together.
"""

import logging
from typing import List, Optional, Sequence

from passlane import config
from passlane.backends import CredentialBackend, LocalBackend, RemoteBackend
from passlane.crypto import CryptoManager
from passlane.csv_io import CSVExporter, CSVImporter
from passlane.exceptions import VaultError
from passlane.master_password import MasterPassphraseGuard, UnlockedKeyStore
from passlane.models import Credentials
from passlane.online_vault import OnlineAuthClient, OnlineVaultClient
from passlane.storage import RecordStore
from passlane.tokens import AccessToken, TokenStore

logger = logging.getLogger(__name__)


class VaultManager:
    """Routes vault operations to the local store or the online vault."""

    def __init__(self, ui, directory: str = config.HOME_DIR,
                 crypto: Optional[CryptoManager] = None,
                 online_client: Optional[OnlineVaultClient] = None,
                 auth_client: Optional[OnlineAuthClient] = None):
        self.ui = ui
        self.directory = directory
        self.crypto = crypto or CryptoManager()
        self.records = RecordStore(directory, self.crypto)
        self.guard = MasterPassphraseGuard(directory, ui, self.crypto, self.records)
        self.tokens = TokenStore(directory)
        self.session = UnlockedKeyStore(directory)
        self.online_client = online_client or OnlineVaultClient()
        self.auth_client = auth_client or OnlineAuthClient()

    # Session

    def is_logged_in(self) -> bool:
        return self.tokens.has_token()

    def get_access_token(self) -> AccessToken:
        return self.tokens.get_or_refresh(
            self.auth_client.refresh_token,
            lambda: self.auth_client.login(self.ui),
        )

    def login(self) -> bool:
        """Log in to the online vault. Returns True on the first login."""
        token = self.auth_client.login(self.ui)
        first_login = not self.is_logged_in()
        self.tokens.store(token)
        return first_login

    def logout(self) -> bool:
        return self.tokens.clear()

    def backend(self) -> CredentialBackend:
        if self.is_logged_in():
            backend = RemoteBackend(self.online_client, self.get_access_token, self.crypto, self.guard)
        else:
            backend = LocalBackend(self.records, self.guard)
        logger.info(f"Using {backend.name} vault")
        return backend

    def unlock(self, master_password: Optional[str] = None, store_if_new: bool = True) -> str:
        """
        Check the master password against the stored hash.

        Without an explicit password the unlocked session key is used, or the
        user is asked when the vault is locked.
        """
        if master_password is None:
            if self.session.is_unlocked():
                master_password = self.session.load()
            else:
                master_password = self.ui.ask_master_password()
        self.guard.register_or_verify(master_password, store_if_new)
        return master_password

    def unlock_session(self) -> None:
        """Verify the master password once and keep it until lock_session()."""
        if self.session.is_unlocked():
            raise VaultError("Vault is already unlocked.")
        self.session.save(self.unlock())

    def lock_session(self) -> None:
        self.session.clear()

    # Credentials

    def save_one(self, master_password: str, credentials: Credentials) -> int:
        return self.backend().save_one(master_password, credentials)

    def save_many(self, master_password: str, credentials: Sequence[Credentials]) -> int:
        return self.backend().save_many(master_password, credentials)

    def search(self, master_password: Optional[str], grep: str) -> List[Credentials]:
        return self.backend().search(master_password, grep)

    def delete(self, grep: str, index: Optional[int]) -> int:
        return self.backend().delete(grep, index)

    def rotate_passphrase(self, old: str, new: str) -> int:
        count = self.backend().rotate_passphrase(old, new)
        if self.session.is_unlocked():
            self.session.save(new)
        return count

    def import_csv(self, filepath: str, master_password: str) -> int:
        credentials = CSVImporter().import_from_file(filepath)
        return self.save_many(master_password, credentials)

    def export_csv(self, filepath: str, master_password: str) -> int:
        credentials = self.backend().export_all(master_password)
        return CSVExporter().export_to_file(filepath, credentials)

    def push_local_to_remote(self) -> int:
        """Upload every locally stored (encrypted) record to the online vault."""
        token = self.get_access_token()
        return self.online_client.push_many(token, self.records.read_all())
