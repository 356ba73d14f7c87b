"""
Master password registration, verification and rotation, and the unlocked
session key that spares the prompt between `passlane unlock` and `passlane lock`.
"""

import os
import logging
from typing import Optional

from passlane import config
from passlane.crypto import CryptoManager
from passlane.exceptions import (
    CorruptDataError,
    IncorrectPassphraseError,
    PassphraseMismatchError,
    VaultError,
    VaultLockedError,
)
from passlane.storage import RecordStore, SingleSlotStore

logger = logging.getLogger(__name__)


def _parse_hash(content: str) -> str:
    value = content.strip()
    if not value:
        raise CorruptDataError("Master password file is empty")
    return value


class MasterPassphraseGuard:
    """
    Guards the vault with a single master password.

    The guard is uninitialized until the first password is registered; from
    then on the stored hash is only replaced by rotate().
    """

    def __init__(self, directory: str, ui, crypto: Optional[CryptoManager] = None,
                 records: Optional[RecordStore] = None):
        self.crypto = crypto or CryptoManager()
        self.ui = ui
        self.records = records or RecordStore(directory, self.crypto)
        self.slot: SingleSlotStore[str] = SingleSlotStore(
            os.path.join(directory, config.MASTER_PASSWORD_FILE),
            serialize=lambda value: value,
            deserialize=_parse_hash,
        )

    def is_initialized(self) -> bool:
        return self.slot.exists()

    def register_or_verify(self, candidate: str, store_if_new: bool = True) -> None:
        """
        Verify candidate against the stored hash, or register it if there is none.

        Raises:
            IncorrectPassphraseError: If a hash is stored and candidate does not match
            PassphraseMismatchError: If registering and the re-entered password differs
        """
        stored = self.slot.load()
        if stored is not None:
            if not self.crypto.verify_passphrase(candidate, stored):
                raise IncorrectPassphraseError("Incorrect master password")
            return
        if not store_if_new:
            return
        retyped = self.ui.ask_secret(config.PROMPT_RETYPE_MASTER_PASSWORD)
        if not self.crypto.secure_compare(candidate, retyped):
            raise PassphraseMismatchError("Passwords did not match")
        self.slot.store(self.crypto.hash_passphrase(candidate))
        logger.info("Registered a new master password")

    def rotate(self, old: str, new: str) -> int:
        """
        Change the master password and re-encrypt every local record.

        The new hash is written only after the store has been rewritten.

        Returns:
            Number of re-encrypted records
        """
        stored = self.slot.load()
        if stored is None:
            raise VaultError("No master password has been set")
        if not self.crypto.verify_passphrase(old, stored):
            raise IncorrectPassphraseError("Incorrect master password")
        count = self.records.rewrite_with_new_passphrase(old, new)
        self.save_hash(new)
        logger.info(f"Master password changed; {count} record(s) re-encrypted")
        return count

    def save_hash(self, passphrase: str) -> None:
        """Replace the stored hash with one for passphrase."""
        self.slot.store(self.crypto.hash_passphrase(passphrase))


class UnlockedKeyStore:
    """
    Keeps the master password on disk while the vault is unlocked.

    The key file is protected by owner-only permissions, like the access
    token; `lock` removes it.
    """

    def __init__(self, directory: str):
        self.slot: SingleSlotStore[str] = SingleSlotStore(
            os.path.join(directory, config.ENCRYPTION_KEY_FILE),
            serialize=lambda value: value,
            deserialize=lambda content: content,
        )

    def is_unlocked(self) -> bool:
        return self.slot.exists()

    def save(self, passphrase: str) -> None:
        self.slot.store(passphrase)
        logger.info("Vault unlocked")

    def load(self) -> str:
        passphrase = self.slot.load()
        if passphrase is None:
            raise VaultLockedError("Vault is locked. Use `passlane unlock` to unlock.")
        return passphrase

    def clear(self) -> None:
        if not self.slot.clear():
            raise VaultError("Vault is already locked.")
        logger.info("Vault locked")
