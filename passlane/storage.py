"""
Storage management for the password manager.

Everything lives in one directory: the master password hash, the access token
and the credential store. The store is a CSV file of encrypted records; only
the password column is encrypted so that searches do not need the master
password.
"""

import os
import re
import csv
import logging
from typing import Callable, Generic, Iterable, Iterator, List, Optional, Set, Tuple, TypeVar

from passlane import config
from passlane.crypto import CryptoManager
from passlane.exceptions import CorruptDataError, StorageIOError, VaultError
from passlane.models import Credentials, EncryptedCredentials
from passlane.utils import ensure_private_dir, set_private_file_permissions

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SingleSlotStore(Generic[T]):
    """
    A file holding exactly zero or one value.

    Writes go to a sibling temp file which then replaces the slot, so a
    reader sees either the previous value or the new one.
    """

    def __init__(self, filepath: str, serialize: Callable[[T], str],
                 deserialize: Callable[[str], T]):
        self.filepath = filepath
        self._serialize = serialize
        self._deserialize = deserialize

    def exists(self) -> bool:
        return os.path.exists(self.filepath)

    def load(self) -> Optional[T]:
        """Return the stored value, or None if the slot is empty."""
        if not self.exists():
            return None
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise StorageIOError(f"Unable to read {self.filepath}: {e.strerror}") from e
        return self._deserialize(content)

    def store(self, value: T) -> None:
        """Overwrite the slot with value."""
        ensure_private_dir(os.path.dirname(self.filepath))
        tmp_path = self.filepath + '.tmp'
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(self._serialize(value))
            if not set_private_file_permissions(tmp_path):
                logger.warning(f"Failed to set secure file permissions for {tmp_path}.")
            os.replace(tmp_path, self.filepath)
        except OSError as e:
            logger.error(f"Error saving {self.filepath}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageIOError(f"Unable to write {self.filepath}: {e.strerror}") from e

    def clear(self) -> bool:
        """Empty the slot. Returns False if it was already empty."""
        if not self.exists():
            return False
        try:
            os.remove(self.filepath)
        except OSError as e:
            raise StorageIOError(f"Unable to remove {self.filepath}: {e.strerror}") from e
        return True


class RecordStore:
    """Manages the encrypted credential store file."""

    FIELDS = list(config.CSV_HEADERS)

    def __init__(self, directory: str, crypto: Optional[CryptoManager] = None):
        """
        Initialize the record store.
        Args:
            directory: Vault directory holding the store file
            crypto: Crypto manager used to encrypt and decrypt passwords
        """
        self.directory = directory
        self.filepath = os.path.join(directory, config.STORE_FILE)
        self.crypto = crypto or CryptoManager()

    @property
    def temp_filepath(self) -> str:
        return self.filepath + config.STORE_TEMP_SUFFIX

    def exists(self) -> bool:
        return os.path.exists(self.filepath)

    def _iter_records(self) -> Iterator[EncryptedCredentials]:
        """Stream the stored records in storage order."""
        if not self.exists():
            return
        try:
            with open(self.filepath, 'r', encoding='utf-8', newline='') as f:
                reader = csv.DictReader(f)
                if reader.fieldnames is None:
                    return
                if list(reader.fieldnames) != self.FIELDS:
                    raise CorruptDataError(
                        f"Unexpected columns in {self.filepath}: {', '.join(reader.fieldnames)}")
                for line_no, row in enumerate(reader, start=2):
                    if None in row or any(row[field] is None for field in self.FIELDS):
                        raise CorruptDataError(f"Malformed record on line {line_no} of {self.filepath}")
                    yield EncryptedCredentials.from_dict(row)
        except csv.Error as e:
            raise CorruptDataError(f"Unable to parse {self.filepath}: {e}") from e
        except OSError as e:
            raise StorageIOError(f"Unable to read {self.filepath}: {e.strerror}") from e

    def read_all(self) -> List[EncryptedCredentials]:
        """Return every stored record, in insertion order, still encrypted."""
        return list(self._iter_records())

    def append(self, passphrase: str, record: Credentials) -> EncryptedCredentials:
        """Encrypt a record and append it to the store."""
        encrypted = self.crypto.encrypt(record, passphrase)
        self._append_rows([encrypted])
        logger.info(f"Appended credentials for service {record.service!r}")
        return encrypted

    def _append_rows(self, rows: Iterable[EncryptedCredentials]) -> int:
        ensure_private_dir(self.directory)
        is_new = not self.exists() or os.path.getsize(self.filepath) == 0
        count = 0
        try:
            with open(self.filepath, 'a', encoding='utf-8', newline='') as f:
                writer = csv.DictWriter(f, fieldnames=self.FIELDS)
                if is_new:
                    writer.writeheader()
                for row in rows:
                    writer.writerow(row.to_dict())
                    f.flush()
                    count += 1
        except OSError as e:
            raise StorageIOError(f"Unable to write {self.filepath}: {e.strerror}") from e
        finally:
            if is_new and self.exists():
                if not set_private_file_permissions(self.filepath):
                    logger.warning(f"Failed to set secure file permissions for vault: {self.filepath}.")
        return count

    def find(self, pattern: str, ignore_case: bool = True) -> List[Tuple[int, EncryptedCredentials]]:
        """
        Find records whose service or username matches a regular expression.

        Returns:
            (position, record) pairs; positions are what delete() expects
        """
        try:
            regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        except re.error as e:
            raise VaultError(f"Invalid search pattern {pattern!r}: {e}") from e
        return [
            (index, record)
            for index, record in enumerate(self._iter_records())
            if regex.search(record.service) or regex.search(record.username)
        ]

    def search(self, passphrase: Optional[str], pattern: str,
               ignore_case: bool = True) -> List[Credentials]:
        """
        Search records and decrypt the matches.

        Without a passphrase the matches are returned with an empty password.
        """
        matches = []
        for _, record in self.find(pattern, ignore_case):
            if passphrase is None:
                matches.append(Credentials(record.service, record.username, ""))
            else:
                matches.append(self.crypto.decrypt(record, passphrase))
        return matches

    def decrypt_all(self, passphrase: str) -> List[Credentials]:
        """Decrypt the whole store, failing on the first record that does not decrypt."""
        return [self.crypto.decrypt(record, passphrase) for record in self._iter_records()]

    def rewrite_records(self, transform: Callable[[int, EncryptedCredentials], Optional[EncryptedCredentials]]) -> int:
        """
        Stream every record through transform into a temp file, then replace
        the store with it.

        transform returns the record to keep (possibly re-encrypted) or None to
        drop it. If anything fails before the final replace the store is left
        as it was.

        Returns:
            Number of records written
        """
        ensure_private_dir(self.directory)
        tmp_path = self.temp_filepath
        written = 0
        try:
            with open(tmp_path, 'w', encoding='utf-8', newline='') as out:
                writer = csv.DictWriter(out, fieldnames=self.FIELDS)
                writer.writeheader()
                for index, record in enumerate(self._iter_records()):
                    result = transform(index, record)
                    if result is not None:
                        writer.writerow(result.to_dict())
                        written += 1
            if not set_private_file_permissions(tmp_path):
                logger.warning(f"Failed to set secure file permissions for {tmp_path}.")
            os.replace(tmp_path, self.filepath)
        except OSError as e:
            logger.error(f"Error rewriting vault file {self.filepath}: {e}")
            self._discard(tmp_path)
            raise StorageIOError(f"Unable to rewrite {self.filepath}: {e.strerror}") from e
        except Exception:
            self._discard(tmp_path)
            raise
        return written

    @staticmethod
    def _discard(path: str) -> None:
        if os.path.exists(path):
            os.remove(path)

    def delete(self, indexes: Iterable[int]) -> int:
        """
        Delete the records at the given storage positions.

        Returns:
            Number of records deleted
        """
        doomed: Set[int] = set(indexes)
        if not doomed:
            return 0
        total = len(self.read_all())
        out_of_range = sorted(i for i in doomed if i < 0 or i >= total)
        if out_of_range:
            raise VaultError(f"No stored record at position(s) {out_of_range}")
        kept = self.rewrite_records(lambda index, record: None if index in doomed else record)
        deleted = total - kept
        logger.info(f"Deleted {deleted} record(s)")
        return deleted

    def rewrite_with_new_passphrase(self, old_passphrase: str, new_passphrase: str) -> int:
        """
        Re-encrypt every record under a new master password.

        Raises:
            IncorrectPassphraseError: If a record does not decrypt with the old
                password; the store is untouched in that case
        """
        def reencrypt(index: int, record: EncryptedCredentials) -> EncryptedCredentials:
            return self.crypto.encrypt(self.crypto.decrypt(record, old_passphrase), new_passphrase)

        if not self.exists():
            return 0
        count = self.rewrite_records(reencrypt)
        logger.info(f"Re-encrypted {count} record(s) with the new master password")
        return count

    def import_records(self, records: Iterable[Credentials], passphrase: str) -> int:
        """
        Encrypt and append records. Records appended before a failure stay
        in the store.
        """
        return self._append_rows(self.crypto.encrypt(record, passphrase) for record in records)
