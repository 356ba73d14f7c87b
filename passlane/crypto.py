"""
Cryptographic operations for the password manager.

Passwords are encrypted one record at a time with AES-256-GCM under a key
derived from the master password with Argon2id. The master password itself is
only ever stored as an Argon2id hash.
"""

import os
import base64
import binascii
import hmac
from typing import Tuple

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from passlane import config
from passlane.exceptions import CorruptDataError, IncorrectPassphraseError
from passlane.models import Credentials, EncryptedCredentials


class CryptoManager:
    """Handles all cryptographic operations for the password manager."""

    # Constants
    SALT_SIZE = config.SALT_SIZE
    KEY_SIZE = config.KEY_SIZE
    NONCE_SIZE = config.NONCE_SIZE
    TAG_SIZE = config.TAG_SIZE

    def __init__(self, time_cost: int = config.ARGON2_TIME_COST,
                 memory_cost: int = config.ARGON2_MEMORY_COST,
                 parallelism: int = config.ARGON2_PARALLELISM):
        """Initialize the crypto manager with Argon2id cost parameters."""
        self.backend = default_backend()
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=self.KEY_SIZE,
            type=Type.ID
        )

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(self.SALT_SIZE)

    def hash_passphrase(self, passphrase: str) -> str:
        """Hash the master password into an Argon2id PHC string."""
        return self.ph.hash(passphrase)

    def verify_passphrase(self, passphrase: str, stored_hash: str) -> bool:
        """
        Check a master password against a stored hash.

        Raises:
            CorruptDataError: If the stored hash is not a valid Argon2 hash
        """
        try:
            return self.ph.verify(stored_hash.strip(), passphrase)
        except InvalidHashError as e:
            raise CorruptDataError("Master password file is corrupt") from e
        except VerificationError:
            return False

    def derive_key(self, passphrase: str, salt: bytes) -> bytes:
        """
        Derive an encryption key from the master password using Argon2id.

        The same passphrase and salt always give the same key; the salt is
        stored with every encrypted record.

        Args:
            passphrase: The master password
            salt: Salt stored alongside the ciphertext

        Returns:
            32-byte encryption key
        """
        return hash_secret_raw(
            secret=passphrase.encode('utf-8'),
            salt=salt,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=self.KEY_SIZE,
            type=Type.ID
        )

    def encrypt_bytes(self, plaintext: bytes, key: bytes) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt data using AES-256-GCM.

        Returns:
            Tuple of (ciphertext, nonce, tag)
        """
        nonce = os.urandom(self.NONCE_SIZE)
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce),
            backend=self.backend
        )
        encryptor = cipher.encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()
        return ciphertext, nonce, encryptor.tag

    def decrypt_bytes(self, ciphertext: bytes, key: bytes, nonce: bytes, tag: bytes) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        Raises:
            InvalidTag: If authentication fails
        """
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce, tag),
            backend=self.backend
        )
        decryptor = cipher.decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()

    def encrypt_password(self, password: str, passphrase: str) -> str:
        """Encrypt one password into a self-contained base64 token."""
        salt = self.generate_salt()
        key = self.derive_key(passphrase, salt)
        ciphertext, nonce, tag = self.encrypt_bytes(password.encode('utf-8'), key)
        return base64.urlsafe_b64encode(salt + nonce + tag + ciphertext).decode('ascii')

    def decrypt_password(self, token: str, passphrase: str) -> str:
        """
        Decrypt a token produced by encrypt_password.

        Raises:
            CorruptDataError: If the token cannot be parsed
            IncorrectPassphraseError: If the authentication tag does not verify
        """
        try:
            raw = base64.urlsafe_b64decode(token.encode('ascii'))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise CorruptDataError("Encrypted password is not valid base64") from e

        header = self.SALT_SIZE + self.NONCE_SIZE + self.TAG_SIZE
        if len(raw) < header:
            raise CorruptDataError("Encrypted password is truncated")

        salt = raw[:self.SALT_SIZE]
        nonce = raw[self.SALT_SIZE:self.SALT_SIZE + self.NONCE_SIZE]
        tag = raw[self.SALT_SIZE + self.NONCE_SIZE:header]
        ciphertext = raw[header:]

        key = self.derive_key(passphrase, salt)
        try:
            plaintext = self.decrypt_bytes(ciphertext, key, nonce, tag)
        except InvalidTag as e:
            raise IncorrectPassphraseError("Incorrect master password") from e
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise CorruptDataError("Decrypted password is not valid UTF-8") from e

    def encrypt(self, record: Credentials, passphrase: str) -> EncryptedCredentials:
        """Encrypt the password of a record; service and username stay searchable."""
        return EncryptedCredentials(
            service=record.service,
            username=record.username,
            password=self.encrypt_password(record.password, passphrase),
        )

    def decrypt(self, record: EncryptedCredentials, passphrase: str) -> Credentials:
        """Decrypt the password of a stored record."""
        return Credentials(
            service=record.service,
            username=record.username,
            password=self.decrypt_password(record.password, passphrase),
        )

    def secure_compare(self, a: str, b: str) -> bool:
        """Constant-time comparison to prevent timing attacks."""
        return hmac.compare_digest(a.encode('utf-8'), b.encode('utf-8'))
