"""
Credential records as they exist in memory (plaintext) and at rest (encrypted).
"""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class Credentials:
    """A single service/username/password triple in plaintext."""
    service: str
    username: str
    password: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> 'Credentials':
        """Create from dictionary."""
        return cls(
            service=data.get('service', ''),
            username=data.get('username', ''),
            password=data.get('password', ''),
        )

    def __repr__(self) -> str:
        # Keep passwords out of logs and tracebacks
        return f"Credentials(service={self.service!r}, username={self.username!r}, password='***')"


@dataclass
class EncryptedCredentials:
    """
    A credential record as persisted: service and username in clear for
    searching, password replaced by an opaque token (salt, nonce, tag and
    ciphertext, base64 encoded).
    """
    service: str
    username: str
    password: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> 'EncryptedCredentials':
        """Create from dictionary."""
        return cls(**data)
