"""
Optional copy of saved credentials in the operating system keychain.
"""

import logging

import keyring
from keyring.errors import KeyringError

from passlane import config
from passlane.exceptions import VaultError
from passlane.models import Credentials

logger = logging.getLogger(__name__)


class KeychainManager:
    """Stores passwords in the OS keychain under ``passlane:<service>``."""

    def __init__(self, prefix: str = config.APP_NAME):
        self.prefix = prefix

    def _service_name(self, service: str) -> str:
        return f"{self.prefix}:{service}"

    def save(self, credentials: Credentials) -> None:
        try:
            keyring.set_password(self._service_name(credentials.service),
                                 credentials.username, credentials.password)
        except KeyringError as e:
            raise VaultError(f"Unable to store credentials in the keychain: {e}") from e
        logger.info(f"Secret stored in keychain: {credentials.service}")
