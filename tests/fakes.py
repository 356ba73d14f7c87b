"""Test doubles for the UI and the online vault."""

from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

from passlane.exceptions import TokenRefreshError
from passlane.models import Credentials, EncryptedCredentials
from passlane.tokens import AccessToken
from passlane.ui import ConsoleUI


class FakeUI(ConsoleUI):
    """ConsoleUI fed from scripted answers, recording output and clipboard."""

    def __init__(self, texts: Iterable[str] = (), secrets: Iterable[str] = ()) -> None:
        self.texts: List[str] = list(texts)
        self.secrets: List[str] = list(secrets)
        self.output: List[str] = []
        self.clipboard: Optional[str] = None
        self.opened_urls: List[str] = []
        super().__init__(
            output=self.output.append,
            read_line=lambda prompt: self.texts.pop(0),
            read_secret=lambda prompt: self.secrets.pop(0),
        )

    def open_url(self, url: str) -> None:
        self.opened_urls.append(url)

    def copy_to_clipboard(self, value: str) -> None:
        self.clipboard = value

    def paste_from_clipboard(self) -> str:
        return self.clipboard or ""


class FakeOnlineVault:
    """In-memory stand-in for OnlineVaultClient; records every call."""

    def __init__(self, results: Sequence[Credentials] = ()) -> None:
        self.results = list(results)
        self.pushed: List[EncryptedCredentials] = []
        self.calls: List[tuple] = []

    def search(self, token: AccessToken, master_password: Optional[str], grep: str) -> List[Credentials]:
        self.calls.append(("search", token.access_token, master_password, grep))
        return list(self.results)

    def push_one(self, token: AccessToken, credentials: EncryptedCredentials) -> int:
        self.calls.append(("push_one", token.access_token))
        self.pushed.append(credentials)
        return 1

    def push_many(self, token: AccessToken, credentials: Sequence[EncryptedCredentials]) -> int:
        self.calls.append(("push_many", token.access_token))
        self.pushed.extend(credentials)
        return len(credentials)

    def delete(self, token: AccessToken, grep: str, index: Optional[int]) -> int:
        self.calls.append(("delete", token.access_token, grep, index))
        return 1

    def rotate_passphrase(self, token: AccessToken, old: str, new: str) -> int:
        self.calls.append(("rotate_passphrase", token.access_token))
        return 7


class FakeAuth:
    """Auth client whose refresh always fails and whose login hands out a fixed token."""

    def __init__(self, login_token: Optional[AccessToken] = None) -> None:
        self.login_token = login_token or AccessToken("logged-in", "refresh-x", timedelta(hours=1))
        self.logins = 0

    def refresh_token(self, expired: AccessToken) -> AccessToken:
        raise TokenRefreshError("rejected")

    def login(self, ui) -> AccessToken:
        self.logins += 1
        return self.login_token
