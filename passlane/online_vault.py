"""
Clients for the Passlane Online Vault and its OAuth2 authorization server.

The vault speaks GraphQL over HTTPS. Credentials are pushed already
encrypted; searches send the master password along so that the server
returns decrypted passwords (or empty ones when no password is given).
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlencode

import httpx

from passlane import config
from passlane.exceptions import NotAuthenticatedError, RemoteVaultError, TokenRefreshError
from passlane.models import Credentials, EncryptedCredentials
from passlane.tokens import AccessToken

logger = logging.getLogger(__name__)


SEARCH_QUERY = """
query Me($grep: String!, $masterPassword: String) {
  me {
    vaults {
      credentials(grep: $grep, masterPassword: $masterPassword) {
        service
        username
        password
      }
    }
  }
}
"""

ADD_CREDENTIALS_MUTATION = """
mutation AddCredentials($input: CredentialsIn!) {
  addCredentials(credentials: $input) {
    id
  }
}
"""

ADD_CREDENTIALS_GROUP_MUTATION = """
mutation AddCredentialsGroup($input: [CredentialsIn!]!) {
  addCredentialsGroup(credentials: $input)
}
"""

DELETE_CREDENTIALS_MUTATION = """
mutation DeleteCredentials($grep: String!, $index: Int) {
  deleteCredentials(grep: $grep, index: $index)
}
"""

UPDATE_MASTER_PASSWORD_MUTATION = """
mutation UpdateMasterPassword($oldPassword: String!, $newPassword: String!) {
  updateMasterPassword(oldPassword: $oldPassword, newPassword: $newPassword)
}
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OnlineVaultClient:
    """Thin GraphQL client for the online vault."""

    def __init__(
        self,
        api_url: str = config.API_URL,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._api_url = api_url
        self._transport = transport
        self._timeout = timeout

    def _execute(self, access_token: str, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    self._api_url,
                    json={"query": query, "variables": variables},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise RemoteVaultError(f"Unable to reach the online vault: {exc}") from exc

        if response.status_code == 401:
            raise NotAuthenticatedError("Online vault session expired. Please run `passlane login`.")
        if response.status_code != 200:
            raise RemoteVaultError(f"Online vault returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteVaultError("Online vault returned an invalid response") from exc
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            raise RemoteVaultError(f"Online vault error: {messages}")
        return payload.get("data") or {}

    def search(self, token: AccessToken, master_password: Optional[str], grep: str) -> List[Credentials]:
        data = self._execute(
            token.access_token,
            SEARCH_QUERY,
            {"grep": grep, "masterPassword": master_password},
        )
        me = data.get("me") or {}
        result: List[Credentials] = []
        for vault in me.get("vaults") or []:
            for creds in vault.get("credentials") or []:
                if creds:
                    result.append(Credentials(
                        service=creds.get("service", ""),
                        username=creds.get("username", ""),
                        password=creds.get("password") or "",
                    ))
        return result

    def push_one(self, token: AccessToken, credentials: EncryptedCredentials) -> int:
        self._execute(token.access_token, ADD_CREDENTIALS_MUTATION, {"input": credentials.to_dict()})
        return 1

    def push_many(self, token: AccessToken, credentials: Sequence[EncryptedCredentials]) -> int:
        if not credentials:
            return 0
        data = self._execute(
            token.access_token,
            ADD_CREDENTIALS_GROUP_MUTATION,
            {"input": [creds.to_dict() for creds in credentials]},
        )
        return int(data.get("addCredentialsGroup") or 0)

    def delete(self, token: AccessToken, grep: str, index: Optional[int]) -> int:
        data = self._execute(
            token.access_token,
            DELETE_CREDENTIALS_MUTATION,
            {"grep": grep, "index": index},
        )
        return int(data.get("deleteCredentials") or 0)

    def rotate_passphrase(self, token: AccessToken, old: str, new: str) -> int:
        data = self._execute(
            token.access_token,
            UPDATE_MASTER_PASSWORD_MUTATION,
            {"oldPassword": old, "newPassword": new},
        )
        return int(data.get("updateMasterPassword") or 0)


class OnlineAuthClient:
    """Obtain and refresh access tokens with the OAuth2 authorization code flow."""

    def __init__(
        self,
        auth_url: str = config.AUTH_URL,
        client_id: str = config.AUTH_CLIENT_ID,
        redirect_uri: str = config.AUTH_REDIRECT_URI,
        scopes: Sequence[str] = config.AUTH_SCOPES,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._auth_url = auth_url.rstrip("/")
        self._client_id = client_id
        self._redirect_uri = redirect_uri
        self._scopes = tuple(scopes)
        self._transport = transport
        self._timeout = timeout

    @property
    def token_url(self) -> str:
        return f"{self._auth_url}/oauth/token"

    def build_authorization_url(self, state: str) -> str:
        """Construct the consent URL the user opens in a browser."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._scopes),
            "state": state,
        }
        return f"{self._auth_url}/authorize?{urlencode(params)}"

    def _post_token(self, payload: Dict[str, str]) -> httpx.Response:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                return client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise RemoteVaultError(f"Unable to reach the auth server: {exc}") from exc

    @staticmethod
    def _json(response: httpx.Response, error: type) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise error("Auth server returned an invalid response") from exc

    def exchange_authorization_code(self, code: str) -> AccessToken:
        """Exchange an authorization code for a fresh token."""
        requested_at = _utcnow()
        response = self._post_token({
            "grant_type": "authorization_code",
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "code": code,
        })
        if response.status_code != 200:
            raise RemoteVaultError(f"Login failed: auth server returned HTTP {response.status_code}")
        payload = self._json(response, RemoteVaultError)
        access_token = payload.get("access_token")
        if not access_token:
            raise RemoteVaultError("Incomplete token payload returned from the auth server.")
        expires_in = payload.get("expires_in")
        return AccessToken(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_in=timedelta(seconds=int(expires_in)) if expires_in else None,
            created_timestamp=requested_at,
        )

    def refresh_token(self, expired: AccessToken) -> AccessToken:
        """
        Exchange the refresh token of an expired token for a new token.

        Raises:
            TokenRefreshError: If there is no refresh token or the server rejects it
        """
        if not expired.refresh_token:
            raise TokenRefreshError("No refresh token available")
        requested_at = _utcnow()
        response = self._post_token({
            "grant_type": "refresh_token",
            "client_id": self._client_id,
            "refresh_token": expired.refresh_token,
        })
        if response.status_code != 200:
            raise TokenRefreshError(f"Auth server returned HTTP {response.status_code}")
        payload = self._json(response, TokenRefreshError)
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenRefreshError("Incomplete refresh payload returned from the auth server.")
        expires_in = payload.get("expires_in")
        return AccessToken(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or expired.refresh_token,
            expires_in=timedelta(seconds=int(expires_in)) if expires_in else None,
            created_timestamp=requested_at,
        )

    def login(self, ui) -> AccessToken:
        """Send the user to the consent page and exchange the code they paste back."""
        state = secrets.token_urlsafe(16)
        url = self.build_authorization_url(state)
        ui.open_url(url)
        code = ui.ask_text("Paste the authorization code shown after login: ").strip()
        if not code:
            raise RemoteVaultError("Login cancelled: no authorization code entered")
        logger.info("Exchanging authorization code for tokens")
        return self.exchange_authorization_code(code)


__all__ = ["OnlineAuthClient", "OnlineVaultClient"]
