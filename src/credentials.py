"""
Credentials: the session's single bearer token.

CredentialHolder is the only mutable state the client carries. It is either
unauthenticated (no token) or authenticated (one token). There is no logout,
no expiry tracking and no refresh; a token stays until the process ends or
another one is set. Concurrent logins race with last-writer-wins.

TokenStore is a small JSON key-value file that keeps the token across
process restarts, the way browser local storage keeps it across reloads.
"""

import json
import os
from typing import Any

from errors import RequestError, TransportError
from logging_utils import get_logger
from transport import Transport

logger = get_logger(__name__)

LOGIN_PATH = "/pgapi/rpc/login"
TOKEN_KEY = "token"

JSON_HEADERS = {"Content-Type": "application/json"}


class TokenStore:
    """
    Durable key-value store backed by one JSON file.

    Usage:
        store = TokenStore("~/.rgxr/session.json")
        store.set("token", "abc")
        store.get("token")  # "abc"
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _read(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        """Write key; the file is readable by its owner only."""
        data = self._read()
        data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f)
        # os.open's mode only applies when the file is created
        os.chmod(self.path, 0o600)


class CredentialHolder:
    """
    Holds at most one bearer token and builds request headers from it.

    Usage:
        creds = CredentialHolder(transport, store=TokenStore(path))
        creds.login("me@example.com", "secret")
        headers = creds.auth_headers()
    """

    def __init__(self, transport: Transport, store: TokenStore | None = None):
        self._transport = transport
        self._store = store
        self._token: str | None = None

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def login(self, email: str, password: str) -> str:
        """
        Exchange credentials for a token and keep it.

        On failure the holder's state is left as it was.

        Returns:
            The token.

        Raises:
            TransportError: If the login request is rejected.
            ValueError: If the response carries no token.
            OSError: If the token store cannot be written.
        """
        try:
            body = self._transport.request(
                LOGIN_PATH,
                "POST",
                json_body={"email": email, "pass": password},
                headers=dict(JSON_HEADERS),
            )
        except RequestError as e:
            raise TransportError.wrap("Login", e) from e

        token = _extract_token(body)
        if self._store is not None:
            self._store.set(TOKEN_KEY, token)
        self.set_token(token)
        logger.info(f"Logged in as {email}")
        return token

    def set_token(self, token: str) -> None:
        """Force the authenticated state with the given token, unchecked."""
        self._token = token

    def restore(self) -> bool:
        """
        Load a token saved by an earlier login.

        Returns:
            True if a token was found and set.
        """
        if self._store is None:
            return False
        token = self._store.get(TOKEN_KEY)
        if not isinstance(token, str) or not token:
            return False
        self.set_token(token)
        logger.debug("Restored session token from store")
        return True

    def auth_headers(self) -> dict[str, str]:
        """Content-type header, plus Authorization when a token is held."""
        headers = dict(JSON_HEADERS)
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers


def _extract_token(body: Any) -> str:
    """PostgREST may return the RPC result bare or as a one-element array."""
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get(TOKEN_KEY), str):
        return body[TOKEN_KEY]
    raise ValueError("Login response did not contain a token")
