"""
Transport: one HTTP exchange per call.

Every remote operation in the client goes through Transport.request(). It
prefixes the configured base URL, sends the caller's headers as-is, and turns
any non-2xx status into a RequestError carrying the reason phrase.

Not done here:
- No timeout. httpx is given timeout=None, so a hung service hangs the
  caller. Callers needing a deadline must impose it themselves.
- No retries. A failed exchange is reported once.
- No body inspection on failure.
"""

from typing import Any, Literal

import httpx

from config import ClientConfig
from errors import RequestError
from logging_utils import get_logger

logger = get_logger(__name__)

Expect = Literal["json", "text"] | None


class Transport:
    """
    Thin wrapper around an httpx.Client.

    Usage:
        transport = Transport(config)
        body = transport.request("/api/render", "POST", json_body={"fa": fa},
                                 headers={"Content-Type": "application/json"})
    """

    def __init__(self, config: ClientConfig, http: httpx.Client | None = None):
        """
        Args:
            config: Client configuration (base URL).
            http: Pre-built httpx client, e.g. one over httpx.MockTransport.
                The Transport takes ownership and closes it on close().
        """
        self.config = config
        self._http = http or httpx.Client(timeout=None)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def url_for(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def request(
        self,
        path: str,
        method: str = "GET",
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        expect: Expect = "json",
    ) -> Any:
        """
        Perform one request/response exchange.

        Args:
            path: Endpoint path, appended to the base URL.
            method: HTTP method.
            json_body: JSON-serializable body, or None for no body.
            headers: Headers sent verbatim (auth header included by caller).
            params: Query parameters.
            expect: "json" to parse the body as JSON, "text" for raw text,
                None to discard the body.

        Returns:
            Parsed body according to expect. An empty body with
            expect="json" yields None.

        Raises:
            RequestError: If the status is not 2xx.
            httpx.HTTPError: On network-level failures.
        """
        response = self._http.request(
            method,
            self.url_for(path),
            json=json_body,
            headers=headers,
            params=params,
            timeout=None,
        )
        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.is_success:
            reason = response.reason_phrase
            logger.warning(f"{method} {path} failed: {response.status_code} {reason}")
            raise RequestError(method, path, response.status_code, reason)

        if expect == "json":
            return response.json() if response.content else None
        if expect == "text":
            return response.text
        return None

    def close(self) -> None:
        self._http.close()
