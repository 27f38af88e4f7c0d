"""
AutomatonClient: typed operations against the automaton service.

Each method is one request against one fixed endpoint, except save_fa and
update_fa, which run the render-then-persist workflow (see workflow.py).

Error policy: a failed request is re-raised as a TransportError named after
the operation ("Union failed: Bad Request"), or AuthenticationError for
401/403. get_fa raises NotFoundError when the lookup matches nothing;
update_fa on an id that matches nothing fails as "Update FA failed".

Usage:
    with AutomatonClient(load_config()) as client:
        client.login("me@example.com", "secret")
        result = client.render_fa(fa)
        record = client.save_fa(fa, description="even number of a's")
"""

import json
from typing import Any

import httpx

from config import ClientConfig
from credentials import JSON_HEADERS, CredentialHolder, TokenStore
from errors import NotFoundError, RequestError, TransportError
from logging_utils import get_logger
from models import FA, FARecord, RenderResult, RunResult, new_record_id
from state import start_save, start_update
from transport import Expect, Transport
from workflow import Dependencies, persist_with_render

logger = get_logger(__name__)

FA_COLLECTION = "/pgapi/finite_automatas"

# Ask PostgREST to echo the written row back
RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def _id_filter(uuid: str) -> dict[str, str]:
    return {"id": f"eq.{uuid}"}


class AutomatonClient:
    """Facade over the conversion service and the FA record store."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        credentials: CredentialHolder | None = None,
    ):
        """
        Args:
            config: Client configuration. Defaults to ClientConfig.from_env().
            transport: Transport to use; built from config if None.
            credentials: Credential holder; built over transport if None,
                with a TokenStore when config.token_path is set.
        """
        self.config = config or ClientConfig.from_env()
        self._transport = transport or Transport(self.config)
        if credentials is None:
            store = TokenStore(self.config.token_path) if self.config.token_path else None
            credentials = CredentialHolder(self._transport, store=store)
        self._credentials = credentials

    def __enter__(self) -> "AutomatonClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    # =========================================================================
    # Session
    # =========================================================================

    def login(self, email: str, password: str) -> str:
        return self._credentials.login(email, password)

    def set_token(self, token: str) -> None:
        self._credentials.set_token(token)

    def restore_session(self) -> bool:
        """Reuse a token saved by an earlier login, if any."""
        return self._credentials.restore()

    @property
    def is_authenticated(self) -> bool:
        return self._credentials.is_authenticated

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _call(
        self,
        operation: str,
        path: str,
        method: str = "GET",
        json_body: Any = None,
        params: dict[str, str] | None = None,
        auth: bool = True,
        expect: Expect = "json",
        extra_headers: dict[str, str] | None = None,
    ) -> Any:
        headers = self._credentials.auth_headers() if auth else dict(JSON_HEADERS)
        if extra_headers:
            headers.update(extra_headers)
        try:
            return self._transport.request(
                path,
                method,
                json_body=json_body,
                headers=headers,
                params=params,
                expect=expect,
            )
        except RequestError as e:
            raise TransportError.wrap(operation, e) from e

    # =========================================================================
    # Conversion and rendering
    # =========================================================================

    def convert_fa(self, fa: FA) -> RenderResult:
        """Convert an FA sent by value into its SVG/TeX/DOT renderings."""
        body = self._call("Conversion", "/api/convert", "POST", {"fa": fa.to_wire()})
        return RenderResult.model_validate(body)

    def convert_by_uuid(self, uuid: str) -> RenderResult:
        """Convert a stored FA, looked up server-side by id."""
        body = self._call("Conversion", "/api/convert", "POST", {"uuid": uuid})
        return RenderResult.model_validate(body)

    def render_fa(self, fa: FA) -> RenderResult:
        body = self._call("Render", "/api/render", "POST", {"fa": fa.to_wire()})
        return RenderResult.model_validate(body)

    def render_by_uuid(self, uuid: str) -> RenderResult:
        body = self._call("Render", "/api/render", "POST", {"uuid": uuid})
        return RenderResult.model_validate(body)

    def get_tex(self, uuid: str) -> str:
        return self._call("Get TeX", f"/api/tex/{uuid}", auth=False, expect="text")

    def get_svg(self, uuid: str) -> str:
        return self._call("Get SVG", f"/api/svg/{uuid}", auth=False, expect="text")

    def regex_to_nfa(self, regex: str) -> FA:
        body = self._call("Regex to NFA", "/api/regex-to-nfa", "POST", {"regex": regex})
        return FA.model_validate(body)

    def nfa_to_dfa(self, uuid: str) -> FA:
        body = self._call("NFA to DFA", "/api/nfa-to-dfa", "POST", {"uuid": uuid})
        return FA.model_validate(body)

    def fa_to_regex(self, uuid: str) -> str:
        """
        Regular expression for a stored FA.

        The service answers either {"regex": ...} or the bare expression as
        text; both are accepted.
        """
        text = self._call("FA to regex", "/api/fa-to-regex", "POST", {"uuid": uuid},
                          expect="text")
        return _regex_from_body(text)

    def minimize_dfa(self, uuid: str) -> FA:
        body = self._call("Minimize DFA", "/api/minimize-dfa", params={"uuid": uuid})
        return FA.model_validate(body)

    def complement(self, uuid: str) -> FA:
        body = self._call("Complement", "/api/complement", params={"uuid": uuid})
        return FA.model_validate(body)

    # =========================================================================
    # Combination and execution
    # =========================================================================

    def union(self, uuids: list[str]) -> FA:
        """Union of the stored FAs; the result is a fresh FA, not a record."""
        body = self._call("Union", "/api/union", "POST", {"uuids": list(uuids)})
        return FA.model_validate(body)

    def concatenation(self, uuids: list[str]) -> FA:
        """Concatenation of the stored FAs in the given order."""
        body = self._call("Concatenation", "/api/concatenation", "POST",
                          {"uuids": list(uuids)})
        return FA.model_validate(body)

    def intersection(self, uuids: list[str]) -> FA:
        body = self._call("Intersection", "/api/intersection", "POST",
                          {"uuids": list(uuids)})
        return FA.model_validate(body)

    def run_string(self, uuid: str, string: str) -> RunResult:
        """Feed string to a stored FA; returns the verdict and visited states."""
        body = self._call("Run string", "/api/run-string", "POST",
                          {"uuid": uuid, "string": string})
        return RunResult.model_validate(body)

    def is_live(self) -> bool:
        """
        True when the conversion service answers its liveness endpoint.

        False on a non-2xx answer or when the service cannot be reached.
        """
        try:
            self._transport.request("/api/live", "GET", expect=None)
        except (RequestError, httpx.HTTPError) as e:
            logger.info(f"Service not live: {e}")
            return False
        return True

    # =========================================================================
    # Records
    # =========================================================================

    def get_all_fas(self) -> list[FARecord]:
        body = self._call("Fetch FAs", FA_COLLECTION, auth=False)
        return [FARecord.model_validate(item) for item in body or []]

    def get_fa(self, uuid: str) -> FARecord:
        """
        Fetch one record by id.

        Raises:
            NotFoundError: If no record has that id.
            TransportError: If the request fails.
        """
        body = self._call("Fetch FA", FA_COLLECTION, params=_id_filter(uuid), auth=False)
        if not body:
            raise NotFoundError(uuid)
        return FARecord.model_validate(body[0])

    def save_fa(self, fa: FA, description: str | None = None) -> FARecord:
        """
        Render fa, then store it as a new record pointing at that render.

        The record id is generated here. Calling this twice stores two
        records.
        """
        state = start_save(fa, new_record_id(), description)
        return persist_with_render(state, self._workflow_deps()).record

    def update_fa(self, uuid: str, fa: FA, description: str | None = None) -> FARecord:
        """Render fa, then replace the tuple and render of record uuid."""
        state = start_update(uuid, fa, description)
        return persist_with_render(state, self._workflow_deps()).record

    def delete_fa(self, uuid: str) -> None:
        self._call("Delete FA", FA_COLLECTION, "DELETE", params=_id_filter(uuid),
                   expect=None)

    def _workflow_deps(self) -> Dependencies:
        return Dependencies(
            render=self.render_fa,
            create_record=self._create_record,
            update_record=self._update_record,
        )

    def _create_record(self, body: dict) -> FARecord:
        returned = self._call("Save FA", FA_COLLECTION, "POST", body,
                              extra_headers=RETURN_REPRESENTATION)
        return _record_from_write(returned, body)

    def _update_record(self, uuid: str, body: dict) -> FARecord:
        """
        Raises:
            TransportError: If the PATCH matched no row. PostgREST answers
                that with 200 and an empty array.
        """
        returned = self._call("Update FA", FA_COLLECTION, "PATCH", body,
                              params=_id_filter(uuid),
                              extra_headers=RETURN_REPRESENTATION)
        if returned == []:
            raise TransportError("Update FA", RequestError(
                "PATCH", FA_COLLECTION, 200, f"No record with id {uuid}"))
        return _record_from_write(returned, {"id": uuid, **body})


def _record_from_write(returned: Any, sent: dict) -> FARecord:
    """
    Record from a PostgREST write response.

    With return=representation the row comes back in a one-element array.
    Only an empty body (None) falls back to what was written; an empty
    array means no row was written.
    """
    if isinstance(returned, list):
        if not returned:
            raise ValueError("Write response contained no rows")
        returned = returned[0]
    if isinstance(returned, dict):
        return FARecord.model_validate(returned)
    return FARecord.model_validate(sent)


def _regex_from_body(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except ValueError:
            return text
        if isinstance(data, dict) and isinstance(data.get("regex"), str):
            return data["regex"]
    return text
