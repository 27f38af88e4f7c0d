"""
Shared test fixtures and utilities.

This module provides:
- Sample automata (a DFA and an NFA)
- FakeService: an in-memory stand-in for the conversion and storage
  services, served through httpx.MockTransport
- Client fixtures wired to the fake service
"""

import json
import os
import sys
import uuid

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client import AutomatonClient
from config import ClientConfig
from models import FA
from transport import Transport

BASE_URL = "http://rgxr.test"


# =============================================================================
# Sample Automata
# =============================================================================

DFA_DICT = {
    "alphabet": ["a", "b"],
    "states": ["s0", "s1"],
    "initial": "s0",
    "acceptance": ["s1"],
    "transitions": [["s0", "s1"], ["s1", "s1"]],
}

NFA_DICT = {
    "alphabet": ["a", "b"],
    "states": ["q0", "q1", "q2"],
    "initial": "q0",
    "acceptance": ["q2"],
    "transitions": [
        [["q0", "q1"], "q0"],
        ["", "q2"],
        [[], []],
    ],
}


@pytest.fixture
def dfa_dict():
    return json.loads(json.dumps(DFA_DICT))


@pytest.fixture
def nfa_dict():
    return json.loads(json.dumps(NFA_DICT))


@pytest.fixture
def dfa(dfa_dict):
    return FA.model_validate(dfa_dict)


@pytest.fixture
def nfa(nfa_dict):
    return FA.model_validate(nfa_dict)


# =============================================================================
# Fake Service
# =============================================================================

class FakeService:
    """
    In-memory rgxr backend.

    Records every request in `calls` as (method, path, params, body, headers).
    Responses can be overridden per (method, path) via `fail` and `respond`.
    """

    def __init__(self, token: str = "tok-123"):
        self.token = token
        self.records: dict[str, dict] = {}
        self.renders: dict[str, dict] = {}
        self.calls: list[dict] = []
        self.fail: dict[tuple[str, str], int] = {}
        self.respond: dict[tuple[str, str], httpx.Response] = {}
        self.require_auth = True

    # --- plumbing -----------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        call = {
            "method": request.method,
            "path": request.url.path,
            "params": dict(request.url.params),
            "body": body,
            "headers": dict(request.headers),
        }
        self.calls.append(call)

        key = (request.method, request.url.path)
        if key in self.fail:
            return httpx.Response(self.fail[key])
        if key in self.respond:
            return self.respond[key]

        handler = self._route(request.method, request.url.path)
        if handler is None:
            return httpx.Response(404)
        return handler(call)

    def calls_to(self, method: str, path: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    def _authorized(self, call: dict) -> bool:
        if not self.require_auth:
            return True
        return call["headers"].get("authorization") == f"Bearer {self.token}"

    def _route(self, method: str, path: str):
        if path.startswith("/api/tex/"):
            return self._get_tex
        if path.startswith("/api/svg/"):
            return self._get_svg
        return {
            ("POST", "/pgapi/rpc/login"): self._login,
            ("POST", "/api/render"): self._render,
            ("POST", "/api/convert"): self._render,
            ("POST", "/api/union"): self._combine,
            ("POST", "/api/concatenation"): self._combine,
            ("POST", "/api/intersection"): self._combine,
            ("POST", "/api/run-string"): self._run_string,
            ("POST", "/api/regex-to-nfa"): self._regex_to_nfa,
            ("POST", "/api/nfa-to-dfa"): self._stored_fa,
            ("POST", "/api/fa-to-regex"): self._fa_to_regex,
            ("GET", "/api/complement"): self._stored_fa,
            ("GET", "/api/minimize-dfa"): self._stored_fa,
            ("GET", "/api/live"): lambda call: httpx.Response(200, text="ok"),
            ("GET", "/pgapi/finite_automatas"): self._list,
            ("POST", "/pgapi/finite_automatas"): self._create,
            ("PATCH", "/pgapi/finite_automatas"): self._update,
            ("DELETE", "/pgapi/finite_automatas"): self._delete,
        }.get((method, path))

    @staticmethod
    def _id_param(call: dict) -> str | None:
        value = call["params"].get("id", "")
        return value[3:] if value.startswith("eq.") else None

    # --- handlers -----------------------------------------------------------

    def _login(self, call):
        if call["body"] == {"email": "user@example.com", "pass": "secret"}:
            return httpx.Response(200, json={"token": self.token})
        return httpx.Response(401)

    def _render(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        body = call["body"]
        fa = body.get("fa")
        if fa is None:
            record = self.records.get(body.get("uuid"))
            if record is None:
                return httpx.Response(404)
            fa = record["tuple"]
        render_id = str(uuid.uuid4())
        rendered = {
            "id": render_id,
            "svg": f"<svg><!-- {len(fa['states'])} states --></svg>",
            "tex": "\\begin{tikzpicture}\\end{tikzpicture}",
            "dot": "digraph { s0 -> s1 }",
        }
        self.renders[render_id] = {"fa": fa, **rendered}
        return httpx.Response(200, json=rendered)

    def _get_tex(self, call):
        render = self.renders.get(call["path"].rsplit("/", 1)[-1])
        if render is None:
            return httpx.Response(404)
        return httpx.Response(200, text=render["tex"])

    def _get_svg(self, call):
        render = self.renders.get(call["path"].rsplit("/", 1)[-1])
        if render is None:
            return httpx.Response(404)
        return httpx.Response(200, text=render["svg"])

    def _combine(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        tuples = []
        for uid in call["body"]["uuids"]:
            if uid not in self.records:
                return httpx.Response(500)
            tuples.append(self.records[uid]["tuple"])
        alphabet = []
        for fa in tuples:
            alphabet.extend(s for s in fa["alphabet"] if s not in alphabet)
        return httpx.Response(200, json={
            "alphabet": alphabet,
            "states": ["u0"],
            "initial": "u0",
            "acceptance": [],
            "transitions": [["u0"] * len(alphabet)],
        })

    def _run_string(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        record = self.records.get(call["body"]["uuid"])
        if record is None:
            return httpx.Response(500)
        fa = FA.model_validate(record["tuple"])
        state = fa.initial
        path = [state]
        for symbol in call["body"]["string"]:
            (state,) = fa.targets(state, symbol)
            path.append(state)
        return httpx.Response(200, json={
            "accepted": state in fa.acceptance,
            "path": path,
        })

    def _regex_to_nfa(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        return httpx.Response(200, json=NFA_DICT)

    def _stored_fa(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        uid = (call["body"] or {}).get("uuid") or call["params"].get("uuid")
        record = self.records.get(uid)
        if record is None:
            return httpx.Response(500)
        return httpx.Response(200, json=record["tuple"])

    def _fa_to_regex(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        if call["body"]["uuid"] not in self.records:
            return httpx.Response(500)
        return httpx.Response(200, text="(a|b)*b")

    def _list(self, call):
        uid = self._id_param(call)
        if uid is None:
            return httpx.Response(200, json=list(self.records.values()))
        record = self.records.get(uid)
        return httpx.Response(200, json=[record] if record else [])

    def _create(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        body = call["body"]
        if body["id"] in self.records:
            return httpx.Response(409)
        record = {**body, "created_at": "2026-10-17T12:00:00+00:00"}
        self.records[body["id"]] = record
        return httpx.Response(201, json=[record])

    def _update(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        uid = self._id_param(call)
        if uid not in self.records:
            return httpx.Response(200, json=[])
        self.records[uid].update(call["body"])
        return httpx.Response(200, json=[self.records[uid]])

    def _delete(self, call):
        if not self._authorized(call):
            return httpx.Response(401)
        self.records.pop(self._id_param(call), None)
        return httpx.Response(204)

    # --- seeding ------------------------------------------------------------

    def seed(self, fa_dict: dict, record_id: str | None = None,
             description: str | None = None) -> str:
        record_id = record_id or str(uuid.uuid4())
        self.records[record_id] = {
            "id": record_id,
            "description": description,
            "tuple": fa_dict,
            "render": f"render-{record_id}",
            "created_at": "2026-10-01T09:30:00+00:00",
        }
        return record_id


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def config(tmp_path):
    return ClientConfig(base_url=BASE_URL, token_path=str(tmp_path / "session.json"))


@pytest.fixture
def transport(service, config):
    return Transport(config, http=httpx.Client(transport=httpx.MockTransport(service)))


@pytest.fixture
def client(config, transport):
    with AutomatonClient(config, transport=transport) as c:
        yield c


@pytest.fixture
def authed_client(client, service):
    client.set_token(service.token)
    return client
