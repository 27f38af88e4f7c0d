"""
rgxr client: typed access to a remote finite-automaton service.

Key design principles:
1. One mutable thing per session - the bearer token in CredentialHolder
2. Every remote call goes through one Transport.request()
3. Save/update are an explicit render-then-persist state machine
4. Failures surface immediately, named after the operation that failed

Modules:
- models.py: FA, FARecord, RenderResult, RunResult, transition cells
- errors.py: RequestError, TransportError, AuthenticationError, NotFoundError
- config.py: Immutable ClientConfig, load_config
- transport.py: Transport (one HTTP exchange per call)
- credentials.py: CredentialHolder, TokenStore
- state.py: PersistState for one save/update
- workflow.py: persist_with_render and its steps
- client.py: AutomatonClient, the operation facade
- main.py: CLI
"""

from models import FA, FARecord, RenderResult, RunResult, SingleTarget, MultiTarget
from errors import RequestError, TransportError, AuthenticationError, NotFoundError
from config import ClientConfig, load_config
from credentials import CredentialHolder, TokenStore
from client import AutomatonClient

__all__ = [
    # Models
    "FA",
    "FARecord",
    "RenderResult",
    "RunResult",
    "SingleTarget",
    "MultiTarget",
    # Errors
    "RequestError",
    "TransportError",
    "AuthenticationError",
    "NotFoundError",
    # Config
    "ClientConfig",
    "load_config",
    # Credentials
    "CredentialHolder",
    "TokenStore",
    # Client
    "AutomatonClient",
]
