"""
PersistState: the state of one save or update call.

A save or update is a short state machine (render, then persist). Each call
gets its own PersistState; step functions return partial updates and the
runner folds them in with apply_update(), so nothing is shared between calls
and two concurrent saves never see each other's render id.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import TypedDict

from models import FA, FARecord


class NextStep(Enum):
    """Explicit workflow routing - what to do next."""
    RENDER = auto()
    PERSIST = auto()
    DONE = auto()


class PersistMode(Enum):
    """Which persistence write the workflow ends with."""
    CREATE = "create"
    UPDATE = "update"


class PersistUpdate(TypedDict, total=False):
    """Partial state update returned by step functions."""
    render_id: str
    record: FARecord
    completed: bool


@dataclass(frozen=True)
class PersistState:
    """
    Immutable state for a single save/update.

    fa, record_id, description and mode are fixed when the call starts.
    render_id is filled by the render step and must be present before the
    persist step writes anything.
    """
    fa: FA
    record_id: str
    mode: PersistMode
    description: str | None = None

    render_id: str | None = None
    record: FARecord | None = None
    completed: bool = False

    def apply_update(self, update: PersistUpdate) -> "PersistState":
        """
        Apply a partial update to the state.

        Raises:
            KeyError: If the update names a field PersistState doesn't have.
        """
        unknown = set(update) - set(PersistUpdate.__annotations__)
        if unknown:
            raise KeyError(f"Unknown state fields: {sorted(unknown)}")
        return replace(self, **update) if update else self

    def write_body(self) -> dict:
        """
        Body of the persistence write.

        Only valid once the render step has run.
        """
        if self.render_id is None:
            raise RuntimeError("Persistence write attempted before render")

        body = {
            "tuple": self.fa.to_wire(),
            "render": self.render_id,
        }
        # None leaves an existing description untouched on update
        if self.description is not None:
            body["description"] = self.description
        if self.mode is PersistMode.CREATE:
            body = {"id": self.record_id, **body}
        return body


def start_save(fa: FA, record_id: str, description: str | None = None) -> PersistState:
    """Fresh state for saving fa as a new record."""
    return PersistState(fa=fa, record_id=record_id, mode=PersistMode.CREATE,
                        description=description)


def start_update(record_id: str, fa: FA, description: str | None = None) -> PersistState:
    """Fresh state for replacing the tuple of an existing record."""
    return PersistState(fa=fa, record_id=record_id, mode=PersistMode.UPDATE,
                        description=description)
