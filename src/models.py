"""
Models: Wire shapes exchanged with the automaton service.

Field names match the JSON exactly; model_dump(mode="json") reproduces what
the service sent, including the scalar-or-list form of transition cells.

Transition matrix layout: transitions[i][j] is the cell for states[i] on
alphabet[j]. A cell is either one state name (deterministic) or a list of
state names (nondeterministic fan-out). Callers should go through
FA.cell() / FA.targets() rather than indexing the matrix themselves, so
both forms are handled the same way.

No structural validation is done here (initial in states, acceptance a
subset of states, unique symbols). That belongs to the service.
"""

import uuid
from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


Cell = Union[str, list[str]]


class WireModel(BaseModel):
    """Base for all wire models: immutable, tolerant of extra fields."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_wire(self) -> dict:
        """JSON-ready dict in the service's field layout."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Transition cells
# =============================================================================

@dataclass(frozen=True)
class SingleTarget:
    """Deterministic cell: exactly one target state."""
    state: str

    def targets(self) -> frozenset[str]:
        return frozenset({self.state}) if self.state else frozenset()


@dataclass(frozen=True)
class MultiTarget:
    """Nondeterministic cell: any number of target states."""
    states: tuple[str, ...]

    def targets(self) -> frozenset[str]:
        return frozenset(s for s in self.states if s)


TransitionCell = Union[SingleTarget, MultiTarget]


def to_cell(raw: Cell | None) -> TransitionCell:
    """Tag a raw matrix entry. A missing entry is an empty MultiTarget."""
    if raw is None:
        return MultiTarget(())
    if isinstance(raw, str):
        return SingleTarget(raw)
    return MultiTarget(tuple(raw))


# =============================================================================
# Finite automaton
# =============================================================================

class FA(WireModel):
    """A finite automaton, deterministic or not."""
    alphabet: list[str]
    states: list[str]
    initial: str
    acceptance: list[str]
    transitions: list[list[Cell]]

    def cell(self, state: str, symbol: str) -> TransitionCell:
        """
        Tagged transition cell for (state, symbol).

        Raises:
            KeyError: If state or symbol is not part of the automaton.
        """
        try:
            row = self.states.index(state)
        except ValueError:
            raise KeyError(f"Unknown state: {state!r}") from None
        try:
            col = self.alphabet.index(symbol)
        except ValueError:
            raise KeyError(f"Unknown symbol: {symbol!r}") from None

        cells = self.transitions[row] if row < len(self.transitions) else []
        return to_cell(cells[col] if col < len(cells) else None)

    def targets(self, state: str, symbol: str) -> frozenset[str]:
        """Target states for (state, symbol), whatever the cell's arity."""
        return self.cell(state, symbol).targets()

    def is_deterministic(self) -> bool:
        """True when no cell fans out to more than one state."""
        for row in self.transitions:
            for raw in row:
                if len(to_cell(raw).targets()) > 1:
                    return False
        return True


class FARecord(WireModel):
    """An FA as persisted by the storage service."""
    id: str
    description: str | None = None
    tuple: FA
    render: str
    created_at: str | None = None


class RenderResult(WireModel):
    """The three textual renderings of one FA, plus the artifact id."""
    id: str
    svg: str
    tex: str
    dot: str


class RunResult(WireModel):
    """Verdict and visited states for one input string."""
    accepted: bool
    path: list[Union[str, list[str]]] = Field(default_factory=list)


def new_record_id() -> str:
    """Client-side identifier for a record about to be created."""
    return str(uuid.uuid4())
