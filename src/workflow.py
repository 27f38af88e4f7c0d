"""
Workflow: render-then-persist for save and update.

A persisted record must point at a render artifact computed from the very
tuple being written. The only way to write a record is through
persist_with_render(), which always renders first and threads that render's
id into the write. There is no route that skips RENDER.

Failure handling:
- Render fails: nothing is written; the render error propagates.
- Persist fails: the render artifact stays on the service, unreferenced.
  It is logged and the persist error propagates. No rollback.
"""

from dataclasses import dataclass
from typing import Callable

from logging_utils import get_logger
from models import FA, FARecord, RenderResult
from state import NextStep, PersistMode, PersistState, PersistUpdate

logger = get_logger(__name__)


@dataclass
class Dependencies:
    """
    Remote operations the workflow steps need.

    Injected by the client; tests pass mocks.
    """
    render: Callable[[FA], RenderResult]
    create_record: Callable[[dict], FARecord]
    update_record: Callable[[str, dict], FARecord]


StepFunction = Callable[[PersistState, Dependencies], PersistUpdate]


# =============================================================================
# Steps
# =============================================================================

def render_step(state: PersistState, deps: Dependencies) -> PersistUpdate:
    """Render the state's tuple and record the artifact id."""
    result = deps.render(state.fa)
    logger.debug(f"Rendered {state.record_id} as artifact {result.id}")
    return {"render_id": result.id}


def persist_step(state: PersistState, deps: Dependencies) -> PersistUpdate:
    """Write the record, referencing the render from this same call."""
    body = state.write_body()
    try:
        if state.mode is PersistMode.CREATE:
            record = deps.create_record(body)
        else:
            record = deps.update_record(state.record_id, body)
    except Exception:
        logger.warning(
            f"{state.mode.value} of {state.record_id} failed; "
            f"render artifact {state.render_id} is unreferenced"
        )
        raise
    return {"record": record, "completed": True}


STEPS: dict[NextStep, StepFunction] = {
    NextStep.RENDER: render_step,
    NextStep.PERSIST: persist_step,
}


# =============================================================================
# Routing
# =============================================================================

def route_initial(state: PersistState) -> NextStep:
    """Every save/update starts by rendering."""
    return NextStep.RENDER


def route_after_render(state: PersistState) -> NextStep:
    return NextStep.PERSIST


def route_after_persist(state: PersistState) -> NextStep:
    return NextStep.DONE


ROUTERS: dict[NextStep, Callable[[PersistState], NextStep]] = {
    NextStep.RENDER: route_after_render,
    NextStep.PERSIST: route_after_persist,
}


# =============================================================================
# Runner
# =============================================================================

def persist_with_render(state: PersistState, deps: Dependencies) -> PersistState:
    """
    Run render then persist for one save/update.

    Args:
        state: Fresh state from state.start_save() or state.start_update().
        deps: Remote operations.

    Returns:
        Final state; its record is the one the service returned.

    Raises:
        Whatever the first failing step raised, unchanged.
    """
    current_step = route_initial(state)

    while current_step is not NextStep.DONE:
        logger.debug(f"{state.mode.value} {state.record_id}: {current_step.name}")
        update = STEPS[current_step](state, deps)
        state = state.apply_update(update)
        current_step = ROUTERS[current_step](state)

    return state
