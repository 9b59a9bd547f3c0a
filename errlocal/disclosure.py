"""
Progressive disclosure of hints.

The machine has states S0..Sn where n is the number of hints and the state is
the persisted ``step`` value. Sk for k < n shows hint k; Sn shows the final
explanation and stays there no matter how many more times it is advanced.
"""

from dataclasses import dataclass
from typing import Literal

from errlocal.state import SessionState, StateStore


@dataclass(frozen=True)
class Disclosure:
    kind: Literal["hint", "final"]
    text: str
    index: int | None = None


def current_disclosure(state: SessionState) -> Disclosure:
    """Return what should be shown for the state's current step."""
    hints = state.analysis.hints
    if state.step < len(hints):
        return Disclosure(kind="hint", index=state.step, text=hints[state.step])
    return Disclosure(kind="final", text=state.analysis.final_explanation)


def advance(state: SessionState) -> SessionState:
    """Return a copy of ``state`` moved one step forward, clamped at the final step."""
    next_step = min(state.step + 1, len(state.analysis.hints))
    return state.model_copy(update={"step": next_step})


def advance_and_persist(state: SessionState, store: StateStore) -> SessionState:
    """
    Advance the state and write it back.

    Once the terminal step is reached the state is left untouched, so the
    final explanation can be shown again on every later call.
    """
    if state.is_final:
        return state
    new_state = advance(state)
    store.save(new_state)
    return new_state
