from __future__ import annotations
from enum import Enum
from typing import Optional


class PipelineState(str, Enum):
    IDLE = "idle"                          # no image
    LOADED = "loaded"                      # image present, not enhanced yet
    PROCESSING = "processing"              # enhance triggered, result pending
    ENHANCED = "enhanced"                  # result ready for compare/export
    EDITING_SETTINGS = "editing_settings"  # back at the sliders, prior result retained


class PipelineEvent(str, Enum):
    LOAD = "load"
    ENHANCE = "enhance"
    COMPLETE = "complete"
    EDIT_SETTINGS = "edit_settings"
    RESET = "reset"


_TRANSITIONS = {
    (PipelineState.LOADED, PipelineEvent.ENHANCE): PipelineState.PROCESSING,
    (PipelineState.EDITING_SETTINGS, PipelineEvent.ENHANCE): PipelineState.PROCESSING,
    (PipelineState.PROCESSING, PipelineEvent.COMPLETE): PipelineState.ENHANCED,
    (PipelineState.ENHANCED, PipelineEvent.EDIT_SETTINGS): PipelineState.EDITING_SETTINGS,
}


def next_state(state: PipelineState, event: PipelineEvent) -> Optional[PipelineState]:
    """
    Pure transition function.
    Returns the state reached from *state* on *event*, or None when the
    event is not accepted there (callers treat that as a no-op).
    LOAD and RESET are accepted from every state.
    """
    if event is PipelineEvent.LOAD:
        return PipelineState.LOADED
    if event is PipelineEvent.RESET:
        return PipelineState.IDLE
    return _TRANSITIONS.get((state, event))
