"""Phases - Project lifecycle state machine."""

from workflow_pilot.phases.exceptions import InvalidPhaseTransitionError, PhaseError
from workflow_pilot.phases.machine import (
    PHASE_ORDER,
    PHASES,
    DevelopmentPhase,
    PhaseInfo,
    can_transition_to,
    get_phase_progress,
    get_recommended_next_phase,
    transition,
)

__all__ = [
    "PHASES",
    "PHASE_ORDER",
    "DevelopmentPhase",
    "InvalidPhaseTransitionError",
    "PhaseError",
    "PhaseInfo",
    "can_transition_to",
    "get_phase_progress",
    "get_recommended_next_phase",
    "transition",
]
