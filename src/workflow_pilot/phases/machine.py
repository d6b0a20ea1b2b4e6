"""Phase state machine - project lifecycle from onboarding to shipped."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from workflow_pilot.phases.exceptions import InvalidPhaseTransitionError

logger = logging.getLogger("workflow_pilot.phases")


class DevelopmentPhase(StrEnum):
    """Lifecycle phase of a project."""

    ONBOARDING = "onboarding"
    SETUP = "setup"
    PLANNING = "planning"
    DEVELOPMENT = "development"
    VERIFICATION = "verification"
    PRODUCTION = "production"
    SHIPPED = "shipped"


@dataclass(frozen=True)
class PhaseInfo:
    """Phase metadata and allowed outbound transitions."""

    name: DevelopmentPhase
    description: str
    next_phases: tuple[DevelopmentPhase, ...]
    is_terminal: bool = False


PHASES: dict[DevelopmentPhase, PhaseInfo] = {
    DevelopmentPhase.ONBOARDING: PhaseInfo(
        name=DevelopmentPhase.ONBOARDING,
        description="Initial setup - understanding what to build",
        next_phases=(DevelopmentPhase.SETUP,),
    ),
    DevelopmentPhase.SETUP: PhaseInfo(
        name=DevelopmentPhase.SETUP,
        description="Project scaffolding - git, structure, dependencies",
        next_phases=(DevelopmentPhase.PLANNING,),
    ),
    DevelopmentPhase.PLANNING: PhaseInfo(
        name=DevelopmentPhase.PLANNING,
        description="Feature planning - creating the feature list",
        next_phases=(DevelopmentPhase.DEVELOPMENT,),
    ),
    DevelopmentPhase.DEVELOPMENT: PhaseInfo(
        name=DevelopmentPhase.DEVELOPMENT,
        description="Active development - implementing features in sprints",
        next_phases=(DevelopmentPhase.VERIFICATION, DevelopmentPhase.DEVELOPMENT),
    ),
    DevelopmentPhase.VERIFICATION: PhaseInfo(
        name=DevelopmentPhase.VERIFICATION,
        description="Testing and verification - ensuring features work",
        next_phases=(DevelopmentPhase.DEVELOPMENT, DevelopmentPhase.PRODUCTION),
    ),
    DevelopmentPhase.PRODUCTION: PhaseInfo(
        name=DevelopmentPhase.PRODUCTION,
        description="Production readiness - security, UX, performance checks",
        next_phases=(DevelopmentPhase.DEVELOPMENT, DevelopmentPhase.SHIPPED),
    ),
    # Terminal, but a new cycle re-enters development
    DevelopmentPhase.SHIPPED: PhaseInfo(
        name=DevelopmentPhase.SHIPPED,
        description="Deployed to production",
        next_phases=(DevelopmentPhase.DEVELOPMENT,),
        is_terminal=True,
    ),
}

PHASE_ORDER: tuple[DevelopmentPhase, ...] = tuple(DevelopmentPhase)


def can_transition_to(current: DevelopmentPhase | str, target: DevelopmentPhase | str) -> bool:
    """Check whether ``current -> target`` is in the transition table."""
    try:
        current_phase = DevelopmentPhase(current)
        target_phase = DevelopmentPhase(target)
    except ValueError:
        return False
    return target_phase in PHASES[current_phase].next_phases


def transition(current: DevelopmentPhase | str, target: DevelopmentPhase | str) -> DevelopmentPhase:
    """Validate a phase transition.

    Args:
        current: The phase the project is in.
        target: The requested phase.

    Returns:
        The target phase.

    Raises:
        InvalidPhaseTransitionError: If the transition is not allowed.
    """
    if not can_transition_to(current, target):
        raise InvalidPhaseTransitionError(current=str(current), target=str(target))
    logger.info("Phase transition %s -> %s", current, target)
    return DevelopmentPhase(target)


def get_recommended_next_phase(
    current: DevelopmentPhase | str,
    *,
    has_feature_list: bool = False,
    all_features_verified: bool = False,
    production_checks_pass: bool = False,
) -> DevelopmentPhase | None:
    """Happy-path next phase.

    Returns None when a precondition is unmet and the caller has to gather
    more information before transitioning.
    """
    match DevelopmentPhase(current):
        case DevelopmentPhase.ONBOARDING:
            return DevelopmentPhase.SETUP
        case DevelopmentPhase.SETUP:
            return DevelopmentPhase.PLANNING
        case DevelopmentPhase.PLANNING:
            return DevelopmentPhase.DEVELOPMENT if has_feature_list else None
        case DevelopmentPhase.DEVELOPMENT:
            return DevelopmentPhase.VERIFICATION
        case DevelopmentPhase.VERIFICATION:
            if all_features_verified:
                return DevelopmentPhase.PRODUCTION
            return DevelopmentPhase.DEVELOPMENT
        case DevelopmentPhase.PRODUCTION:
            return DevelopmentPhase.SHIPPED if production_checks_pass else None
        case _:
            return None


def get_phase_progress(phase: DevelopmentPhase | str) -> str:
    """Position of a phase in the lifecycle, e.g. ``"4/7"``."""
    index = PHASE_ORDER.index(DevelopmentPhase(phase))
    return f"{index + 1}/{len(PHASE_ORDER)}"
