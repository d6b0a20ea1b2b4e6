"""Custom exceptions for the phase state machine."""


class PhaseError(Exception):
    """Base exception for phase errors."""


class InvalidPhaseTransitionError(PhaseError):
    """Requested phase transition is not in the transition table."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from phase '{current}' to '{target}'")
