"""Exceptions for the Orchestrator module."""


class OrchestratorError(Exception):
    """Base exception for orchestrator errors."""

    pass


class NoFeatureListError(OrchestratorError):
    """The project has no feature list to act on."""

    pass
