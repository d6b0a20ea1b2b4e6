"""Data models for worker admission and dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LabelEligibility:
    """Whether a feature may be dispatched to a worker.

    Attributes:
        eligible: True if the feature may be dispatched.
        reason: Why it is (or is not) eligible.
        feature_id: The feature's id.
        issue_number: The linked issue, if any.
    """

    eligible: bool
    reason: str
    feature_id: str
    issue_number: int | None = None


@dataclass
class WorkerContext:
    """Instructions handed to a worker through its issue."""

    feature_id: str
    feature_name: str
    description: str
    acceptance_criteria: list[str]
    depends_on: list[str]
    scope: str
    branch_name: str
    issue_number: int
    related_files: list[str] = field(default_factory=list)


@dataclass
class SkippedFeature:
    """A feature that was not dispatched, with the reason."""

    feature_id: str
    reason: str


@dataclass
class DispatchError:
    """A feature whose dispatch was attempted and failed."""

    feature_id: str
    error: str


@dataclass
class LabelingResult:
    """Outcome of one admission pass.

    Attributes:
        labeled: Ids of dispatched features, in list order.
        skipped: Features left alone, with reasons.
        errors: Features whose dispatch failed.
    """

    labeled: list[str] = field(default_factory=list)
    skipped: list[SkippedFeature] = field(default_factory=list)
    errors: list[DispatchError] = field(default_factory=list)


@dataclass(frozen=True)
class WorkerCapacity:
    """Current worker count against the configured maximum."""

    can_spawn: bool
    current_count: int
    max_allowed: int
