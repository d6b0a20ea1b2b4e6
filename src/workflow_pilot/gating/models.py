"""Data models for the CI gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from workflow_pilot.github.models import CICheck  # noqa: TC001 - dataclass field type


class GateResult(StrEnum):
    """Verdict of the CI gate."""

    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


PASSING_CONCLUSIONS = frozenset({"success", "neutral", "skipped"})
FAILING_CONCLUSIONS = frozenset({"failure", "cancelled", "timed_out", "action_required"})


@dataclass(frozen=True)
class PRStatus:
    """Point-in-time gate snapshot of a pull request.

    Attributes:
        pr_number: The PR number.
        result: Overall gate verdict.
        checks: Every observed check.
        required_checks: Required check names from config.
        passed_checks: Observed check names that passed.
        failed_checks: Observed check names that failed.
        pending_checks: Observed check names still running.
        missing_checks: Required names that matched no observed check.
        mergeable: True, False (conflicts) or None (unknown).
        state: open, closed, merged or unknown.
        draft: Whether the PR is a draft.
        review_decision: APPROVED, CHANGES_REQUESTED, REVIEW_REQUIRED or None.
        summary: Human-readable summary.
    """

    pr_number: int
    result: GateResult
    checks: tuple[CICheck, ...] = ()
    required_checks: tuple[str, ...] = ()
    passed_checks: tuple[str, ...] = ()
    failed_checks: tuple[str, ...] = ()
    pending_checks: tuple[str, ...] = ()
    missing_checks: tuple[str, ...] = ()
    mergeable: bool | None = None
    state: str = "unknown"
    draft: bool = False
    review_decision: str | None = None
    summary: str = ""


@dataclass(frozen=True)
class ReadyCheck:
    """Merge readiness of a pull request."""

    ready: bool
    reason: str
    status: PRStatus | None = field(default=None, compare=False)
