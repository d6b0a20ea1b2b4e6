"""Data models for the auto-merge engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from workflow_pilot.github import MergeMethod

if TYPE_CHECKING:
    from workflow_pilot.gating import PRStatus

DRY_RUN_PREFIX = "[DRY RUN]"


class MergeAction(StrEnum):
    """Action taken for a pull request."""

    MERGED = "merged"
    LABELED = "labeled"
    PENDING = "pending"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AutoMergeOptions:
    """Options for processing a pull request.

    Attributes:
        merge_method: Merge method used for merges and auto-merge.
        delete_branch: Delete the head branch after merging.
        dry_run: Decide but do not call the provider.
    """

    merge_method: MergeMethod = MergeMethod.SQUASH
    delete_branch: bool = True
    dry_run: bool = False


@dataclass
class AutoMergeResult:
    """Outcome of processing one pull request.

    Attributes:
        success: Whether the operation succeeded.
        action: Action taken.
        message: Human-readable message.
        pr_number: The PR number.
        strategy: Strategy used.
        status: Gate snapshot at time of check.
        error: Error description, if any.
    """

    success: bool
    action: MergeAction
    message: str
    pr_number: int
    strategy: str
    status: PRStatus | None = None
    error: str | None = None
