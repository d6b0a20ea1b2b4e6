"""Data models for the GitHub client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class CheckStatus(StrEnum):
    """Run status of a CI check."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MergeMethod(StrEnum):
    """Pull request merge method."""

    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


@dataclass(frozen=True)
class CICheck:
    """A single CI check on a pull request's head commit.

    Attributes:
        name: Check name as reported by the provider (e.g. "CI / test (18.x)").
        status: Run status.
        conclusion: Final conclusion, None while the check has not finished.
        url: Link to the check details.
    """

    name: str
    status: CheckStatus
    conclusion: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class PRMetadata:
    """Pull request metadata relevant to gating.

    Attributes:
        state: open, closed, merged or unknown.
        draft: Whether the PR is a draft.
        mergeable: True, False (conflicts) or None (not yet computed).
        review_decision: APPROVED, CHANGES_REQUESTED, REVIEW_REQUIRED or None.
        node_id: GraphQL node id, needed for auto-merge.
        delete_branch_on_merge: Repository setting to delete head branches
            after a merge, or None if unknown.
    """

    state: str
    draft: bool = False
    mergeable: bool | None = None
    review_decision: str | None = None
    node_id: str | None = None
    delete_branch_on_merge: bool | None = None


@dataclass
class Issue:
    """A GitHub issue."""

    number: int
    title: str
    body: str
    labels: list[str] = field(default_factory=list)
