"""GitHub - Provider client for pull requests, checks and issues."""

from workflow_pilot.github.client import GitHubClient
from workflow_pilot.github.exceptions import GitHubError, IssueError, MergeError, PRError
from workflow_pilot.github.models import CheckStatus, CICheck, Issue, MergeMethod, PRMetadata

__all__ = [
    "CICheck",
    "CheckStatus",
    "GitHubClient",
    "GitHubError",
    "Issue",
    "IssueError",
    "MergeError",
    "MergeMethod",
    "PRError",
    "PRMetadata",
]
