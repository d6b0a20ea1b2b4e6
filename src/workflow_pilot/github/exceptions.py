"""Custom exceptions for the GitHub client."""


class GitHubError(Exception):
    """Base exception for GitHub client errors."""


class PRError(GitHubError):
    """Error reading or updating a pull request."""


class MergeError(GitHubError):
    """Error merging a pull request or enabling auto-merge."""


class IssueError(GitHubError):
    """Error reading or updating an issue."""
