"""GitHubClient - Pull request, check and issue operations over the GitHub API."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import httpx

from workflow_pilot.github.exceptions import GitHubError, IssueError, MergeError, PRError
from workflow_pilot.github.models import CheckStatus, CICheck, Issue, MergeMethod, PRMetadata
from workflow_pilot.logging import sanitize_for_log, truncate_output

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("workflow_pilot.github")

DEFAULT_TIMEOUT = 30.0

CHECK_RUNS_PAGE_SIZE = 100
# Upper bound on check-run pages read for one commit
MAX_CHECK_RUN_PAGES = 10

# Legacy commit status states mapped onto check-run status/conclusion
_COMMIT_STATUS_MAP: dict[str, tuple[CheckStatus, str | None]] = {
    "success": (CheckStatus.COMPLETED, "success"),
    "failure": (CheckStatus.COMPLETED, "failure"),
    "error": (CheckStatus.COMPLETED, "failure"),
    "pending": (CheckStatus.QUEUED, None),
}

_MERGEABLE_MAP: dict[str, bool | None] = {
    "MERGEABLE": True,
    "CONFLICTING": False,
    "UNKNOWN": None,
}


@contextmanager
def _parsing(what: str, error: type[GitHubError] = GitHubError) -> Iterator[None]:
    """Turn an unparseable or unexpectedly shaped response body into ``error``.

    Covers non-JSON bodies (ValueError) as well as missing keys and wrong
    types while reading the decoded payload.
    """
    try:
        yield
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error("Malformed response for %s: %r", what, e)
        raise error(f"Malformed response for {what}: {e!r}") from e


class GitHubClient:
    """Client for the GitHub REST and GraphQL APIs.

    Implements the provider operations the gating, merge and worker
    components rely on. Every request carries a bounded timeout; transport
    failures and malformed response bodies surface as GitHubError.
    """

    def __init__(
        self,
        repo: str,
        token: str,
        base_url: str = "https://api.github.com",
        graphql_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            repo: GitHub repo in "owner/repo" format
            token: GitHub personal access token
            base_url: REST API base URL (for testing/enterprise)
            graphql_url: GraphQL endpoint (defaults to ``{base_url}/graphql``)
            timeout: Per-request timeout in seconds
        """
        self.repo = repo
        self.owner, self.repo_name = repo.split("/")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url or f"{self.base_url}/graphql"
        self.timeout = timeout
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the GitHub API."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
                timeout=self.timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, converting transport failures into GitHubError."""
        try:
            return self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, sanitize_for_log(str(e)))
            raise GitHubError(f"{method} {url} failed: {e}") from e

    def _graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query.

        Raises:
            GitHubError: If the request fails or returns errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        response = self._request("POST", self.graphql_url, json=payload)

        if response.status_code != 200:
            raise GitHubError(
                f"GraphQL request failed: {response.status_code} - "
                f"{truncate_output(response.text, 500)}"
            )

        with _parsing("GraphQL request"):
            data = response.json()
            if "errors" in data:
                raise GitHubError(f"GraphQL errors: {data['errors']}")
            return dict(data["data"])

    def _get_pr_head(self, pr_number: int) -> tuple[str, str]:
        """Head commit sha and branch name of a PR."""
        response = self._request("GET", f"/repos/{self.repo}/pulls/{pr_number}")
        if response.status_code != 200:
            raise PRError(
                f"Failed to get PR {pr_number}: {response.status_code} - {response.text}"
            )
        with _parsing(f"PR #{pr_number}", PRError):
            head = response.json()["head"]
            return str(head["sha"]), str(head["ref"])

    # --- Pull requests ---

    def get_pr_metadata(self, pr_number: int) -> PRMetadata:
        """Fetch state, draft flag, mergeability and review decision of a PR.

        Args:
            pr_number: The PR number

        Returns:
            PRMetadata for the pull request

        Raises:
            PRError: If the PR cannot be found
            GitHubError: If the request fails
        """
        query = """
        query($owner: String!, $repo: String!, $number: Int!) {
            repository(owner: $owner, name: $repo) {
                deleteBranchOnMerge
                pullRequest(number: $number) {
                    id
                    state
                    isDraft
                    mergeable
                    reviewDecision
                }
            }
        }
        """
        data = self._graphql(
            query,
            {"owner": self.owner, "repo": self.repo_name, "number": pr_number},
        )
        with _parsing(f"PR #{pr_number} metadata", PRError):
            repository = data.get("repository") or {}
            pr = repository.get("pullRequest")
            if not pr:
                raise PRError(f"PR #{pr_number} not found in {self.repo}")

            return PRMetadata(
                state=(pr.get("state") or "unknown").lower(),
                draft=bool(pr.get("isDraft")),
                mergeable=_MERGEABLE_MAP.get(pr.get("mergeable") or "UNKNOWN"),
                review_decision=pr.get("reviewDecision"),
                node_id=pr.get("id"),
                delete_branch_on_merge=repository.get("deleteBranchOnMerge"),
            )

    def get_pr_checks(self, pr_number: int) -> list[CICheck]:
        """List the CI checks on a PR's head commit.

        Combines check runs (GitHub Actions and apps) with legacy commit statuses.

        Args:
            pr_number: The PR number

        Returns:
            List of CICheck, in provider order

        Raises:
            PRError: If the PR or its checks cannot be fetched
        """
        head_sha, _ = self._get_pr_head(pr_number)

        checks = []
        with _parsing(f"check runs of PR #{pr_number}", PRError):
            for run in self._list_check_runs(head_sha):
                try:
                    status = CheckStatus(run.get("status") or CheckStatus.QUEUED)
                except ValueError:
                    # waiting, requested, pending
                    status = CheckStatus.QUEUED
                checks.append(
                    CICheck(
                        name=run.get("name") or "unknown",
                        status=status,
                        conclusion=run.get("conclusion"),
                        url=run.get("html_url") or run.get("details_url"),
                    )
                )

        status_response = self._request("GET", f"/repos/{self.repo}/commits/{head_sha}/status")
        if status_response.status_code == 200:
            with _parsing(f"commit statuses of PR #{pr_number}", PRError):
                for commit_status in status_response.json().get("statuses", []):
                    status, conclusion = _COMMIT_STATUS_MAP.get(
                        commit_status.get("state", "pending"), (CheckStatus.QUEUED, None)
                    )
                    checks.append(
                        CICheck(
                            name=commit_status.get("context") or "unknown",
                            status=status,
                            conclusion=conclusion,
                            url=commit_status.get("target_url"),
                        )
                    )
        else:
            logger.warning(
                "Could not read commit statuses for PR #%d: %s",
                pr_number,
                status_response.status_code,
            )

        logger.debug("PR #%d has %d check(s)", pr_number, len(checks))
        return checks

    def _list_check_runs(self, head_sha: str) -> list[dict[str, Any]]:
        """Read every page of check runs for a commit.

        Raises:
            PRError: If a page cannot be fetched
        """
        runs: list[dict[str, Any]] = []
        for page in range(1, MAX_CHECK_RUN_PAGES + 1):
            response = self._request(
                "GET",
                f"/repos/{self.repo}/commits/{head_sha}/check-runs",
                params={"per_page": CHECK_RUNS_PAGE_SIZE, "page": page},
            )
            if response.status_code != 200:
                raise PRError(
                    f"Failed to get check runs: {response.status_code} - {response.text}"
                )
            with _parsing(f"check runs of {head_sha}", PRError):
                body = response.json()
                batch = list(body.get("check_runs", []))
                runs.extend(batch)
                total = int(body.get("total_count", len(runs)))
            if len(batch) < CHECK_RUNS_PAGE_SIZE or len(runs) >= total:
                return runs

        logger.warning(
            "Commit %s has more than %d check runs; reading only the first %d",
            head_sha,
            MAX_CHECK_RUN_PAGES * CHECK_RUNS_PAGE_SIZE,
            len(runs),
        )
        return runs

    def merge_pr(
        self,
        pr_number: int,
        method: MergeMethod | str = MergeMethod.SQUASH,
        delete_branch: bool = True,
    ) -> None:
        """Merge a pull request.

        Branch deletion happens after the merge and is best effort: a failure
        is logged and does not undo or hide the merge.

        Args:
            pr_number: The PR number to merge
            method: Merge method (merge, squash, rebase)
            delete_branch: Delete the head branch after merging

        Raises:
            MergeError: If merge fails
        """
        head_ref = self._get_pr_head(pr_number)[1] if delete_branch else None

        logger.info("Merging PR #%d with %s", pr_number, method)
        response = self._request(
            "PUT",
            f"/repos/{self.repo}/pulls/{pr_number}/merge",
            json={"merge_method": str(method)},
        )
        if response.status_code != 200:
            logger.error(
                "Failed to merge PR #%d: %s", pr_number, truncate_output(response.text, 500)
            )
            raise MergeError(
                f"Failed to merge PR {pr_number}: {response.status_code} - {response.text}"
            )
        logger.info("Merged PR #%d", pr_number)

        if head_ref:
            try:
                self.delete_branch(head_ref)
            except GitHubError as e:
                logger.warning("PR #%d merged but branch %s was kept: %s", pr_number, head_ref, e)

    def delete_branch(self, branch: str) -> None:
        """Delete a remote branch.

        Raises:
            GitHubError: If deletion fails
        """
        logger.info("Deleting remote branch %s", branch)
        response = self._request("DELETE", f"/repos/{self.repo}/git/refs/heads/{branch}")

        # 204 = success, 422 = branch already deleted
        if response.status_code not in (204, 422):
            logger.error("Failed to delete branch %s: %s", branch, response.text)
            raise GitHubError(
                f"Failed to delete branch '{branch}': {response.status_code} - {response.text}"
            )

    def enable_auto_merge(
        self,
        pr_number: int,
        method: MergeMethod | str = MergeMethod.SQUASH,
        delete_branch: bool = True,
    ) -> None:
        """Enable native auto-merge so the PR merges once its checks pass.

        GitHub has no per-PR branch deletion for auto-merge; the head branch
        is deleted only if the repository's "automatically delete head
        branches" setting is on. When ``delete_branch`` is requested and the
        setting is off, a warning is logged and the branch will be kept.

        Raises:
            MergeError: If auto-merge cannot be enabled
        """
        metadata = self.get_pr_metadata(pr_number)
        if not metadata.node_id:
            raise MergeError(f"PR #{pr_number} has no node id")
        if delete_branch and metadata.delete_branch_on_merge is False:
            logger.warning(
                "Repository %s does not delete head branches on merge; "
                "PR #%d's branch will be kept after auto-merge",
                self.repo,
                pr_number,
            )

        mutation = """
        mutation($pullRequestId: ID!, $mergeMethod: PullRequestMergeMethod!) {
            enablePullRequestAutoMerge(
                input: { pullRequestId: $pullRequestId, mergeMethod: $mergeMethod }
            ) {
                pullRequest {
                    number
                }
            }
        }
        """
        logger.info("Enabling auto-merge on PR #%d (%s)", pr_number, method)
        try:
            self._graphql(
                mutation,
                {"pullRequestId": metadata.node_id, "mergeMethod": str(method).upper()},
            )
        except GitHubError as e:
            raise MergeError(f"Failed to enable auto-merge on PR {pr_number}: {e}") from e

    def is_auto_merge_allowed(self) -> bool:
        """Whether the repository allows auto-merge.

        Raises:
            GitHubError: If repository settings cannot be read
        """
        response = self._request("GET", f"/repos/{self.repo}")
        if response.status_code != 200:
            raise GitHubError(
                f"Failed to get repository {self.repo}: {response.status_code} - {response.text}"
            )
        with _parsing(f"repository {self.repo}"):
            return response.json().get("allow_auto_merge") is True

    # --- Issues and labels ---

    def add_labels(self, number: int, labels: list[str]) -> None:
        """Add labels to an issue or pull request.

        Raises:
            IssueError: If labeling fails
        """
        logger.info("Adding labels %s to #%d", labels, number)
        response = self._request(
            "POST",
            f"/repos/{self.repo}/issues/{number}/labels",
            json={"labels": labels},
        )
        if response.status_code != 200:
            raise IssueError(
                f"Failed to add labels to #{number}: {response.status_code} - {response.text}"
            )

    def get_issue(self, issue_number: int) -> Issue:
        """Get an issue.

        Raises:
            IssueError: If the issue cannot be fetched
        """
        response = self._request("GET", f"/repos/{self.repo}/issues/{issue_number}")
        if response.status_code != 200:
            raise IssueError(
                f"Failed to get issue #{issue_number}: {response.status_code} - {response.text}"
            )
        with _parsing(f"issue #{issue_number}", IssueError):
            return _issue_from_json(response.json())

    def update_issue(
        self,
        issue_number: int,
        body: str | None = None,
        labels: list[str] | None = None,
    ) -> None:
        """Update an issue body and/or add labels.

        Raises:
            IssueError: If the update fails
        """
        if body is not None:
            response = self._request(
                "PATCH",
                f"/repos/{self.repo}/issues/{issue_number}",
                json={"body": body},
            )
            if response.status_code != 200:
                raise IssueError(
                    f"Failed to update issue #{issue_number}: "
                    f"{response.status_code} - {response.text}"
                )
        if labels:
            self.add_labels(issue_number, labels)

    def list_open_issues(self, labels: list[str] | None = None, limit: int = 100) -> list[Issue]:
        """List open issues, optionally filtered by labels.

        Raises:
            IssueError: If listing fails
        """
        params: dict[str, Any] = {"state": "open", "per_page": limit}
        if labels:
            params["labels"] = ",".join(labels)

        response = self._request("GET", f"/repos/{self.repo}/issues", params=params)
        if response.status_code != 200:
            raise IssueError(f"Failed to list issues: {response.status_code} - {response.text}")

        with _parsing("open issues", IssueError):
            # The issues endpoint also returns pull requests
            return [
                _issue_from_json(item) for item in response.json() if "pull_request" not in item
            ]


def _issue_from_json(data: dict[str, Any]) -> Issue:
    return Issue(
        number=int(data["number"]),
        title=data.get("title") or "",
        body=data.get("body") or "",
        labels=[label["name"] for label in data.get("labels", [])],
    )
