"""CIGateChecker - Reduces a pull request's CI checks to pass, fail or pending."""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import TYPE_CHECKING

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG
from workflow_pilot.gating.matching import matches_check_name
from workflow_pilot.gating.models import (
    FAILING_CONCLUSIONS,
    PASSING_CONCLUSIONS,
    GateResult,
    PRStatus,
    ReadyCheck,
)
from workflow_pilot.github import CheckStatus, GitHubError, PRMetadata

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from workflow_pilot.config import AutopilotConfig
    from workflow_pilot.github import CICheck, GitHubClient

logger = logging.getLogger("workflow_pilot.gating")


def classify_check(check: CICheck) -> GateResult:
    """Classify a single check as passed, failed or pending."""
    if check.conclusion in PASSING_CONCLUSIONS:
        return GateResult.PASS
    if check.conclusion in FAILING_CONCLUSIONS:
        return GateResult.FAIL
    if check.status != CheckStatus.COMPLETED or check.conclusion is None:
        return GateResult.PENDING
    # Completed with a conclusion outside the known sets (e.g. "stale")
    return GateResult.FAIL


def reduce_checks(
    checks: Iterable[CICheck],
    required_checks: Iterable[str],
    draft: bool = False,
) -> tuple[GateResult, list[str]]:
    """Reduce observed checks to a gate verdict.

    Args:
        checks: Observed checks.
        required_checks: Required check names, matched with matches_check_name.
        draft: Drafts are never gate-passable.

    Returns:
        Tuple of (verdict, required names that matched no observed check).
    """
    checks = list(checks)
    required = list(required_checks)
    missing = [
        name for name in required if not any(matches_check_name(c.name, name) for c in checks)
    ]

    if draft:
        return GateResult.PENDING, missing
    if not required:
        return GateResult.PASS, missing

    verdicts = set()
    for name in required:
        matching = [classify_check(c) for c in checks if matches_check_name(c.name, name)]
        if not matching:
            # Absent is ambiguous: the check may not have started yet
            verdicts.add(GateResult.PENDING)
        else:
            verdicts.update(matching)

    if GateResult.FAIL in verdicts:
        return GateResult.FAIL, missing
    if GateResult.PENDING in verdicts:
        return GateResult.PENDING, missing
    return GateResult.PASS, missing


def evaluate_merge_readiness(status: PRStatus) -> ReadyCheck:
    """Decide whether a PR can be merged, from a gate snapshot.

    Considers open state, draft flag, gate verdict, review decision and
    mergeability, in that order.
    """
    if status.state != "open":
        return ReadyCheck(ready=False, reason=f"PR is {status.state}", status=status)

    if status.draft:
        return ReadyCheck(ready=False, reason="PR is still a draft", status=status)

    if status.result == GateResult.FAIL:
        return ReadyCheck(
            ready=False,
            reason=f"CI checks failed: {', '.join(status.failed_checks)}",
            status=status,
        )

    if status.result == GateResult.PENDING:
        waiting = [*status.pending_checks, *status.missing_checks]
        return ReadyCheck(
            ready=False,
            reason=f"CI checks pending: {', '.join(waiting)}",
            status=status,
        )

    if status.review_decision == "CHANGES_REQUESTED":
        return ReadyCheck(
            ready=False, reason="Changes have been requested in review", status=status
        )

    if status.mergeable is False:
        return ReadyCheck(ready=False, reason="PR has merge conflicts", status=status)

    return ReadyCheck(ready=True, reason="All checks pass and PR is mergeable", status=status)


def generate_status_summary(
    result: GateResult,
    passed: int,
    failed: int,
    pending: int,
    draft: bool = False,
    review_decision: str | None = None,
) -> str:
    """Human-readable one-line gate summary."""
    parts = []
    if draft:
        parts.append("Draft PR")

    if result == GateResult.PASS:
        parts.append(f"All {passed} checks passed")
    elif result == GateResult.FAIL:
        parts.append(f"{failed} check(s) failed")
        if passed:
            parts.append(f"{passed} passed")
    else:
        parts.append(f"{pending} check(s) pending")
        if passed:
            parts.append(f"{passed} passed")
        if failed:
            parts.append(f"{failed} failed")

    if review_decision:
        parts.append(f"Review: {review_decision.lower().replace('_', ' ')}")

    return " | ".join(parts)


def format_check_list(status: PRStatus) -> str:
    """Multi-line listing of a PR's checks."""
    lines = [f"PR #{status.pr_number}: {status.summary}", ""]

    if not status.checks:
        lines.append("No CI checks found")
        return "\n".join(lines)

    for check in status.checks:
        marker = {
            GateResult.PASS: "[pass]",
            GateResult.FAIL: "[fail]",
            GateResult.PENDING: "[....]",
        }[classify_check(check)]
        if check.conclusion == "skipped":
            marker = "[skip]"
        lines.append(f"{marker} {check.name}")

    return "\n".join(lines)


class CIGateChecker:
    """Checks whether a pull request passes its required CI checks.

    Queries are read-only and idempotent. Provider failures never raise:
    they produce a snapshot with ``state="unknown"`` and no checks.
    """

    def __init__(
        self,
        client: GitHubClient,
        config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG,
    ) -> None:
        """Initialize the gate checker.

        Args:
            client: Provider client for PR metadata and checks.
            config: Autopilot config holding the required check names.
        """
        self.client = client
        self.config = config

    def check_status(self, pr_number: int) -> PRStatus:
        """Fetch a PR's metadata and checks and reduce them to a verdict.

        Args:
            pr_number: The PR number.

        Returns:
            PRStatus snapshot.
        """
        metadata_known = True
        try:
            metadata = self.client.get_pr_metadata(pr_number)
        except GitHubError as e:
            logger.warning("Could not fetch metadata for PR #%d: %s", pr_number, e)
            metadata = PRMetadata(state="unknown")
            metadata_known = False

        try:
            checks = self.client.get_pr_checks(pr_number)
        except GitHubError as e:
            logger.warning("Could not fetch checks for PR #%d: %s", pr_number, e)
            checks = []

        passed, failed, pending = [], [], []
        for check in checks:
            verdict = classify_check(check)
            if verdict == GateResult.PASS:
                passed.append(check.name)
            elif verdict == GateResult.FAIL:
                failed.append(check.name)
            else:
                pending.append(check.name)

        required = tuple(self.config.required_checks)
        result, missing = reduce_checks(checks, required, draft=metadata.draft)
        if not metadata_known and result == GateResult.PASS:
            # Never pass a PR whose state could not be read
            result = GateResult.PENDING

        status = PRStatus(
            pr_number=pr_number,
            result=result,
            checks=tuple(checks),
            required_checks=required,
            passed_checks=tuple(passed),
            failed_checks=tuple(failed),
            pending_checks=tuple(pending),
            missing_checks=tuple(missing),
            mergeable=metadata.mergeable,
            state=metadata.state,
            draft=metadata.draft,
            review_decision=metadata.review_decision,
            summary=generate_status_summary(
                result,
                passed=len(passed),
                failed=len(failed),
                pending=len(pending) + len(missing),
                draft=metadata.draft,
                review_decision=metadata.review_decision,
            ),
        )
        logger.info("PR #%d gate: %s (%s)", pr_number, status.result.value, status.summary)
        return status

    def is_ready_to_merge(self, pr_number: int) -> ReadyCheck:
        """Re-query a PR and decide whether it can be merged.

        This is a separate query from any earlier check_status call, so
        merge readiness reflects the PR at the moment of merging.
        """
        readiness = evaluate_merge_readiness(self.check_status(pr_number))
        logger.debug("PR #%d ready=%s: %s", pr_number, readiness.ready, readiness.reason)
        return readiness

    def check_multiple(self, pr_numbers: Iterable[int]) -> dict[int, PRStatus]:
        """Check several PRs, one after another."""
        return {pr_number: self.check_status(pr_number) for pr_number in pr_numbers}

    def wait_for_checks(
        self,
        pr_number: int,
        poll_interval: float = 30.0,
        timeout: float = 30 * 60,
        on_update: Callable[[PRStatus], None] | None = None,
    ) -> PRStatus:
        """Poll a PR until its gate is no longer pending or the timeout expires.

        Args:
            pr_number: The PR number.
            poll_interval: Seconds between polls.
            timeout: Seconds before giving up.
            on_update: Called with every snapshot.

        Returns:
            The last snapshot. On timeout its result stays PENDING.
        """
        started = time.monotonic()
        polls = 0
        while True:
            status = self.check_status(pr_number)
            polls += 1
            if on_update is not None:
                on_update(status)

            if status.result != GateResult.PENDING:
                return status

            if time.monotonic() - started >= timeout:
                logger.warning("Timed out waiting for PR #%d after %d poll(s)", pr_number, polls)
                return dataclasses.replace(
                    status,
                    summary=(
                        f"Timed out waiting for CI checks after {round(timeout / 60)} minutes"
                    ),
                )

            logger.debug("PR #%d pending, waiting %ss before next poll", pr_number, poll_interval)
            time.sleep(poll_interval)
