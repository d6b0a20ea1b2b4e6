"""AutoMergeEngine - Applies the configured PR strategy once the gate is evaluated."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG, PRStrategy
from workflow_pilot.gating import GateResult
from workflow_pilot.github import GitHubError
from workflow_pilot.merge.models import (
    DRY_RUN_PREFIX,
    AutoMergeOptions,
    AutoMergeResult,
    MergeAction,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from workflow_pilot.config import AutopilotConfig
    from workflow_pilot.gating import CIGateChecker, PRStatus
    from workflow_pilot.github import GitHubClient

logger = logging.getLogger("workflow_pilot.merge")


class AutoMergeEngine:
    """Decides and performs the next action for a worker's pull request.

    Strategies:
    - manual: never acts.
    - review: labels the PR for human review once CI passes.
    - auto: merges once the PR is ready, or enables the provider's native
      auto-merge while CI is still pending.

    Provider failures are reported in the result, never raised.
    """

    def __init__(
        self,
        client: GitHubClient,
        checker: CIGateChecker,
        config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG,
    ) -> None:
        """Initialize the engine.

        Args:
            client: Provider client for merging and labeling.
            checker: Gate checker used for status and merge readiness.
            config: Autopilot config holding the strategy and labels.
        """
        self.client = client
        self.checker = checker
        self.config = config

    def process(
        self, pr_number: int, options: AutoMergeOptions | None = None
    ) -> AutoMergeResult:
        """Process a PR according to the configured strategy.

        Args:
            pr_number: The PR number.
            options: Merge method, branch deletion and dry-run flag.

        Returns:
            AutoMergeResult describing the action taken.
        """
        options = options or AutoMergeOptions()
        strategy = self.config.pr_strategy
        status = self.checker.check_status(pr_number)
        logger.info(
            "Processing PR #%d with %s strategy (gate=%s, dry_run=%s)",
            pr_number,
            strategy,
            status.result.value,
            options.dry_run,
        )

        match strategy:
            case PRStrategy.AUTO:
                result = self._handle_auto(pr_number, status, options)
            case PRStrategy.REVIEW:
                result = self._handle_review(pr_number, status, options)
            case PRStrategy.MANUAL:
                result = AutoMergeResult(
                    success=True,
                    action=MergeAction.SKIPPED,
                    message="Manual strategy - no automatic action taken",
                    pr_number=pr_number,
                    strategy=strategy,
                    status=status,
                )
            case _:
                result = AutoMergeResult(
                    success=False,
                    action=MergeAction.FAILED,
                    message=f"Unknown strategy: {strategy}",
                    pr_number=pr_number,
                    strategy=str(strategy),
                    status=status,
                    error=f"Invalid pr_strategy: {strategy}",
                )

        logger.info("PR #%d: %s - %s", pr_number, result.action.value, result.message)
        return result

    def process_multiple(
        self, pr_numbers: Iterable[int], options: AutoMergeOptions | None = None
    ) -> dict[int, AutoMergeResult]:
        """Process several PRs strictly one after another.

        Sequential processing keeps request bursts against the provider low.
        A failure on one PR is recorded for that PR and does not stop the rest.
        """
        results: dict[int, AutoMergeResult] = {}
        for pr_number in pr_numbers:
            try:
                results[pr_number] = self.process(pr_number, options)
            except Exception as e:
                logger.exception("Error processing PR #%d: %s", pr_number, e)
                results[pr_number] = AutoMergeResult(
                    success=False,
                    action=MergeAction.FAILED,
                    message=f"Processing error: {e}",
                    pr_number=pr_number,
                    strategy=str(self.config.pr_strategy),
                    error=str(e),
                )
        return results

    def is_auto_merge_supported(self) -> bool:
        """Whether the repository allows native auto-merge.

        Assumes support when the setting cannot be read.
        """
        try:
            return self.client.is_auto_merge_allowed()
        except GitHubError as e:
            logger.warning("Could not read auto-merge setting: %s", e)
            return True

    def _handle_auto(
        self, pr_number: int, status: PRStatus, options: AutoMergeOptions
    ) -> AutoMergeResult:
        """Merge when ready, enable auto-merge while pending, fail otherwise."""
        readiness = self.checker.is_ready_to_merge(pr_number)

        if not readiness.ready:
            if status.result == GateResult.PENDING:
                return self._enable_auto_merge(pr_number, status, options)
            return AutoMergeResult(
                success=False,
                action=MergeAction.FAILED,
                message=readiness.reason,
                pr_number=pr_number,
                strategy=PRStrategy.AUTO,
                status=status,
                error=readiness.reason,
            )

        if options.dry_run:
            return AutoMergeResult(
                success=True,
                action=MergeAction.MERGED,
                message=f"{DRY_RUN_PREFIX} Would merge PR #{pr_number}",
                pr_number=pr_number,
                strategy=PRStrategy.AUTO,
                status=status,
            )

        try:
            self.client.merge_pr(
                pr_number,
                method=options.merge_method,
                delete_branch=options.delete_branch,
            )
        except GitHubError as e:
            return AutoMergeResult(
                success=False,
                action=MergeAction.FAILED,
                message=f"Failed to merge: {e}",
                pr_number=pr_number,
                strategy=PRStrategy.AUTO,
                status=status,
                error=str(e),
            )

        return AutoMergeResult(
            success=True,
            action=MergeAction.MERGED,
            message=f"Successfully merged PR #{pr_number}",
            pr_number=pr_number,
            strategy=PRStrategy.AUTO,
            status=status,
        )

    def _enable_auto_merge(
        self, pr_number: int, status: PRStatus, options: AutoMergeOptions
    ) -> AutoMergeResult:
        waiting = ", ".join([*status.pending_checks, *status.missing_checks])

        if options.dry_run:
            return AutoMergeResult(
                success=True,
                action=MergeAction.PENDING,
                message=(
                    f"{DRY_RUN_PREFIX} Would enable auto-merge on PR #{pr_number}"
                    f" - CI pending: {waiting}"
                ),
                pr_number=pr_number,
                strategy=PRStrategy.AUTO,
                status=status,
            )

        try:
            self.client.enable_auto_merge(
                pr_number,
                method=options.merge_method,
                delete_branch=options.delete_branch,
            )
        except GitHubError as e:
            logger.warning("Could not enable auto-merge on PR #%d: %s", pr_number, e)
            return AutoMergeResult(
                success=True,
                action=MergeAction.PENDING,
                message=f"CI pending: {waiting} (auto-merge not enabled)",
                pr_number=pr_number,
                strategy=PRStrategy.AUTO,
                status=status,
                error=str(e),
            )

        return AutoMergeResult(
            success=True,
            action=MergeAction.PENDING,
            message="Auto-merge enabled - will merge when CI passes",
            pr_number=pr_number,
            strategy=PRStrategy.AUTO,
            status=status,
        )

    def _handle_review(
        self, pr_number: int, status: PRStatus, options: AutoMergeOptions
    ) -> AutoMergeResult:
        """Label the PR for review once CI passes."""
        review_label = self.config.review_label

        if status.result == GateResult.PENDING:
            waiting = ", ".join([*status.pending_checks, *status.missing_checks])
            return AutoMergeResult(
                success=True,
                action=MergeAction.PENDING,
                message=f"CI pending: {waiting}",
                pr_number=pr_number,
                strategy=PRStrategy.REVIEW,
                status=status,
            )

        if status.result == GateResult.FAIL:
            return AutoMergeResult(
                success=False,
                action=MergeAction.FAILED,
                message=f"CI failed: {', '.join(status.failed_checks)}",
                pr_number=pr_number,
                strategy=PRStrategy.REVIEW,
                status=status,
                error="CI checks failed",
            )

        if options.dry_run:
            return AutoMergeResult(
                success=True,
                action=MergeAction.LABELED,
                message=f"{DRY_RUN_PREFIX} Would add '{review_label}' label to PR #{pr_number}",
                pr_number=pr_number,
                strategy=PRStrategy.REVIEW,
                status=status,
            )

        try:
            self.client.add_labels(pr_number, [review_label])
        except GitHubError as e:
            return AutoMergeResult(
                success=False,
                action=MergeAction.FAILED,
                message=f"Failed to add label: {e}",
                pr_number=pr_number,
                strategy=PRStrategy.REVIEW,
                status=status,
                error=str(e),
            )

        return AutoMergeResult(
            success=True,
            action=MergeAction.LABELED,
            message=f"Added '{review_label}' label to PR #{pr_number}",
            pr_number=pr_number,
            strategy=PRStrategy.REVIEW,
            status=status,
        )


def summarize_results(results: dict[int, AutoMergeResult]) -> str:
    """One line per action listing the PRs it applied to."""
    labels = {
        MergeAction.MERGED: "Merged",
        MergeAction.LABELED: "Labeled",
        MergeAction.PENDING: "Pending",
        MergeAction.FAILED: "Failed",
        MergeAction.SKIPPED: "Skipped",
    }
    lines = []
    for action, label in labels.items():
        numbers = [f"#{n}" for n, result in results.items() if result.action == action]
        if numbers:
            lines.append(f"{label}: {', '.join(numbers)}")
    return "\n".join(lines) or "No PRs processed"
