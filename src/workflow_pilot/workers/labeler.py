"""WorkerLabeler - Admits ready features to external workers by labeling their issues."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG, generate_worker_branch
from workflow_pilot.features import FeatureStatus, effective_status
from workflow_pilot.features.models import utc_now_iso
from workflow_pilot.github import GitHubError
from workflow_pilot.workers.models import (
    DispatchError,
    LabelEligibility,
    LabelingResult,
    SkippedFeature,
    WorkerCapacity,
    WorkerContext,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from workflow_pilot.config import AutopilotConfig
    from workflow_pilot.features import Feature, FeatureList
    from workflow_pilot.github import GitHubClient

logger = logging.getLogger("workflow_pilot.workers")

WORKER_CONTEXT_HEADER = "## Worker Context"

_ADMISSIBLE_STATUSES = (FeatureStatus.READY, FeatureStatus.PLANNED)


def check_eligibility(feature: Feature, all_features: Sequence[Feature]) -> LabelEligibility:
    """Decide whether a feature may be handed to a worker.

    Checks run in order and the first failure wins: linked issue, not
    blocking, dependencies met, not already started.

    Args:
        feature: The candidate feature.
        all_features: Every feature in the list, for dependency resolution.

    Returns:
        LabelEligibility with the reason.
    """

    def ineligible(reason: str) -> LabelEligibility:
        return LabelEligibility(
            eligible=False,
            reason=reason,
            feature_id=feature.id,
            issue_number=feature.github_issue,
        )

    if not feature.github_issue:
        return ineligible("Feature has no linked GitHub issue")

    if feature.blocking:
        return ineligible("Blocking features require human orchestration")

    status = effective_status(feature, all_features)
    if status == FeatureStatus.BLOCKED:
        return ineligible("Feature has unsatisfied dependencies")

    if status not in _ADMISSIBLE_STATUSES:
        return ineligible(f"Feature is already {status}")

    return LabelEligibility(
        eligible=True,
        reason="Feature is eligible for worker processing",
        feature_id=feature.id,
        issue_number=feature.github_issue,
    )


def generate_worker_context(
    feature: Feature, config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG
) -> WorkerContext:
    """Build the instructions a worker receives for a feature."""
    return WorkerContext(
        feature_id=feature.id,
        feature_name=feature.name,
        description=feature.description,
        acceptance_criteria=[c.description for c in feature.acceptance_criteria],
        depends_on=list(feature.depends_on),
        scope=(
            f"This worker is scoped to feature {feature.id} only. "
            "Do not modify unrelated files."
        ),
        branch_name=generate_worker_branch(feature.id, config.branch_pattern),
        issue_number=feature.github_issue or 0,
    )


def format_worker_context_markdown(context: WorkerContext) -> str:
    """Render a worker context as the markdown section appended to the issue."""
    lines = [
        "---",
        WORKER_CONTEXT_HEADER,
        "",
        "> This issue is labeled for parallel worker processing.",
        "",
        "### Scope",
        context.scope,
        "",
        "### Branch",
        f"Create branch: `{context.branch_name}`",
        "",
        "### Acceptance Criteria",
        *(f"- [ ] {criterion}" for criterion in context.acceptance_criteria),
        "",
    ]

    if context.depends_on:
        lines.append("### Dependencies")
        lines.append("These features must be complete before this one:")
        lines.extend(f"- `{dep}`" for dep in context.depends_on)
        lines.append("")

    if context.related_files:
        lines.append("### Related Files")
        lines.append("Consider these files when implementing:")
        lines.extend(f"- `{path}`" for path in context.related_files)
        lines.append("")

    lines.extend(
        [
            "### Worker Instructions",
            "1. Create the branch specified above",
            "2. Implement the feature according to acceptance criteria",
            "3. Write tests for new functionality",
            f"4. Create a PR with `Fixes #{context.issue_number}` in the description",
            "",
        ]
    )
    return "\n".join(lines)


class WorkerLabeler:
    """Dispatches eligible features to workers, bounded by the worker limit.

    Dispatching a feature means labeling its issue with the worker label and
    appending the worker context to the issue body. Provider failures are
    collected in the result and never raised.
    """

    def __init__(
        self,
        client: GitHubClient,
        config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG,
    ) -> None:
        """Initialize the labeler.

        Args:
            client: Provider client for issues and labels.
            config: Autopilot config holding the limit and labels.
        """
        self.client = client
        self.config = config

    def dispatch_worker(self, feature: Feature, context: WorkerContext) -> None:
        """Label a feature's issue for a worker.

        An issue that already carries the worker label is left untouched.
        The context section is appended at most once.

        Raises:
            GitHubError: If the issue cannot be read or updated
        """
        issue_number = context.issue_number
        issue = self.client.get_issue(issue_number)
        if self.config.worker_label in issue.labels:
            logger.info("Issue #%d already labeled for a worker", issue_number)
            return

        body = issue.body
        if WORKER_CONTEXT_HEADER not in body:
            markdown = format_worker_context_markdown(context)
            body = f"{body}\n\n{markdown}" if body else markdown

        self.client.update_issue(issue_number, body=body, labels=[self.config.worker_label])
        logger.info("Dispatched feature %s to worker via issue #%d", feature.id, issue_number)

    def label_eligible_features(
        self,
        feature_list: FeatureList,
        *,
        max_to_label: int | None = None,
        dry_run: bool = False,
    ) -> LabelingResult:
        """Run one admission pass over the feature list.

        Features are considered in list order. Once the cap is reached every
        remaining feature is skipped. A failed dispatch does not use a slot.

        Args:
            feature_list: The backlog. Dispatched features are updated in place.
            max_to_label: Optional lower cap for this pass.
            dry_run: Decide without calling the provider or changing features.

        Returns:
            LabelingResult with labeled, skipped and errored features.
        """
        cap = self.config.max_concurrent_workers
        if max_to_label is not None:
            cap = min(cap, max_to_label)

        result = LabelingResult()
        for feature in feature_list.features:
            if len(result.labeled) >= cap:
                result.skipped.append(
                    SkippedFeature(feature.id, "Max concurrent workers limit reached")
                )
                continue

            eligibility = check_eligibility(feature, feature_list.features)
            if not eligibility.eligible:
                result.skipped.append(SkippedFeature(feature.id, eligibility.reason))
                continue

            context = generate_worker_context(feature, self.config)

            if dry_run:
                logger.info("[DRY RUN] Would dispatch feature %s", feature.id)
                result.labeled.append(feature.id)
                continue

            try:
                self.dispatch_worker(feature, context)
            except GitHubError as e:
                logger.error("Failed to dispatch feature %s: %s", feature.id, e)
                result.errors.append(DispatchError(feature.id, str(e)))
                continue

            feature.status = FeatureStatus.IN_PROGRESS
            feature.github_branch = context.branch_name
            feature.started_at = utc_now_iso()
            result.labeled.append(feature.id)

        logger.info(
            "Admission pass: %d labeled, %d skipped, %d errors",
            len(result.labeled),
            len(result.skipped),
            len(result.errors),
        )
        return result

    def get_active_worker_count(self) -> int:
        """Number of open issues carrying the worker label.

        Returns 0 when the issues cannot be listed.
        """
        try:
            return len(self.client.list_open_issues(labels=[self.config.worker_label]))
        except GitHubError as e:
            logger.warning("Could not count active workers: %s", e)
            return 0

    def can_spawn_more_workers(self) -> WorkerCapacity:
        """Compare the active worker count with the configured maximum."""
        current = self.get_active_worker_count()
        maximum = self.config.max_concurrent_workers
        return WorkerCapacity(
            can_spawn=current < maximum, current_count=current, max_allowed=maximum
        )
