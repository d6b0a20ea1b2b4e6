"""Workers - Admission of ready features to external workers."""

from workflow_pilot.workers.labeler import (
    WORKER_CONTEXT_HEADER,
    WorkerLabeler,
    check_eligibility,
    format_worker_context_markdown,
    generate_worker_context,
)
from workflow_pilot.workers.models import (
    DispatchError,
    LabelEligibility,
    LabelingResult,
    SkippedFeature,
    WorkerCapacity,
    WorkerContext,
)

__all__ = [
    "WORKER_CONTEXT_HEADER",
    "DispatchError",
    "LabelEligibility",
    "LabelingResult",
    "SkippedFeature",
    "WorkerCapacity",
    "WorkerContext",
    "WorkerLabeler",
    "check_eligibility",
    "format_worker_context_markdown",
    "generate_worker_context",
]
