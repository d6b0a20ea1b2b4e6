"""Merge - Strategy-driven promotion of worker pull requests."""

from workflow_pilot.merge.engine import AutoMergeEngine, summarize_results
from workflow_pilot.merge.models import (
    DRY_RUN_PREFIX,
    AutoMergeOptions,
    AutoMergeResult,
    MergeAction,
)

__all__ = [
    "DRY_RUN_PREFIX",
    "AutoMergeEngine",
    "AutoMergeOptions",
    "AutoMergeResult",
    "MergeAction",
    "summarize_results",
]
