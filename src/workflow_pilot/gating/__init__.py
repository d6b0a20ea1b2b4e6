"""Gating - Reduces CI checks on a pull request to a pass/fail/pending verdict."""

from workflow_pilot.gating.checker import (
    CIGateChecker,
    classify_check,
    evaluate_merge_readiness,
    format_check_list,
    reduce_checks,
)
from workflow_pilot.gating.matching import matches_check_name
from workflow_pilot.gating.models import GateResult, PRStatus, ReadyCheck

__all__ = [
    "CIGateChecker",
    "GateResult",
    "PRStatus",
    "ReadyCheck",
    "classify_check",
    "evaluate_merge_readiness",
    "format_check_list",
    "matches_check_name",
    "reduce_checks",
]
