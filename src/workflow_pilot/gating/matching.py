"""Check-name matching for required CI checks.

Providers suffix check names with workflow and matrix details, so a
configured name ``test`` has to match an observed ``CI / test (18.x)``.

Rules:
    * comparison is case-insensitive;
    * surrounding whitespace is ignored;
    * the names match when either one contains the other;
    * an empty name never matches.
"""

from __future__ import annotations


def matches_check_name(observed: str, required: str) -> bool:
    """Check whether an observed check name satisfies a required name."""
    observed_norm = observed.strip().lower()
    required_norm = required.strip().lower()
    if not observed_norm or not required_norm:
        return False
    return required_norm in observed_norm or observed_norm in required_norm
