"""
===============================================================================
CRC CARD — domain/scoring.py
===============================================================================

Module:
    Severity weights and the compliance score formula.

Responsibilities:
    - Map a severity to its impact score (frozen onto each Violation).
    - Compute the 0–100 score from open violations and access volume.

Collaborators:
    - application.compliance.engine: impact_score_for() at detection time.
    - application.compliance.scorer: calculate_compliance_score().

Notes:
    - Pure functions; the score is always re-derived, never patched.
===============================================================================
"""

from __future__ import annotations

from typing import Final, Iterable, Mapping

from .entities import Severity, Violation

MAX_SCORE: Final[float] = 100.0

SEVERITY_WEIGHTS: Final[Mapping[Severity, float]] = {
    Severity.CRITICAL: 20.0,
    Severity.HIGH: 10.0,
    Severity.MEDIUM: 5.0,
    Severity.LOW: 2.0,
}


def impact_score_for(severity: Severity) -> float:
    """Penalty a violation of this severity carries."""
    return SEVERITY_WEIGHTS.get(severity, 0.0)


def calculate_compliance_score(
    open_violations: Iterable[Violation], total_accesses: int
) -> float:
    """
    100 minus the frozen impact of every open violation, floored at 0.

    An organization with no recorded accesses scores 100.
    """
    if total_accesses <= 0:
        return MAX_SCORE

    penalty = sum(v.impact_score for v in open_violations)
    return round(max(0.0, MAX_SCORE - penalty), 2)
