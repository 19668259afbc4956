"""Confidence scoring for a planning topic (0-100).

    score = 10
          + round(intake_pct * 45)
          + 10 if a decision is selected
          + round(evidence_pct * 35)

Each weighted term is rounded on its own (halves round up) before the
sum is clamped.
"""

from __future__ import annotations

import math
from typing import Iterable

from btbb.models.catalog import EvidenceItem, EvidenceStatus
from btbb.models.intake import Intake, INTAKE_FIELD_KINDS, is_filled

BASE_SCORE = 10
INTAKE_WEIGHT = 45
DECISION_BONUS = 10
EVIDENCE_WEIGHT = 35


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def intake_completeness(intake: Intake) -> float:
    """Share of the tracked intake fields that count as filled."""
    names = list(INTAKE_FIELD_KINDS)
    filled = sum(1 for name in names if is_filled(intake, name))
    return filled / len(names)


def evidence_complete_pct(evidence: Iterable[EvidenceItem]) -> float:
    """Completed required items over required items; 0.0 when none are required."""
    required = [e for e in evidence if e.required]
    if not required:
        return 0.0
    done = sum(1 for e in required if e.status == EvidenceStatus.COMPLETE)
    return done / len(required)


def calc_confidence(intake: Intake, has_decision: bool, evidence_complete_pct: float) -> int:
    pct = evidence_complete_pct
    if pct is None or not math.isfinite(pct):
        pct = 0.0

    score = BASE_SCORE
    score += _round_half_up(intake_completeness(intake) * INTAKE_WEIGHT)
    score += DECISION_BONUS if has_decision else 0
    score += _round_half_up(pct * EVIDENCE_WEIGHT)

    return max(0, min(100, score))
