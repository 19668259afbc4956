"""Decision topic workspace: best fit, proof pack progress, confidence."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from btbb.engine.confidence import calc_confidence, evidence_complete_pct
from btbb.engine.rules import guess_best_fit
from btbb.models.catalog import DecisionTopic, EvidenceItem, EvidenceStatus
from btbb.models.intake import Intake


def merge_evidence(topic: DecisionTopic, statuses: dict[str, str]) -> list[EvidenceItem]:
    """Topic evidence templates with the user's stored statuses applied.

    Unknown or missing statuses read as ``missing``.
    """
    merged = []
    for item in topic.evidence:
        status = statuses.get(item.evidence_key, EvidenceStatus.MISSING)
        if status not in EvidenceStatus.ALL:
            status = EvidenceStatus.MISSING
        merged.append(replace(item, status=status))
    return merged


def build_workspace(
    topic: DecisionTopic,
    intake: Intake,
    decision: str,
    statuses: dict[str, str],
) -> dict[str, Any]:
    evidence = merge_evidence(topic, statuses)
    pct = evidence_complete_pct(evidence)
    return {
        "key": topic.key,
        "title": topic.title,
        "decision_question": topic.decision_question,
        "options": [
            {"value": o.value, "label": o.label, "help": o.help} for o in topic.options
        ],
        "best_fit": guess_best_fit(intake, topic.suggestions),
        "decision": decision,
        "decision_label": topic.option_label(decision),
        "evidence": [e.to_dict() for e in evidence],
        "evidence_complete_pct": pct,
        "confidence": calc_confidence(intake, bool(decision), pct),
    }
