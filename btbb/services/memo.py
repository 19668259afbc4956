"""Tax position memo: markdown summary of one decision topic.

The memo is plain text for download; it is not a filing and makes no claim
about tax-law correctness.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from btbb.models.catalog import DecisionTopic, EvidenceItem, EvidenceStatus
from btbb.models.intake import Intake

DEFAULT_ASSUMPTIONS = [
    "Books are reasonably complete for the period covered by this memo.",
    "This memo reflects current facts; changes in workers, states, inventory, "
    "or entity status can change the answer.",
]

DEFAULT_RISKS = [
    ("Missing documentation can weaken the position.",
     "Complete the Proof Pack and keep the review cadence."),
]

DEFAULT_CPA_QUESTIONS = [
    "Are there any fact patterns here that change the recommended treatment?",
    "What documentation would you want to see to be comfortable signing a return?",
    "What deadlines should be added to the calendar for this topic?",
]


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def intake_facts(intake: Intake) -> list[str]:
    return [
        f"Entity: {intake.entity_legal_form or '(blank)'} / "
        f"{intake.entity_tax_classification or '(blank)'}",
        f"States: {', '.join(intake.state_codes) or '(blank)'}",
        f"Industry: {intake.industry or '(blank)'}",
        f"Revenue range: {intake.revenue_range or '(blank)'}",
        f"Payroll headcount (W-2): {intake.payroll_w2_bracket or '(blank)'}",
        f"Inventory: {_yes_no(intake.inventory)}",
        f"Multi-state: {_yes_no(intake.multi_state)}",
        f"International: {_yes_no(intake.international)}",
    ]


def build_tax_position_memo(
    topic: DecisionTopic,
    version: int,
    decision_value: str,
    decision_label: str,
    confidence: int,
    intake: Intake,
    evidence: Sequence[EvidenceItem],
    assumptions: Optional[Sequence[str]] = None,
    risks: Optional[Sequence[tuple[str, str]]] = None,
    cpa_questions: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    date_str = now.strftime("%Y-%m-%d")
    assumptions = list(assumptions) if assumptions else DEFAULT_ASSUMPTIONS
    risks = list(risks) if risks else DEFAULT_RISKS
    cpa_questions = list(cpa_questions) if cpa_questions else DEFAULT_CPA_QUESTIONS

    complete = [e for e in evidence if e.status == EvidenceStatus.COMPLETE]
    missing = [e for e in evidence if e.status != EvidenceStatus.COMPLETE]

    lines: list[str] = []
    lines.append(f"# Tax Position Memo: {topic.title}")
    lines.append(f"Date: {date_str} {now.strftime('%H:%M')} UTC")
    lines.append(f"Version: v{version}")
    lines.append("")

    lines.append("## Facts (from intake)")
    lines.extend(f"- {fact}" for fact in intake_facts(intake))
    lines.append("")

    lines.append("## Assumptions (explicit)")
    lines.extend(f"- {a}" for a in assumptions)
    lines.append("")

    lines.append("## Decision selected + date")
    lines.append(f"- Decision: {decision_label} ({decision_value or 'n/a'})")
    lines.append(f"- Confidence: {confidence}/100")
    lines.append(f"- Date decided: {date_str}")
    lines.append("")

    lines.append("## Rationale")
    lines.append(topic.rationale or "(blank)")
    if topic.tradeoffs:
        lines.append("")
        lines.append("### Tradeoffs")
        lines.extend(f"- {t}" for t in topic.tradeoffs)
    lines.append("")

    lines.append("## If asked, say this (audit narrative draft)")
    lines.append(topic.audit_narrative or "(blank)")
    lines.append("")

    lines.append("## Risks and mitigations")
    for risk, mitigation in risks:
        lines.append(f"- Risk: {risk}")
        lines.append(f"  - Mitigation: {mitigation}")
    lines.append("")

    lines.append("## Documents attached / missing")
    lines.append("### Attached / complete")
    if not complete:
        lines.append("- (none yet)")
    lines.extend(f"- {e.title}" for e in complete)
    lines.append("")
    lines.append("### Missing / incomplete")
    if not missing:
        lines.append("- (none)")
    for e in missing:
        lines.append(f"- {e.title}")
        lines.append(f"  - Done definition: {e.done_definition}")
        lines.append(f"  - Review cadence: {e.review_cadence}")
    lines.append("")

    lines.append("## CPA questions (copy/paste)")
    lines.extend(f"{i}. {q}" for i, q in enumerate(cpa_questions, start=1))
    lines.append("")

    return "\n".join(lines)
