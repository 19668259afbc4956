"""Tag derivation: maps an intake onto namespaced classification tags.

Tags drive priority ranking, module selection, and question/action
selection. Output is unique and in insertion order.
"""

from __future__ import annotations

from typing import Any

from btbb.models.intake import Intake

BASELINE_TAGS = ("core.books", "core.cash")

# Semantic entity tag → substrings of the normalized legal form
ENTITY_MARKERS: list[tuple[str, tuple[str, ...]]] = [
    ("entity.s_corp", ("s_corp", "s corp", "s-corp")),
    ("entity.c_corp", ("c_corp", "c corp", "c-corp")),
    ("entity.partnership", ("partnership", "multi_member", "multi-member", "multi member")),
    ("entity.sole_prop", ("sole",)),
    ("entity.nonprofit", ("nonprofit", "non-profit")),
    ("entity.trust", ("trust",)),
]

# Module → tags that switch it on
MODULE_TRIGGERS: list[tuple[str, tuple[str, ...]]] = [
    ("payroll", ("payroll.yes",)),
    ("inventory", ("inventory.yes",)),
    ("multistate", ("multistate.yes", "states.multi")),
    ("international", ("international.yes",)),
    ("owner-pay", ("entity.s_corp",)),
]


def norm(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _flag_text(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else ""
    return norm(value)


def _present(value: Any) -> bool:
    text = _flag_text(value)
    return bool(text) and not text.startswith("no")


def derive_tags(intake: Intake) -> list[str]:
    tags: dict[str, None] = dict.fromkeys(BASELINE_TAGS)

    entity = norm(intake.entity_legal_form)
    if entity:
        tags[f"entity.{entity}"] = None
        for tag, markers in ENTITY_MARKERS:
            if any(m in entity for m in markers):
                tags[tag] = None

    industry = norm(intake.industry)
    if industry:
        tags[f"industry.{industry}"] = None
    revenue = norm(intake.revenue_range)
    if revenue:
        tags[f"revenue.{revenue}"] = None

    payroll = norm(intake.payroll_w2_bracket)
    has_payroll = bool(payroll) and payroll not in ("0", "none")
    tags["payroll.yes" if has_payroll else "payroll.no"] = None

    for prefix, value in (
        ("inventory", intake.inventory),
        ("multistate", intake.multi_state),
        ("international", intake.international),
    ):
        tags[f"{prefix}.yes" if _present(value) else f"{prefix}.no"] = None

    codes = [norm(c) for c in intake.state_codes or []]
    if len(codes) > 1:
        tags["states.multi"] = None
    elif len(codes) == 1 and codes[0]:
        tags[f"states.{codes[0]}"] = None

    return list(tags)


def build_modules(tags: list[str]) -> list[str]:
    present = set(tags)
    modules = ["core"]
    for module, triggers in MODULE_TRIGGERS:
        if any(t in present for t in triggers):
            modules.append(module)
    return modules
