"""Declarative predicate rules over Intake fields.

Rules come from catalog rows (YAML or Redis JSON). Parsing resolves the
field's kind once, so evaluation never branches on runtime types. Anything
malformed parses to ``None`` and evaluates false.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from btbb.models.intake import INTAKE_FIELD_KINDS

logger = logging.getLogger(__name__)


class Operator:
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    MEMBER_OF = "member_of"
    IS_TRUTHY = "is_truthy"
    IS_FALSY = "is_falsy"


# Spellings found in stored rows → canonical operator
OPERATOR_ALIASES: dict[str, str] = {
    "eq": Operator.EQUALS,
    "equals": Operator.EQUALS,
    "neq": Operator.NOT_EQUALS,
    "not_equals": Operator.NOT_EQUALS,
    "contains": Operator.CONTAINS,
    "in": Operator.MEMBER_OF,
    "member_of": Operator.MEMBER_OF,
    "truthy": Operator.IS_TRUTHY,
    "is_truthy": Operator.IS_TRUTHY,
    "falsy": Operator.IS_FALSY,
    "is_falsy": Operator.IS_FALSY,
}


@dataclass(frozen=True)
class Rule:
    field: str
    operator: str
    value: Any = None
    kind: str = ""   # resolved from INTAKE_FIELD_KINDS

    @classmethod
    def create(cls, field: str, operator: str, value: Any = None) -> Optional[Rule]:
        kind = INTAKE_FIELD_KINDS.get(field)
        op = OPERATOR_ALIASES.get(str(operator).strip().lower().replace("-", "_"))
        if kind is None or op is None:
            return None
        return cls(field=field, operator=op, value=value, kind=kind)

    @classmethod
    def from_dict(cls, data: Any) -> Optional[Rule]:
        if not isinstance(data, dict):
            return None
        op = data.get("op", data.get("operator"))
        if not data.get("field") or op is None:
            return None
        rule = cls.create(str(data["field"]), op, data.get("value"))
        if rule is None:
            logger.warning(f"Skipping malformed rule: {data!r}")
        return rule

    def to_dict(self) -> dict:
        d = {"field": self.field, "op": self.operator}
        if self.value is not None:
            d["value"] = self.value
        return d


@dataclass(frozen=True)
class RuleGroup:
    """Flat conjunction (``all``) or disjunction (``any``) of rules.

    Malformed members are kept as ``None`` so they still count as false
    inside the group.
    """

    mode: str                              # "all" | "any"
    rules: tuple[Optional[Rule], ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> Optional[RuleGroup]:
        if isinstance(data, RuleGroup):
            return data
        if not isinstance(data, dict):
            return None
        # "any" takes precedence when a row carries both keys
        for mode in ("any", "all"):
            members = data.get(mode)
            if isinstance(members, list):
                rules = tuple(
                    m if isinstance(m, Rule) else Rule.from_dict(m)
                    for m in members
                )
                return cls(mode=mode, rules=rules)
        return None

    def to_dict(self) -> dict:
        return {self.mode: [r.to_dict() if r else {} for r in self.rules]}
