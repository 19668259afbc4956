"""Rule evaluation: pure functions, no Redis dependency.

Used for watchlist visibility and best-fit suggestions on decision topics.
Nothing here raises on bad configuration; unsupported combinations are false.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from btbb.models.catalog import WatchlistItem
from btbb.models.intake import Intake, FieldKind
from btbb.models.rules import Rule, RuleGroup, Operator

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _texts(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [_text(x) for x in value]


def _eval_string(current: str, op: str, operand: Any) -> bool:
    if op == Operator.EQUALS:
        return current == _text(operand)
    if op == Operator.NOT_EQUALS:
        return current != _text(operand)
    if op == Operator.CONTAINS:
        return _text(operand).lower() in current.lower()
    if op == Operator.MEMBER_OF:
        return current in _texts(operand)
    return False


def _eval_sequence(current: Sequence, op: str, operand: Any) -> bool:
    items = [_text(x) for x in current]
    if op == Operator.CONTAINS:
        return _text(operand) in items
    if op == Operator.MEMBER_OF:
        allowed = _texts(operand)
        return any(x in allowed for x in items)
    if op in (Operator.EQUALS, Operator.NOT_EQUALS):
        expected = [] if operand is None else operand
        if isinstance(expected, tuple):
            expected = list(expected)
        same = list(current) == expected
        return same if op == Operator.EQUALS else not same
    return False


def _eval_boolean(current: bool, op: str, operand: Any) -> bool:
    if op == Operator.EQUALS:
        return current == bool(operand)
    if op == Operator.NOT_EQUALS:
        return current != bool(operand)
    return False


def evaluate_rule(intake: Intake, rule: Rule | dict | None) -> bool:
    """Evaluate one rule against an intake."""
    if isinstance(rule, dict):
        rule = Rule.from_dict(rule)
    if rule is None:
        return False

    current = getattr(intake, rule.field, None)

    if rule.operator == Operator.IS_TRUTHY:
        return bool(current)
    if rule.operator == Operator.IS_FALSY:
        return not bool(current)

    if rule.kind == FieldKind.STRING:
        return _eval_string(_text(current), rule.operator, rule.value)
    if rule.kind == FieldKind.SEQUENCE:
        return _eval_sequence(current or [], rule.operator, rule.value)
    if rule.kind == FieldKind.BOOLEAN:
        return _eval_boolean(bool(current), rule.operator, rule.value)
    return False


def evaluate_group(intake: Intake, group: RuleGroup | dict | None) -> bool:
    """Evaluate an ``all``/``any`` group.

    ``{"all": []}`` is true, ``{"any": []}`` is false, and a missing or
    malformed group is false.
    """
    parsed: Optional[RuleGroup] = RuleGroup.from_dict(group)
    if parsed is None:
        return False
    if parsed.mode == "any":
        return any(evaluate_rule(intake, r) for r in parsed.rules)
    return all(evaluate_rule(intake, r) for r in parsed.rules)


def guess_best_fit(intake: Intake, suggestions: Iterable[Any]) -> str:
    """Return the value of the first suggestion whose ``when`` group holds.

    Catalog order decides; this is first match, not best match. Entries
    without a ``value`` or ``when`` never match.
    """
    for suggestion in suggestions:
        if isinstance(suggestion, dict):
            value, when = suggestion.get("value"), suggestion.get("when")
        else:
            value, when = getattr(suggestion, "value", None), getattr(suggestion, "when", None)
        if value is None:
            continue
        if evaluate_group(intake, when):
            return _text(value)
    return ""


def _as_watchlist_item(item: Any) -> Optional[WatchlistItem]:
    if not isinstance(item, dict):
        return item if hasattr(item, "when") else None
    try:
        return WatchlistItem.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed watchlist row: {e!r}")
        return None


def filter_watchlist(intake: Intake, items: Iterable[Any]) -> list:
    """Watchlist items whose trigger group holds, in catalog order.

    Raw dict rows are parsed first; anything unparseable is skipped.
    """
    parsed = (_as_watchlist_item(item) for item in items)
    return [item for item in parsed if item is not None and evaluate_group(intake, item.when)]
