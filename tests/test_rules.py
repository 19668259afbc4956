"""Tests for rule parsing and evaluation (pure functions, no Redis needed)."""

import pytest

from btbb.engine.rules import (
    evaluate_group,
    evaluate_rule,
    filter_watchlist,
    guess_best_fit,
)
from btbb.models.catalog import Suggestion
from btbb.models.intake import Intake, FieldKind
from btbb.models.rules import Operator, Rule, RuleGroup

ALWAYS_TRUE = {"all": []}
ALWAYS_FALSE = {"any": []}


# ═══════════════════════════════════════════════════════════════════════════
# Rule parsing
# ═══════════════════════════════════════════════════════════════════════════


class TestRuleParsing:
    def test_short_aliases_resolve(self):
        rule = Rule.from_dict({"field": "state_codes", "op": "in", "value": ["NC"]})
        assert rule.operator == Operator.MEMBER_OF
        assert rule.kind == FieldKind.SEQUENCE

    def test_long_and_hyphen_spellings_resolve(self):
        assert Rule.from_dict({"field": "industry", "operator": "not-equals", "value": "x"}).operator == Operator.NOT_EQUALS
        assert Rule.from_dict({"field": "inventory", "op": "is_truthy"}).operator == Operator.IS_TRUTHY

    def test_unknown_field_is_none(self):
        assert Rule.from_dict({"field": "favorite_color", "op": "eq", "value": "red"}) is None

    def test_unknown_operator_is_none(self):
        assert Rule.from_dict({"field": "industry", "op": "regex", "value": ".*"}) is None

    def test_non_dict_is_none(self):
        assert Rule.from_dict("industry == retail") is None
        assert Rule.from_dict(None) is None

    def test_group_keeps_malformed_members(self):
        group = RuleGroup.from_dict({"all": [{"field": "nope", "op": "eq"}, {"field": "industry", "op": "truthy"}]})
        assert group.mode == "all"
        assert group.rules[0] is None
        assert group.rules[1] is not None

    def test_group_round_trips_to_dict(self):
        raw = {"any": [{"field": "industry", "op": "equals", "value": "retail"}]}
        assert RuleGroup.from_dict(raw).to_dict() == raw


# ═══════════════════════════════════════════════════════════════════════════
# String fields
# ═══════════════════════════════════════════════════════════════════════════


class TestStringOperators:
    @pytest.fixture
    def intake(self, make_intake):
        return make_intake(industry="Retail", entity_legal_form="S corporation")

    def test_equals_is_exact(self, intake):
        assert evaluate_rule(intake, {"field": "industry", "op": "eq", "value": "Retail"})
        assert not evaluate_rule(intake, {"field": "industry", "op": "eq", "value": "retail"})

    def test_not_equals(self, intake):
        assert evaluate_rule(intake, {"field": "industry", "op": "neq", "value": "retail"})
        assert not evaluate_rule(intake, {"field": "industry", "op": "neq", "value": "Retail"})

    def test_equals_missing_value_matches_empty(self, make_intake):
        assert evaluate_rule(make_intake(), {"field": "industry", "op": "eq"})

    def test_contains_is_case_insensitive(self, intake):
        assert evaluate_rule(intake, {"field": "entity_legal_form", "op": "contains", "value": "S CORP"})
        assert not evaluate_rule(intake, {"field": "entity_legal_form", "op": "contains", "value": "c corp"})

    def test_member_of(self, intake):
        assert evaluate_rule(intake, {"field": "industry", "op": "in", "value": ["Food", "Retail"]})
        assert not evaluate_rule(intake, {"field": "industry", "op": "in", "value": ["Food"]})

    def test_member_of_coerces_elements(self, make_intake):
        intake = make_intake(payroll_w2_bracket="0")
        assert evaluate_rule(intake, {"field": "payroll_w2_bracket", "op": "in", "value": [0, "none"]})

    def test_member_of_non_list_operand_is_false(self, intake):
        assert not evaluate_rule(intake, {"field": "industry", "op": "in", "value": "Retail"})


# ═══════════════════════════════════════════════════════════════════════════
# Sequence fields
# ═══════════════════════════════════════════════════════════════════════════


class TestSequenceOperators:
    @pytest.fixture
    def intake(self, make_intake):
        return make_intake(state_codes=["NC", "SC"])

    def test_contains_element(self, intake):
        assert evaluate_rule(intake, {"field": "state_codes", "op": "contains", "value": "SC"})
        assert not evaluate_rule(intake, {"field": "state_codes", "op": "contains", "value": "sc"})

    def test_member_of_any_overlap(self, intake):
        assert evaluate_rule(intake, {"field": "state_codes", "op": "in", "value": ["CA", "SC"]})
        assert not evaluate_rule(intake, {"field": "state_codes", "op": "in", "value": ["CA", "TX"]})

    def test_equals_is_order_sensitive(self, intake):
        assert evaluate_rule(intake, {"field": "state_codes", "op": "eq", "value": ["NC", "SC"]})
        assert not evaluate_rule(intake, {"field": "state_codes", "op": "eq", "value": ["SC", "NC"]})

    def test_not_equals(self, intake):
        assert evaluate_rule(intake, {"field": "state_codes", "op": "neq", "value": ["SC", "NC"]})

    def test_equals_missing_value_matches_empty_list(self, make_intake):
        assert evaluate_rule(make_intake(), {"field": "state_codes", "op": "eq"})
        assert not evaluate_rule(make_intake(state_codes=["NC"]), {"field": "state_codes", "op": "eq"})


# ═══════════════════════════════════════════════════════════════════════════
# Boolean fields + truthiness
# ═══════════════════════════════════════════════════════════════════════════


class TestBooleanOperators:
    def test_equals_against_truthiness(self, make_intake):
        intake = make_intake(inventory=True)
        assert evaluate_rule(intake, {"field": "inventory", "op": "eq", "value": True})
        assert evaluate_rule(intake, {"field": "inventory", "op": "eq", "value": 1})
        assert not evaluate_rule(intake, {"field": "inventory", "op": "eq", "value": False})

    def test_not_equals(self, make_intake):
        assert evaluate_rule(make_intake(), {"field": "international", "op": "neq", "value": True})

    def test_contains_unsupported_for_boolean(self, make_intake):
        assert not evaluate_rule(make_intake(inventory=True), {"field": "inventory", "op": "contains", "value": "t"})

    def test_member_of_unsupported_for_boolean(self, make_intake):
        assert not evaluate_rule(make_intake(inventory=True), {"field": "inventory", "op": "in", "value": [True]})

    @pytest.mark.parametrize("field,value,expected", [
        ("industry", "retail", True),
        ("industry", "", False),
        ("state_codes", ["NC"], True),
        ("state_codes", [], False),
        ("multi_state", True, True),
        ("multi_state", False, False),
    ])
    def test_truthy_and_falsy_any_kind(self, make_intake, field, value, expected):
        intake = make_intake(**{field: value})
        assert evaluate_rule(intake, {"field": field, "op": "truthy"}) is expected
        assert evaluate_rule(intake, {"field": field, "op": "falsy"}) is (not expected)


class TestDeterminism:
    def test_same_inputs_same_output(self, scorp_intake):
        rule = Rule.create("state_codes", "in", ["SC"])
        results = {evaluate_rule(scorp_intake, rule) for _ in range(5)}
        assert results == {True}

    def test_none_rule_is_false(self, scorp_intake):
        assert evaluate_rule(scorp_intake, None) is False


# ═══════════════════════════════════════════════════════════════════════════
# Groups
# ═══════════════════════════════════════════════════════════════════════════


class TestRuleGroups:
    def test_empty_all_is_true(self):
        assert evaluate_group(Intake(), {"all": []}) is True

    def test_empty_any_is_false(self):
        assert evaluate_group(Intake(), {"any": []}) is False

    def test_none_group_is_false(self):
        assert evaluate_group(Intake(), None) is False

    @pytest.mark.parametrize("group", [{}, {"all": "nope"}, {"one_of": []}, [], "all", 42])
    def test_malformed_group_is_false(self, group):
        assert evaluate_group(Intake(), group) is False

    def test_all_requires_every_rule(self, scorp_intake):
        group = {"all": [
            {"field": "multi_state", "op": "truthy"},
            {"field": "inventory", "op": "truthy"},
        ]}
        assert not evaluate_group(scorp_intake, group)

    def test_any_needs_one_rule(self, scorp_intake):
        group = {"any": [
            {"field": "inventory", "op": "truthy"},
            {"field": "multi_state", "op": "truthy"},
        ]}
        assert evaluate_group(scorp_intake, group)

    def test_malformed_rule_fails_all(self, scorp_intake):
        group = {"all": [{"field": "multi_state", "op": "truthy"}, {"field": "bogus", "op": "truthy"}]}
        assert not evaluate_group(scorp_intake, group)

    def test_malformed_rule_ignored_in_any(self, scorp_intake):
        group = {"any": [{"field": "bogus", "op": "truthy"}, {"field": "multi_state", "op": "truthy"}]}
        assert evaluate_group(scorp_intake, group)

    def test_any_wins_when_both_keys_present(self):
        assert evaluate_group(Intake(), {"all": [], "any": []}) is False

    def test_accepts_parsed_group(self, scorp_intake):
        group = RuleGroup.from_dict({"any": [{"field": "state_codes", "op": "contains", "value": "NC"}]})
        assert evaluate_group(scorp_intake, group)


# ═══════════════════════════════════════════════════════════════════════════
# Best fit + watchlist
# ═══════════════════════════════════════════════════════════════════════════


class TestBestFit:
    def test_first_match_wins(self):
        suggestions = [
            {"value": "A", "when": ALWAYS_FALSE},
            {"value": "B", "when": ALWAYS_TRUE},
            {"value": "C", "when": ALWAYS_TRUE},
        ]
        assert guess_best_fit(Intake(), suggestions) == "B"

    def test_no_match_is_empty_string(self):
        assert guess_best_fit(Intake(), [{"value": "A", "when": ALWAYS_FALSE}]) == ""
        assert guess_best_fit(Intake(), []) == ""

    def test_missing_when_never_matches(self):
        assert guess_best_fit(Intake(), [{"value": "A"}, {"value": "B", "when": ALWAYS_TRUE}]) == "B"

    def test_unusable_entries_are_skipped(self):
        suggestions = [None, 42, {"when": ALWAYS_TRUE}, {"value": "B", "when": ALWAYS_TRUE}]
        assert guess_best_fit(Intake(), suggestions) == "B"

    def test_accepts_suggestion_objects(self, make_intake):
        suggestions = [Suggestion.from_dict({"value": "none", "when": {"any": [
            {"field": "payroll_w2_bracket", "op": "in", "value": ["0", "none"]},
        ]}})]
        assert guess_best_fit(make_intake(payroll_w2_bracket="0"), suggestions) == "none"

    def test_worker_setup_topic(self, catalog, make_intake, scorp_intake):
        topic = catalog.topics["worker_setup"]
        assert guess_best_fit(make_intake(payroll_w2_bracket="0"), topic.suggestions) == "none"
        assert guess_best_fit(scorp_intake, topic.suggestions) == "all_w2"
        assert guess_best_fit(make_intake(), topic.suggestions) == ""


class TestWatchlist:
    def test_scorp_multistate_payroll(self, catalog, scorp_intake):
        keys = [w.key for w in filter_watchlist(scorp_intake, catalog.watchlist)]
        assert keys == ["wl-payroll", "wl-multistate", "wl-scorp"]

    def test_zero_payroll_hides_payroll_item(self, catalog, make_intake):
        intake = make_intake(payroll_w2_bracket="0", inventory=True)
        keys = [w.key for w in filter_watchlist(intake, catalog.watchlist)]
        assert keys == ["wl-inventory"]

    def test_empty_intake_shows_nothing(self, catalog):
        assert filter_watchlist(Intake(), catalog.watchlist) == []

    def test_accepts_raw_rows(self):
        rows = [{"key": "k", "title": "t", "when": ALWAYS_TRUE}, {"key": "x", "title": "x", "when": ALWAYS_FALSE}]
        assert [w.key for w in filter_watchlist(Intake(), rows)] == ["k"]

    def test_malformed_rows_are_skipped(self, catalog):
        rows = [None, {"title": "no key", "when": ALWAYS_TRUE}, "wl-payroll", {"key": "k", "title": "t", "readiness": "x"}]
        rows.extend(catalog.watchlist)
        assert [w.key for w in filter_watchlist(Intake(inventory=True), rows)] == ["wl-inventory"]
