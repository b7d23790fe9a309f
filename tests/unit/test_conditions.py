"""Unit tests for display condition parsing and evaluation"""
import pytest

from care_tracker.engine.conditions import (
    ConditionKind,
    ConditionParseError,
    DisplayCondition,
    parse_display_condition,
    to_number,
)


# ============================================================================
# Parsing Tests
# ============================================================================

class TestParseDisplayCondition:
    """Test parse_display_condition"""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_no_condition(self, raw):
        """Test that missing conditions parse to None"""
        assert parse_display_condition(raw) is None

    @pytest.mark.parametrize("raw,kind,value", [
        ('{"eq": "o_yes"}', ConditionKind.EQ, "o_yes"),
        ('{"not_eq": 3}', ConditionKind.NOT_EQ, 3),
        ('{"gt": 5}', ConditionKind.GT, 5),
        ('{"gte": "5"}', ConditionKind.GTE, "5"),
        ('{"lt": 1.5}', ConditionKind.LT, 1.5),
        ('{"lte": 0}', ConditionKind.LTE, 0),
        ('{"in": ["a", "b"]}', ConditionKind.IN, ["a", "b"]),
        ('{"not_in": ["a"]}', ConditionKind.NOT_IN, ["a"]),
    ])
    def test_keyed_conditions(self, raw, kind, value):
        """Test each recognized key"""
        condition = parse_display_condition(raw)

        assert condition.kind is kind
        assert condition.value == value

    def test_parent_response_exists(self):
        """Test parent_response_exists only counts when true"""
        assert parse_display_condition('{"parent_response_exists": true}').kind is ConditionKind.PARENT_RESPONSE_EXISTS
        assert parse_display_condition('{"parent_response_exists": false}').kind is ConditionKind.ANSWERED

    def test_first_recognized_key_wins(self):
        """Test priority order when several keys are present"""
        condition = parse_display_condition('{"gt": 1, "eq": "x"}')

        assert condition.kind is ConditionKind.EQ

    def test_unrecognized_key_is_answered(self):
        """Test that an object without a recognized key becomes ANSWERED"""
        assert parse_display_condition('{"contains": "x"}').kind is ConditionKind.ANSWERED
        assert parse_display_condition('{}').kind is ConditionKind.ANSWERED

    def test_accepts_decoded_object(self):
        """Test that an already-decoded dict is accepted"""
        assert parse_display_condition({"eq": True}) == DisplayCondition(ConditionKind.EQ, True)

    @pytest.mark.parametrize("raw", ["{not json", '"eq"', "[1, 2]", "42"])
    def test_invalid_conditions_raise(self, raw):
        """Test that invalid JSON and non-objects raise ConditionParseError"""
        with pytest.raises(ConditionParseError):
            parse_display_condition(raw)


# ============================================================================
# Evaluation Tests
# ============================================================================

class TestEvaluate:
    """Test DisplayCondition.evaluate"""

    @pytest.mark.parametrize("answer,expected", [
        ("yes", True),
        (0, True),
        (False, True),
        ("", False),
        ([], False),
        (None, False),
        (["a"], True),
    ])
    def test_parent_response_exists(self, answer, expected):
        """Test presence semantics of parent_response_exists"""
        condition = DisplayCondition(ConditionKind.PARENT_RESPONSE_EXISTS)

        assert condition.evaluate(answer) is expected

    @pytest.mark.parametrize("kind,value", [
        (ConditionKind.EQ, "x"),
        (ConditionKind.NOT_EQ, "x"),
        (ConditionKind.GT, 1),
        (ConditionKind.IN, ["x"]),
        (ConditionKind.NOT_IN, ["x"]),
        (ConditionKind.ANSWERED, None),
    ])
    def test_missing_answer_hides(self, kind, value):
        """Test that a missing parent answer fails every other kind"""
        assert DisplayCondition(kind, value).evaluate(None) is False

    def test_eq_is_strict(self):
        """Test scalar equality without type coercion"""
        condition = DisplayCondition(ConditionKind.EQ, "5")

        assert condition.evaluate("5") is True
        assert condition.evaluate(5) is False
        assert DisplayCondition(ConditionKind.EQ, 1).evaluate(True) is False
        assert DisplayCondition(ConditionKind.EQ, True).evaluate(True) is True
        assert DisplayCondition(ConditionKind.EQ, 2).evaluate(2.0) is True

    def test_eq_and_not_eq_on_arrays(self):
        """Test membership semantics for array answers"""
        assert DisplayCondition(ConditionKind.EQ, "b").evaluate(["a", "b"]) is True
        assert DisplayCondition(ConditionKind.EQ, "c").evaluate(["a", "b"]) is False
        assert DisplayCondition(ConditionKind.NOT_EQ, "c").evaluate(["a", "b"]) is True
        assert DisplayCondition(ConditionKind.NOT_EQ, "a").evaluate(["a", "b"]) is False

    def test_numeric_comparisons(self):
        """Test gt/gte/lt/lte against numeric and numeric-string answers"""
        assert DisplayCondition(ConditionKind.GT, 5).evaluate(6) is True
        assert DisplayCondition(ConditionKind.GT, 5).evaluate(5) is False
        assert DisplayCondition(ConditionKind.GTE, 5).evaluate("5") is True
        assert DisplayCondition(ConditionKind.LT, "2.5").evaluate(2) is True
        assert DisplayCondition(ConditionKind.LTE, 2).evaluate(3) is False

    def test_numeric_comparisons_with_non_numbers(self):
        """Test that non-numeric answers or thresholds fail comparisons"""
        assert DisplayCondition(ConditionKind.GT, 5).evaluate("many") is False
        assert DisplayCondition(ConditionKind.GT, "five").evaluate(10) is False
        assert DisplayCondition(ConditionKind.LT, 5).evaluate("") is False
        assert DisplayCondition(ConditionKind.LT, 5).evaluate([1]) is False

    def test_in_and_not_in(self):
        """Test in/not_in against scalar and array answers"""
        condition_in = DisplayCondition(ConditionKind.IN, ["a", "b"])
        condition_not_in = DisplayCondition(ConditionKind.NOT_IN, ["a", "b"])

        assert condition_in.evaluate("a") is True
        assert condition_in.evaluate("c") is False
        assert condition_in.evaluate(["c", "b"]) is True
        assert condition_not_in.evaluate("c") is True
        assert condition_not_in.evaluate(["c", "a"]) is False
        assert condition_not_in.evaluate(["c", "d"]) is True

    def test_in_requires_array_value(self):
        """Test that in/not_in with a non-array operand are false"""
        assert DisplayCondition(ConditionKind.IN, "a").evaluate("a") is False
        assert DisplayCondition(ConditionKind.NOT_IN, "a").evaluate("b") is False

    def test_answered(self):
        """Test that ANSWERED holds for any non-null answer"""
        assert DisplayCondition(ConditionKind.ANSWERED).evaluate("") is True
        assert DisplayCondition(ConditionKind.ANSWERED).evaluate([]) is True


def test_to_number():
    """Test numeric coercion of answers"""
    assert to_number(3) == 3.0
    assert to_number(" 2.5 ") == 2.5
    assert to_number("") is None
    assert to_number("abc") is None
    assert to_number("nan") is None
    assert to_number(None) is None
    assert to_number(True) == 1.0
