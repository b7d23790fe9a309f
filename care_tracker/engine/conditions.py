"""
Display conditions of child questions

A display condition is stored as a single-key JSON object evaluated against
the parent question's answer, e.g. {"eq": "o_yes"} or {"gte": 5}. It is parsed
once into a DisplayCondition so evaluation never re-reads JSON.
"""

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ConditionKind(str, Enum):
    """Recognized condition keys, in evaluation priority order"""
    PARENT_RESPONSE_EXISTS = "parent_response_exists"
    EQ = "eq"
    NOT_EQ = "not_eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    # No recognized key: visible whenever the parent has an answer
    ANSWERED = "answered"


_KEYED_KINDS = [kind for kind in ConditionKind if kind is not ConditionKind.ANSWERED]


class ConditionParseError(ValueError):
    """Raised when a stored display condition cannot be parsed"""


@dataclass(frozen=True)
class DisplayCondition:
    """Parsed display condition: one kind plus its operand"""
    kind: ConditionKind
    value: Any = None

    def evaluate(self, parent_answer: Any) -> bool:
        """
        Evaluate against the decoded parent answer.

        The answer may be a scalar or a list. None means the parent has not
        been answered; only PARENT_RESPONSE_EXISTS can hold in that case.
        """
        if self.kind is ConditionKind.PARENT_RESPONSE_EXISTS:
            return _has_response(parent_answer)

        if parent_answer is None:
            return False

        if self.kind is ConditionKind.ANSWERED:
            return True
        if self.kind is ConditionKind.EQ:
            if isinstance(parent_answer, list):
                return _contains(parent_answer, self.value)
            return _strict_equals(parent_answer, self.value)
        if self.kind is ConditionKind.NOT_EQ:
            if isinstance(parent_answer, list):
                return not _contains(parent_answer, self.value)
            return not _strict_equals(parent_answer, self.value)
        if self.kind in (ConditionKind.GT, ConditionKind.GTE, ConditionKind.LT, ConditionKind.LTE):
            return self._compare(parent_answer)
        if self.kind in (ConditionKind.IN, ConditionKind.NOT_IN):
            if not isinstance(self.value, list):
                return False
            if isinstance(parent_answer, list):
                matched = any(_contains(parent_answer, value) for value in self.value)
            else:
                matched = _contains(self.value, parent_answer)
            return matched if self.kind is ConditionKind.IN else not matched
        return True

    def _compare(self, parent_answer: Any) -> bool:
        answer = to_number(parent_answer)
        threshold = to_number(self.value)
        if answer is None or threshold is None:
            return False
        if self.kind is ConditionKind.GT:
            return answer > threshold
        if self.kind is ConditionKind.GTE:
            return answer >= threshold
        if self.kind is ConditionKind.LT:
            return answer < threshold
        return answer <= threshold


def parse_display_condition(raw: Optional[str]) -> Optional[DisplayCondition]:
    """
    Parse a stored display condition.

    Returns None when there is no condition. The first recognized key wins
    (see ConditionKind order); parent_response_exists only counts when true.

    Raises:
        ConditionParseError: If the text is not a JSON object
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None

    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ConditionParseError(f"Invalid display_condition JSON: {raw!r}") from e

    if not isinstance(data, dict):
        raise ConditionParseError(f"display_condition must be a JSON object: {raw!r}")

    for kind in _KEYED_KINDS:
        if kind.value not in data:
            continue
        if kind is ConditionKind.PARENT_RESPONSE_EXISTS:
            if data[kind.value] is True:
                return DisplayCondition(kind)
            continue
        return DisplayCondition(kind, data[kind.value])

    return DisplayCondition(ConditionKind.ANSWERED)


def _has_response(answer: Any) -> bool:
    if answer is None or answer == "":
        return False
    if isinstance(answer, list):
        return len(answer) > 0
    return True


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality without bool/number or str/number coercion"""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def _contains(values: list, target: Any) -> bool:
    return any(_strict_equals(value, target) for value in values)


def to_number(value: Any) -> Optional[float]:
    """Numeric value of an answer or operand, None when not numeric"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number
