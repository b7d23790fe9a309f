"""
Question graph and visibility evaluation

Questions form a forest through parent_question_id. A child is visible only
when its parent is visible and the parent's answer satisfies the child's
display condition, so hiding a question hides its whole subtree.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from care_tracker.engine.conditions import ConditionParseError, parse_display_condition
from care_tracker.engine.summary import decode_answer
from care_tracker.models.track import OPTION_QUESTION_TYPES, Question, RecordStatus, ResponseOption

logger = logging.getLogger(__name__)

QuestionLike = Union[Question, Mapping[str, Any]]
OptionLike = Union[ResponseOption, Mapping[str, Any]]

# Condition marker for questions whose stored condition failed to parse
_FAIL_OPEN = object()


def _as_question(question: QuestionLike) -> Question:
    return question if isinstance(question, Question) else Question.model_validate(dict(question))


def _as_option(option: OptionLike) -> ResponseOption:
    return option if isinstance(option, ResponseOption) else ResponseOption.model_validate(dict(option))


class QuestionGraph:
    """
    Indexed question set of one item.

    Display conditions are parsed once at construction. Visibility results are
    memoized in a cache keyed by question id; pass a fresh cache (or none) per
    answer set.
    """

    def __init__(self, questions: Iterable[QuestionLike], options: Iterable[OptionLike] = ()):
        self.questions: dict[int, Question] = {}
        self.conditions: dict[int, Any] = {}
        self.option_codes: dict[int, dict[str, str]] = {}

        for raw in questions:
            question = _as_question(raw)
            self.questions[question.id] = question
            self.conditions[question.id] = self._parse_condition(question)

        for raw in options:
            option = _as_option(raw)
            if option.status != RecordStatus.ACTIVE or not option.code:
                continue
            # First active option wins when two share a text
            self.option_codes.setdefault(option.question_id, {}).setdefault(option.text, option.code)

    @staticmethod
    def _parse_condition(question: Question) -> Any:
        try:
            return parse_display_condition(question.display_condition)
        except ConditionParseError as e:
            logger.warning(f"Question {question.id}: {e}; treating as visible")
            return _FAIL_OPEN

    def add_question(self, question: QuestionLike) -> Question:
        """Index a question that is not part of the loaded set"""
        parsed = _as_question(question)
        if parsed.id not in self.questions:
            self.questions[parsed.id] = parsed
            self.conditions[parsed.id] = self._parse_condition(parsed)
        return self.questions[parsed.id]

    def is_visible(
        self,
        question_id: int,
        answers: Mapping[int, Optional[str]],
        cache: Optional[dict[int, bool]] = None
    ) -> bool:
        """
        Whether a question is visible given raw (JSON-encoded) answers by question id.

        Unknown question ids are visible. Questions on a parent cycle are hidden.
        """
        if cache is None:
            cache = {}
        return self._evaluate(question_id, answers, cache, in_progress=set())

    def _evaluate(
        self,
        question_id: int,
        answers: Mapping[int, Optional[str]],
        cache: dict[int, bool],
        in_progress: set[int]
    ) -> bool:
        if question_id in cache:
            return cache[question_id]

        question = self.questions.get(question_id)
        condition = self.conditions.get(question_id)
        if question is None or question.parent_question_id is None or condition is None:
            cache[question_id] = True
            return True

        if question_id in in_progress:
            logger.warning(f"Question {question_id} is part of a parent cycle; hiding it")
            cache[question_id] = False
            return False

        parent_id = question.parent_question_id
        parent = self.questions.get(parent_id)
        if parent is not None:
            in_progress.add(question_id)
            try:
                parent_visible = self._evaluate(parent_id, answers, cache, in_progress)
            finally:
                in_progress.discard(question_id)
            if not parent_visible:
                cache[question_id] = False
                return False

        if condition is _FAIL_OPEN:
            cache[question_id] = True
            return True

        parent_answer = self._resolve_parent_answer(parent, parent_id, answers.get(parent_id))
        result = condition.evaluate(parent_answer)
        cache[question_id] = result
        return result

    def _resolve_parent_answer(self, parent: Optional[Question], parent_id: int, raw: Optional[str]) -> Any:
        """Decode the parent's answer, mapping option texts to option codes"""
        if raw is None:
            return None
        answer = decode_answer(raw)

        if parent is None or parent.type not in OPTION_QUESTION_TYPES:
            return answer
        codes = self.option_codes.get(parent_id)
        if not codes:
            return answer

        if isinstance(answer, list):
            return [codes.get(value, value) if isinstance(value, str) else value for value in answer]
        if isinstance(answer, str):
            return codes.get(answer, answer)
        return answer


def is_question_visible(
    question: QuestionLike,
    answers: Mapping[int, Optional[str]],
    questions: Optional[Iterable[QuestionLike]] = None,
    options: Optional[Iterable[OptionLike]] = None,
    cache: Optional[dict[int, bool]] = None
) -> bool:
    """
    Whether a question is visible given the current answers.

    Args:
        question: Question to evaluate
        answers: Raw JSON-encoded answers keyed by question id
        questions: The item's question set, needed for cascading visibility
        options: Response options, used to resolve option texts to codes
        cache: Memo of results keyed by question id, shared across calls
               that evaluate the same answer set
    """
    graph = QuestionGraph(questions or (), options or ())
    target = graph.add_question(question)
    return graph.is_visible(target.id, answers, cache)
