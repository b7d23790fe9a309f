"""
Summary rendering

Answers are stored JSON-encoded, but older rows hold plain text and some
clients encoded arrays twice, so decoding is parse-or-literal.
"""

import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

ANSWER_PLACEHOLDER = "{{answer}}"


def _looks_structured(text: str) -> bool:
    return text.startswith("[") or text.startswith("{")


def decode_answer(raw: Any) -> Any:
    """
    Decode a stored answer.

    JSON text is parsed; anything that is not JSON is returned as the literal
    string. A JSON string whose content is itself an array/object literal is
    decoded once more.
    """
    if not isinstance(raw, str):
        return raw
    try:
        value = json.loads(raw)
    except ValueError:
        return raw

    if isinstance(value, str) and _looks_structured(value):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def stringify_answer(value: Any) -> str:
    """Render a decoded scalar the way it was entered (true, 5, 2.5, text)"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def generate_summary(template: Optional[str], answer: Optional[str]) -> Optional[str]:
    """
    Render a summary template with a raw answer.

    Array answers are joined with ', '. Bare JSON scalars (numbers, booleans,
    null) keep the stored text, so "2.50" is not shortened to 2.5. Only the
    first {{answer}} is replaced.

    Returns:
        The rendered text, or None for an empty template/answer or any failure
    """
    if not template or not answer:
        return None

    try:
        parsed = decode_answer(answer)
        if isinstance(parsed, list):
            text = ", ".join("" if value is None else stringify_answer(value) for value in parsed)
        elif isinstance(parsed, (str, dict)):
            text = stringify_answer(parsed)
        else:
            text = answer.strip()
        return template.replace(ANSWER_PLACEHOLDER, text, 1)
    except Exception as e:
        logger.warning(f"Could not render summary template {template!r}: {e}")
        return None
