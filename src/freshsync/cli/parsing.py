"""Parsing of filter expressions given on the command line.

Syntax is ``field:operator[:value]``. The value is read as JSON when it
parses (``5``, ``true``, ``"5"``) and as a plain string otherwise.
``in``/``not_in`` take comma-separated values, ``between`` takes
``min..max`` with either side optional.
"""

from __future__ import annotations

import json
from typing import Any

from freshsync.core.exceptions import InvalidFilterError
from freshsync.core.models import FilterExpression, FilterOperator


_VALUELESS = (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


def parse_scalar(text: str) -> Any:
    """Parse text as a JSON scalar, falling back to the raw string."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(value, (dict, list)):
        return text
    return value


def parse_filter(text: str, index: int = 0) -> FilterExpression:
    """Parse one ``field:operator[:value]`` argument.

    Args:
        text: The raw argument.
        index: Position of the argument, used for the expression id.

    Raises:
        InvalidFilterError: If the argument is malformed or the operator is
            unknown.
    """
    parts = text.split(":", 2)
    if len(parts) < 2 or not parts[0]:
        raise InvalidFilterError(f"Invalid filter '{text}'", definition=text)

    field, raw_operator = parts[0], parts[1]
    try:
        operator = FilterOperator(raw_operator)
    except ValueError:
        raise InvalidFilterError(
            f"Unknown filter operator '{raw_operator}' in '{text}'", definition=text
        ) from None

    raw_value = parts[2] if len(parts) == 3 else None
    value: Any = None

    if operator in _VALUELESS:
        pass
    elif raw_value is None:
        raise InvalidFilterError(f"Filter '{text}' needs a value", definition=text)
    elif operator in (FilterOperator.IN, FilterOperator.NOT_IN):
        value = [parse_scalar(v.strip()) for v in raw_value.split(",") if v.strip()]
    elif operator is FilterOperator.BETWEEN:
        if ".." not in raw_value:
            raise InvalidFilterError(
                f"'between' expects min..max in '{text}'", definition=text
            )
        low, high = raw_value.split("..", 1)
        value = {
            "min": parse_scalar(low) if low else None,
            "max": parse_scalar(high) if high else None,
        }
    else:
        value = parse_scalar(raw_value)

    return FilterExpression(
        id=f"arg-{index}", field=field, operator=operator, value=value
    )
