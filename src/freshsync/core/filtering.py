"""In-memory filter, search, sort and pagination engine.

Everything here is pure: FilterEngine carries configuration (search
fields, declared fields) but no state, and every call takes the records
and the FilterState by value. Records may be mappings or plain objects;
fields are read with ``record[key]`` or ``getattr`` respectively.
"""

from __future__ import annotations

import logging
import math
import re
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, is_dataclass
from dataclasses import fields as dataclass_fields
from decimal import Decimal
from typing import Any, Generic, TypeVar

from freshsync.core.models import (
    FieldType,
    FilterExpression,
    FilterField,
    FilterLogic,
    FilterOperator,
    FilterResult,
    FilterState,
    SearchSummary,
    SortOrder,
    ValidationCode,
    ValidationIssue,
    ValidationResult,
)


logger = logging.getLogger(__name__)

R = TypeVar("R")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# Cheapest, most selective operators first; the rest keep their order.
SELECTIVITY_ORDER = (
    FilterOperator.EQUALS,
    FilterOperator.IN,
    FilterOperator.NOT_IN,
    FilterOperator.CONTAINS,
    FilterOperator.STARTS_WITH,
    FilterOperator.ENDS_WITH,
)

_NUMERIC_OPERATORS = frozenset(
    {
        FilterOperator.GREATER,
        FilterOperator.GREATER_EQUAL,
        FilterOperator.LESS,
        FilterOperator.LESS_EQUAL,
        FilterOperator.BETWEEN,
    }
)


def get_field(record: Any, name: str) -> Any:
    """Read a field from a mapping or object, or return MISSING."""
    if isinstance(record, Mapping):
        return record.get(name, MISSING)
    if name.startswith("_"):
        return MISSING
    return getattr(record, name, MISSING)


def _is_absent(value: Any) -> bool:
    return value is MISSING or value is None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def to_number(value: Any) -> float | None:
    """Coerce value to a float, or None when it is not numeric.

    Numbers and numeric strings convert; booleans, blanks and NaN do not.
    """
    if _is_number(value):
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
    return None if math.isnan(number) else number


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion.

    Numbers compare by value (1 == 1.0), booleans only equal booleans, and
    values of unrelated types are never equal ("1" != 1).
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return bool(left == right)
    if not (isinstance(left, type(right)) or isinstance(right, type(left))):
        return False
    return bool(left == right)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _candidates(value: Any) -> list[Any] | None:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return None


def _bounds(value: Any) -> tuple[Any, Any] | None:
    """Extract (min, max) from a mapping or a two-item sequence."""
    if isinstance(value, Mapping):
        return value.get("min"), value.get("max")
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    return None


def _text_predicate(check: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    def predicate(actual: Any, expected: Any) -> bool:
        if expected is None:
            return False
        return check(_text(actual).lower(), _text(expected).lower())

    return predicate


def _numeric_predicate(
    check: Callable[[float, float], bool],
) -> Callable[[Any, Any], bool]:
    def predicate(actual: Any, expected: Any) -> bool:
        left = to_number(actual)
        right = to_number(expected)
        if left is None or right is None:
            return False
        return check(left, right)

    return predicate


def _between(actual: Any, expected: Any) -> bool:
    number = to_number(actual)
    bounds = _bounds(expected)
    if number is None or bounds is None:
        return False
    low_raw, high_raw = bounds
    if low_raw is not None:
        low = to_number(low_raw)
        if low is None or number < low:
            return False
    if high_raw is not None:
        high = to_number(high_raw)
        if high is None or number > high:
            return False
    return True


def _in(actual: Any, expected: Any) -> bool:
    candidates = _candidates(expected)
    if candidates is None:
        return False
    return any(strict_equals(actual, c) for c in candidates)


def _not_in(actual: Any, expected: Any) -> bool:
    candidates = _candidates(expected)
    if candidates is None:
        return False
    return not any(strict_equals(actual, c) for c in candidates)


_PREDICATES: dict[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.EQUALS: strict_equals,
    FilterOperator.NOT_EQUALS: lambda a, b: not strict_equals(a, b),
    FilterOperator.CONTAINS: _text_predicate(lambda a, b: b in a),
    FilterOperator.NOT_CONTAINS: _text_predicate(lambda a, b: b not in a),
    FilterOperator.STARTS_WITH: _text_predicate(lambda a, b: a.startswith(b)),
    FilterOperator.ENDS_WITH: _text_predicate(lambda a, b: a.endswith(b)),
    FilterOperator.GREATER: _numeric_predicate(lambda a, b: a > b),
    FilterOperator.GREATER_EQUAL: _numeric_predicate(lambda a, b: a >= b),
    FilterOperator.LESS: _numeric_predicate(lambda a, b: a < b),
    FilterOperator.LESS_EQUAL: _numeric_predicate(lambda a, b: a <= b),
    FilterOperator.BETWEEN: _between,
    FilterOperator.IN: _in,
    FilterOperator.NOT_IN: _not_in,
}


def matches_expression(record: Any, expression: FilterExpression) -> bool:
    """Evaluate one expression against one record.

    A missing or None field fails every operator except is_null.
    """
    actual = get_field(record, expression.field)
    if expression.operator is FilterOperator.IS_NULL:
        return _is_absent(actual)
    if _is_absent(actual):
        return False
    if expression.operator is FilterOperator.IS_NOT_NULL:
        return True
    return _PREDICATES[expression.operator](actual, expression.value)


def _public_fields(record: Any) -> dict[str, Any]:
    """Public attribute names and values of a non-mapping record."""
    if is_dataclass(record) and not isinstance(record, type):
        values = {f.name: getattr(record, f.name) for f in dataclass_fields(record)}
    elif isinstance(record, tuple) and hasattr(record, "_asdict"):
        values = record._asdict()
    else:
        values = dict(getattr(record, "__dict__", {}))
        for cls in type(record).__mro__:
            slots = cls.__dict__.get("__slots__", ())
            for name in (slots,) if isinstance(slots, str) else slots:
                if name not in values and hasattr(record, name):
                    values[name] = getattr(record, name)
    return {k: v for k, v in values.items() if not k.startswith("_")}


def _record_values(record: Any) -> Iterable[Any]:
    if isinstance(record, Mapping):
        return record.values()
    return _public_fields(record).values()


def matches_search(record: Any, term: str, search_fields: Sequence[str]) -> bool:
    """Case-insensitive substring search over the given fields.

    A blank term matches everything. With no search fields, all public
    fields of the record are searched.
    """
    if not term.strip():
        return True
    needle = term.lower()
    if search_fields:
        values: Iterable[Any] = (get_field(record, f) for f in search_fields)
    else:
        values = _record_values(record)
    return any(not _is_absent(v) and needle in _text(v).lower() for v in values)


def order_by_selectivity(
    expressions: Iterable[FilterExpression],
) -> list[FilterExpression]:
    """Stable-sort expressions so that the most selective run first."""
    rank = {op: i for i, op in enumerate(SELECTIVITY_ORDER)}
    return sorted(expressions, key=lambda e: rank.get(e.operator, len(rank)))


def _sort_key(value: Any) -> tuple[Any, ...]:
    if isinstance(value, bool):
        return (0, float(value))
    if _is_number(value):
        return (0, float(value))
    if isinstance(value, str):
        return (1, value.casefold(), value)
    return (2, str(value))


def sort_records(records: Sequence[R], sort_by: str, order: SortOrder) -> list[R]:
    """Stable sort by one field; records lacking the field go last."""
    present = [r for r in records if not _is_absent(get_field(r, sort_by))]
    absent = [r for r in records if _is_absent(get_field(r, sort_by))]
    present.sort(
        key=lambda r: _sort_key(get_field(r, sort_by)),
        reverse=order is SortOrder.DESC,
    )
    return present + absent


def paginate(
    records: Sequence[R],
    page: int,
    page_size: int,
    total_count: int | None = None,
) -> FilterResult[R]:
    """Cut one zero-based page out of records.

    Args:
        records: Already filtered (and sorted) records.
        page: Zero-based page index.
        page_size: Records per page; 0 or less returns everything.
        total_count: Size of the unfiltered collection, if known.

    Returns:
        The page with paging metadata.
    """
    if page < 0:
        raise ValueError("page cannot be negative")
    filtered_count = len(records)
    if total_count is None:
        total_count = filtered_count

    if page_size <= 0:
        return FilterResult(
            items=tuple(records),
            total_count=total_count,
            filtered_count=filtered_count,
            has_more=False,
            current_page=0,
            total_pages=1 if filtered_count else 0,
        )

    start = page * page_size
    return FilterResult(
        items=tuple(records[start : start + page_size]),
        total_count=total_count,
        filtered_count=filtered_count,
        has_more=start + page_size < filtered_count,
        current_page=page,
        total_pages=math.ceil(filtered_count / page_size),
    )


@dataclass
class _Group:
    logic: FilterLogic
    expressions: list[FilterExpression] = field(default_factory=list)


def resolve_groups(
    state: FilterState,
) -> tuple[list[FilterExpression], list[_Group]]:
    """Split a state into ungrouped expressions and effective groups.

    Top-level expressions whose group_id names an explicit group join it.
    A group_id with no explicit group forms an implicit group whose logic is
    taken from its first expression (AND when unset).
    """
    groups: dict[str, _Group] = {
        g.id: _Group(logic=g.logic, expressions=list(g.expressions))
        for g in state.groups
    }
    ungrouped: list[FilterExpression] = []
    for expression in state.expressions:
        if expression.group_id is None:
            ungrouped.append(expression)
        elif expression.group_id in groups:
            groups[expression.group_id].expressions.append(expression)
        else:
            groups[expression.group_id] = _Group(
                logic=expression.logic or FilterLogic.AND,
                expressions=[expression],
            )
    return ungrouped, list(groups.values())


@dataclass(frozen=True)
class FilterEngine(Generic[R]):
    """Evaluates FilterState objects against in-memory collections.

    Attributes:
        search_fields: Fields searched by FilterState.global_search. Empty
            searches every public field.
        fields: Declared filterable fields. When set, expressions on any
            other field match nothing.
        slow_threshold: Seconds after which an evaluation is logged as slow.

    Example:
        >>> engine = FilterEngine(search_fields=("name",))
        >>> state = FilterState(expressions=(
        ...     FilterExpression(id="1", field="score", operator="greater", value=5),
        ... ))
        >>> engine.evaluate([{"name": "Acme", "score": 7},
        ...                  {"name": "Globex", "score": 3}], state)
        [{'name': 'Acme', 'score': 7}]
    """

    search_fields: tuple[str, ...] = ()
    fields: frozenset[str] | None = None
    slow_threshold: float = 1.0

    def _matches(self, record: Any, expression: FilterExpression) -> bool:
        if self.fields is not None and expression.field not in self.fields:
            return False
        return matches_expression(record, expression)

    def _build_predicate(self, state: FilterState) -> Callable[[Any], bool]:
        ungrouped, groups = resolve_groups(state)
        ordered = order_by_selectivity(ungrouped)

        if self.fields is not None:
            undeclared = {
                e.field
                for e in [*ungrouped, *(e for g in groups for e in g.expressions)]
                if e.field not in self.fields
            }
            if undeclared:
                logger.warning(
                    "Filters reference undeclared fields %s; they match nothing",
                    sorted(undeclared),
                )

        def group_matches(record: Any, group: _Group) -> bool:
            if not group.expressions:
                return True
            results = (self._matches(record, e) for e in group.expressions)
            if group.logic is FilterLogic.OR:
                return any(results)
            return all(results)

        def predicate(record: Any) -> bool:
            if not matches_search(record, state.global_search, self.search_fields):
                return False
            if not all(self._matches(record, e) for e in ordered):
                return False
            return all(group_matches(record, g) for g in groups)

        return predicate

    def evaluate(self, records: Iterable[R], state: FilterState) -> list[R]:
        """Return the records selected by state, in input order or sorted.

        Search narrows first, then every filter and group (ANDed). When
        state.sort_by is set the result is stably sorted on that field.
        """
        started = time.perf_counter()
        predicate = self._build_predicate(state)
        selected = [r for r in records if predicate(r)]
        if state.sort_by:
            selected = sort_records(selected, state.sort_by, state.sort_order)

        elapsed = time.perf_counter() - started
        if elapsed > self.slow_threshold:
            logger.warning(
                "Slow filter evaluation: %.2fs for %d result(s)", elapsed, len(selected)
            )
        return selected

    def apply(self, records: Sequence[R], state: FilterState) -> FilterResult[R]:
        """Evaluate state and return the requested page."""
        selected = self.evaluate(records, state)
        return paginate(
            selected,
            page=state.current_page,
            page_size=state.page_size,
            total_count=len(records),
        )

    def summarize(self, records: Sequence[R], state: FilterState) -> SearchSummary:
        """Describe how much state narrows records."""
        return SearchSummary(
            has_filters=state.has_filters,
            total_count=len(records),
            filtered_count=len(self.evaluate(records, state)),
        )

    def validate(
        self, state: FilterState, fields: Sequence[FilterField]
    ) -> ValidationResult:
        """Validate state against field declarations (see validate_filters)."""
        return validate_filters(state, fields)


def _issue(field_name: str, message: str, code: ValidationCode) -> ValidationIssue:
    return ValidationIssue(field=field_name, message=message, code=code)


def _operand_values(
    expression: FilterExpression, label: str
) -> tuple[list[Any], list[ValidationIssue]]:
    op = expression.operator
    name = expression.field
    if op in (FilterOperator.IN, FilterOperator.NOT_IN):
        candidates = _candidates(expression.value)
        if candidates is None:
            return [], [
                _issue(
                    name,
                    f"{label}: '{op}' expects a list of values",
                    ValidationCode.INVALID_VALUE,
                )
            ]
        return candidates, []

    if op is FilterOperator.BETWEEN:
        bounds = _bounds(expression.value)
        if bounds is None:
            return [], [
                _issue(
                    name,
                    f"{label}: 'between' expects min and/or max",
                    ValidationCode.INVALID_VALUE,
                )
            ]
        values = [b for b in bounds if b is not None]
        low, high = (to_number(b) if b is not None else None for b in bounds)
        if low is not None and high is not None and low > high:
            return values, [
                _issue(
                    name,
                    f"{label}: min is greater than max",
                    ValidationCode.OUT_OF_RANGE,
                )
            ]
        return values, []

    if expression.value is None:
        return [], [
            _issue(
                name, f"{label}: '{op}' requires a value", ValidationCode.INVALID_VALUE
            )
        ]
    return [expression.value], []


def _check_expression(
    expression: FilterExpression, declared: FilterField
) -> list[ValidationIssue]:
    op = expression.operator
    name = expression.field
    label = declared.label or declared.key

    if declared.operators and op not in declared.operators:
        return [
            _issue(
                name,
                f"{label}: operator '{op}' is not allowed",
                ValidationCode.INVALID_VALUE,
            )
        ]
    if op in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL):
        return []

    values, issues = _operand_values(expression, label)
    numeric = op in _NUMERIC_OPERATORS or declared.type in (
        FieldType.NUMBER,
        FieldType.RANGE,
    )
    rules = declared.validation

    for value in values:
        number = to_number(value)
        if numeric and number is None:
            issues.append(
                _issue(
                    name,
                    f"{label}: '{value}' is not a number",
                    ValidationCode.INVALID_VALUE,
                )
            )
            continue
        if rules is not None and number is not None:
            if rules.min is not None and number < rules.min:
                issues.append(
                    _issue(
                        name,
                        f"{label}: {value} is below {rules.min}",
                        ValidationCode.OUT_OF_RANGE,
                    )
                )
            if rules.max is not None and number > rules.max:
                issues.append(
                    _issue(
                        name,
                        f"{label}: {value} is above {rules.max}",
                        ValidationCode.OUT_OF_RANGE,
                    )
                )
        if (
            rules is not None
            and rules.pattern
            and isinstance(value, str)
            and re.fullmatch(rules.pattern, value) is None
        ):
            issues.append(
                _issue(
                    name,
                    f"{label}: '{value}' does not match {rules.pattern}",
                    ValidationCode.INVALID_FORMAT,
                )
            )
        if (
            declared.options
            and declared.type in (FieldType.SELECT, FieldType.MULTI_SELECT)
            and not any(strict_equals(value, o) for o in declared.options)
        ):
            issues.append(
                _issue(
                    name,
                    f"{label}: '{value}' is not an available option",
                    ValidationCode.INVALID_VALUE,
                )
            )
    return issues


def validate_filters(
    state: FilterState, fields: Sequence[FilterField]
) -> ValidationResult:
    """Check a filter state against field declarations.

    Reports unknown fields, disallowed operators, malformed operands,
    non-numeric values for numeric comparisons, values outside the declared
    range or pattern, unavailable options, and required fields with no
    filter.
    """
    by_key = {f.key: f for f in fields}
    expressions = [
        *state.expressions,
        *(e for group in state.groups for e in group.expressions),
    ]
    issues: list[ValidationIssue] = []

    for expression in expressions:
        declared = by_key.get(expression.field)
        if declared is None:
            issues.append(
                _issue(
                    expression.field,
                    f"Unknown field '{expression.field}'",
                    ValidationCode.INVALID_VALUE,
                )
            )
            continue
        issues.extend(_check_expression(expression, declared))

    used = {e.field for e in expressions}
    for declared in fields:
        if declared.validation is not None and declared.validation.required:
            if declared.key not in used:
                issues.append(
                    _issue(
                        declared.key,
                        f"{declared.label or declared.key} is required",
                        ValidationCode.MISSING_REQUIRED,
                    )
                )

    return ValidationResult(errors=tuple(issues))
