"""Core domain models for freshsync.

These models are pure Python dataclasses with no I/O dependencies.
They represent the synchronized view (fetch outcomes, scheduler state,
cache entries) and the filter language evaluated against it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Generic, Self, TypeVar

from freshsync.core.exceptions import InvalidFilterError


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class FetchOutcome(Generic[T]):
    """The unit of data a fetch call returns.

    Attributes:
        items: Records returned by the fetch, in source order.
        total_count: Total number of records the source reports. May exceed
            len(items) when the source pages its results.

    Example:
        >>> outcome = FetchOutcome(items=[{"name": "Acme"}], total_count=1)
        >>> outcome.items
        ({'name': 'Acme'},)
    """

    items: tuple[T, ...] = ()
    total_count: int = 0

    def __post_init__(self) -> None:
        """Freeze items into a tuple and validate the count."""
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        if self.total_count < 0:
            raise ValueError("total_count cannot be negative")

    @classmethod
    def of(cls, items: Sequence[T]) -> Self:
        """Build an outcome whose total_count is the number of items."""
        return cls(items=tuple(items), total_count=len(items))


@dataclass(frozen=True, slots=True)
class FailureInfo:
    """Structured metadata about a failed fetch, used for retry decisions.

    Attributes:
        code: Machine-readable code, when the failure carries one.
        message: Human-readable message.
    """

    code: str | None = None
    message: str = ""


class SyncPhase(StrEnum):
    """Where a scheduler is in its fetch lifecycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    RETRYING = "retrying"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SyncState(Generic[T]):
    """Externally observed state of a SyncScheduler.

    Instances are immutable; the scheduler publishes a new one on every
    transition so consumers never observe a half-applied update.

    Attributes:
        items: Last successfully fetched (or cache-seeded) records.
        loading: True while a fetch is in flight.
        error: Human-readable message of the last terminal failure.
        total_count: Total count reported with items.
        last_updated: When items were last replaced by a successful fetch.
        retry_count: Retry attempt in flight, or max_retries after exhaustion.
        phase: Current lifecycle phase.
    """

    items: tuple[T, ...] = ()
    loading: bool = False
    error: str | None = None
    total_count: int = 0
    last_updated: datetime | None = None
    retry_count: int = 0
    phase: SyncPhase = SyncPhase.IDLE

    def evolve(self, **changes: Any) -> Self:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def is_stale_at(self, now: datetime, refresh_interval: timedelta) -> bool:
        """Check staleness against a reference time.

        Args:
            now: Reference time.
            refresh_interval: Age at which data counts as stale.

        Returns:
            True if never updated or older than refresh_interval.
        """
        if self.last_updated is None:
            return True
        return now - self.last_updated >= refresh_interval


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A persisted fetch outcome with the moment it was written.

    Attributes:
        payload: The cached outcome.
        timestamp: Wall-clock time the entry was written (UTC).
    """

    payload: FetchOutcome[T]
    timestamp: datetime

    def age(self, now: datetime) -> timedelta:
        """Return how old the entry is at ``now``."""
        return now - self.timestamp


@dataclass(frozen=True, slots=True)
class RetryState:
    """Progress of one logical retried operation.

    Attributes:
        attempt: Number of the retry about to run (1 for the first retry).
        last_error: Failure that triggered the retry.
        delay: Seconds waited before the retry.
    """

    attempt: int = 0
    last_error: BaseException | None = None
    delay: float = 0.0


class FilterOperator(StrEnum):
    """Operators a FilterExpression can apply to a record field."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER = "greater"
    GREATER_EQUAL = "greater_equal"
    LESS = "less"
    LESS_EQUAL = "less_equal"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


class FilterLogic(StrEnum):
    """How expressions inside a group combine."""

    AND = "AND"
    OR = "OR"


class SortOrder(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def _parse_enum(enum_type: type[StrEnum], raw: object, what: str) -> Any:
    if isinstance(raw, enum_type):
        return raw
    try:
        return enum_type(str(raw))
    except ValueError:
        valid = ", ".join(member.value for member in enum_type)
        raise InvalidFilterError(
            f"Unknown {what} '{raw}'. Expected one of: {valid}", definition=raw
        ) from None


@dataclass(frozen=True, slots=True)
class FilterExpression:
    """One atomic predicate against a record field.

    Attributes:
        id: Identifier chosen by the consumer.
        field: Record field the predicate reads.
        operator: Comparison to apply.
        value: Operand; a mapping with min/max for between, a sequence for
            in/not_in, ignored for is_null/is_not_null.
        logic: Preferred combinator when this expression defines an
            implicit group (see FilterEngine).
        group_id: Id of the FilterGroup this expression belongs to.
    """

    id: str
    field: str
    operator: FilterOperator
    value: Any = None
    logic: FilterLogic | None = None
    group_id: str | None = None

    def __post_init__(self) -> None:
        """Coerce string operators and logic into their enums."""
        object.__setattr__(
            self, "operator", _parse_enum(FilterOperator, self.operator, "operator")
        )
        if self.logic is not None:
            object.__setattr__(
                self, "logic", _parse_enum(FilterLogic, self.logic, "logic")
            )
        if not self.field:
            raise InvalidFilterError("Filter field cannot be empty", definition=self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build an expression from plain data.

        Accepts both snake_case and camelCase keys (``group_id``/``groupId``).

        Raises:
            InvalidFilterError: If required keys are missing or invalid.
        """
        try:
            field_name = data["field"]
            operator = data["operator"]
        except KeyError as e:
            raise InvalidFilterError(
                f"Filter definition is missing '{e.args[0]}'", definition=data
            ) from None
        return cls(
            id=str(data.get("id", field_name)),
            field=field_name,
            operator=operator,
            value=data.get("value"),
            logic=data.get("logic"),
            group_id=data.get("group_id", data.get("groupId")),
        )


@dataclass(frozen=True, slots=True)
class FilterGroup:
    """Expressions combined with a single logic operator.

    Attributes:
        id: Group identifier, matched against FilterExpression.group_id.
        expressions: Member expressions.
        logic: AND or OR.
    """

    id: str
    expressions: tuple[FilterExpression, ...] = ()
    logic: FilterLogic = FilterLogic.AND

    def __post_init__(self) -> None:
        """Freeze expressions and coerce logic."""
        if not isinstance(self.expressions, tuple):
            object.__setattr__(self, "expressions", tuple(self.expressions))
        object.__setattr__(self, "logic", _parse_enum(FilterLogic, self.logic, "logic"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a group from plain data."""
        if "id" not in data:
            raise InvalidFilterError("Filter group is missing 'id'", definition=data)
        return cls(
            id=str(data["id"]),
            expressions=tuple(
                FilterExpression.from_dict(e) for e in data.get("expressions", ())
            ),
            logic=data.get("logic", FilterLogic.AND),
        )


@dataclass(frozen=True, slots=True)
class FilterState:
    """Everything a consumer asks FilterEngine to apply.

    Attributes:
        global_search: Free-text search term.
        expressions: Top-level expressions (ungrouped or referencing a group).
        groups: Explicit groups.
        sort_by: Field to sort on, or None to keep input order.
        sort_order: Sort direction.
        page_size: Records per page; 0 or less disables paging.
        current_page: Zero-based page index.
    """

    global_search: str = ""
    expressions: tuple[FilterExpression, ...] = ()
    groups: tuple[FilterGroup, ...] = ()
    sort_by: str | None = None
    sort_order: SortOrder = SortOrder.ASC
    page_size: int = 50
    current_page: int = 0

    def __post_init__(self) -> None:
        """Freeze sequences and coerce the sort order."""
        if not isinstance(self.expressions, tuple):
            object.__setattr__(self, "expressions", tuple(self.expressions))
        if not isinstance(self.groups, tuple):
            object.__setattr__(self, "groups", tuple(self.groups))
        object.__setattr__(
            self, "sort_order", _parse_enum(SortOrder, self.sort_order, "sort order")
        )
        if self.current_page < 0:
            raise ValueError("current_page cannot be negative")

    @property
    def has_filters(self) -> bool:
        """True if any search term or filter is active."""
        return bool(
            self.global_search.strip()
            or self.expressions
            or any(g.expressions for g in self.groups)
        )

    def evolve(self, **changes: Any) -> Self:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a filter state from plain data (camelCase keys accepted)."""
        return cls(
            global_search=data.get("global_search", data.get("globalSearch", "")),
            expressions=tuple(
                FilterExpression.from_dict(e) for e in data.get("expressions", ())
            ),
            groups=tuple(FilterGroup.from_dict(g) for g in data.get("groups", ())),
            sort_by=data.get("sort_by", data.get("sortBy")) or None,
            sort_order=data.get("sort_order", data.get("sortOrder", SortOrder.ASC)),
            page_size=int(data.get("page_size", data.get("pageSize", 50))),
            current_page=int(data.get("current_page", data.get("currentPage", 0))),
        )


@dataclass(frozen=True, slots=True)
class FilterResult(Generic[T]):
    """One page of filtered records plus paging metadata."""

    items: tuple[T, ...]
    total_count: int
    filtered_count: int
    has_more: bool
    current_page: int
    total_pages: int


@dataclass(frozen=True, slots=True)
class SearchSummary:
    """Counts describing how much a filter state narrowed a collection."""

    has_filters: bool
    total_count: int
    filtered_count: int


class FieldType(StrEnum):
    """Kinds of filterable fields, used for validation."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    MULTI_SELECT = "multiSelect"
    BOOLEAN = "boolean"
    RANGE = "range"


@dataclass(frozen=True, slots=True)
class FieldValidation:
    """Constraints on the values a filter may use for one field."""

    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    required: bool = False


@dataclass(frozen=True, slots=True)
class FilterField:
    """Declaration of a filterable record field.

    Attributes:
        key: Record field name.
        label: Display label.
        type: Kind of values held by the field.
        operators: Operators allowed on the field; empty allows all.
        options: Allowed values for select fields; empty allows any.
        validation: Optional value constraints.
    """

    key: str
    label: str = ""
    type: FieldType = FieldType.TEXT
    operators: tuple[FilterOperator, ...] = ()
    options: tuple[Any, ...] = ()
    validation: FieldValidation | None = None


class ValidationCode(StrEnum):
    """Categories of filter validation problems."""

    INVALID_VALUE = "INVALID_VALUE"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INVALID_FORMAT = "INVALID_FORMAT"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One problem found while validating a filter state."""

    field: str
    message: str
    code: ValidationCode


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validate_filters()."""

    errors: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        """True when no issues were found."""
        return not self.errors
