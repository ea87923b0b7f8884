"""Unit tests for core domain models."""

from datetime import UTC, datetime, timedelta

import pytest


@pytest.mark.core
@pytest.mark.tier(0)
class TestFetchOutcome:
    """Tests for FetchOutcome."""

    def test_items_frozen_to_tuple(self) -> None:
        """Lists passed as items are stored as tuples."""
        from freshsync.core.models import FetchOutcome

        outcome = FetchOutcome(items=[1, 2], total_count=10)

        assert outcome.items == (1, 2)
        assert outcome.total_count == 10

    def test_of_counts_items(self) -> None:
        from freshsync.core.models import FetchOutcome

        assert FetchOutcome.of(["a", "b", "c"]).total_count == 3

    def test_negative_total_rejected(self) -> None:
        from freshsync.core.models import FetchOutcome

        with pytest.raises(ValueError, match="total_count"):
            FetchOutcome(items=(), total_count=-1)


@pytest.mark.core
@pytest.mark.tier(0)
class TestSyncState:
    """Tests for SyncState."""

    def test_initial_state(self) -> None:
        """A fresh state is idle, empty and never updated."""
        from freshsync.core.models import SyncPhase, SyncState

        state = SyncState()

        assert state.items == ()
        assert state.loading is False
        assert state.error is None
        assert state.total_count == 0
        assert state.last_updated is None
        assert state.retry_count == 0
        assert state.phase is SyncPhase.IDLE

    def test_evolve_returns_new_instance(self) -> None:
        from freshsync.core.models import SyncState

        state = SyncState()
        loading = state.evolve(loading=True)

        assert loading.loading is True
        assert state.loading is False

    def test_never_updated_is_stale(self) -> None:
        from freshsync.core.models import SyncState

        now = datetime(2024, 1, 1, tzinfo=UTC)
        assert SyncState().is_stale_at(now, timedelta(seconds=30)) is True

    def test_stale_at_refresh_interval(self) -> None:
        """Data becomes stale once it is refresh_interval old."""
        from freshsync.core.models import SyncState

        updated = datetime(2024, 1, 1, tzinfo=UTC)
        state = SyncState(last_updated=updated)
        interval = timedelta(seconds=30)

        assert state.is_stale_at(updated + timedelta(seconds=29), interval) is False
        assert state.is_stale_at(updated + timedelta(seconds=30), interval) is True


@pytest.mark.core
@pytest.mark.tier(0)
class TestFilterExpression:
    """Tests for FilterExpression construction and parsing."""

    def test_operator_string_coerced(self) -> None:
        from freshsync.core.models import FilterExpression, FilterOperator

        expr = FilterExpression(id="1", field="name", operator="contains", value="a")

        assert expr.operator is FilterOperator.CONTAINS

    def test_unknown_operator_rejected(self) -> None:
        """Unknown operators raise InvalidFilterError, which is a ValueError."""
        from freshsync.core.exceptions import InvalidFilterError
        from freshsync.core.models import FilterExpression

        with pytest.raises(InvalidFilterError, match="operator"):
            FilterExpression(id="1", field="name", operator="like")
        with pytest.raises(ValueError):
            FilterExpression(id="1", field="name", operator="like")

    def test_empty_field_rejected(self) -> None:
        from freshsync.core.exceptions import InvalidFilterError
        from freshsync.core.models import FilterExpression

        with pytest.raises(InvalidFilterError):
            FilterExpression(id="1", field="", operator="equals", value=1)

    def test_from_dict_accepts_camel_case_group_id(self) -> None:
        from freshsync.core.models import FilterExpression, FilterLogic

        expr = FilterExpression.from_dict(
            {
                "id": "f1",
                "field": "status",
                "operator": "equals",
                "value": "active",
                "logic": "OR",
                "groupId": "g1",
            }
        )

        assert expr.group_id == "g1"
        assert expr.logic is FilterLogic.OR

    def test_from_dict_missing_operator(self) -> None:
        from freshsync.core.exceptions import InvalidFilterError
        from freshsync.core.models import FilterExpression

        with pytest.raises(InvalidFilterError, match="operator"):
            FilterExpression.from_dict({"field": "status"})


@pytest.mark.core
@pytest.mark.tier(0)
class TestFilterState:
    """Tests for FilterState."""

    def test_defaults(self) -> None:
        from freshsync.core.models import FilterState, SortOrder

        state = FilterState()

        assert state.global_search == ""
        assert state.sort_order is SortOrder.ASC
        assert state.page_size == 50
        assert state.current_page == 0
        assert state.has_filters is False

    def test_blank_search_is_not_a_filter(self) -> None:
        from freshsync.core.models import FilterState

        assert FilterState(global_search="   ").has_filters is False
        assert FilterState(global_search="acme").has_filters is True

    def test_from_dict_builds_groups(self) -> None:
        """Nested plain data becomes expressions and groups."""
        from freshsync.core.models import FilterLogic, FilterState, SortOrder

        state = FilterState.from_dict(
            {
                "globalSearch": "acme",
                "expressions": [{"field": "score", "operator": "greater", "value": 5}],
                "groups": [
                    {
                        "id": "g",
                        "logic": "OR",
                        "expressions": [
                            {"field": "city", "operator": "equals", "value": "Oslo"}
                        ],
                    }
                ],
                "sortBy": "score",
                "sortOrder": "desc",
                "pageSize": 10,
            }
        )

        assert state.global_search == "acme"
        assert state.expressions[0].field == "score"
        assert state.groups[0].logic is FilterLogic.OR
        assert state.sort_by == "score"
        assert state.sort_order is SortOrder.DESC
        assert state.page_size == 10
        assert state.has_filters is True

    def test_negative_page_rejected(self) -> None:
        from freshsync.core.models import FilterState

        with pytest.raises(ValueError):
            FilterState(current_page=-1)


@pytest.mark.core
@pytest.mark.tier(0)
class TestValidationResult:
    def test_empty_is_valid(self) -> None:
        from freshsync.core.models import ValidationResult

        assert ValidationResult().is_valid is True
