"""
Unit tests for planning sessions.
"""

from uuid import uuid4

import pytest

from pulpit_scheduler.services.planning import (
    PlanningSession,
    drop_planning_session,
    get_planning_session,
    reset_planning_sessions,
)
from pulpit_scheduler.services.playlist import CatalogItem


def _hymn(number, seconds=150):
    return CatalogItem(item_id=uuid4(), category="hymn", number=number, title=f"Hymn {number}", duration_seconds=seconds)


def _chorus(number, seconds=60):
    return CatalogItem(item_id=uuid4(), category="chorus", number=number, title=f"Chorus {number}", duration_seconds=seconds)


@pytest.fixture
def planner():
    return PlanningSession("user-1")


class TestWorkingList:
    """Test the working list of a planning session."""

    def test_uses_planner_caps(self, planner):
        for number in range(1, 11):
            assert planner.add(_hymn(number)).ok

        result = planner.add(_hymn(11))

        assert result.error.code == "capacity_exceeded"
        assert len(planner.entries()) == 10

    def test_explicit_caps(self):
        planner = PlanningSession("user-2", max_hymns=1)
        planner.add(_hymn(1))

        assert planner.add(_hymn(2)).error.code == "capacity_exceeded"

    def test_zero_cap_is_honored(self):
        planner = PlanningSession("user-3", max_choruses=0)

        assert planner.add(_chorus(1)).error.code == "capacity_exceeded"
        assert planner.add(_hymn(1)).ok
        assert planner.manager.caps == {"hymn": 10, "chorus": 0}

    def test_duration(self, planner):
        planner.add(_hymn(1, seconds=200))
        planner.add(_chorus(1, seconds=70))
        planner.add(_chorus(2, seconds=50))

        duration = planner.duration()

        assert duration.hymns_seconds == 200
        assert duration.choruses_seconds == 120
        assert duration.formatted == "5:20"

    def test_remove_and_reorder(self, planner):
        for number in range(1, 4):
            planner.add(_hymn(number))
        first, second, third = planner.entries()

        assert planner.remove(second.entry_id).ok
        result = planner.reorder([third.entry_id, first.entry_id])

        assert [(e.number, e.order_index) for e in result.data] == [(3, 1), (1, 2)]

    def test_clear(self, planner):
        planner.add(_hymn(1))
        planner.save_list("Sunday")

        planner.clear()

        assert planner.entries() == []
        assert planner.saved_lists == ["Sunday"]


class TestSavedLists:
    """Test named lists."""

    def test_save_and_load(self, planner):
        planner.add(_hymn(1))
        planner.add(_chorus(4))
        planner.save_list("Easter")
        planner.clear()

        result = planner.load_list("Easter")

        assert result.ok
        assert [(e.category, e.number) for e in result.data] == [("hymn", 1), ("chorus", 4)]

    def test_loaded_list_can_be_edited(self, planner):
        hymn = _hymn(1)
        planner.add(hymn)
        planner.save_list("Easter")
        planner.clear()
        planner.load_list("Easter")

        assert planner.add(hymn).error.code == "duplicate_entry"
        assert planner.add(_hymn(2)).ok

    def test_limit(self, planner):
        planner.add(_hymn(1))
        assert planner.save_list("one").ok
        assert planner.save_list("two").ok

        result = planner.save_list("three")

        assert result.error.code == "capacity_exceeded"
        assert planner.saved_lists == ["one", "two"]

    def test_overwrite_does_not_count(self, planner):
        planner.add(_hymn(1))
        planner.save_list("one")
        planner.save_list("two")
        planner.add(_hymn(2))

        result = planner.save_list("one")

        assert result.ok
        planner.clear()
        assert len(planner.load_list("one").data) == 2

    def test_empty_name_or_list(self, planner):
        assert planner.save_list("x").error.kind == "validation"
        planner.add(_hymn(1))
        assert planner.save_list("  ").error.kind == "validation"

    def test_missing_list(self, planner):
        assert planner.load_list("nope").error.kind == "not_found"
        assert planner.delete_list("nope").error.kind == "not_found"

    def test_delete(self, planner):
        planner.add(_hymn(1))
        planner.save_list("one")

        assert planner.delete_list("one").data == []


class TestRegistry:
    def test_same_key_same_session(self):
        assert get_planning_session("a") is get_planning_session("a")
        assert get_planning_session("a") is not get_planning_session("b")

    def test_reset(self):
        first = get_planning_session("a")
        reset_planning_sessions()

        assert get_planning_session("a") is not first

    def test_drop_forgets_one_session(self):
        first = get_planning_session("a")
        first.add(_hymn(1))
        first.save_list("sunday")
        other = get_planning_session("b")

        assert drop_planning_session("a") is True
        assert drop_planning_session("a") is False

        fresh = get_planning_session("a")
        assert fresh is not first
        assert fresh.entries() == []
        assert fresh.saved_lists == []
        assert get_planning_session("b") is other
