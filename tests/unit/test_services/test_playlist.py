"""
Unit tests for the playlist manager.

Runs the ordering and capacity rules over both backends.
"""

from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from pulpit_scheduler.models.activity import ActivityLog
from pulpit_scheduler.models.playlist import PlaylistEntry
from pulpit_scheduler.services.playlist import (
    CatalogItem,
    InMemoryPlaylistBackend,
    PlaylistItem,
    PlaylistManager,
    add_playlist_entry,
    list_playlist_for_service,
    playlist_duration,
    remove_playlist_entry,
    reorder_playlist,
    rendering_order,
    service_playlist,
)


def _positions(result):
    return [(e.category, e.order_index, e.number) for e in result.data]


@pytest.fixture
def filled_playlist(db_session, sample_service, songbook):
    """Three hymns and two choruses, added chorus first."""
    for chorus in songbook["chorus"][:2]:
        assert add_playlist_entry(db_session, sample_service.id, "chorus", chorus.id).ok
    for hymn in songbook["hymn"][:3]:
        assert add_playlist_entry(db_session, sample_service.id, "hymn", hymn.id).ok
    return list_playlist_for_service(db_session, sample_service.id).data


class TestAddEntry:
    """Test add_playlist_entry."""

    def test_appends_at_end_of_category(self, db_session, sample_service, songbook):
        first = add_playlist_entry(db_session, sample_service.id, "hymn", songbook["hymn"][0].id)
        second = add_playlist_entry(db_session, sample_service.id, "hymn", songbook["hymn"][1].id)

        assert first.data.order_index == 1
        assert second.data.order_index == 2
        assert second.data.title == "Hymn 2"

    def test_capacity(self, db_session, sample_service, songbook, filled_playlist):
        result = add_playlist_entry(db_session, sample_service.id, "hymn", songbook["hymn"][3].id)

        assert result.error.code == "capacity_exceeded"
        assert result.error.kind == "validation"
        after = list_playlist_for_service(db_session, sample_service.id)
        assert _positions(after) == [
            ("hymn", 1, 1), ("hymn", 2, 2), ("hymn", 3, 3),
            ("chorus", 1, 1), ("chorus", 2, 2),
        ]

    def test_duplicate_reported_before_capacity(self, db_session, sample_service, songbook, filled_playlist):
        result = add_playlist_entry(db_session, sample_service.id, "hymn", songbook["hymn"][0].id)

        assert result.error.code == "duplicate_entry"
        assert result.error.kind == "conflict"

    def test_item_of_other_category(self, db_session, sample_service, songbook):
        result = add_playlist_entry(db_session, sample_service.id, "hymn", songbook["chorus"][0].id)

        assert result.error.kind == "validation"

    def test_unknown_category(self, db_session, sample_service, songbook):
        result = add_playlist_entry(db_session, sample_service.id, "anthem", songbook["hymn"][0].id)

        assert result.error.kind == "validation"

    def test_unknown_service_and_item(self, db_session, sample_service, songbook):
        assert add_playlist_entry(db_session, uuid4(), "hymn", songbook["hymn"][0].id).error.kind == "not_found"
        assert add_playlist_entry(db_session, sample_service.id, "hymn", uuid4()).error.kind == "not_found"

    def test_change_is_audited(self, db_session, sample_service, songbook):
        add_playlist_entry(db_session, sample_service.id, "hymn", songbook["hymn"][0].id, actor_id="user-3")

        entry = db_session.scalar(select(ActivityLog).where(ActivityLog.kind == "playlist_changed"))
        assert entry.actor_id == "user-3"
        assert entry.service_id == sample_service.id


class TestListPlaylist:
    def test_hymns_render_before_choruses(self, filled_playlist):
        assert [e.category for e in filled_playlist] == ["hymn"] * 3 + ["chorus"] * 2

    def test_unknown_service(self, db_session):
        assert list_playlist_for_service(db_session, uuid4()).error.kind == "not_found"

    def test_empty(self, db_session, sample_service):
        assert list_playlist_for_service(db_session, sample_service.id).data == []


class TestRemoveEntry:
    """Test remove_playlist_entry."""

    def test_remove_renumbers_category(self, db_session, sample_service, filled_playlist):
        middle_hymn = filled_playlist[1]

        result = remove_playlist_entry(db_session, middle_hymn.entry_id, sample_service.id)

        assert result.ok
        after = list_playlist_for_service(db_session, sample_service.id)
        assert _positions(after) == [
            ("hymn", 1, 1), ("hymn", 2, 3),
            ("chorus", 1, 1), ("chorus", 2, 2),
        ]

    def test_service_taken_from_entry(self, db_session, sample_service, filled_playlist):
        result = remove_playlist_entry(db_session, filled_playlist[0].entry_id)

        assert result.ok
        assert len(list_playlist_for_service(db_session, sample_service.id).data) == 4

    def test_entry_of_other_service(self, db_session, second_service, filled_playlist):
        result = remove_playlist_entry(db_session, filled_playlist[0].entry_id, second_service.id)

        assert result.error.kind == "not_found"

    def test_unknown_entry(self, db_session, sample_service):
        assert remove_playlist_entry(db_session, uuid4()).error.kind == "not_found"
        assert remove_playlist_entry(db_session, uuid4(), sample_service.id).error.kind == "not_found"

    def test_store_failure_rolls_back(self, db_session, sample_service, filled_playlist):
        manager = service_playlist(db_session)
        failure = OperationalError("UPDATE playlist_entries", {}, Exception("disk I/O error"))

        with patch.object(manager.backend, "write_positions", side_effect=failure):
            result = manager.remove_entry(sample_service.id, filled_playlist[0].entry_id)

        assert result.error.kind == "store"
        assert result.error.retryable is True
        count = len(db_session.scalars(select(PlaylistEntry)).all())
        assert count == 5


class TestReorder:
    """Test reorder_playlist."""

    def test_categories_renumbered_in_input_order(self, db_session, sample_service, filled_playlist):
        h1, h2, h3, c1, c2 = filled_playlist

        result = reorder_playlist(
            db_session,
            sample_service.id,
            [c2.entry_id, h3.entry_id, c1.entry_id, h1.entry_id, h2.entry_id],
        )

        assert result.ok
        assert [(e.category, e.order_index, e.number) for e in result.data] == [
            ("hymn", 1, 3), ("hymn", 2, 1), ("hymn", 3, 2),
            ("chorus", 1, 2), ("chorus", 2, 1),
        ]
        stored = list_playlist_for_service(db_session, sample_service.id)
        assert _positions(stored) == [
            ("hymn", 1, 3), ("hymn", 2, 1), ("hymn", 3, 2),
            ("chorus", 1, 2), ("chorus", 2, 1),
        ]

    def test_missing_entry_rejected(self, db_session, sample_service, filled_playlist):
        ids = [e.entry_id for e in filled_playlist]

        result = reorder_playlist(db_session, sample_service.id, list(reversed(ids[:-1])))

        assert result.error.kind == "validation"
        after = list_playlist_for_service(db_session, sample_service.id).data
        assert [e.entry_id for e in after] == ids

    def test_unknown_entry_rejected(self, db_session, sample_service, filled_playlist):
        ids = [e.entry_id for e in filled_playlist][:-1] + [uuid4()]

        assert reorder_playlist(db_session, sample_service.id, ids).error.kind == "validation"

    def test_duplicate_ids_rejected(self, db_session, sample_service, filled_playlist):
        ids = [e.entry_id for e in filled_playlist]

        result = reorder_playlist(db_session, sample_service.id, ids + [ids[0]])

        assert result.error.kind == "validation"


class TestInMemoryBackend:
    """The same rules over the in-memory backend."""

    @pytest.fixture
    def items(self):
        return [
            CatalogItem(item_id=uuid4(), category="hymn", number=n, title=f"Hymn {n}", duration_seconds=120)
            for n in range(1, 4)
        ]

    @pytest.fixture
    def manager(self, items):
        backend = InMemoryPlaylistBackend()
        for item in items:
            backend.remember(item)
        return PlaylistManager(backend, max_hymns=2, max_choruses=2)

    def test_owner_created_on_first_use(self, manager, items):
        result = manager.add_entry("draft", "hymn", items[0].item_id)

        assert result.ok
        assert manager.list_entries("draft").data[0].number == 1

    def test_caps_are_configurable(self, manager, items):
        manager.add_entry("draft", "hymn", items[0].item_id)
        manager.add_entry("draft", "hymn", items[1].item_id)

        result = manager.add_entry("draft", "hymn", items[2].item_id)

        assert result.error.code == "capacity_exceeded"

    def test_failed_write_restores_entries(self, manager, items):
        manager.add_entry("draft", "hymn", items[0].item_id)
        manager.add_entry("draft", "hymn", items[1].item_id)
        first = manager.list_entries("draft").data[0]

        with patch.object(manager.backend, "write_positions", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                manager.remove_entry("draft", first.entry_id)

        assert len(manager.list_entries("draft").data) == 2

    def test_lookup_callable(self, items):
        catalog = {item.item_id: item for item in items}
        manager = PlaylistManager(InMemoryPlaylistBackend(item_lookup=catalog.get))

        assert manager.add_entry("draft", "hymn", items[2].item_id).ok
        assert manager.add_entry("draft", "hymn", uuid4()).error.kind == "not_found"


class TestDuration:
    def test_rendering_order(self):
        entries = [
            PlaylistItem(entry_id=uuid4(), category="chorus", item_id=uuid4(), order_index=1),
            PlaylistItem(entry_id=uuid4(), category="hymn", item_id=uuid4(), order_index=2),
            PlaylistItem(entry_id=uuid4(), category="hymn", item_id=uuid4(), order_index=1),
        ]

        ordered = rendering_order(entries)

        assert [(e.category, e.order_index) for e in ordered] == [("hymn", 1), ("hymn", 2), ("chorus", 1)]

    def test_duration_per_category(self, filled_playlist):
        duration = playlist_duration(filled_playlist)

        assert duration.hymns_seconds == 181 + 182 + 183
        assert duration.choruses_seconds == 91 + 92
        assert duration.total_seconds == 729
        assert duration.formatted == "12:09"
