"""
Planning sessions ("calculator" mode).

A planning session is a playlist that is not tied to a service: an
organizer drafts hymns and choruses, sees the total duration, and can keep
a small number of named lists to load back later. It uses the same
PlaylistManager rules as service playlists over an in-memory backend,
with the larger planner caps.

Sessions live in process memory and are looked up by key.
"""

import logging
import threading
from typing import Optional, Sequence
from uuid import UUID

from pulpit_scheduler.config import get_settings
from pulpit_scheduler.services.exceptions import CapacityError, NotFoundError, ValidationError
from pulpit_scheduler.services.playlist import (
    CatalogItem,
    InMemoryPlaylistBackend,
    PlaylistDuration,
    PlaylistItem,
    PlaylistManager,
    playlist_duration,
    rendering_order,
)
from pulpit_scheduler.services.results import OperationResult, returns_result

logger = logging.getLogger(__name__)


class PlanningSession:
    """
    A working playlist plus up to ``max_saved_lists`` named snapshots.

    Args:
        key: Identifier of the session (e.g. the user id)
        max_hymns: Hymn cap for the working list
        max_choruses: Chorus cap for the working list
        max_saved_lists: How many named lists can be kept
    """

    def __init__(
        self,
        key: str,
        max_hymns: Optional[int] = None,
        max_choruses: Optional[int] = None,
        max_saved_lists: Optional[int] = None,
    ):
        settings = get_settings()
        self.key = key
        self.backend = InMemoryPlaylistBackend()
        self.manager = PlaylistManager(
            self.backend,
            max_hymns=settings.planner_max_hymns if max_hymns is None else max_hymns,
            max_choruses=settings.planner_max_choruses if max_choruses is None else max_choruses,
        )
        self.max_saved_lists = (
            settings.planner_max_saved_lists if max_saved_lists is None else max_saved_lists
        )
        self._saved: dict[str, list[PlaylistItem]] = {}

    # Working list

    def add(self, item: CatalogItem) -> OperationResult:
        """Append a songbook item to the working list."""
        self.backend.remember(item)
        return self.manager.add_entry(self.key, item.category, item.item_id)

    def remove(self, entry_id: UUID) -> OperationResult:
        return self.manager.remove_entry(self.key, entry_id)

    def reorder(self, ordered_entry_ids: Sequence[UUID]) -> OperationResult:
        return self.manager.reorder(self.key, ordered_entry_ids)

    def entries(self) -> list[PlaylistItem]:
        return rendering_order(self.backend.load(self.key))

    def duration(self) -> PlaylistDuration:
        return playlist_duration(self.entries())

    def clear(self) -> None:
        """Empty the working list. Saved lists are kept."""
        self.backend.clear(self.key)

    # Saved lists

    @property
    def saved_lists(self) -> list[str]:
        return sorted(self._saved)

    @returns_result("save_planning_list")
    def save_list(self, name: str) -> list[str]:
        """
        Keep the working list under ``name``.

        Saving under an existing name overwrites it and does not count
        against the limit.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("List name is required", field="name")

        entries = self.entries()
        if not entries:
            raise ValidationError("Cannot save an empty list")

        if name not in self._saved and len(self._saved) >= self.max_saved_lists:
            raise CapacityError(
                f"At most {self.max_saved_lists} saved lists allowed",
                cap=self.max_saved_lists,
            )

        self._saved[name] = entries
        logger.info(f"Planning session {self.key}: saved list '{name}' ({len(entries)} entries)")
        return self.saved_lists

    @returns_result("load_planning_list")
    def load_list(self, name: str) -> list[PlaylistItem]:
        """Replace the working list with a saved one."""
        if name not in self._saved:
            raise NotFoundError(f"No saved list named '{name}'", name=name)

        for entry in self._saved[name]:
            self.backend.remember(
                CatalogItem(
                    item_id=entry.item_id,
                    category=entry.category,
                    number=entry.number,
                    title=entry.title,
                    duration_seconds=entry.duration_seconds,
                )
            )
        self.backend.replace_all(self.key, self._saved[name])
        return self.entries()

    @returns_result("delete_planning_list")
    def delete_list(self, name: str) -> list[str]:
        if self._saved.pop(name, None) is None:
            raise NotFoundError(f"No saved list named '{name}'", name=name)
        return self.saved_lists


_sessions: dict[str, PlanningSession] = {}
_sessions_lock = threading.Lock()


def get_planning_session(key: str) -> PlanningSession:
    """The planning session for ``key``, created on first use."""
    with _sessions_lock:
        session = _sessions.get(key)
        if session is None:
            session = PlanningSession(key)
            _sessions[key] = session
        return session


def drop_planning_session(key: str) -> bool:
    """
    Forget the planning session for ``key``, saved lists included.

    Returns:
        True if a session existed
    """
    with _sessions_lock:
        dropped = _sessions.pop(key, None) is not None
    if dropped:
        logger.info(f"Planning session {key} dropped")
    return dropped


def reset_planning_sessions() -> None:
    """Forget every planning session."""
    with _sessions_lock:
        _sessions.clear()
