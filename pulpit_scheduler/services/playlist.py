"""
Playlist manager.

Keeps an ordered, capacity-bounded list of hymns and choruses per owner.
The owner is a service id for the database backend, or a planning-session
key for the in-memory backend; the rules live in PlaylistManager and do
not depend on where entries are stored.

Ordering rules:
- order_index is 1-based within (owner, category)
- rendering is all hymns by order_index, then all choruses by order_index
- positions are recomputed on every structural change and written as one batch
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, Generator, Hashable, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from pulpit_scheduler.config import get_settings
from pulpit_scheduler.database import unit_of_work
from pulpit_scheduler.models.playlist import PlaylistEntry
from pulpit_scheduler.models.reference import CHORUS, HYMN, MUSIC_CATEGORIES, MusicItem
from pulpit_scheduler.models.schedule import Service
from pulpit_scheduler.services.activity import record_activity
from pulpit_scheduler.services.exceptions import (
    CapacityError,
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from pulpit_scheduler.services.results import returns_result

logger = logging.getLogger(__name__)

CATEGORY_RANK = {category: rank for rank, category in enumerate(MUSIC_CATEGORIES)}


@dataclass(frozen=True)
class CatalogItem:
    """The songbook fields a playlist needs."""

    item_id: UUID
    category: str
    number: int
    title: str
    duration_seconds: int = 0

    @classmethod
    def from_model(cls, item: MusicItem) -> "CatalogItem":
        return cls(
            item_id=item.id,
            category=item.category,
            number=item.number,
            title=item.title,
            duration_seconds=item.duration_seconds,
        )


@dataclass(frozen=True)
class PlaylistItem:
    """A playlist entry joined with its songbook item."""

    entry_id: UUID
    category: str
    item_id: UUID
    order_index: int
    number: int = 0
    title: str = ""
    duration_seconds: int = 0


@dataclass
class PlaylistDuration:
    hymns_seconds: int
    choruses_seconds: int

    @property
    def total_seconds(self) -> int:
        return self.hymns_seconds + self.choruses_seconds

    @property
    def formatted(self) -> str:
        """Total as m:ss."""
        minutes, seconds = divmod(self.total_seconds, 60)
        return f"{minutes}:{seconds:02d}"


def rendering_order(entries: Sequence[PlaylistItem]) -> list[PlaylistItem]:
    """Hymns by position, then choruses by position."""
    return sorted(entries, key=lambda e: (CATEGORY_RANK[e.category], e.order_index))


def playlist_duration(entries: Sequence[PlaylistItem]) -> PlaylistDuration:
    """Summed durations per category."""
    return PlaylistDuration(
        hymns_seconds=sum(e.duration_seconds for e in entries if e.category == HYMN),
        choruses_seconds=sum(e.duration_seconds for e in entries if e.category == CHORUS),
    )


# =============================================================================
# Backends
# =============================================================================


class PlaylistBackend(ABC):
    """
    Storage for playlist entries.

    Every PlaylistManager operation runs inside one ``transaction()``;
    if the block raises, nothing it wrote may remain visible.
    """

    @abstractmethod
    def transaction(self):
        """Context manager making the enclosed writes all-or-nothing."""

    @abstractmethod
    def ensure_owner(self, owner: Hashable) -> None:
        """Raise NotFoundError if the owner does not exist."""

    @abstractmethod
    def find_item(self, item_id: UUID) -> Optional[CatalogItem]:
        """Songbook lookup."""

    @abstractmethod
    def load(self, owner: Hashable) -> list[PlaylistItem]:
        """All entries of the owner, any order."""

    @abstractmethod
    def insert(self, owner: Hashable, item: CatalogItem, order_index: int) -> PlaylistItem:
        ...

    @abstractmethod
    def delete(self, owner: Hashable, entry_id: UUID) -> None:
        ...

    @abstractmethod
    def write_positions(self, owner: Hashable, positions: dict[UUID, int]) -> None:
        """Set order_index for many entries in a single batch."""

    def record_change(self, owner: Hashable, description: str, actor_id: Optional[str]) -> None:
        """Audit hook; the default only logs."""
        logger.debug(f"Playlist {owner}: {description}")


class DatabasePlaylistBackend(PlaylistBackend):
    """Entries in the playlist_entries table, keyed by service id."""

    def __init__(self, session: Session):
        self.session = session

    def transaction(self):
        return unit_of_work(self.session)

    def ensure_owner(self, owner: UUID) -> None:
        if self.session.get(Service, owner) is None:
            raise NotFoundError(f"Service {owner} not found", service_id=str(owner))

    def find_item(self, item_id: UUID) -> Optional[CatalogItem]:
        item = self.session.get(MusicItem, item_id)
        return CatalogItem.from_model(item) if item is not None else None

    def load(self, owner: UUID) -> list[PlaylistItem]:
        stmt = (
            select(PlaylistEntry, MusicItem)
            .join(MusicItem, PlaylistEntry.item_id == MusicItem.id)
            .where(PlaylistEntry.service_id == owner)
        )
        return [
            PlaylistItem(
                entry_id=entry.id,
                category=entry.category,
                item_id=entry.item_id,
                order_index=entry.order_index,
                number=item.number,
                title=item.title,
                duration_seconds=item.duration_seconds,
            )
            for entry, item in self.session.execute(stmt).all()
        ]

    def insert(self, owner: UUID, item: CatalogItem, order_index: int) -> PlaylistItem:
        entry = PlaylistEntry(
            service_id=owner,
            category=item.category,
            item_id=item.item_id,
            order_index=order_index,
        )
        self.session.add(entry)
        self.session.flush()
        return PlaylistItem(
            entry_id=entry.id,
            category=item.category,
            item_id=item.item_id,
            order_index=order_index,
            number=item.number,
            title=item.title,
            duration_seconds=item.duration_seconds,
        )

    def delete(self, owner: UUID, entry_id: UUID) -> None:
        entry = self.session.get(PlaylistEntry, entry_id)
        if entry is None or entry.service_id != owner:
            raise NotFoundError(f"Playlist entry {entry_id} not found", entry_id=str(entry_id))
        self.session.delete(entry)
        self.session.flush()

    def write_positions(self, owner: UUID, positions: dict[UUID, int]) -> None:
        if not positions:
            return
        # ORM bulk UPDATE by primary key: one executemany statement
        self.session.execute(
            update(PlaylistEntry),
            [{"id": entry_id, "order_index": index} for entry_id, index in positions.items()],
        )

    def record_change(self, owner: UUID, description: str, actor_id: Optional[str]) -> None:
        record_activity(
            self.session,
            "playlist_changed",
            description,
            actor_id=actor_id,
            service_id=owner,
        )


class InMemoryPlaylistBackend(PlaylistBackend):
    """
    Entries held in process memory, keyed by a planning-session key.

    Owners are created on first use. Songbook items are looked up through
    ``item_lookup`` when given, else through items registered with remember().
    """

    def __init__(self, item_lookup: Optional[Callable[[UUID], Optional[CatalogItem]]] = None):
        self._entries: dict[Hashable, list[PlaylistItem]] = {}
        self._catalog: dict[UUID, CatalogItem] = {}
        self._item_lookup = item_lookup

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        snapshot = {owner: list(entries) for owner, entries in self._entries.items()}
        try:
            yield
        except Exception:
            self._entries = snapshot
            raise

    def remember(self, item: CatalogItem) -> None:
        self._catalog[item.item_id] = item

    def ensure_owner(self, owner: Hashable) -> None:
        self._entries.setdefault(owner, [])

    def find_item(self, item_id: UUID) -> Optional[CatalogItem]:
        if self._item_lookup is not None:
            return self._item_lookup(item_id)
        return self._catalog.get(item_id)

    def load(self, owner: Hashable) -> list[PlaylistItem]:
        return list(self._entries.get(owner, []))

    def insert(self, owner: Hashable, item: CatalogItem, order_index: int) -> PlaylistItem:
        entry = PlaylistItem(
            entry_id=uuid4(),
            category=item.category,
            item_id=item.item_id,
            order_index=order_index,
            number=item.number,
            title=item.title,
            duration_seconds=item.duration_seconds,
        )
        self._entries.setdefault(owner, []).append(entry)
        return entry

    def delete(self, owner: Hashable, entry_id: UUID) -> None:
        entries = self._entries.get(owner, [])
        remaining = [e for e in entries if e.entry_id != entry_id]
        if len(remaining) == len(entries):
            raise NotFoundError(f"Playlist entry {entry_id} not found", entry_id=str(entry_id))
        self._entries[owner] = remaining

    def write_positions(self, owner: Hashable, positions: dict[UUID, int]) -> None:
        self._entries[owner] = [
            replace(e, order_index=positions[e.entry_id]) if e.entry_id in positions else e
            for e in self._entries.get(owner, [])
        ]

    def replace_all(self, owner: Hashable, entries: Sequence[PlaylistItem]) -> None:
        self._entries[owner] = list(entries)

    def clear(self, owner: Hashable) -> None:
        self._entries.pop(owner, None)


# =============================================================================
# Manager
# =============================================================================


def _validate_category(category: str) -> None:
    if category not in MUSIC_CATEGORIES:
        raise ValidationError(
            f"Invalid category: {category}. Valid categories: {', '.join(MUSIC_CATEGORIES)}",
            category=category,
        )


def _renumber(entries: Sequence[PlaylistItem]) -> dict[UUID, int]:
    """1..n positions for entries of one category, in the given order."""
    return {entry.entry_id: index for index, entry in enumerate(entries, start=1)}


class PlaylistManager:
    """
    Capacity and ordering rules for a playlist, independent of storage.

    Args:
        backend: Where entries live
        max_hymns: Cap for the hymn category
        max_choruses: Cap for the chorus category
    """

    def __init__(self, backend: PlaylistBackend, max_hymns: int = 3, max_choruses: int = 3):
        self.backend = backend
        self.caps = {HYMN: max_hymns, CHORUS: max_choruses}

    @returns_result("add_playlist_entry")
    def add_entry(
        self,
        owner: Hashable,
        category: str,
        item_id: UUID,
        actor_id: Optional[str] = None,
    ) -> PlaylistItem:
        """
        Append a music item at the end of its category.

        Failures:
            DuplicateEntryError: The item is already in this category
            CapacityError: The category is at its cap
            ValidationError: Unknown category, or item of another category
            NotFoundError: Unknown owner or item
        """
        _validate_category(category)

        with self.backend.transaction():
            self.backend.ensure_owner(owner)

            item = self.backend.find_item(item_id)
            if item is None:
                raise NotFoundError(f"Music item {item_id} not found", item_id=str(item_id))
            if item.category != category:
                raise ValidationError(
                    f"Item {item_id} is a {item.category}, not a {category}",
                    item_id=str(item_id),
                )

            in_category = [e for e in self.backend.load(owner) if e.category == category]

            if any(e.item_id == item_id for e in in_category):
                raise DuplicateEntryError(
                    f"{category.capitalize()} #{item.number} is already in the playlist",
                    item_id=str(item_id),
                )

            cap = self.caps[category]
            if len(in_category) >= cap:
                raise CapacityError(
                    f"At most {cap} {category} entries allowed",
                    category=category,
                    cap=cap,
                )

            order_index = max((e.order_index for e in in_category), default=0) + 1
            entry = self.backend.insert(owner, item, order_index)
            self.backend.record_change(
                owner, f"Added {category} #{item.number} '{item.title}'", actor_id
            )

        logger.info(f"Playlist {owner}: added {category} #{item.number} at {order_index}")
        return entry

    @returns_result("remove_playlist_entry")
    def remove_entry(
        self,
        owner: Hashable,
        entry_id: UUID,
        actor_id: Optional[str] = None,
    ) -> None:
        """Remove an entry and close the gap in its category."""
        with self.backend.transaction():
            self.backend.ensure_owner(owner)

            entries = self.backend.load(owner)
            target = next((e for e in entries if e.entry_id == entry_id), None)
            if target is None:
                raise NotFoundError(f"Playlist entry {entry_id} not found", entry_id=str(entry_id))

            self.backend.delete(owner, entry_id)

            remaining = sorted(
                (e for e in entries if e.category == target.category and e.entry_id != entry_id),
                key=lambda e: e.order_index,
            )
            self.backend.write_positions(owner, _renumber(remaining))
            self.backend.record_change(
                owner, f"Removed {target.category} #{target.number}", actor_id
            )

        logger.info(f"Playlist {owner}: removed entry {entry_id}")

    @returns_result("reorder_playlist")
    def reorder(
        self,
        owner: Hashable,
        ordered_entry_ids: Sequence[UUID],
        actor_id: Optional[str] = None,
    ) -> list[PlaylistItem]:
        """
        Apply a complete new ordering.

        ``ordered_entry_ids`` must contain every entry id of the owner exactly
        once. Hymns are renumbered 1..n in the order they appear in the list,
        then choruses 1..m; all positions are written in one batch.

        Returns:
            The playlist in rendering order
        """
        with self.backend.transaction():
            self.backend.ensure_owner(owner)

            entries = {e.entry_id: e for e in self.backend.load(owner)}
            requested = list(ordered_entry_ids)

            if len(set(requested)) != len(requested):
                raise ValidationError("Ordering contains the same entry more than once")
            if set(requested) != set(entries):
                missing = set(entries) - set(requested)
                unknown = set(requested) - set(entries)
                raise ValidationError(
                    "Ordering must list every playlist entry exactly once",
                    missing=[str(i) for i in missing],
                    unknown=[str(i) for i in unknown],
                )

            positions: dict[UUID, int] = {}
            for category in MUSIC_CATEGORIES:
                block = [entries[i] for i in requested if entries[i].category == category]
                positions.update(_renumber(block))

            self.backend.write_positions(owner, positions)
            self.backend.record_change(owner, "Playlist reordered", actor_id)

        logger.info(f"Playlist {owner}: reordered {len(positions)} entries")
        return rendering_order([replace(e, order_index=positions[i]) for i, e in entries.items()])

    @returns_result("list_playlist")
    def list_entries(self, owner: Hashable) -> list[PlaylistItem]:
        """The playlist in rendering order."""
        self.backend.ensure_owner(owner)
        return rendering_order(self.backend.load(owner))


# =============================================================================
# Service playlists
# =============================================================================


def service_playlist(session: Session) -> PlaylistManager:
    """A manager over the database backend with the configured per-service caps."""
    settings = get_settings()
    return PlaylistManager(
        DatabasePlaylistBackend(session),
        max_hymns=settings.max_hymns_per_service,
        max_choruses=settings.max_choruses_per_service,
    )


def add_playlist_entry(
    session: Session,
    service_id: UUID,
    category: str,
    item_id: UUID,
    actor_id: Optional[str] = None,
):
    return service_playlist(session).add_entry(service_id, category, item_id, actor_id=actor_id)


@returns_result("remove_playlist_entry")
def remove_playlist_entry(
    session: Session,
    entry_id: UUID,
    service_id: Optional[UUID] = None,
    actor_id: Optional[str] = None,
):
    """
    Remove an entry from its service playlist.

    When service_id is omitted it is taken from the entry itself.
    """
    if service_id is None:
        entry = session.get(PlaylistEntry, entry_id)
        if entry is None:
            raise NotFoundError(f"Playlist entry {entry_id} not found", entry_id=str(entry_id))
        service_id = entry.service_id

    return service_playlist(session).remove_entry(service_id, entry_id, actor_id=actor_id)


def reorder_playlist(
    session: Session,
    service_id: UUID,
    ordered_entry_ids: Sequence[UUID],
    actor_id: Optional[str] = None,
):
    return service_playlist(session).reorder(service_id, ordered_entry_ids, actor_id=actor_id)


def list_playlist_for_service(session: Session, service_id: UUID):
    return service_playlist(session).list_entries(service_id)
