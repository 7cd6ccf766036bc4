"""
PlaylistEntry model.

One hymn or chorus scheduled for a service. Entries are ordered by
order_index within (service, category); hymns always render before choruses.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulpit_scheduler.models.base import BaseModel

if TYPE_CHECKING:
    from pulpit_scheduler.models.reference import MusicItem
    from pulpit_scheduler.models.schedule import Service


class PlaylistEntry(BaseModel):
    """A music item at a 1-based position within its category."""

    __tablename__ = "playlist_entries"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )

    category: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        doc="'hymn' or 'chorus'"
    )

    item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("music_items.id"),
        nullable=False,
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="1-based position within the category"
    )

    service: Mapped["Service"] = relationship(
        "Service",
        back_populates="playlist_entries",
    )

    item: Mapped["MusicItem"] = relationship("MusicItem")

    __table_args__ = (
        UniqueConstraint("service_id", "category", "item_id", name="uq_playlist_item"),
        Index("idx_playlist_order", "service_id", "category", "order_index"),
    )

    def __repr__(self) -> str:
        return f"<PlaylistEntry({self.category} #{self.order_index}, item={self.item_id})>"
