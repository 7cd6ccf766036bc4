"""
Reading model.

A scripture reading attached to a service slot ('intro' or 'final').
At most one reading exists per (service, role); saving again replaces it.
"""

import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulpit_scheduler.models.base import BaseModel

if TYPE_CHECKING:
    from pulpit_scheduler.models.reference import Person
    from pulpit_scheduler.models.schedule import Service


READING_ROLES = ("intro", "final")


class Reading(BaseModel):
    """
    A scripture passage read at a service.

    Repeat readings point at the earlier reading of the same passage
    through original_reading_id.
    """

    __tablename__ = "readings"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        doc="'intro' or 'final'"
    )

    # Passage
    book: Mapped[str] = mapped_column(String(60), nullable=False)
    chapter_start: Mapped[int] = mapped_column(Integer, nullable=False)
    verse_start: Mapped[int] = mapped_column(Integer, nullable=False)
    chapter_end: Mapped[int] = mapped_column(Integer, nullable=False)
    verse_end: Mapped[int] = mapped_column(Integer, nullable=False)

    reader_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
    )

    is_repeat: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Reader confirmed re-reading an already read passage"
    )

    original_reading_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("readings.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    service: Mapped["Service"] = relationship(
        "Service",
        back_populates="readings",
        foreign_keys=[service_id],
    )

    reader: Mapped["Person"] = relationship("Person")

    original_reading: Mapped[Optional["Reading"]] = relationship(
        "Reading",
        remote_side="Reading.id",
        foreign_keys=[original_reading_id],
    )

    __table_args__ = (
        UniqueConstraint("service_id", "role", name="uq_reading_service_role"),
        Index(
            "idx_reading_passage",
            "book", "chapter_start", "verse_start", "chapter_end", "verse_end",
        ),
        Index("idx_reading_reader", "reader_id"),
    )

    @property
    def passage(self) -> tuple[str, int, int, int, int]:
        return (self.book, self.chapter_start, self.verse_start, self.chapter_end, self.verse_end)

    def __repr__(self) -> str:
        return (
            f"<Reading({self.role} {self.book} {self.chapter_start}:{self.verse_start}"
            f"-{self.chapter_end}:{self.verse_end}, repeat={self.is_repeat})>"
        )
