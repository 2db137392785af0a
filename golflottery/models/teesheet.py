"""Tee slots for a day and the bookings placed into them."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .member import Member


class TeeSlot(Base):
    """A bookable start time on a given date with a fixed player capacity."""

    __tablename__ = "tee_slots"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    slot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    """Start time in zero-padded ``HH:MM`` format, so string order is time order."""

    max_members: Mapped[int] = mapped_column(Integer, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    bookings: Mapped[list["TeeSlotBooking"]] = relationship(
        back_populates="slot", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("slot_date", "start_time", name="uq_tee_slot_date_time"),
    )

    def __init__(
        self,
        *,
        slot_date: date,
        start_time: str,
        max_members: int,
        sort_order: int = 0,
    ) -> None:
        self.slot_date = slot_date
        self.start_time = start_time
        self.max_members = max_members
        self.sort_order = sort_order

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<TeeSlot(id={id}, date={date}, start={start}, max={max})>".format(
            id=self.id,
            date=self.slot_date,
            start=self.start_time,
            max=self.max_members,
        )

    @property
    def booked_count(self) -> int:
        return len(self.bookings)

    @property
    def remaining_capacity(self) -> int:
        return max(self.max_members - self.booked_count, 0)

    @classmethod
    def list_for_date(cls, session: Session, slot_date: date) -> list["TeeSlot"]:
        """Return the slots of ``slot_date`` ordered by start time."""

        stmt = (
            select(cls)
            .where(cls.slot_date == slot_date)
            .order_by(cls.start_time.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())

    @classmethod
    def ensure_for_date(
        cls,
        session: Session,
        slot_date: date,
        start_times: Iterable[str],
        max_members: int,
    ) -> list["TeeSlot"]:
        """Return the day's slots, creating any configured start time that is missing.

        Existing slots keep their stored capacity so that manual changes made
        on the tee sheet are respected.
        """

        existing = {slot.start_time: slot for slot in cls.list_for_date(session, slot_date)}
        created = False
        for index, start_time in enumerate(start_times):
            if start_time in existing:
                continue
            slot = cls(
                slot_date=slot_date,
                start_time=start_time,
                max_members=max_members,
                sort_order=index,
            )
            session.add(slot)
            existing[start_time] = slot
            created = True
        if created:
            session.flush()
        return sorted(existing.values(), key=lambda s: (s.start_time, s.id or 0))


class TeeSlotBooking(Base):
    """A single member seated in a tee slot."""

    __tablename__ = "tee_slot_bookings"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    slot_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("tee_slots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    booking_time: Mapped[str] = mapped_column(String(5), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="lottery")
    """Origin of the booking, e.g. ``"lottery"`` or ``"manual"``."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    slot: Mapped["TeeSlot"] = relationship(back_populates="bookings")
    member: Mapped["Member"] = relationship("Member")

    __table_args__ = (
        UniqueConstraint("slot_id", "member_id", name="uq_tee_slot_booking_member"),
    )

    def __init__(
        self,
        *,
        booking_date: date,
        booking_time: str,
        slot: Optional["TeeSlot"] = None,
        slot_id: Optional[int] = None,
        member_id: Optional[int] = None,
        source: str = "lottery",
    ) -> None:
        if slot is not None:
            self.slot = slot
        if slot_id is not None:
            self.slot_id = slot_id
        if member_id is not None:
            self.member_id = member_id
        self.booking_date = booking_date
        self.booking_time = booking_time
        self.source = source

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<TeeSlotBooking(id={id}, slot_id={slot}, member_id={member})>".format(
            id=self.id,
            slot=self.slot_id,
            member=self.member_id,
        )


__all__ = ["TeeSlot", "TeeSlotBooking"]
