"""Database models for lottery entries, groups, and run records."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .member import Member
    from .teesheet import TeeSlot


STATUS_PENDING = "PENDING"
STATUS_PROCESSING = "PROCESSING"
STATUS_ASSIGNED = "ASSIGNED"
STATUS_CANCELLED = "CANCELLED"

LOTTERY_STATUSES = (
    STATUS_PENDING,
    STATUS_PROCESSING,
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
)

TIME_WINDOWS = ("EARLY_MORNING", "MORNING", "MIDDAY", "AFTERNOON")
"""Preference windows in tee-sheet order."""

_STATUS_CHECK = "status IN ('PENDING','PROCESSING','ASSIGNED','CANCELLED')"


class LotteryEntry(Base):
    """One member's lottery request for a single date."""

    __tablename__ = "lottery_entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Member who submitted the entry."""

    lottery_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    """Date the member wants to play."""

    preferred_window: Mapped[str] = mapped_column(String(20), nullable=False)
    """Preferred time window (one of :data:`TIME_WINDOWS`)."""

    alternate_window: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    """Backup window tried when the preferred window is full."""

    specific_time_preference: Mapped[Optional[str]] = mapped_column(
        String(5), nullable=True
    )
    """Optional ``HH:MM`` slot the member would like inside the preferred window."""

    member_class: Mapped[str] = mapped_column(String(50), nullable=False)
    """Member class snapshot taken at submission time."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING)
    """Lifecycle status (one of :data:`LOTTERY_STATUSES`)."""

    assigned_slot_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("tee_slots.id", ondelete="SET NULL"), nullable=True
    )
    """Tee slot assigned by a lottery run."""

    unassigned_reason: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    """Reason recorded when a run could not place the entry."""

    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Timestamp of the run that settled this entry; ``None`` until processed."""

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member: Mapped["Member"] = relationship("Member")
    assigned_slot: Mapped[Optional["TeeSlot"]] = relationship("TeeSlot")

    __table_args__ = (
        CheckConstraint(_STATUS_CHECK, name="entry_status_enum"),
        Index("ix_lottery_entries_date_status", "lottery_date", "status"),
    )

    def __init__(
        self,
        *,
        lottery_date: date,
        preferred_window: str,
        member_class: str,
        member: Optional["Member"] = None,
        member_id: Optional[int] = None,
        alternate_window: Optional[str] = None,
        specific_time_preference: Optional[str] = None,
        status: str = STATUS_PENDING,
        submitted_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        if member is not None:
            self.member = member
        if member_id is not None:
            self.member_id = member_id
        self.lottery_date = lottery_date
        self.preferred_window = preferred_window
        self.alternate_window = alternate_window
        self.specific_time_preference = specific_time_preference
        self.member_class = member_class
        self.status = status
        if submitted_at is not None:
            self.submitted_at = submitted_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryEntry(id={id}, member_id={member}, date={date}, status={status})>".format(
            id=self.id,
            member=self.member_id,
            date=self.lottery_date,
            status=self.status,
        )

    @property
    def member_ids(self) -> list[int]:
        return [self.member_id]

    @property
    def party_size(self) -> int:
        return 1

    @property
    def is_editable(self) -> bool:
        """``True`` while the entry is pending and no run has settled it."""
        return self.status == STATUS_PENDING and self.processed_at is None

    @classmethod
    def get_active_for_member(
        cls, session: Session, member_id: int, lottery_date: date
    ) -> Optional["LotteryEntry"]:
        """Return the member's non-cancelled entry for ``lottery_date``."""

        return session.scalar(
            select(cls).where(
                cls.member_id == member_id,
                cls.lottery_date == lottery_date,
                cls.status != STATUS_CANCELLED,
            )
        )


class LotteryGroup(Base):
    """Entry submitted by a leader for a fixed set of members sharing one outcome."""

    __tablename__ = "lottery_groups"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    leader_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Member who submitted the group and whose profile scores it."""

    lottery_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    member_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    """Ordered member ids, leader first."""

    preferred_window: Mapped[str] = mapped_column(String(20), nullable=False)
    alternate_window: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    specific_time_preference: Mapped[Optional[str]] = mapped_column(
        String(5), nullable=True
    )
    leader_member_class: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING)
    assigned_slot_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("tee_slots.id", ondelete="SET NULL"), nullable=True
    )
    unassigned_reason: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    leader: Mapped["Member"] = relationship("Member")
    assigned_slot: Mapped[Optional["TeeSlot"]] = relationship("TeeSlot")

    __table_args__ = (
        CheckConstraint(_STATUS_CHECK, name="group_status_enum"),
        Index("ix_lottery_groups_date_status", "lottery_date", "status"),
    )

    def __init__(
        self,
        *,
        lottery_date: date,
        member_ids: list[int],
        preferred_window: str,
        leader_member_class: str,
        leader: Optional["Member"] = None,
        leader_id: Optional[int] = None,
        alternate_window: Optional[str] = None,
        specific_time_preference: Optional[str] = None,
        status: str = STATUS_PENDING,
        submitted_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        if leader is not None:
            self.leader = leader
        if leader_id is not None:
            self.leader_id = leader_id
        self.lottery_date = lottery_date
        self.member_ids = list(member_ids)
        self.preferred_window = preferred_window
        self.alternate_window = alternate_window
        self.specific_time_preference = specific_time_preference
        self.leader_member_class = leader_member_class
        self.status = status
        if submitted_at is not None:
            self.submitted_at = submitted_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryGroup(id={id}, leader_id={leader}, size={size}, date={date}, status={status})>".format(
            id=self.id,
            leader=self.leader_id,
            size=len(self.member_ids or []),
            date=self.lottery_date,
            status=self.status,
        )

    @property
    def member_id(self) -> int:
        """Member whose profile and fairness row represent the group."""
        return self.leader_id

    @property
    def party_size(self) -> int:
        return len(self.member_ids)

    @property
    def is_editable(self) -> bool:
        return self.status == STATUS_PENDING and self.processed_at is None

    @classmethod
    def get_active_containing(
        cls, session: Session, member_id: int, lottery_date: date
    ) -> Optional["LotteryGroup"]:
        """Return the non-cancelled group on ``lottery_date`` that lists ``member_id``."""

        groups = session.scalars(
            select(cls)
            .where(cls.lottery_date == lottery_date, cls.status != STATUS_CANCELLED)
            .order_by(cls.id.asc())
        ).all()
        for group in groups:
            if member_id in group.member_ids:
                return group
        return None


class LotteryRun(Base):
    """Audit record of one lottery run that processed entries for a date."""

    __tablename__ = "lottery_runs"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    lottery_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    processed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_entries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookings_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __init__(
        self,
        *,
        lottery_date: date,
        processed_count: int = 0,
        total_entries: int = 0,
        bookings_created: int = 0,
        status: str = "completed",
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        self.lottery_date = lottery_date
        self.processed_count = processed_count
        self.total_entries = total_entries
        self.bookings_created = bookings_created
        self.status = status
        if started_at is not None:
            self.started_at = started_at
        self.completed_at = completed_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryRun(id={id}, date={date}, processed={processed}, bookings={bookings})>".format(
            id=self.id,
            date=self.lottery_date,
            processed=self.processed_count,
            bookings=self.bookings_created,
        )


__all__ = [
    "LOTTERY_STATUSES",
    "STATUS_ASSIGNED",
    "STATUS_CANCELLED",
    "STATUS_PENDING",
    "STATUS_PROCESSING",
    "TIME_WINDOWS",
    "LotteryEntry",
    "LotteryGroup",
    "LotteryRun",
]
