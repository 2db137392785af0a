"""Per-member speed and fairness state consumed by the lottery engine."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .member import Member


SPEED_TIERS = ("FAST", "AVERAGE", "SLOW")


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` key used to bucket fairness rows."""
    return f"{day.year:04d}-{day.month:02d}"


class MemberSpeedProfile(Base):
    """Rolling pace-of-play estimate and admin priority override for a member."""

    __tablename__ = "member_speed_profiles"

    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True
    )
    """Owning member; one profile per member."""

    average_minutes: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    """Average round duration in minutes, ``None`` until pace data exists."""

    speed_tier: Mapped[str] = mapped_column(String(10), nullable=False, default="AVERAGE")
    """Tier derived from ``average_minutes`` unless ``manual_override`` is set."""

    admin_priority_adjustment: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    """Signed manual priority tweak added to every lottery score."""

    manual_override: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    """When ``True`` pace recalculation keeps the admin-selected tier."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_calculated: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member: Mapped["Member"] = relationship(back_populates="speed_profile")

    __table_args__ = (
        CheckConstraint("speed_tier IN ('FAST','AVERAGE','SLOW')", name="speed_tier_enum"),
    )

    def __init__(
        self,
        *,
        member: Optional["Member"] = None,
        member_id: Optional[int] = None,
        average_minutes: Optional[float] = None,
        speed_tier: str = "AVERAGE",
        admin_priority_adjustment: int = 0,
        manual_override: bool = False,
        notes: Optional[str] = None,
        last_calculated: Optional[datetime] = None,
    ) -> None:
        if member is not None:
            self.member = member
        if member_id is not None:
            self.member_id = member_id
        self.average_minutes = average_minutes
        self.speed_tier = speed_tier
        self.admin_priority_adjustment = admin_priority_adjustment
        self.manual_override = manual_override
        self.notes = notes
        self.last_calculated = last_calculated

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<MemberSpeedProfile(member_id={m}, tier={tier}, avg={avg}, adj={adj})>".format(
            m=self.member_id,
            tier=self.speed_tier,
            avg=self.average_minutes,
            adj=self.admin_priority_adjustment,
        )

    @classmethod
    def get_or_create(cls, session: Session, member_id: int) -> "MemberSpeedProfile":
        """Return the member's profile, adding a default AVERAGE one when missing."""

        profile = session.get(cls, member_id)
        if profile is None:
            profile = cls(member_id=member_id)
            session.add(profile)
        return profile


class MemberFairnessScore(Base):
    """Monthly accumulator of how well a member's lottery preferences were served."""

    __tablename__ = "member_fairness_scores"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    current_month: Mapped[str] = mapped_column(String(7), nullable=False)
    """Month bucket in ``YYYY-MM`` format."""

    total_entries_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    preferences_granted_month: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    preference_fulfillment_rate: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    days_without_good_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Consecutive processed entries without a preferred-window assignment."""

    fairness_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Derived priority boost; higher means the member has been under-served."""

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    member: Mapped["Member"] = relationship(back_populates="fairness_scores")

    __table_args__ = (
        UniqueConstraint("member_id", "current_month", name="uq_member_fairness_month"),
    )

    def __init__(
        self,
        *,
        current_month: str,
        member: Optional["Member"] = None,
        member_id: Optional[int] = None,
        total_entries_month: int = 0,
        preferences_granted_month: int = 0,
        preference_fulfillment_rate: float = 0.0,
        days_without_good_time: int = 0,
        fairness_score: int = 0,
        last_updated: Optional[datetime] = None,
    ) -> None:
        if member is not None:
            self.member = member
        if member_id is not None:
            self.member_id = member_id
        self.current_month = current_month
        self.total_entries_month = total_entries_month
        self.preferences_granted_month = preferences_granted_month
        self.preference_fulfillment_rate = preference_fulfillment_rate
        self.days_without_good_time = days_without_good_time
        self.fairness_score = fairness_score
        if last_updated is not None:
            self.last_updated = last_updated

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<MemberFairnessScore(member_id={m}, month={month}, score={score}, days={days})>".format(
            m=self.member_id,
            month=self.current_month,
            score=self.fairness_score,
            days=self.days_without_good_time,
        )

    @classmethod
    def get_for_month(
        cls, session: Session, member_id: int, current_month: str
    ) -> Optional["MemberFairnessScore"]:
        """Return the row for ``member_id`` in ``current_month`` if it exists."""

        return session.scalar(
            select(cls).where(
                cls.member_id == member_id, cls.current_month == current_month
            )
        )

    @classmethod
    def latest_on_or_before(
        cls, session: Session, member_id: int, current_month: str
    ) -> Optional["MemberFairnessScore"]:
        """Return the member's most recent row at or before ``current_month``.

        ``YYYY-MM`` keys sort lexicographically in calendar order.
        """

        return session.scalars(
            select(cls)
            .where(cls.member_id == member_id, cls.current_month <= current_month)
            .order_by(cls.current_month.desc())
        ).first()


__all__ = [
    "SPEED_TIERS",
    "MemberFairnessScore",
    "MemberSpeedProfile",
    "month_key",
]
