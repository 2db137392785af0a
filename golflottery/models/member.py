from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .profiles import MemberFairnessScore, MemberSpeedProfile


class Member(Base):
    """A club member who can enter the tee-time lottery."""

    def __init__(
        self,
        member_number: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        member_class: str = "REGULAR",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`Member` record.

        Parameters
        ----------
        member_number : str
            Club-issued membership number.
        first_name : str, optional
            Given name.
        last_name : str, optional
            Family name.
        member_class : str, default: "REGULAR"
            Membership class; entries snapshot it at submission time.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.member_number = member_number
        self.first_name = first_name
        self.last_name = last_name
        self.member_class = member_class
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    member_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    member_class: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
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

    # relationships
    speed_profile: Mapped[Optional["MemberSpeedProfile"]] = relationship(
        back_populates="member", uselist=False, cascade="all, delete-orphan"
    )
    fairness_scores: Mapped[list["MemberFairnessScore"]] = relationship(
        back_populates="member", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<Member(id={self.id}, member_number='{self.member_number}', "
            f"name='{self.display_name}', member_class='{self.member_class}')>"
        )

    @property
    def display_name(self) -> str:
        """First and last name joined, or the member number when unnamed."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.member_number

    @classmethod
    def get_by_member_number(
        cls, session: Session, member_number: str
    ) -> Optional["Member"]:
        """Retrieve a member by their membership number."""

        return session.scalar(select(cls).where(cls.member_number == member_number))
