from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .member import Member  # noqa: F401
from .teesheet import TeeSlot, TeeSlotBooking  # noqa: F401
from .lottery import (  # noqa: F401
    LOTTERY_STATUSES,
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    TIME_WINDOWS,
    LotteryEntry,
    LotteryGroup,
    LotteryRun,
)
from .profiles import (  # noqa: F401
    SPEED_TIERS,
    MemberFairnessScore,
    MemberSpeedProfile,
    month_key,
)

__all__ = [
    "Base",
    "Member",
    "TeeSlot",
    "TeeSlotBooking",
    "LOTTERY_STATUSES",
    "STATUS_ASSIGNED",
    "STATUS_CANCELLED",
    "STATUS_PENDING",
    "STATUS_PROCESSING",
    "TIME_WINDOWS",
    "LotteryEntry",
    "LotteryGroup",
    "LotteryRun",
    "SPEED_TIERS",
    "MemberFairnessScore",
    "MemberSpeedProfile",
    "month_key",
]
