"""Exception hierarchy raised by the lottery allocation engine."""

from __future__ import annotations

from datetime import date
from typing import Optional


class LotteryError(Exception):
    """Base class for lottery engine failures."""


class ConfigurationError(LotteryError, ValueError):
    """The tee-sheet configuration cannot produce a usable day."""


class EmptyWindowError(LotteryError):
    """A preference window contains no tee slots for the day.

    Non-fatal: the resolver records it and the window is skipped as a
    placement target.
    """

    def __init__(self, window: str) -> None:
        super().__init__(f"Time window {window} contains no tee slots")
        self.window = window


class PlacementError(LotteryError):
    """Per-entry placement failure; mapped to an unassigned outcome."""

    reason = "UNASSIGNED"


class NoCapacityError(PlacementError):
    """Neither the preferred nor the backup window has room for the party."""

    reason = "NO_CAPACITY"


class GroupTooLargeError(PlacementError):
    """The party is larger than every slot's capacity."""

    reason = "GROUP_TOO_LARGE"


class ConcurrentRunError(LotteryError):
    """Another run for the same date currently holds the date lock."""

    def __init__(self, lottery_date: date) -> None:
        super().__init__(f"A lottery run for {lottery_date.isoformat()} is already in progress")
        self.lottery_date = lottery_date


class RunFailedError(LotteryError):
    """A run failed after mutation began; all of its changes were rolled back."""

    def __init__(self, lottery_date: date, cause: Optional[BaseException] = None) -> None:
        message = f"Lottery run for {lottery_date.isoformat()} failed and was rolled back"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.lottery_date = lottery_date
        self.cause = cause


__all__ = [
    "ConcurrentRunError",
    "ConfigurationError",
    "EmptyWindowError",
    "GroupTooLargeError",
    "LotteryError",
    "NoCapacityError",
    "PlacementError",
    "RunFailedError",
]
