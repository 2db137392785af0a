"""Resolve a day's tee-sheet configuration into named preference windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.lottery import TIME_WINDOWS
from .config import TeeSheetConfig, format_clock
from .errors import ConfigurationError, EmptyWindowError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedWindow:
    """A named window bounded by concrete clock times for one day.

    Attributes
    ----------
    name : str
        Window identifier, one of ``TIME_WINDOWS``.
    start_minutes : int
        Inclusive lower bound in minutes since midnight.
    end_minutes : int
        Upper bound in minutes since midnight. Exclusive, except for the last
        window of the day which also covers the final tee time.
    slot_times : tuple[str, ...]
        ``HH:MM`` tee times that fall inside the window, in tee-sheet order.
    """

    name: str
    start_minutes: int
    end_minutes: int
    slot_times: tuple[str, ...]
    closes_day: bool = False

    @property
    def is_selectable(self) -> bool:
        return bool(self.slot_times)

    def contains_minutes(self, minutes: int) -> bool:
        if self.closes_day:
            return self.start_minutes <= minutes <= self.end_minutes
        return self.start_minutes <= minutes < self.end_minutes


@dataclass(frozen=True)
class WindowResolution:
    """Result of resolving a configuration: windows, slot times and skipped windows."""

    windows: tuple[ResolvedWindow, ...]
    slot_times: tuple[str, ...]
    empty_windows: tuple[EmptyWindowError, ...] = ()

    def get(self, name: Optional[str]) -> Optional[ResolvedWindow]:
        """Return the window called ``name``; ``None`` for unknown or missing names."""
        if name is None:
            return None
        for window in self.windows:
            if window.name == name:
                return window
        return None

    def window_for_time(self, start_time: str) -> Optional[str]:
        """Return the name of the window containing the ``HH:MM`` tee time."""
        value = _to_minutes(start_time)
        for window in self.windows:
            if window.contains_minutes(value):
                return window.name
        return None


def generate_slot_times(config: TeeSheetConfig) -> list[str]:
    """Return the ``HH:MM`` tee times from start to end (inclusive) at ``interval``."""

    _validate(config)
    times: list[str] = []
    current = config.start_minutes
    while current <= config.end_minutes:
        times.append(format_clock(current))
        current += config.interval
    return times


def resolve_time_windows(config: TeeSheetConfig) -> WindowResolution:
    """Partition the operating day into the four preference windows.

    The operating span is split into equal quarters (whole minutes); the
    last window absorbs any remainder and includes the final tee time, so
    every generated slot belongs to exactly one window.

    Raises
    ------
    ConfigurationError
        If the start time is not before the end time, the interval is not
        positive, or the slot capacity is not positive.
    """

    slot_times = generate_slot_times(config)
    start = config.start_minutes
    end = config.end_minutes
    width = (end - start) // len(TIME_WINDOWS)

    windows: list[ResolvedWindow] = []
    empty: list[EmptyWindowError] = []
    for index, name in enumerate(TIME_WINDOWS):
        lower = start + index * width
        is_last = index == len(TIME_WINDOWS) - 1
        upper = end if is_last else start + (index + 1) * width
        members = tuple(
            t
            for t in slot_times
            if lower <= _to_minutes(t) < upper or (is_last and _to_minutes(t) == upper)
        )
        window = ResolvedWindow(
            name=name,
            start_minutes=lower,
            end_minutes=upper,
            slot_times=members,
            closes_day=is_last,
        )
        if not members:
            error = EmptyWindowError(name)
            logger.warning("%s; it cannot be selected this day", error)
            empty.append(error)
        windows.append(window)

    return WindowResolution(
        windows=tuple(windows),
        slot_times=tuple(slot_times),
        empty_windows=tuple(empty),
    )


def _validate(config: TeeSheetConfig) -> None:
    if config.start_minutes >= config.end_minutes:
        raise ConfigurationError(
            "Invalid configuration: start time must be before end time"
        )
    if config.interval <= 0:
        raise ConfigurationError("Invalid configuration: interval must be positive")
    if config.max_members_per_block <= 0:
        raise ConfigurationError(
            "Invalid configuration: max members per block must be positive"
        )


def _to_minutes(hhmm: str) -> int:
    hours, _, minutes = hhmm.partition(":")
    return int(hours) * 60 + int(minutes)


__all__ = [
    "ResolvedWindow",
    "WindowResolution",
    "generate_slot_times",
    "resolve_time_windows",
]
