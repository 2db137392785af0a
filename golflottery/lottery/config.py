"""Configuration objects for a lottery run.

Two kinds of configuration feed the engine:

* :class:`TeeSheetConfig` describes one day's tee sheet (operating hours,
  slot interval, players per slot) and is supplied by the caller per date.
* :class:`LotterySettings` holds the club-wide tunables of the scoring and
  fairness formulas. Defaults are documented in ``DESIGN.md`` and can be
  overridden through ``LOTTERY_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from datetime import time
from typing import Any, Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigurationError

TimeLike = Union[str, time]

DEFAULT_FAST_BONUSES: dict[str, int] = {
    "EARLY_MORNING": 10,
    "MORNING": 10,
    "MIDDAY": 5,
    "AFTERNOON": 0,
}


def parse_clock(value: TimeLike) -> time:
    """Parse ``"HH:MM"`` (or pass through a :class:`datetime.time`).

    Raises
    ------
    ConfigurationError
        If ``value`` is not a valid 24-hour clock time.
    """

    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ConfigurationError(f"Expected an HH:MM string, got {value!r}")
    parts = value.strip().split(":")
    if len(parts) != 2:
        raise ConfigurationError(f"Invalid clock time {value!r}; expected HH:MM")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
        return time(hour=hours, minute=minutes)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid clock time {value!r}: {exc}") from exc


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as zero-padded ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def clock_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class TeeSheetConfig:
    """Operating parameters of a single day's tee sheet.

    Attributes
    ----------
    start_time : datetime.time
        First tee time of the day.
    end_time : datetime.time
        Last tee time of the day (inclusive).
    interval : int
        Minutes between consecutive tee times.
    max_members_per_block : int
        Player capacity of each generated slot.
    """

    start_time: time
    end_time: time
    interval: int
    max_members_per_block: int = 4

    @property
    def start_minutes(self) -> int:
        return clock_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return clock_minutes(self.end_time)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TeeSheetConfig":
        """Build a config from a provider payload.

        Both ``snake_case`` keys and the provider's ``camelCase`` keys
        (``startTime``, ``endTime``, ``interval``, ``maxMembersPerBlock``)
        are accepted.
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        start = pick("start_time", "startTime")
        end = pick("end_time", "endTime")
        interval = pick("interval")
        if start is None or end is None or interval is None:
            raise ConfigurationError(
                "Tee-sheet configuration requires start time, end time and interval"
            )
        try:
            interval_value = int(interval)
            capacity = int(pick("max_members_per_block", "maxMembersPerBlock", default=4))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric tee-sheet setting: {exc}") from exc

        return cls(
            start_time=parse_clock(start),
            end_time=parse_clock(end),
            interval=interval_value,
            max_members_per_block=capacity,
        )


@dataclass(frozen=True)
class LotterySettings:
    """Tunable constants of the scoring and fairness formulas."""

    fast_max_minutes: float = 235.0
    """Rounds at or below this average (3:55) classify as FAST."""

    slow_min_minutes: float = 245.0
    """Rounds above this average (4:05) classify as SLOW."""

    fast_bonuses: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_FAST_BONUSES)
    )
    """Per-window score bonus for FAST players."""

    slow_penalty: int = 0
    """Deducted from SLOW players in every window where FAST players get a bonus."""

    low_fulfillment_rate: float = 0.5
    low_fulfillment_bonus: int = 20
    medium_fulfillment_rate: float = 0.7
    medium_fulfillment_bonus: int = 10
    days_without_good_time_weight: int = 2
    days_without_good_time_cap: int = 30

    admin_adjustment_min: int = -10
    admin_adjustment_max: int = 10

    scoring_algorithm: str = "fairness_speed_admin"

    def __post_init__(self) -> None:
        if self.fast_max_minutes > self.slow_min_minutes:
            raise ConfigurationError(
                "fast_max_minutes must not exceed slow_min_minutes"
            )
        if self.admin_adjustment_min > self.admin_adjustment_max:
            raise ConfigurationError(
                "admin_adjustment_min must not exceed admin_adjustment_max"
            )
        if self.slow_penalty < 0:
            raise ConfigurationError("slow_penalty must be non-negative")

    def with_overrides(self, **changes: Any) -> "LotterySettings":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LotterySettings":
        """Load settings from ``LOTTERY_*`` environment variables.

        Variables that are unset keep their defaults. ``LOTTERY_FAST_BONUSES``
        uses ``WINDOW=points`` pairs separated by commas, e.g.
        ``"EARLY_MORNING=10,MORNING=8,MIDDAY=4"``.
        """

        if environ is None:
            load_dotenv()
            environ = os.environ

        overrides: dict[str, Any] = {}
        numeric = {
            "LOTTERY_FAST_MAX_MINUTES": ("fast_max_minutes", float),
            "LOTTERY_SLOW_MIN_MINUTES": ("slow_min_minutes", float),
            "LOTTERY_SLOW_PENALTY": ("slow_penalty", int),
            "LOTTERY_LOW_FULFILLMENT_RATE": ("low_fulfillment_rate", float),
            "LOTTERY_LOW_FULFILLMENT_BONUS": ("low_fulfillment_bonus", int),
            "LOTTERY_MEDIUM_FULFILLMENT_RATE": ("medium_fulfillment_rate", float),
            "LOTTERY_MEDIUM_FULFILLMENT_BONUS": ("medium_fulfillment_bonus", int),
            "LOTTERY_DAYS_WEIGHT": ("days_without_good_time_weight", int),
            "LOTTERY_DAYS_CAP": ("days_without_good_time_cap", int),
            "LOTTERY_ADMIN_ADJUSTMENT_MIN": ("admin_adjustment_min", int),
            "LOTTERY_ADMIN_ADJUSTMENT_MAX": ("admin_adjustment_max", int),
        }
        for env_key, (attr, caster) in numeric.items():
            raw = environ.get(env_key)
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides[attr] = caster(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{env_key}={raw!r} is not a valid number") from exc

        algorithm = environ.get("LOTTERY_SCORING_ALGORITHM")
        if algorithm:
            overrides["scoring_algorithm"] = algorithm.strip()

        bonuses = environ.get("LOTTERY_FAST_BONUSES")
        if bonuses:
            overrides["fast_bonuses"] = _parse_bonus_table(bonuses)

        return cls(**overrides)


def _parse_bonus_table(raw: str) -> dict[str, int]:
    table = dict.fromkeys(DEFAULT_FAST_BONUSES, 0)
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        window, sep, points = pair.partition("=")
        window = window.strip().upper()
        if not sep or window not in table:
            raise ConfigurationError(f"Invalid fast bonus entry {pair!r}")
        try:
            table[window] = int(points)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid fast bonus entry {pair!r}") from exc
    return table


__all__ = [
    "DEFAULT_FAST_BONUSES",
    "LotterySettings",
    "TeeSheetConfig",
    "clock_minutes",
    "format_clock",
    "parse_clock",
]
