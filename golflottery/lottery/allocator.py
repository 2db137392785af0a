"""Greedy single-pass assignment of lottery entries to tee slots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence, Union

from ..models.lottery import LotteryEntry, LotteryGroup
from .config import LotterySettings
from .errors import GroupTooLargeError, NoCapacityError, PlacementError
from .scoring import (
    AlgorithmRegistry,
    DEFAULT_SCORING_REGISTRY,
    MemberSnapshot,
    priority_sort_key,
)
from .windows import ResolvedWindow, WindowResolution

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class AllocationCandidate:
    """Allocator view of an individual entry or a group entry."""

    kind: str
    entry_id: int
    member_id: int
    member_ids: tuple[int, ...]
    preferred_window: str
    alternate_window: Optional[str]
    specific_time: Optional[str]
    submitted_at: datetime

    @property
    def party_size(self) -> int:
        return len(self.member_ids)

    @classmethod
    def from_model(
        cls, row: Union[LotteryEntry, LotteryGroup]
    ) -> "AllocationCandidate":
        """Build a candidate from a persisted entry or group."""

        if row.id is None:
            raise ValueError("Lottery entries must be persisted before allocation")
        kind = "group" if isinstance(row, LotteryGroup) else "entry"
        return cls(
            kind=kind,
            entry_id=row.id,
            member_id=row.member_id,
            member_ids=tuple(row.member_ids),
            preferred_window=row.preferred_window,
            alternate_window=row.alternate_window,
            specific_time=row.specific_time_preference,
            submitted_at=as_utc(row.submitted_at),
        )


@dataclass(frozen=True)
class SlotCapacity:
    """Capacity of one tee slot at the start of a run."""

    slot_id: int
    start_time: str
    max_members: int
    remaining: int


@dataclass(frozen=True)
class AllocationResult:
    """Outcome for one entry or group.

    Either ``slot_id`` is set (assigned) or ``reason`` is set (unassigned).
    ``preference_granted`` is ``True`` only for placements in the preferred
    window.
    """

    kind: str
    entry_id: int
    member_id: int
    member_ids: tuple[int, ...]
    score: float
    slot_id: Optional[int] = None
    start_time: Optional[str] = None
    window: Optional[str] = None
    preference_granted: bool = False
    reason: Optional[str] = None

    @property
    def assigned(self) -> bool:
        return self.slot_id is not None

    @property
    def party_size(self) -> int:
        return len(self.member_ids)

    def as_dict(self) -> dict:
        """Plain mapping with stable keys, suitable for JSON serialisation."""
        return {
            "kind": self.kind,
            "entry_id": self.entry_id,
            "member_id": self.member_id,
            "member_ids": list(self.member_ids),
            "score": self.score,
            "slot_id": self.slot_id,
            "start_time": self.start_time,
            "window": self.window,
            "preference_granted": self.preference_granted,
            "reason": self.reason,
        }


@dataclass
class AllocationOutcome:
    """All results of one allocation pass in processing order."""

    results: list[AllocationResult] = field(default_factory=list)
    remaining: dict[int, int] = field(default_factory=dict)

    @property
    def assigned(self) -> list[AllocationResult]:
        return [r for r in self.results if r.assigned]

    @property
    def unassigned(self) -> list[AllocationResult]:
        return [r for r in self.results if not r.assigned]


class LotteryAllocator:
    """Assign candidates to slots in priority order without backtracking."""

    def __init__(
        self,
        *,
        settings: Optional[LotterySettings] = None,
        registry: Optional[AlgorithmRegistry] = None,
    ) -> None:
        """Create an allocator.

        Parameters
        ----------
        settings : Optional[LotterySettings], default: None
            Scoring constants; defaults to :class:`LotterySettings` defaults.
        registry : Optional[AlgorithmRegistry], default: None
            Registry holding the scoring algorithm named by
            ``settings.scoring_algorithm``. Typically omitted, in which case
            the default registry is used.
        """

        self._settings = settings or LotterySettings()
        self._registry = registry or DEFAULT_SCORING_REGISTRY

    def allocate(
        self,
        candidates: Iterable[AllocationCandidate],
        snapshots: Mapping[int, MemberSnapshot],
        resolution: WindowResolution,
        slots: Sequence[SlotCapacity],
    ) -> AllocationOutcome:
        """Place each candidate in the best available slot.

        Parameters
        ----------
        candidates : Iterable[AllocationCandidate]
            Unprocessed entries and groups of the date.
        snapshots : Mapping[int, MemberSnapshot]
            Member state captured at run start, keyed by member id. Missing
            members are scored with a neutral snapshot.
        resolution : WindowResolution
            Windows of the day and the tee times they contain.
        slots : Sequence[SlotCapacity]
            Slot capacities at run start; not mutated.

        Returns
        -------
        AllocationOutcome
            Results in processing order and the remaining capacity per slot.

        Notes
        -----
        1. Score each candidate against its preferred window.
        2. Sort by score descending; ties go to the earliest submission,
           then the lowest member id.
        3. Try the specific time (when inside the preferred window), then the
           earliest preferred-window slot with room for the whole party, then
           the earliest backup-window slot. Otherwise record ``NO_CAPACITY``.
        4. Parties larger than every slot are recorded as ``GROUP_TOO_LARGE``.
        """

        algorithm = self._registry.get(self._settings.scoring_algorithm)
        slots_by_time = {slot.start_time: slot for slot in slots}
        remaining = {slot.slot_id: slot.remaining for slot in slots}
        largest_slot = max((slot.max_members for slot in slots), default=0)

        scored: list[tuple[tuple, AllocationCandidate, float]] = []
        for candidate in candidates:
            snapshot = snapshots.get(candidate.member_id) or MemberSnapshot(
                member_id=candidate.member_id
            )
            evaluation = algorithm.evaluate(
                snapshot, candidate.preferred_window, self._settings
            )
            key = priority_sort_key(
                evaluation.score,
                candidate.submitted_at,
                candidate.member_id,
                candidate.kind,
                candidate.entry_id,
            )
            scored.append((key, candidate, evaluation.score))
        scored.sort(key=lambda item: item[0])

        outcome = AllocationOutcome()
        for _, candidate, score in scored:
            try:
                if largest_slot and candidate.party_size > largest_slot:
                    raise GroupTooLargeError(
                        f"Party of {candidate.party_size} exceeds slot capacity {largest_slot}"
                    )
                slot, window, granted = self._place(
                    candidate, resolution, slots_by_time, remaining
                )
            except PlacementError as exc:
                logger.debug(
                    "%s %s (member %s) unassigned: %s",
                    candidate.kind,
                    candidate.entry_id,
                    candidate.member_id,
                    exc.reason,
                )
                outcome.results.append(
                    AllocationResult(
                        kind=candidate.kind,
                        entry_id=candidate.entry_id,
                        member_id=candidate.member_id,
                        member_ids=candidate.member_ids,
                        score=score,
                        reason=exc.reason,
                    )
                )
                continue

            remaining[slot.slot_id] -= candidate.party_size
            logger.debug(
                "%s %s (member %s, score %.2f) -> %s in %s",
                candidate.kind,
                candidate.entry_id,
                candidate.member_id,
                score,
                slot.start_time,
                window,
            )
            outcome.results.append(
                AllocationResult(
                    kind=candidate.kind,
                    entry_id=candidate.entry_id,
                    member_id=candidate.member_id,
                    member_ids=candidate.member_ids,
                    score=score,
                    slot_id=slot.slot_id,
                    start_time=slot.start_time,
                    window=window,
                    preference_granted=granted,
                )
            )

        outcome.remaining = remaining
        return outcome

    def _place(
        self,
        candidate: AllocationCandidate,
        resolution: WindowResolution,
        slots_by_time: Mapping[str, SlotCapacity],
        remaining: Mapping[int, int],
    ) -> tuple[SlotCapacity, str, bool]:
        size = candidate.party_size
        preferred = resolution.get(candidate.preferred_window)

        if preferred is not None and candidate.specific_time in preferred.slot_times:
            slot = slots_by_time.get(candidate.specific_time)
            if slot is not None and remaining[slot.slot_id] >= size:
                return slot, preferred.name, True

        slot = _earliest_with_room(preferred, slots_by_time, remaining, size)
        if slot is not None:
            return slot, preferred.name, True

        if candidate.alternate_window != candidate.preferred_window:
            backup = resolution.get(candidate.alternate_window)
            slot = _earliest_with_room(backup, slots_by_time, remaining, size)
            if slot is not None:
                return slot, backup.name, False

        raise NoCapacityError(
            f"No slot with {size} open places in {candidate.preferred_window}"
            f" or {candidate.alternate_window}"
        )


def _earliest_with_room(
    window: Optional[ResolvedWindow],
    slots_by_time: Mapping[str, SlotCapacity],
    remaining: Mapping[int, int],
    size: int,
) -> Optional[SlotCapacity]:
    if window is None or not window.is_selectable:
        return None
    for start_time in window.slot_times:
        slot = slots_by_time.get(start_time)
        if slot is not None and remaining[slot.slot_id] >= size:
            return slot
    return None


__all__ = [
    "AllocationCandidate",
    "AllocationOutcome",
    "AllocationResult",
    "LotteryAllocator",
    "SlotCapacity",
    "as_utc",
]
