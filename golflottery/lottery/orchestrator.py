"""End-to-end processing of one lottery date."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..models.lottery import (
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    LotteryEntry,
    LotteryGroup,
    LotteryRun,
)
from ..models.profiles import month_key
from ..models.teesheet import TeeSlot
from .allocator import AllocationCandidate, AllocationResult, LotteryAllocator, SlotCapacity
from .booking import BookingSink, SessionBookingSink
from .config import LotterySettings, TeeSheetConfig
from .errors import ConcurrentRunError, ConfigurationError, RunFailedError
from .fairness import FairnessUpdater
from .locks import DEFAULT_DATE_LOCKS, DateLockRegistry
from .scoring import AlgorithmRegistry, DEFAULT_SCORING_REGISTRY
from .speed import capture_member_snapshots
from .windows import WindowResolution, resolve_time_windows

logger = logging.getLogger(__name__)

LotteryRow = Union[LotteryEntry, LotteryGroup]


@dataclass(frozen=True)
class RunSummary:
    """Counts reported by a lottery run.

    Attributes
    ----------
    processed_count : int
        Entries and groups settled by this run, assigned or not.
    total_entries : int
        Non-cancelled entries and groups on the date.
    bookings_created : int
        Member bookings written by the booking sink.
    results : tuple[AllocationResult, ...]
        Per-entry outcomes in processing order; empty when nothing was claimed.
    """

    processed_count: int
    total_entries: int
    bookings_created: int
    results: tuple[AllocationResult, ...] = ()

    def as_dict(self) -> dict:
        return {
            "processed_count": self.processed_count,
            "total_entries": self.total_entries,
            "bookings_created": self.bookings_created,
        }


def process_lottery_for_date(
    session: Session,
    lottery_date: date,
    config: TeeSheetConfig,
    *,
    settings: Optional[LotterySettings] = None,
    registry: Optional[AlgorithmRegistry] = None,
    booking_sink: Optional[BookingSink] = None,
    locks: Optional[DateLockRegistry] = None,
    now: Optional[datetime] = None,
) -> RunSummary:
    """Run the lottery for ``lottery_date`` and settle every unprocessed entry.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. The run happens inside a SAVEPOINT; the
        caller commits or rolls back the enclosing transaction.
    lottery_date : date
        Date whose entries are processed.
    config : TeeSheetConfig
        Tee-sheet configuration of the date.
    settings : Optional[LotterySettings], default: None
        Scoring and fairness constants. Defaults to :class:`LotterySettings`.
    registry : Optional[AlgorithmRegistry], default: None
        Registry holding ``settings.scoring_algorithm``.
    booking_sink : Optional[BookingSink], default: None
        Receiver of the placements. Defaults to :class:`SessionBookingSink`.
    locks : Optional[DateLockRegistry], default: None
        Lock registry guarding the date; the process-wide registry by default.
    now : Optional[datetime], default: None
        Timestamp recorded on processed rows.

    Returns
    -------
    RunSummary
        Counts of the run. A date without unprocessed entries returns a
        summary with ``processed_count == 0`` and writes nothing.

    Raises
    ------
    ConfigurationError
        If the tee-sheet configuration or the scoring algorithm is invalid.
        Raised before anything is read or written.
    ConcurrentRunError
        If another run for the same date is in progress.
    RunFailedError
        If anything fails after processing started. All changes of the run
        are rolled back and the original exception is attached as ``cause``.
    """

    settings = settings or LotterySettings()
    registry = registry or DEFAULT_SCORING_REGISTRY
    resolution = resolve_time_windows(config)
    try:
        registry.get(settings.scoring_algorithm)
    except KeyError as exc:
        raise ConfigurationError(str(exc.args[0])) from exc

    locks = locks or DEFAULT_DATE_LOCKS
    with locks.hold(lottery_date):
        savepoint = session.begin_nested()
        try:
            summary = _run(
                session,
                lottery_date,
                config,
                resolution,
                settings=settings,
                registry=registry,
                booking_sink=booking_sink or SessionBookingSink(),
                now=now or datetime.now(timezone.utc),
            )
        except ConcurrentRunError:
            savepoint.rollback()
            raise
        except Exception as exc:
            savepoint.rollback()
            logger.exception("Lottery run for %s failed and was rolled back", lottery_date)
            raise RunFailedError(lottery_date, exc) from exc
        savepoint.commit()

    return summary


def _run(
    session: Session,
    lottery_date: date,
    config: TeeSheetConfig,
    resolution: WindowResolution,
    *,
    settings: LotterySettings,
    registry: AlgorithmRegistry,
    booking_sink: BookingSink,
    now: datetime,
) -> RunSummary:
    claimed: list[LotteryRow] = []
    for model in (LotteryEntry, LotteryGroup):
        claimed.extend(_claim(session, model, lottery_date, now))

    total_entries = _count_active(session, lottery_date)
    if not claimed:
        logger.info("Lottery for %s: no unprocessed entries", lottery_date)
        return RunSummary(
            processed_count=0, total_entries=total_entries, bookings_created=0
        )

    slots = [
        slot
        for slot in TeeSlot.ensure_for_date(
            session, lottery_date, resolution.slot_times, config.max_members_per_block
        )
        if slot.start_time in resolution.slot_times
    ]
    capacities = [
        SlotCapacity(
            slot_id=slot.id,
            start_time=slot.start_time,
            max_members=slot.max_members,
            remaining=slot.remaining_capacity,
        )
        for slot in slots
    ]

    candidates = [AllocationCandidate.from_model(row) for row in claimed]
    current_month = month_key(lottery_date)
    snapshots = capture_member_snapshots(
        session, (c.member_id for c in candidates), current_month
    )

    allocator = LotteryAllocator(settings=settings, registry=registry)
    outcome = allocator.allocate(candidates, snapshots, resolution, capacities)

    rows = {(_kind(row), row.id): row for row in claimed}
    for result in outcome.results:
        row = rows[(result.kind, result.entry_id)]
        row.processed_at = now
        if result.assigned:
            row.status = STATUS_ASSIGNED
            row.assigned_slot_id = result.slot_id
            row.unassigned_reason = None
        else:
            row.status = STATUS_PENDING
            row.unassigned_reason = result.reason
    session.flush()

    bookings_created = booking_sink.create_bookings(
        session, outcome.assigned, {slot.id: slot for slot in slots}
    )

    FairnessUpdater(session, settings=settings).apply(
        outcome.results, current_month, now=now
    )

    processed_count = len(outcome.results)
    session.add(
        LotteryRun(
            lottery_date=lottery_date,
            processed_count=processed_count,
            total_entries=total_entries,
            bookings_created=bookings_created,
            started_at=now,
            completed_at=datetime.now(timezone.utc),
        )
    )
    session.flush()

    logger.info(
        "Lottery for %s: processed %d of %d entries, %d assigned, %d unassigned, %d bookings",
        lottery_date,
        processed_count,
        total_entries,
        len(outcome.assigned),
        len(outcome.unassigned),
        bookings_created,
    )
    return RunSummary(
        processed_count=processed_count,
        total_entries=total_entries,
        bookings_created=bookings_created,
        results=tuple(outcome.results),
    )


def _claim(
    session: Session,
    model: type[LotteryRow],
    lottery_date: date,
    now: datetime,
) -> list[LotteryRow]:
    """Move the date's unprocessed PENDING rows of ``model`` to PROCESSING.

    The UPDATE repeats the PENDING/unprocessed condition, so a row claimed by
    a run in another process is not claimed twice.
    """

    unprocessed = (
        model.lottery_date == lottery_date,
        model.status == STATUS_PENDING,
        model.processed_at.is_(None),
    )
    ids = list(
        session.scalars(select(model.id).where(*unprocessed).order_by(model.id.asc()))
    )
    if not ids:
        return []

    result = session.execute(
        update(model)
        .where(model.id.in_(ids), *unprocessed)
        .values(status=STATUS_PROCESSING, updated_at=now)
    )
    if result.rowcount != len(ids):
        raise ConcurrentRunError(lottery_date)

    return list(
        session.scalars(
            select(model)
            .where(model.id.in_(ids))
            .order_by(model.id.asc())
            .execution_options(populate_existing=True)
        )
    )


def _count_active(session: Session, lottery_date: date) -> int:
    total = 0
    for model in (LotteryEntry, LotteryGroup):
        total += session.scalar(
            select(func.count(model.id)).where(
                model.lottery_date == lottery_date,
                model.status != STATUS_CANCELLED,
            )
        ) or 0
    return total


def _kind(row: LotteryRow) -> str:
    return "group" if isinstance(row, LotteryGroup) else "entry"


__all__ = ["RunSummary", "process_lottery_for_date"]
