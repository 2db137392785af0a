import logging
from contextlib import ExitStack
from typing import Iterable, Mapping, Optional, Sequence, Union
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .lottery.config import LotterySettings, TeeSheetConfig, parse_clock
from .lottery.locks import DEFAULT_DATE_LOCKS, DateLockRegistry
from .lottery.orchestrator import process_lottery_for_date
from .lottery.speed import apply_pace_data
from .lottery.windows import WindowResolution, resolve_time_windows
from .models import (
    SPEED_TIERS,
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    TIME_WINDOWS,
    LotteryEntry,
    LotteryGroup,
    Member,
    MemberFairnessScore,
    MemberSpeedProfile,
    TeeSlot,
    TeeSlotBooking,
    month_key,
)

logger = logging.getLogger(__name__)

LotteryRow = Union[LotteryEntry, LotteryGroup]

_PROFILE_FIELDS = ("speed_tier", "admin_priority_adjustment", "manual_override", "notes")

MANUALLY_UNASSIGNED = "MANUALLY_UNASSIGNED"
"""Unassigned reason recorded when an admin removes an entry from its slot."""

ADMIN_BOOKING_SOURCE = "admin"


def _validate_preferences(
    preferred_window: str,
    alternate_window: Optional[str],
    specific_time_preference: Optional[str],
) -> Optional[str]:
    """Check window names and normalise the specific time to ``HH:MM``."""

    if preferred_window not in TIME_WINDOWS:
        raise ValueError(f"Unknown time window: {preferred_window!r}")
    if alternate_window is not None and alternate_window not in TIME_WINDOWS:
        raise ValueError(f"Unknown time window: {alternate_window!r}")
    if not specific_time_preference:
        return None
    try:
        clock = parse_clock(specific_time_preference)
    except ValueError as exc:
        raise ValueError(
            f"Invalid specific time preference: {specific_time_preference!r}"
        ) from exc
    return clock.strftime("%H:%M")


def _conflicting_member_ids(
    session: Session, member_ids: Iterable[int], lottery_date: date
) -> list[int]:
    """Return the ids in ``member_ids`` that already hold an active entry or group slot."""

    conflicts: list[int] = []
    for member_id in member_ids:
        if LotteryEntry.get_active_for_member(session, member_id, lottery_date):
            conflicts.append(member_id)
        elif LotteryGroup.get_active_containing(session, member_id, lottery_date):
            conflicts.append(member_id)
    return conflicts


def _ensure_editable(row: LotteryRow) -> None:
    if not row.is_editable:
        raise ValueError("Cannot modify a lottery entry that has been processed or cancelled")


def _ensure_cancellable(row: LotteryRow) -> None:
    # Entries a run left unplaced stay PENDING and may still be withdrawn.
    if row.status != STATUS_PENDING:
        raise ValueError("Only pending lottery entries can be cancelled")


def _require_member(session: Session, member_id: int) -> Member:
    member = session.get(Member, member_id)
    if member is None:
        raise ValueError("Member not found")
    return member


def submit_lottery_entry(
    session: Session,
    member: Member,
    lottery_date: date,
    preferred_window: str,
    *,
    alternate_window: Optional[str] = None,
    specific_time_preference: Optional[str] = None,
) -> LotteryEntry:
    """Create an individual lottery entry for ``member`` on ``lottery_date``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    member : Member
        Persisted member submitting the entry. Their ``member_class`` is
        copied onto the entry.
    lottery_date : date
        Date the member wants to play.
    preferred_window : str
        One of ``TIME_WINDOWS``.
    alternate_window : Optional[str]
        Backup window tried when the preferred one is full.
    specific_time_preference : Optional[str]
        ``HH:MM`` tee time wanted inside the preferred window.

    Returns
    -------
    LotteryEntry
        The flushed entry in ``PENDING`` status.

    Raises
    ------
    ValueError
        If the member is not persisted, a window name or the specific time is
        invalid, or the member already holds an entry (individual or as part
        of a group) for the date.
    """

    if member.id is None:
        raise ValueError("Member must be persisted before entering the lottery")
    specific = _validate_preferences(
        preferred_window, alternate_window, specific_time_preference
    )
    if _conflicting_member_ids(session, [member.id], lottery_date):
        raise ValueError("Member already has a lottery entry for this date")

    entry = LotteryEntry(
        member_id=member.id,
        lottery_date=lottery_date,
        preferred_window=preferred_window,
        alternate_window=alternate_window,
        specific_time_preference=specific,
        member_class=member.member_class,
    )
    session.add(entry)
    session.flush()
    return entry


def submit_lottery_group(
    session: Session,
    leader: Member,
    lottery_date: date,
    member_ids: Sequence[int],
    preferred_window: str,
    *,
    alternate_window: Optional[str] = None,
    specific_time_preference: Optional[str] = None,
) -> LotteryGroup:
    """Create a group entry led by ``leader`` for ``member_ids``.

    The leader is always stored first in the member list, whether or not
    ``member_ids`` already contains them. Every member must exist and none
    may hold another entry for the date.
    """

    if leader.id is None:
        raise ValueError("Group leader must be persisted before entering the lottery")
    specific = _validate_preferences(
        preferred_window, alternate_window, specific_time_preference
    )

    ordered: list[int] = [leader.id]
    for member_id in member_ids:
        if member_id not in ordered:
            ordered.append(member_id)
    if len(ordered) < 2:
        raise ValueError("A group entry needs at least one member besides the leader")

    known = set(session.scalars(select(Member.id).where(Member.id.in_(ordered))))
    missing = [member_id for member_id in ordered if member_id not in known]
    if missing:
        raise ValueError(f"Unknown member ids: {missing}")

    conflicts = _conflicting_member_ids(session, ordered, lottery_date)
    if conflicts:
        raise ValueError(
            f"Members {conflicts} already have lottery entries for this date"
        )

    group = LotteryGroup(
        leader_id=leader.id,
        lottery_date=lottery_date,
        member_ids=ordered,
        preferred_window=preferred_window,
        alternate_window=alternate_window,
        specific_time_preference=specific,
        leader_member_class=leader.member_class,
    )
    session.add(group)
    session.flush()
    return group


def update_lottery_entry(
    session: Session,
    entry: LotteryRow,
    preferred_window: str,
    *,
    alternate_window: Optional[str] = None,
    specific_time_preference: Optional[str] = None,
    member: Optional[Member] = None,
) -> LotteryRow:
    """Change the window preferences of a pending entry or group.

    When ``member`` is supplied it must own the entry (or lead the group).
    """

    if member is not None and member.id != entry.member_id:
        raise ValueError("Lottery entry not found or access denied")
    _ensure_editable(entry)
    specific = _validate_preferences(
        preferred_window, alternate_window, specific_time_preference
    )

    entry.preferred_window = preferred_window
    entry.alternate_window = alternate_window
    entry.specific_time_preference = specific
    entry.updated_at = datetime.now(timezone.utc)
    session.flush()
    return entry


def cancel_lottery_entry(session: Session, entry: LotteryEntry) -> LotteryEntry:
    """Cancel a pending individual entry.

    Entries a run could not place remain cancellable so the member can
    withdraw or enter again for the date.
    """

    _ensure_cancellable(entry)
    entry.status = STATUS_CANCELLED
    entry.updated_at = datetime.now(timezone.utc)
    session.flush()
    return entry


def cancel_lottery_group(
    session: Session, group: LotteryGroup, *, leader: Optional[Member] = None
) -> LotteryGroup:
    """Cancel a pending group. Only the leader may cancel when ``leader`` is given."""

    if leader is not None and leader.id != group.leader_id:
        raise ValueError("Only the group leader can cancel a group entry")
    _ensure_cancellable(group)
    group.status = STATUS_CANCELLED
    group.updated_at = datetime.now(timezone.utc)
    session.flush()
    return group


def get_lottery_entry_for_member(
    session: Session, member: Member, lottery_date: date
) -> Optional[tuple[str, LotteryRow]]:
    """Return the member's active participation on ``lottery_date``.

    The result is ``("individual", entry)``, ``("group", group)`` when the
    member leads a group, ``("group_member", group)`` when someone else
    does, or ``None``.
    """

    entry = LotteryEntry.get_active_for_member(session, member.id, lottery_date)
    if entry is not None:
        return "individual", entry
    group = LotteryGroup.get_active_containing(session, member.id, lottery_date)
    if group is None:
        return None
    if group.leader_id == member.id:
        return "group", group
    return "group_member", group


def get_lottery_entries_for_date(
    session: Session, lottery_date: date, *, include_cancelled: bool = False
) -> dict[str, list]:
    """Return the date's entries and groups ordered by submission time."""

    result: dict[str, list] = {}
    for key, model in (("entries", LotteryEntry), ("groups", LotteryGroup)):
        stmt = select(model).where(model.lottery_date == lottery_date)
        if not include_cancelled:
            stmt = stmt.where(model.status != STATUS_CANCELLED)
        stmt = stmt.order_by(model.submitted_at.asc(), model.id.asc())
        result[key] = list(session.scalars(stmt).all())
    return result


def admin_update_lottery_entry(
    session: Session,
    entry: LotteryEntry,
    preferred_window: str,
    *,
    alternate_window: Optional[str] = None,
    specific_time_preference: Optional[str] = None,
) -> LotteryEntry:
    """Change an individual entry's preferences on the member's behalf.

    Unlike :func:`update_lottery_entry` there is no owner check and entries
    a run has already settled can still be corrected. Cancelled entries
    cannot be edited.
    """

    if entry.status == STATUS_CANCELLED:
        raise ValueError("Cannot modify a cancelled lottery entry")
    specific = _validate_preferences(
        preferred_window, alternate_window, specific_time_preference
    )

    entry.preferred_window = preferred_window
    entry.alternate_window = alternate_window
    entry.specific_time_preference = specific
    entry.updated_at = datetime.now(timezone.utc)
    session.flush()
    return entry


def admin_update_lottery_group(
    session: Session,
    group: LotteryGroup,
    preferred_window: str,
    member_ids: Sequence[int],
    *,
    alternate_window: Optional[str] = None,
    specific_time_preference: Optional[str] = None,
) -> LotteryGroup:
    """Change a group's preferences and member list on the leader's behalf.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    group : LotteryGroup
        Group to edit. It must not be cancelled.
    preferred_window : str
        One of ``TIME_WINDOWS``.
    member_ids : Sequence[int]
        Complete new member list. It must contain the leader, who is kept
        first.
    alternate_window, specific_time_preference : Optional[str]
        As for :func:`submit_lottery_group`.

    Raises
    ------
    ValueError
        If the leader is missing from ``member_ids``, a member is unknown or
        already entered elsewhere for the date, or the members of an assigned
        group would change while its bookings are in place.
    """

    if group.status == STATUS_CANCELLED:
        raise ValueError("Cannot modify a cancelled lottery group")
    if group.leader_id not in member_ids:
        raise ValueError("Group leader must be included in member list")
    specific = _validate_preferences(
        preferred_window, alternate_window, specific_time_preference
    )

    ordered: list[int] = [group.leader_id]
    for member_id in member_ids:
        if member_id not in ordered:
            ordered.append(member_id)
    if len(ordered) < 2:
        raise ValueError("A group entry needs at least one member besides the leader")

    known = set(session.scalars(select(Member.id).where(Member.id.in_(ordered))))
    missing = [member_id for member_id in ordered if member_id not in known]
    if missing:
        raise ValueError(f"Unknown member ids: {missing}")

    current = list(group.member_ids)
    if group.status == STATUS_ASSIGNED and set(ordered) != set(current):
        raise ValueError("Unassign the group before changing its members")
    added = [member_id for member_id in ordered if member_id not in current]
    conflicts = _conflicting_member_ids(session, added, group.lottery_date)
    if conflicts:
        raise ValueError(
            f"Members {conflicts} already have lottery entries for this date"
        )

    group.member_ids = ordered
    group.preferred_window = preferred_window
    group.alternate_window = alternate_window
    group.specific_time_preference = specific
    group.updated_at = datetime.now(timezone.utc)
    session.flush()
    return group


def _release_slot(session: Session, row: LotteryRow) -> None:
    """Remove the bookings ``row`` holds in its assigned slot."""

    if row.assigned_slot_id is None:
        return
    slot = session.get(TeeSlot, row.assigned_slot_id)
    if slot is not None:
        members = set(row.member_ids)
        for booking in [b for b in slot.bookings if b.member_id in members]:
            slot.bookings.remove(booking)
    row.assigned_slot_id = None


def _seat(
    session: Session,
    row: LotteryRow,
    slot: TeeSlot,
    resolution: Optional[WindowResolution],
    now: datetime,
) -> None:
    if slot.id is None:
        raise ValueError("Tee slot must be persisted before assignment")
    if slot.slot_date != row.lottery_date:
        raise ValueError("Tee slot is on a different date than the lottery entry")
    window = None
    if resolution is not None:
        window = resolution.window_for_time(slot.start_time)
        if window is None:
            raise ValueError(
                f"Tee slot {slot.start_time} is outside the configured tee sheet"
            )

    booked = {booking.member_id for booking in slot.bookings}
    already = [member_id for member_id in row.member_ids if member_id in booked]
    if already:
        raise ValueError(f"Members {already} are already booked at {slot.start_time}")
    if slot.remaining_capacity < row.party_size:
        raise ValueError(
            f"Tee slot {slot.start_time} has {slot.remaining_capacity} places left, "
            f"{row.party_size} needed"
        )

    for member_id in row.member_ids:
        session.add(
            TeeSlotBooking(
                slot=slot,
                member_id=member_id,
                booking_date=slot.slot_date,
                booking_time=slot.start_time,
                source=ADMIN_BOOKING_SOURCE,
            )
        )
    row.status = STATUS_ASSIGNED
    row.assigned_slot_id = slot.id
    row.unassigned_reason = None
    if row.processed_at is None:
        row.processed_at = now
    if window is not None:
        logger.info(
            "Manually placed %s %s at %s (%s window, preferred %s)",
            type(row).__name__,
            row.id,
            slot.start_time,
            window,
            row.preferred_window,
        )


def _apply_assignments(
    session: Session,
    changes: Sequence[tuple[LotteryRow, Optional[TeeSlot]]],
    config: Optional[TeeSheetConfig],
    now: Optional[datetime],
) -> None:
    now = now or datetime.now(timezone.utc)
    resolution = resolve_time_windows(config) if config is not None else None
    for row, _ in changes:
        if row.status in (STATUS_CANCELLED, STATUS_PROCESSING):
            raise ValueError(
                f"Cannot change the assignment of a {row.status.lower()} lottery entry"
            )

    with session.begin_nested():
        # Free every listed seat first so rows can trade slots.
        for row, _ in changes:
            _release_slot(session, row)
        session.flush()
        for row, slot in changes:
            if slot is None:
                row.status = STATUS_PENDING
                row.unassigned_reason = MANUALLY_UNASSIGNED
                if row.processed_at is None:
                    row.processed_at = now
            else:
                _seat(session, row, slot, resolution, now)
            row.updated_at = now
        session.flush()


def assign_lottery_entry(
    session: Session,
    row: LotteryRow,
    slot: TeeSlot,
    *,
    config: Optional[TeeSheetConfig] = None,
    locks: Optional[DateLockRegistry] = None,
    now: Optional[datetime] = None,
) -> LotteryRow:
    """Seat an unassigned entry or group in ``slot`` by hand.

    One booking is written per member. The slot must be on the entry's
    date and have room for the whole party. When ``config`` is given the
    slot must also lie on that tee sheet. Fairness statistics are left as
    the last run recorded them.

    Raises
    ------
    ValueError
        If the row is already assigned, cancelled or being processed, or the
        slot cannot take the party.
    ConcurrentRunError
        If a run for the same date is in progress.
    """

    if row.status == STATUS_ASSIGNED:
        raise ValueError(
            "Lottery entry is already assigned; move it with update_lottery_assignment"
        )
    return update_lottery_assignment(
        session, row, slot, config=config, locks=locks, now=now
    )


def update_lottery_assignment(
    session: Session,
    row: LotteryRow,
    slot: Optional[TeeSlot],
    *,
    config: Optional[TeeSheetConfig] = None,
    locks: Optional[DateLockRegistry] = None,
    now: Optional[datetime] = None,
) -> LotteryRow:
    """Move an entry or group to ``slot``, or unassign it when ``slot`` is ``None``.

    Existing bookings of the row are released first. An unassigned row goes
    back to ``PENDING`` with reason :data:`MANUALLY_UNASSIGNED` and keeps its
    processed timestamp, so later runs leave it alone.
    """

    locks = locks or DEFAULT_DATE_LOCKS
    with locks.hold(row.lottery_date):
        _apply_assignments(session, [(row, slot)], config, now)
    return row


def batch_update_lottery_assignments(
    session: Session,
    changes: Sequence[Mapping[str, object]],
    *,
    config: Optional[TeeSheetConfig] = None,
    locks: Optional[DateLockRegistry] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Apply several assignment changes as one unit.

    Each mapping carries ``entry_id``, ``is_group`` (default ``False``) and
    ``slot_id`` (``None`` unassigns). Every listed row releases its seats
    before any row is seated again, so two rows may swap slots. If any
    change fails none of them is applied.

    Returns
    -------
    dict
        ``{"updated_count": int}``.
    """

    resolved: list[tuple[LotteryRow, Optional[TeeSlot]]] = []
    seen: set[tuple[str, int]] = set()
    for change in changes:
        model = LotteryGroup if change.get("is_group") else LotteryEntry
        row = session.get(model, change["entry_id"])
        if row is None:
            raise ValueError(f"{model.__name__} {change['entry_id']} not found")
        key = (model.__name__, row.id)
        if key in seen:
            raise ValueError(f"{model.__name__} {row.id} is listed more than once")
        seen.add(key)

        slot = None
        slot_id = change.get("slot_id")
        if slot_id is not None:
            slot = session.get(TeeSlot, slot_id)
            if slot is None:
                raise ValueError(f"Tee slot {slot_id} not found")
        resolved.append((row, slot))

    locks = locks or DEFAULT_DATE_LOCKS
    with ExitStack() as stack:
        for lottery_date in sorted({row.lottery_date for row, _ in resolved}):
            stack.enter_context(locks.hold(lottery_date))
        _apply_assignments(session, resolved, config, now)
    return {"updated_count": len(resolved)}



def record_pace_of_play(
    session: Session,
    member_id: int,
    round_minutes: Iterable[float],
    *,
    settings: Optional[LotterySettings] = None,
    calculated_at: Optional[datetime] = None,
) -> MemberSpeedProfile:
    """Recalculate a member's average round time from recent rounds.

    The speed tier follows the new average unless the profile is manually
    overridden.
    """

    rounds = [float(m) for m in round_minutes]
    if not rounds:
        raise ValueError("At least one round duration is required")
    if any(m <= 0 for m in rounds):
        raise ValueError("Round durations must be positive")

    _require_member(session, member_id)
    profile = MemberSpeedProfile.get_or_create(session, member_id)
    apply_pace_data(
        profile,
        sum(rounds) / len(rounds),
        settings=settings,
        calculated_at=calculated_at,
    )
    session.flush()
    return profile


def _apply_profile_updates(
    profile: MemberSpeedProfile,
    updates: Mapping[str, object],
    settings: LotterySettings,
) -> None:
    unknown = set(updates) - set(_PROFILE_FIELDS)
    if unknown:
        raise TypeError(f"Unsupported speed profile fields: {sorted(unknown)}")

    tier = updates.get("speed_tier")
    if tier is not None and tier not in SPEED_TIERS:
        raise ValueError(f"Unknown speed tier: {tier!r}")

    adjustment = updates.get("admin_priority_adjustment")
    if adjustment is not None:
        if isinstance(adjustment, bool) or not isinstance(adjustment, int):
            raise TypeError("admin_priority_adjustment must be an integer")
        if not (
            settings.admin_adjustment_min
            <= adjustment
            <= settings.admin_adjustment_max
        ):
            raise ValueError(
                "Admin priority adjustment must be between "
                f"{settings.admin_adjustment_min} and +{settings.admin_adjustment_max}"
            )

    for field_name, value in updates.items():
        if field_name != "notes" and value is None:
            continue
        setattr(profile, field_name, value)
    profile.updated_at = datetime.now(timezone.utc)


def update_member_speed_profile(
    session: Session,
    member_id: int,
    *,
    settings: Optional[LotterySettings] = None,
    **updates,
) -> MemberSpeedProfile:
    """Apply admin edits to a member's speed profile.

    Accepted keyword arguments are ``speed_tier``, ``admin_priority_adjustment``,
    ``manual_override`` and ``notes``. The profile is created when missing.

    Raises
    ------
    ValueError
        If the member does not exist, the tier is unknown or the adjustment
        is outside the allowed range.
    TypeError
        If an unsupported field is passed.
    """

    settings = settings or LotterySettings()
    _require_member(session, member_id)
    profile = MemberSpeedProfile.get_or_create(session, member_id)
    _apply_profile_updates(profile, updates, settings)
    session.flush()
    return profile


def bulk_update_speed_profiles(
    session: Session,
    updates: Sequence[Mapping[str, object]],
    *,
    settings: Optional[LotterySettings] = None,
) -> dict:
    """Apply several profile edits, collecting per-member failures.

    Each mapping carries a ``member_id`` plus the fields accepted by
    :func:`update_member_speed_profile`. An invalid edit is skipped and
    reported; the remaining edits are still applied.

    Returns
    -------
    dict
        ``{"updated_count": int, "errors": list[str]}``.
    """

    settings = settings or LotterySettings()
    updated_count = 0
    errors: list[str] = []
    for item in updates:
        fields = dict(item)
        member_id = fields.pop("member_id", None)
        if member_id is None:
            errors.append("Missing member_id")
            continue
        try:
            with session.begin_nested():
                _require_member(session, member_id)
                profile = MemberSpeedProfile.get_or_create(session, member_id)
                _apply_profile_updates(profile, fields, settings)
                session.flush()
        except (TypeError, ValueError) as exc:
            errors.append(f"Member {member_id}: {exc}")
            continue
        except IntegrityError as exc:
            errors.append(f"Member {member_id}: {exc.orig}")
            continue
        updated_count += 1
    return {"updated_count": updated_count, "errors": errors}


def reset_all_admin_priority_adjustments(session: Session) -> dict:
    """Zero every non-zero admin priority adjustment and clear its notes.

    Returns
    -------
    dict
        ``{"updated_count": n}`` with the number of profiles changed.
    """

    result = session.execute(
        update(MemberSpeedProfile)
        .where(MemberSpeedProfile.admin_priority_adjustment != 0)
        .values(
            admin_priority_adjustment=0,
            notes=None,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session="fetch")
    )
    session.flush()
    return {"updated_count": result.rowcount or 0}


def get_member_profile_stats(
    session: Session, *, current_month: Optional[str] = None
) -> dict:
    """Summarise speed tiers, fairness priority bands and admin adjustments.

    Fairness figures cover ``current_month`` (defaults to this month).
    Priority bands: high above 20, medium 10 to 20, low below 10.
    """

    current_month = current_month or month_key(datetime.now(timezone.utc).date())

    tiers = {tier.lower(): 0 for tier in SPEED_TIERS}
    for tier, count in session.execute(
        select(MemberSpeedProfile.speed_tier, func.count()).group_by(
            MemberSpeedProfile.speed_tier
        )
    ):
        tiers[tier.lower()] = count

    scores = session.scalars(
        select(MemberFairnessScore).where(
            MemberFairnessScore.current_month == current_month
        )
    ).all()
    rates = [row.preference_fulfillment_rate for row in scores]
    fairness = {
        "high_priority": sum(1 for row in scores if row.fairness_score > 20),
        "medium_priority": sum(1 for row in scores if 10 <= row.fairness_score <= 20),
        "low_priority": sum(1 for row in scores if row.fairness_score < 10),
        "average_fulfillment_rate": (sum(rates) / len(rates)) if rates else 0.0,
    }

    adjustments = list(session.scalars(select(MemberSpeedProfile.admin_priority_adjustment)))
    admin = {
        "positive": sum(1 for value in adjustments if value > 0),
        "negative": sum(1 for value in adjustments if value < 0),
        "neutral": sum(1 for value in adjustments if value == 0),
    }

    total_members = session.scalar(select(func.count(Member.id))) or 0
    return {
        "total_members": total_members,
        "speed_tiers": tiers,
        "fairness_scores": fairness,
        "admin_adjustments": admin,
    }


__all__ = [
    "ADMIN_BOOKING_SOURCE",
    "MANUALLY_UNASSIGNED",
    "admin_update_lottery_entry",
    "admin_update_lottery_group",
    "assign_lottery_entry",
    "batch_update_lottery_assignments",
    "bulk_update_speed_profiles",
    "cancel_lottery_entry",
    "cancel_lottery_group",
    "get_lottery_entries_for_date",
    "get_lottery_entry_for_member",
    "get_member_profile_stats",
    "process_lottery_for_date",
    "record_pace_of_play",
    "reset_all_admin_priority_adjustments",
    "submit_lottery_entry",
    "submit_lottery_group",
    "update_lottery_assignment",
    "update_lottery_entry",
    "update_member_speed_profile",
]
