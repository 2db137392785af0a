"""Speed-tier classification and member state snapshots for a run."""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.profiles import MemberFairnessScore, MemberSpeedProfile
from .config import LotterySettings
from .scoring import MemberSnapshot


def classify_speed_tier(
    average_minutes: Optional[float], settings: Optional[LotterySettings] = None
) -> str:
    """Map an average round time to ``"FAST"``, ``"AVERAGE"`` or ``"SLOW"``.

    Members without pace data are ``"AVERAGE"``.
    """

    settings = settings or LotterySettings()
    if average_minutes is None:
        return "AVERAGE"
    if average_minutes <= settings.fast_max_minutes:
        return "FAST"
    if average_minutes > settings.slow_min_minutes:
        return "SLOW"
    return "AVERAGE"


def apply_pace_data(
    profile: MemberSpeedProfile,
    average_minutes: float,
    *,
    settings: Optional[LotterySettings] = None,
    calculated_at: Optional[datetime] = None,
) -> MemberSpeedProfile:
    """Store a new average on ``profile`` and re-derive its tier.

    A profile with ``manual_override`` keeps its admin-selected tier; only
    the average and timestamp change.
    """

    if average_minutes <= 0:
        raise ValueError("average_minutes must be positive")
    profile.average_minutes = float(average_minutes)
    if not profile.manual_override:
        profile.speed_tier = classify_speed_tier(average_minutes, settings)
    profile.last_calculated = calculated_at or datetime.now(timezone.utc)
    return profile


def capture_member_snapshots(
    session: Session,
    member_ids: Iterable[int],
    current_month: str,
) -> Mapping[int, MemberSnapshot]:
    """Read speed and fairness state for ``member_ids`` into a frozen mapping.

    The fairness values come from the member's row for ``current_month`` or,
    before their first processed entry of the month, from their most recent
    earlier row.
    """

    ids = sorted(set(member_ids))
    if not ids:
        return MappingProxyType({})

    profiles = {
        p.member_id: p
        for p in session.scalars(
            select(MemberSpeedProfile).where(MemberSpeedProfile.member_id.in_(ids))
        ).all()
    }
    latest: dict[int, MemberFairnessScore] = {}
    rows = session.scalars(
        select(MemberFairnessScore)
        .where(
            MemberFairnessScore.member_id.in_(ids),
            MemberFairnessScore.current_month <= current_month,
        )
        .order_by(MemberFairnessScore.current_month.asc())
    ).all()
    for row in rows:
        latest[row.member_id] = row

    snapshots: dict[int, MemberSnapshot] = {}
    for member_id in ids:
        profile = profiles.get(member_id)
        fairness = latest.get(member_id)
        snapshots[member_id] = MemberSnapshot(
            member_id=member_id,
            speed_tier=profile.speed_tier if profile is not None else "AVERAGE",
            admin_priority_adjustment=(
                profile.admin_priority_adjustment if profile is not None else 0
            ),
            fairness_score=fairness.fairness_score if fairness is not None else 0,
            days_without_good_time=(
                fairness.days_without_good_time if fairness is not None else 0
            ),
            preference_fulfillment_rate=(
                fairness.preference_fulfillment_rate
                if fairness is not None and fairness.total_entries_month
                else None
            ),
        )
    return MappingProxyType(snapshots)


__all__ = ["apply_pace_data", "capture_member_snapshots", "classify_speed_tier"]
