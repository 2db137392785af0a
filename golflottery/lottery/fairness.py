"""Monthly fairness bookkeeping applied after each lottery run."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models.profiles import MemberFairnessScore
from .allocator import AllocationResult
from .config import LotterySettings

logger = logging.getLogger(__name__)


def compute_fairness_score(
    fulfillment_rate: float,
    days_without_good_time: int,
    settings: Optional[LotterySettings] = None,
) -> int:
    """Return the fairness score for the given month statistics.

    The score is a step bonus for a low fulfillment rate plus a capped linear
    term in the number of consecutive unfulfilled entries. Both terms are
    non-increasing in the rate and non-decreasing in the streak, so a denied
    member's score never drops and a granted member's score never rises.
    """

    settings = settings or LotterySettings()
    score = 0
    if fulfillment_rate < settings.low_fulfillment_rate:
        score += settings.low_fulfillment_bonus
    elif fulfillment_rate < settings.medium_fulfillment_rate:
        score += settings.medium_fulfillment_bonus
    score += min(
        days_without_good_time * settings.days_without_good_time_weight,
        settings.days_without_good_time_cap,
    )
    return score


class FairnessUpdater:
    """Apply run outcomes to the members' monthly fairness rows."""

    def __init__(self, session: Session, *, settings: Optional[LotterySettings] = None) -> None:
        self._session = session
        self._settings = settings or LotterySettings()

    def apply(
        self,
        results: Iterable[AllocationResult],
        current_month: str,
        *,
        now: Optional[datetime] = None,
    ) -> list[MemberFairnessScore]:
        """Record one processed entry per result.

        Groups are credited to their leader (``result.member_id``).

        Parameters
        ----------
        results : Iterable[AllocationResult]
            Every entry processed by the run, assigned or not.
        current_month : str
            ``YYYY-MM`` bucket of the lottery date.
        now : Optional[datetime], default: None
            Timestamp stored in ``last_updated``.

        Returns
        -------
        list[MemberFairnessScore]
            The rows that were created or updated, in result order.
        """

        now = now or datetime.now(timezone.utc)
        rows: dict[int, MemberFairnessScore] = {}
        updated: list[MemberFairnessScore] = []
        for result in results:
            row = rows.get(result.member_id)
            if row is None:
                row = self._get_or_create(result.member_id, current_month)
                rows[result.member_id] = row
            before = row.fairness_score
            self._record(row, granted=result.preference_granted, now=now)
            logger.debug(
                "Fairness for member %s: %s -> %s (granted=%s)",
                result.member_id,
                before,
                row.fairness_score,
                result.preference_granted,
            )
            updated.append(row)

        self._session.flush()
        return updated

    def _record(self, row: MemberFairnessScore, *, granted: bool, now: datetime) -> None:
        row.total_entries_month += 1
        if granted:
            row.preferences_granted_month += 1
            row.days_without_good_time = 0
        else:
            row.days_without_good_time += 1
        row.preference_fulfillment_rate = (
            row.preferences_granted_month / row.total_entries_month
        )
        row.fairness_score = compute_fairness_score(
            row.preference_fulfillment_rate,
            row.days_without_good_time,
            self._settings,
        )
        row.last_updated = now

    def _get_or_create(self, member_id: int, current_month: str) -> MemberFairnessScore:
        row = MemberFairnessScore.get_for_month(self._session, member_id, current_month)
        if row is not None:
            return row

        # The unfulfilled streak survives the month boundary; counts restart.
        previous = MemberFairnessScore.latest_on_or_before(
            self._session, member_id, current_month
        )
        carried_days = previous.days_without_good_time if previous is not None else 0
        row = MemberFairnessScore(
            member_id=member_id,
            current_month=current_month,
            days_without_good_time=carried_days,
        )
        self._session.add(row)
        return row


__all__ = ["FairnessUpdater", "compute_fairness_score"]
