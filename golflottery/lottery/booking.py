"""Hand-off of placements to the tee-sheet booking store."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol, Sequence

from sqlalchemy.orm import Session

from ..models.teesheet import TeeSlot, TeeSlotBooking
from .allocator import AllocationResult

logger = logging.getLogger(__name__)


class BookingSink(Protocol):
    """Anything that can turn assigned results into bookings.

    Implementations run inside the lottery's transaction; raising aborts and
    rolls back the whole run.
    """

    def create_bookings(
        self,
        session: Session,
        results: Sequence[AllocationResult],
        slots: Mapping[int, TeeSlot],
    ) -> int:
        ...


class SessionBookingSink:
    """Default sink writing one :class:`TeeSlotBooking` per seated member."""

    source = "lottery"

    def create_bookings(
        self,
        session: Session,
        results: Sequence[AllocationResult],
        slots: Mapping[int, TeeSlot],
    ) -> int:
        created = 0
        for result in results:
            if not result.assigned:
                continue
            slot = slots[result.slot_id]
            for member_id in result.member_ids:
                session.add(
                    TeeSlotBooking(
                        slot=slot,
                        member_id=member_id,
                        booking_date=slot.slot_date,
                        booking_time=slot.start_time,
                        source=self.source,
                    )
                )
                created += 1
        session.flush()
        logger.debug("Created %d lottery bookings", created)
        return created


__all__ = ["BookingSink", "SessionBookingSink"]
