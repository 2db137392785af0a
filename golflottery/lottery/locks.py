"""Process-local per-date locks serialising lottery runs.

The lock only covers runs inside one process. Runs in other processes are
kept apart by the conditional ``PENDING -> PROCESSING`` claim issued by the
orchestrator, which relies on the database's row locking.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from threading import Lock
from typing import Iterator

from .errors import ConcurrentRunError

logger = logging.getLogger(__name__)


class DateLockRegistry:
    """Track which lottery dates are currently held.

    Acquisition never waits, so a date only needs an entry while someone
    holds it. The entry is removed on release.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._held: set[date] = set()

    @contextmanager
    def hold(self, lottery_date: date) -> Iterator[None]:
        """Hold ``lottery_date`` for the duration of the block.

        Raises
        ------
        ConcurrentRunError
            If the date is already held. Acquisition never waits.
        """

        with self._guard:
            if lottery_date in self._held:
                logger.warning("Lottery work for %s rejected: date is busy", lottery_date)
                raise ConcurrentRunError(lottery_date)
            self._held.add(lottery_date)
        try:
            yield
        finally:
            with self._guard:
                self._held.discard(lottery_date)


DEFAULT_DATE_LOCKS = DateLockRegistry()

__all__ = ["DEFAULT_DATE_LOCKS", "DateLockRegistry"]
