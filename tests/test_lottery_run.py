from __future__ import annotations

import json
import unittest
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select

from golflottery.db.engine import get_sessionmaker, make_engine
from golflottery.lottery import (
    ConcurrentRunError,
    ConfigurationError,
    DateLockRegistry,
    LotterySettings,
    RunFailedError,
    SessionBookingSink,
    TeeSheetConfig,
    process_lottery_for_date,
)
from golflottery.models import (
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
    STATUS_PENDING,
    Base,
    LotteryEntry,
    LotteryGroup,
    LotteryRun,
    Member,
    MemberFairnessScore,
    MemberSpeedProfile,
    TeeSlot,
    TeeSlotBooking,
)

LOTTERY_DATE = date(2025, 6, 14)
SUBMITTED = datetime(2025, 6, 10, 8, 0, tzinfo=timezone.utc)
RUN_AT = datetime(2025, 6, 13, 18, 0, tzinfo=timezone.utc)


class ExplodingSink(SessionBookingSink):
    def create_bookings(self, session, results, slots):
        super().create_bookings(session, results, slots)
        raise RuntimeError("booking service unavailable")


class LotteryRunTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        self.config = TeeSheetConfig(
            start_time=time(7, 0), end_time=time(15, 0), interval=40
        )
        self.locks = DateLockRegistry()

    def tearDown(self) -> None:
        self.engine.dispose()

    def _run(self, session, **kwargs):
        kwargs.setdefault("locks", self.locks)
        kwargs.setdefault("now", RUN_AT)
        return process_lottery_for_date(session, LOTTERY_DATE, self.config, **kwargs)

    def _seed_entries(self, session, count, *, window="EARLY_MORNING", alternate=None, prefix="M"):
        members = [Member(member_number=f"{prefix}{i:03d}") for i in range(count)]
        session.add_all(members)
        session.flush()
        entries = []
        for offset, member in enumerate(members):
            entry = LotteryEntry(
                member_id=member.id,
                lottery_date=LOTTERY_DATE,
                preferred_window=window,
                alternate_window=alternate,
                member_class=member.member_class,
                submitted_at=SUBMITTED + timedelta(minutes=offset),
            )
            entries.append(entry)
        session.add_all(entries)
        session.flush()
        return members, entries

    def _count(self, session, model) -> int:
        return session.scalar(select(func.count()).select_from(model))

    def test_fourteen_entries_fill_three_early_slots(self) -> None:
        with self.Session.begin() as session:
            _, entries = self._seed_entries(session, 14)
            first_id = entries[0].id

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(summary.processed_count, 14)
        self.assertEqual(summary.total_entries, 14)
        self.assertEqual(summary.bookings_created, 12)

        with self.Session() as session:
            entries = session.scalars(select(LotteryEntry).order_by(LotteryEntry.id)).all()
            assigned = [e for e in entries if e.status == STATUS_ASSIGNED]
            unassigned = [e for e in entries if e.status == STATUS_PENDING]
            self.assertEqual(len(assigned), 12)
            self.assertEqual(len(unassigned), 2)
            self.assertTrue(all(e.unassigned_reason == "NO_CAPACITY" for e in unassigned))
            self.assertTrue(all(e.processed_at is not None for e in entries))

            first = session.get(LotteryEntry, first_id)
            self.assertEqual(first.assigned_slot.start_time, "07:00")

            per_slot = dict(
                session.execute(
                    select(TeeSlotBooking.booking_time, func.count())
                    .group_by(TeeSlotBooking.booking_time)
                ).all()
            )
            self.assertEqual(per_slot, {"07:00": 4, "07:40": 4, "08:20": 4})
            self.assertEqual(self._count(session, LotteryRun), 1)
            self.assertEqual(self._count(session, MemberFairnessScore), 14)

    def test_second_run_for_same_date_is_a_no_op(self) -> None:
        with self.Session.begin() as session:
            self._seed_entries(session, 6, alternate="MORNING")

        with self.Session.begin() as session:
            self._run(session)

        with self.Session() as session:
            fairness_before = sorted(
                (row.member_id, row.total_entries_month, row.fairness_score)
                for row in session.scalars(select(MemberFairnessScore))
            )

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(summary.processed_count, 0)
        self.assertEqual(summary.bookings_created, 0)
        self.assertEqual(summary.total_entries, 6)
        self.assertEqual(summary.results, ())

        with self.Session() as session:
            fairness_after = sorted(
                (row.member_id, row.total_entries_month, row.fairness_score)
                for row in session.scalars(select(MemberFairnessScore))
            )
            self.assertEqual(fairness_before, fairness_after)
            self.assertEqual(self._count(session, TeeSlotBooking), 6)
            self.assertEqual(self._count(session, LotteryRun), 1)

    def test_group_of_five_is_never_split(self) -> None:
        with self.Session.begin() as session:
            members = [Member(member_number=f"G{i}") for i in range(5)]
            session.add_all(members)
            session.flush()
            session.add(
                LotteryGroup(
                    leader_id=members[0].id,
                    lottery_date=LOTTERY_DATE,
                    member_ids=[m.id for m in members],
                    preferred_window="MORNING",
                    alternate_window="AFTERNOON",
                    leader_member_class="REGULAR",
                    submitted_at=SUBMITTED,
                )
            )

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(summary.processed_count, 1)
        self.assertEqual(summary.bookings_created, 0)
        (result,) = summary.results
        self.assertEqual(result.reason, "GROUP_TOO_LARGE")

        with self.Session() as session:
            group = session.scalars(select(LotteryGroup)).one()
            self.assertEqual(group.status, STATUS_PENDING)
            self.assertEqual(group.unassigned_reason, "GROUP_TOO_LARGE")
            self.assertIsNone(group.assigned_slot_id)
            self.assertEqual(self._count(session, TeeSlotBooking), 0)

    def test_group_of_four_books_every_member(self) -> None:
        with self.Session.begin() as session:
            members = [Member(member_number=f"Q{i}") for i in range(4)]
            session.add_all(members)
            session.flush()
            session.add(
                LotteryGroup(
                    leader_id=members[0].id,
                    lottery_date=LOTTERY_DATE,
                    member_ids=[m.id for m in members],
                    preferred_window="MIDDAY",
                    leader_member_class="REGULAR",
                    submitted_at=SUBMITTED,
                )
            )

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(summary.bookings_created, 4)
        with self.Session() as session:
            group = session.scalars(select(LotteryGroup)).one()
            self.assertEqual(group.status, STATUS_ASSIGNED)
            self.assertEqual(group.assigned_slot.start_time, "11:00")
            booked = sorted(session.scalars(select(TeeSlotBooking.member_id)))
            self.assertEqual(booked, sorted(group.member_ids))
            leader_row = MemberFairnessScore.get_for_month(session, group.leader_id, "2025-06")
            self.assertEqual(leader_row.preferences_granted_month, 1)

    def test_previously_denied_member_gets_the_last_seat(self) -> None:
        self.config = TeeSheetConfig(
            start_time=time(7, 0),
            end_time=time(7, 40),
            interval=40,
            max_members_per_block=2,
        )
        with self.Session.begin() as session:
            walk_in = Member(member_number="W001")
            competitor = Member(member_number="C001")
            denied = Member(member_number="D001")
            session.add_all([walk_in, competitor, denied])
            session.flush()

            slots = TeeSlot.ensure_for_date(session, LOTTERY_DATE, ["07:00", "07:40"], 2)
            session.add(
                TeeSlotBooking(
                    slot=slots[0],
                    member_id=walk_in.id,
                    booking_date=LOTTERY_DATE,
                    booking_time="07:00",
                    source="manual",
                )
            )
            session.add(
                MemberFairnessScore(
                    member_id=denied.id,
                    current_month="2025-06",
                    total_entries_month=3,
                    preferences_granted_month=2,
                    preference_fulfillment_rate=2 / 3,
                    days_without_good_time=1,
                    fairness_score=10,
                )
            )
            for offset, member in enumerate([competitor, denied]):
                session.add(
                    LotteryEntry(
                        member_id=member.id,
                        lottery_date=LOTTERY_DATE,
                        preferred_window="EARLY_MORNING",
                        member_class="REGULAR",
                        submitted_at=SUBMITTED + timedelta(minutes=offset),
                    )
                )
            denied_id = denied.id
            competitor_id = competitor.id

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual([r.member_id for r in summary.results], [denied_id, competitor_id])

        with self.Session() as session:
            granted = LotteryEntry.get_active_for_member(session, denied_id, LOTTERY_DATE)
            self.assertEqual(granted.status, STATUS_ASSIGNED)
            self.assertEqual(granted.assigned_slot.start_time, "07:00")
            losing = LotteryEntry.get_active_for_member(session, competitor_id, LOTTERY_DATE)
            self.assertEqual(losing.unassigned_reason, "NO_CAPACITY")

            row = MemberFairnessScore.get_for_month(session, denied_id, "2025-06")
            self.assertEqual(row.days_without_good_time, 0)
            self.assertEqual(row.preferences_granted_month, 3)
            self.assertEqual(row.total_entries_month, 4)
            self.assertLess(row.fairness_score, 10)

            loser_row = MemberFairnessScore.get_for_month(session, competitor_id, "2025-06")
            self.assertEqual(loser_row.days_without_good_time, 1)

    def test_speed_and_admin_adjustment_change_order(self) -> None:
        with self.Session.begin() as session:
            members, _ = self._seed_entries(session, 3, window="MORNING")
            session.add(MemberSpeedProfile(member_id=members[2].id, speed_tier="FAST"))
            session.add(
                MemberSpeedProfile(member_id=members[1].id, admin_priority_adjustment=-5)
            )
            expected = [members[2].id, members[0].id, members[1].id]

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual([r.member_id for r in summary.results], expected)
        self.assertEqual([r.start_time for r in summary.results], ["09:00", "09:00", "09:00"])

    def test_existing_bookings_reduce_capacity(self) -> None:
        with self.Session.begin() as session:
            members, _ = self._seed_entries(session, 3)
            others = [Member(member_number=f"X{i}") for i in range(3)]
            session.add_all(others)
            session.flush()
            slots = TeeSlot.ensure_for_date(
                session, LOTTERY_DATE, ["07:00", "07:40", "08:20"], 4
            )
            for member in others:
                session.add(
                    TeeSlotBooking(
                        slot=slots[0],
                        member_id=member.id,
                        booking_date=LOTTERY_DATE,
                        booking_time="07:00",
                        source="manual",
                    )
                )

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(
            [r.start_time for r in summary.results], ["07:00", "07:40", "07:40"]
        )
        with self.Session() as session:
            for slot in TeeSlot.list_for_date(session, LOTTERY_DATE):
                self.assertLessEqual(slot.booked_count, slot.max_members)

    def test_results_are_byte_identical_across_databases(self) -> None:
        def run_once():
            engine = make_engine("sqlite+pysqlite:///:memory:")
            try:
                Base.metadata.create_all(engine)
                Session = get_sessionmaker(engine)
                with Session.begin() as session:
                    members, _ = self._seed_entries(
                        session, 20, window="MIDDAY", alternate="AFTERNOON"
                    )
                    for index, member in enumerate(members):
                        if index % 3 == 0:
                            session.add(
                                MemberSpeedProfile(member_id=member.id, speed_tier="FAST")
                            )
                with Session.begin() as session:
                    summary = process_lottery_for_date(
                        session,
                        LOTTERY_DATE,
                        self.config,
                        locks=DateLockRegistry(),
                        now=RUN_AT,
                    )
                return json.dumps([r.as_dict() for r in summary.results], sort_keys=True)
            finally:
                engine.dispose()

        self.assertEqual(run_once(), run_once())

    def test_concurrent_run_is_rejected_without_changes(self) -> None:
        with self.Session.begin() as session:
            self._seed_entries(session, 2)

        with self.locks.hold(LOTTERY_DATE):
            with self.Session.begin() as session:
                with self.assertRaises(ConcurrentRunError):
                    self._run(session)

        with self.Session() as session:
            entries = session.scalars(select(LotteryEntry)).all()
            self.assertTrue(all(e.status == STATUS_PENDING for e in entries))
            self.assertTrue(all(e.processed_at is None for e in entries))
            self.assertEqual(self._count(session, TeeSlot), 0)

    def test_released_dates_are_forgotten(self) -> None:
        with self.Session.begin() as session:
            self._seed_entries(session, 2)

        for offset in range(3):
            with self.Session.begin() as session:
                process_lottery_for_date(
                    session,
                    LOTTERY_DATE + timedelta(days=offset),
                    self.config,
                    locks=self.locks,
                    now=RUN_AT,
                )

        self.assertEqual(self.locks._held, set())
        with self.locks.hold(LOTTERY_DATE):
            self.assertEqual(self.locks._held, {LOTTERY_DATE})

    def test_failure_rolls_back_the_whole_run(self) -> None:
        with self.Session.begin() as session:
            self._seed_entries(session, 5)

        with self.Session.begin() as session:
            with self.assertLogs("golflottery.lottery.orchestrator", level="ERROR"):
                with self.assertRaises(RunFailedError) as ctx:
                    self._run(session, booking_sink=ExplodingSink())

        self.assertIsInstance(ctx.exception.cause, RuntimeError)
        self.assertEqual(ctx.exception.lottery_date, LOTTERY_DATE)

        with self.Session() as session:
            entries = session.scalars(select(LotteryEntry)).all()
            self.assertTrue(all(e.status == STATUS_PENDING for e in entries))
            self.assertTrue(all(e.processed_at is None for e in entries))
            self.assertTrue(all(e.assigned_slot_id is None for e in entries))
            self.assertEqual(self._count(session, TeeSlotBooking), 0)
            self.assertEqual(self._count(session, MemberFairnessScore), 0)
            self.assertEqual(self._count(session, LotteryRun), 0)

        self.assertEqual(self.locks._held, set())
        with self.Session.begin() as session:
            summary = self._run(session)
        self.assertEqual(summary.processed_count, 5)

    def test_invalid_configuration_touches_nothing(self) -> None:
        with self.Session.begin() as session:
            self._seed_entries(session, 2)

        self.config = TeeSheetConfig(start_time=time(15, 0), end_time=time(7, 0), interval=10)
        with self.Session.begin() as session:
            with self.assertRaises(ConfigurationError):
                self._run(session)

        with self.Session() as session:
            self.assertTrue(
                all(e.processed_at is None for e in session.scalars(select(LotteryEntry)))
            )

    def test_unknown_scoring_algorithm_is_a_configuration_error(self) -> None:
        with self.Session.begin() as session:
            with self.assertRaises(ConfigurationError):
                self._run(session, settings=LotterySettings(scoring_algorithm="coin_flip"))

    def test_cancelled_entries_are_ignored(self) -> None:
        with self.Session.begin() as session:
            _, entries = self._seed_entries(session, 3)
            entries[1].status = STATUS_CANCELLED

        with self.Session.begin() as session:
            summary = self._run(session)

        self.assertEqual(summary.processed_count, 2)
        self.assertEqual(summary.total_entries, 2)
        with self.Session() as session:
            cancelled = session.scalars(
                select(LotteryEntry).where(LotteryEntry.status == STATUS_CANCELLED)
            ).one()
            self.assertIsNone(cancelled.processed_at)


if __name__ == "__main__":
    unittest.main()
