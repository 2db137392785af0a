import json
import unittest
from datetime import datetime, time, timedelta, timezone
from types import MappingProxyType

from golflottery.lottery.allocator import (
    AllocationCandidate,
    LotteryAllocator,
    SlotCapacity,
)
from golflottery.lottery.config import TeeSheetConfig
from golflottery.lottery.scoring import MemberSnapshot
from golflottery.lottery.windows import resolve_time_windows

BASE_TIME = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def make_candidate(
    entry_id,
    member_id,
    preferred="EARLY_MORNING",
    alternate=None,
    *,
    member_ids=None,
    specific=None,
    minutes=0,
    kind="entry",
):
    return AllocationCandidate(
        kind=kind,
        entry_id=entry_id,
        member_id=member_id,
        member_ids=tuple(member_ids or (member_id,)),
        preferred_window=preferred,
        alternate_window=alternate,
        specific_time=specific,
        submitted_at=BASE_TIME + timedelta(minutes=minutes),
    )


class LotteryAllocatorTests(unittest.TestCase):
    def setUp(self) -> None:
        config = TeeSheetConfig(start_time=time(7, 0), end_time=time(15, 0), interval=40)
        self.resolution = resolve_time_windows(config)
        self.slots = [
            SlotCapacity(slot_id=index + 1, start_time=t, max_members=4, remaining=4)
            for index, t in enumerate(self.resolution.slot_times)
        ]
        self.slot_ids = {slot.start_time: slot.slot_id for slot in self.slots}
        self.allocator = LotteryAllocator()

    def test_fourteen_entries_into_three_early_slots(self) -> None:
        # Entry 1 is submitted first; everyone else ties on score.
        candidates = [make_candidate(1, 1, minutes=0)]
        candidates += [make_candidate(i, i, minutes=10 + i) for i in range(2, 15)]

        outcome = self.allocator.allocate(
            reversed(candidates), MappingProxyType({}), self.resolution, self.slots
        )

        self.assertEqual(outcome.results[0].entry_id, 1)
        self.assertEqual(outcome.results[0].start_time, "07:00")
        self.assertEqual(len(outcome.assigned), 12)
        self.assertEqual(
            [(r.entry_id, r.reason) for r in outcome.unassigned],
            [(13, "NO_CAPACITY"), (14, "NO_CAPACITY")],
        )
        for start_time in ("07:00", "07:40", "08:20"):
            self.assertEqual(outcome.remaining[self.slot_ids[start_time]], 0)
        self.assertTrue(all(r.preference_granted for r in outcome.assigned))

    def test_group_larger_than_every_slot(self) -> None:
        group = make_candidate(1, 10, member_ids=(10, 11, 12, 13, 14), kind="group")

        outcome = self.allocator.allocate([group], {}, self.resolution, self.slots)

        (result,) = outcome.results
        self.assertFalse(result.assigned)
        self.assertEqual(result.reason, "GROUP_TOO_LARGE")
        self.assertTrue(all(outcome.remaining[s.slot_id] == 4 for s in self.slots))

    def test_group_is_placed_whole(self) -> None:
        single = make_candidate(1, 1, minutes=0)
        group = make_candidate(2, 2, member_ids=(2, 3, 4, 5), kind="group", minutes=1)

        outcome = self.allocator.allocate([single, group], {}, self.resolution, self.slots)

        self.assertEqual([r.start_time for r in outcome.results], ["07:00", "07:40"])
        self.assertEqual(outcome.remaining[self.slot_ids["07:00"]], 3)
        self.assertEqual(outcome.remaining[self.slot_ids["07:40"]], 0)

    def test_backup_window_is_not_a_granted_preference(self) -> None:
        slots = [
            SlotCapacity(s.slot_id, s.start_time, s.max_members, 0)
            if self.resolution.window_for_time(s.start_time) == "EARLY_MORNING"
            else s
            for s in self.slots
        ]
        candidate = make_candidate(1, 1, alternate="MIDDAY")

        outcome = self.allocator.allocate([candidate], {}, self.resolution, slots)

        (result,) = outcome.results
        self.assertEqual(result.start_time, "11:00")
        self.assertEqual(result.window, "MIDDAY")
        self.assertFalse(result.preference_granted)

    def test_specific_time_honoured_inside_preferred_window(self) -> None:
        inside = make_candidate(1, 1, specific="08:20")
        outside = make_candidate(2, 2, specific="13:00", minutes=1)

        outcome = self.allocator.allocate([inside, outside], {}, self.resolution, self.slots)

        self.assertEqual([r.start_time for r in outcome.results], ["08:20", "07:00"])

    def test_higher_score_is_placed_first(self) -> None:
        snapshots = {
            2: MemberSnapshot(member_id=2, fairness_score=10),
            3: MemberSnapshot(member_id=3, speed_tier="FAST"),
        }
        candidates = [
            make_candidate(1, 1, minutes=0),
            make_candidate(2, 2, minutes=5),
            make_candidate(3, 3, minutes=10),
        ]

        outcome = self.allocator.allocate(candidates, snapshots, self.resolution, self.slots)

        self.assertEqual([r.member_id for r in outcome.results], [2, 3, 1])
        self.assertEqual([r.score for r in outcome.results], [10.0, 10.0, 0.0])

    def test_input_slots_are_not_mutated(self) -> None:
        before = list(self.slots)
        self.allocator.allocate([make_candidate(1, 1)], {}, self.resolution, self.slots)
        self.assertEqual(self.slots, before)

    def test_identical_input_gives_identical_output(self) -> None:
        candidates = [
            make_candidate(i, i, preferred="MORNING", alternate="AFTERNOON", minutes=i % 3)
            for i in range(1, 20)
        ]
        snapshots = {
            i: MemberSnapshot(member_id=i, fairness_score=i % 4) for i in range(1, 20)
        }

        first = self.allocator.allocate(candidates, snapshots, self.resolution, self.slots)
        second = self.allocator.allocate(
            list(reversed(candidates)), snapshots, self.resolution, self.slots
        )

        dump = lambda outcome: json.dumps([r.as_dict() for r in outcome.results], sort_keys=True)
        self.assertEqual(dump(first), dump(second))

    def test_capacity_never_exceeded(self) -> None:
        candidates = [
            make_candidate(i, i, preferred="AFTERNOON", alternate="MIDDAY", minutes=i)
            for i in range(1, 40)
        ]
        outcome = self.allocator.allocate(candidates, {}, self.resolution, self.slots)

        seated: dict[int, int] = {}
        for result in outcome.assigned:
            seated[result.slot_id] = seated.get(result.slot_id, 0) + result.party_size
        for slot in self.slots:
            self.assertLessEqual(seated.get(slot.slot_id, 0), slot.remaining)
        self.assertEqual(len(outcome.assigned), 28)


if __name__ == "__main__":
    unittest.main()
