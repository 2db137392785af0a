import unittest
from datetime import time

from golflottery.lottery.config import TeeSheetConfig
from golflottery.lottery.errors import ConfigurationError, EmptyWindowError
from golflottery.lottery.windows import generate_slot_times, resolve_time_windows
from golflottery.models import TIME_WINDOWS


class GenerateSlotTimesTests(unittest.TestCase):
    def test_includes_start_and_end(self) -> None:
        config = TeeSheetConfig(start_time=time(7, 0), end_time=time(8, 0), interval=20)
        self.assertEqual(
            generate_slot_times(config), ["07:00", "07:20", "07:40", "08:00"]
        )

    def test_stops_before_passing_end(self) -> None:
        config = TeeSheetConfig(start_time=time(7, 0), end_time=time(7, 50), interval=20)
        self.assertEqual(generate_slot_times(config), ["07:00", "07:20", "07:40"])


class ResolveTimeWindowsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = TeeSheetConfig(
            start_time=time(7, 0), end_time=time(15, 0), interval=40
        )

    def test_windows_are_ordered_and_cover_every_slot(self) -> None:
        resolution = resolve_time_windows(self.config)

        self.assertEqual(tuple(w.name for w in resolution.windows), TIME_WINDOWS)
        covered = [t for w in resolution.windows for t in w.slot_times]
        self.assertEqual(covered, list(resolution.slot_times))
        self.assertEqual(resolution.empty_windows, ())

    def test_quarters_of_operating_day(self) -> None:
        resolution = resolve_time_windows(self.config)

        early = resolution.get("EARLY_MORNING")
        self.assertEqual(early.slot_times, ("07:00", "07:40", "08:20"))
        self.assertEqual((early.start_minutes, early.end_minutes), (420, 540))
        self.assertEqual(resolution.get("MORNING").slot_times, ("09:00", "09:40", "10:20"))
        self.assertEqual(resolution.get("MIDDAY").slot_times, ("11:00", "11:40", "12:20"))
        afternoon = resolution.get("AFTERNOON")
        self.assertEqual(afternoon.slot_times, ("13:00", "13:40", "14:20", "15:00"))
        self.assertTrue(afternoon.closes_day)

    def test_window_for_time(self) -> None:
        resolution = resolve_time_windows(self.config)

        self.assertEqual(resolution.window_for_time("08:59"), "EARLY_MORNING")
        self.assertEqual(resolution.window_for_time("09:00"), "MORNING")
        self.assertEqual(resolution.window_for_time("15:00"), "AFTERNOON")
        self.assertIsNone(resolution.window_for_time("15:01"))
        self.assertIsNone(resolution.get("TWILIGHT"))

    def test_empty_windows_are_logged_and_unselectable(self) -> None:
        config = TeeSheetConfig(start_time=time(7, 0), end_time=time(8, 0), interval=60)

        with self.assertLogs("golflottery.lottery.windows", level="WARNING") as logs:
            resolution = resolve_time_windows(config)

        self.assertEqual(
            [error.window for error in resolution.empty_windows], ["MORNING", "MIDDAY"]
        )
        self.assertTrue(all(isinstance(e, EmptyWindowError) for e in resolution.empty_windows))
        self.assertEqual(len(logs.output), 2)
        self.assertFalse(resolution.get("MORNING").is_selectable)
        self.assertTrue(resolution.get("EARLY_MORNING").is_selectable)
        self.assertEqual(resolution.get("AFTERNOON").slot_times, ("08:00",))

    def test_start_not_before_end_is_rejected(self) -> None:
        config = TeeSheetConfig(start_time=time(9, 0), end_time=time(9, 0), interval=10)
        with self.assertRaises(ConfigurationError):
            resolve_time_windows(config)

    def test_non_positive_interval_is_rejected(self) -> None:
        config = TeeSheetConfig(start_time=time(7, 0), end_time=time(9, 0), interval=0)
        with self.assertRaises(ConfigurationError):
            resolve_time_windows(config)

    def test_non_positive_capacity_is_rejected(self) -> None:
        config = TeeSheetConfig(
            start_time=time(7, 0),
            end_time=time(9, 0),
            interval=10,
            max_members_per_block=0,
        )
        with self.assertRaises(ConfigurationError):
            resolve_time_windows(config)


class TeeSheetConfigTests(unittest.TestCase):
    def test_from_mapping_accepts_camel_case(self) -> None:
        config = TeeSheetConfig.from_mapping(
            {"startTime": "06:30", "endTime": "18:00", "interval": "8", "maxMembersPerBlock": 3}
        )
        self.assertEqual(config.start_time, time(6, 30))
        self.assertEqual(config.end_time, time(18, 0))
        self.assertEqual(config.interval, 8)
        self.assertEqual(config.max_members_per_block, 3)

    def test_from_mapping_requires_times(self) -> None:
        with self.assertRaises(ConfigurationError):
            TeeSheetConfig.from_mapping({"start_time": "07:00", "interval": 10})

    def test_invalid_clock_value(self) -> None:
        with self.assertRaises(ConfigurationError):
            TeeSheetConfig.from_mapping(
                {"start_time": "7am", "end_time": "15:00", "interval": 10}
            )


if __name__ == "__main__":
    unittest.main()
