import datetime as dt
import unittest
from zoneinfo import ZoneInfo

from wbgt_service.time_window import TimePoint, compute_target_points, jst_today


class TestTimeWindow(unittest.TestCase):
    def test_four_points_in_order(self):
        now = dt.datetime(2025, 7, 9, 3, 0, tzinfo=dt.timezone.utc)
        points = compute_target_points(now)
        self.assertEqual(points, [
            TimePoint(dt.date(2025, 7, 9), 15),
            TimePoint(dt.date(2025, 7, 9), 18),
            TimePoint(dt.date(2025, 7, 10), 15),
            TimePoint(dt.date(2025, 7, 10), 18),
        ])

    def test_jst_day_rolls_over_before_utc_midnight(self):
        # 15:00 UTC is already midnight in Tokyo
        now = dt.datetime(2025, 7, 9, 15, 0, tzinfo=dt.timezone.utc)
        self.assertEqual(jst_today(now), dt.date(2025, 7, 10))
        self.assertEqual(jst_today(now - dt.timedelta(seconds=1)), dt.date(2025, 7, 9))

    def test_independent_of_input_timezone(self):
        utc = dt.datetime(2025, 12, 31, 20, 30, tzinfo=dt.timezone.utc)
        chicago = utc.astimezone(ZoneInfo("America/Chicago"))
        naive = utc.replace(tzinfo=None)
        expected = compute_target_points(utc)
        self.assertEqual(compute_target_points(chicago), expected)
        self.assertEqual(compute_target_points(naive), expected)
        self.assertEqual(expected[0].date, dt.date(2026, 1, 1))
        self.assertEqual(expected[2].date, dt.date(2026, 1, 2))

    def test_tomorrow_is_one_day_after_today(self):
        start = dt.datetime(2024, 2, 27, 0, 0, tzinfo=dt.timezone.utc)
        for hours in range(0, 24 * 5, 7):
            points = compute_target_points(start + dt.timedelta(hours=hours))
            self.assertEqual(len(points), 4)
            self.assertEqual([p.hour for p in points], [15, 18, 15, 18])
            self.assertEqual(points[0].date, points[1].date)
            self.assertEqual(points[2].date, points[3].date)
            self.assertEqual(points[2].date - points[0].date, dt.timedelta(days=1))

    def test_points_are_immutable(self):
        point = TimePoint(dt.date(2025, 7, 9), 15)
        with self.assertRaises(AttributeError):
            point.hour = 18  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
