"""Unit tests for working-day arithmetic in working_days.py."""
from __future__ import annotations

import random
import unittest
from datetime import date, datetime, timedelta

from working_days import add_working_days, is_working_day, sub_working_days, week_mask

FRIDAY = 4


def _brute_force(d: date, days: int, exclude_friday: bool) -> date:
    """Day-by-day walk used as the reference implementation."""
    step = 1 if days >= 0 else -1
    remaining = abs(days)
    cur = d
    while remaining > 0:
        cur += timedelta(days=step)
        wd = cur.weekday()
        if wd >= 5 or (exclude_friday and wd == FRIDAY):
            continue
        remaining -= 1
    return cur


class TestWorkingDays(unittest.TestCase):
    def test_zero_days_returns_input(self) -> None:
        saturday = date(2025, 6, 28)
        self.assertEqual(add_working_days(saturday, 0), saturday)
        self.assertEqual(add_working_days(date(2025, 6, 30), 0, True), date(2025, 6, 30))

    def test_forward_within_week(self) -> None:
        self.assertEqual(add_working_days(date(2025, 6, 30), 3), date(2025, 7, 3))

    def test_forward_skips_weekend(self) -> None:
        # Friday + 1 -> Monday
        self.assertEqual(add_working_days(date(2025, 6, 27), 1), date(2025, 6, 30))

    def test_backward_skips_weekend(self) -> None:
        # Monday - 1 -> Friday
        self.assertEqual(sub_working_days(date(2025, 6, 30), 1), date(2025, 6, 27))
        self.assertEqual(add_working_days(date(2025, 6, 30), -8), date(2025, 6, 18))

    def test_start_on_weekend(self) -> None:
        saturday = date(2025, 6, 28)
        self.assertEqual(add_working_days(saturday, 1), date(2025, 6, 30))
        self.assertEqual(add_working_days(saturday, -1), date(2025, 6, 27))
        self.assertEqual(add_working_days(saturday, 2), date(2025, 7, 1))

    def test_extra_weekday_excluded(self) -> None:
        # Thursday + 1 skips Friday and the weekend
        self.assertEqual(add_working_days(date(2025, 6, 26), 1, True), date(2025, 6, 30))
        self.assertEqual(sub_working_days(date(2025, 6, 30), 1, True), date(2025, 6, 26))
        # Without the flag Friday counts
        self.assertEqual(add_working_days(date(2025, 6, 26), 1), date(2025, 6, 27))

    def test_other_extra_weekday(self) -> None:
        # Exclude Monday instead of Friday
        self.assertEqual(add_working_days(date(2025, 6, 27), 1, True, extra_weekday=0), date(2025, 7, 1))

    def test_matches_day_by_day_walk(self) -> None:
        rng = random.Random(20250630)
        base = date(2024, 1, 1)
        for _ in range(400):
            d = base + timedelta(days=rng.randint(0, 900))
            days = rng.randint(-60, 60)
            flag = rng.random() < 0.5
            with self.subTest(d=d, days=days, flag=flag):
                self.assertEqual(add_working_days(d, days, flag), _brute_force(d, days, flag))

    def test_advances_by_exactly_n_working_days(self) -> None:
        d = date(2025, 3, 5)
        for n in range(0, 40):
            for flag in (False, True):
                out = add_working_days(d, n, flag)
                counted = sum(
                    1 for i in range(1, (out - d).days + 1)
                    if is_working_day(d + timedelta(days=i), flag)
                )
                self.assertEqual(counted, n)

    def test_monotonic_in_days(self) -> None:
        d = date(2025, 2, 14)
        for flag in (False, True):
            for n in range(-30, 30):
                self.assertLess(add_working_days(d, n, flag), add_working_days(d, n + 1, flag))

    def test_accepts_datetime(self) -> None:
        self.assertEqual(add_working_days(datetime(2025, 6, 27, 15, 30), 1), date(2025, 6, 30))

    def test_invalid_inputs_raise(self) -> None:
        with self.assertRaises(TypeError):
            add_working_days("2025-06-30", 1)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            add_working_days(date(2025, 6, 30), 1.5)  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            week_mask(True, 7)

    def test_week_mask(self) -> None:
        self.assertEqual(week_mask(), "1111100")
        self.assertEqual(week_mask(True), "1111000")


if __name__ == "__main__":
    unittest.main()
