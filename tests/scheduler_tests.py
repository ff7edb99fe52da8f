"""Tests for backward phase scheduling in scheduler.py."""
from __future__ import annotations

import random
import unittest
from dataclasses import replace
from datetime import date, timedelta

from datatypes import PHASES, PlannerConfig
from scheduler import compute_phase_timeline, create_days, phase_hours
from working_days import is_working_day
from store_fixtures import make_group


class TestPhaseHours(unittest.TestCase):
    def test_hours_scale_with_casts(self) -> None:
        hours = phase_hours(make_group())
        self.assertEqual(hours["rest"], 6)
        self.assertEqual(hours["cast"], 15)
        self.assertEqual(hours["weld"], 18)
        self.assertEqual(hours["reuse"], 8)
        self.assertEqual(hours["create"], 100)
        self.assertEqual(hours["design_1"], 24)
        self.assertEqual(hours["design_2"], 16)

    def test_single_cast_has_no_reuse(self) -> None:
        self.assertEqual(phase_hours(make_group(unit_count=1))["reuse"], 0)

    def test_cast_count_overrides_unit_count(self) -> None:
        hours = phase_hours(make_group(unit_count=4, cast_count=2))
        self.assertEqual(hours["cast"], 10)
        self.assertEqual(hours["reuse"], 4)

    def test_create_days(self) -> None:
        config = PlannerConfig()
        # 100 / 0.65 = 153.8 -> 154 h -> 19.25 -> 20 days
        self.assertEqual(create_days(100, config), 20)
        # 65 / 0.65 is 100.00000000000001 in floats; still 13 days
        self.assertEqual(create_days(65, config), 13)
        self.assertEqual(create_days(0, config), 0)


class TestComputePhaseTimeline(unittest.TestCase):
    def setUp(self) -> None:
        self.config = PlannerConfig()

    def test_reference_timeline(self) -> None:
        timeline = compute_phase_timeline(make_group(), self.config)
        expected = {
            "rest": (date(2025, 6, 11), date(2025, 6, 18)),
            "cast": (date(2025, 6, 3), date(2025, 6, 10)),
            "weld": (date(2025, 5, 26), date(2025, 6, 2)),
            "reuse": (date(2025, 6, 4), date(2025, 6, 9)),
            "create": (date(2025, 4, 25), date(2025, 5, 23)),
            "design_2": (date(2025, 3, 26), date(2025, 4, 11)),
            "design_1": (date(2025, 3, 6), date(2025, 3, 25)),
        }
        for phase, (start, end) in expected.items():
            interval = timeline.get(phase)
            self.assertIsNotNone(interval, phase)
            self.assertEqual((interval.start, interval.end), (start, end), phase)

    def test_intervals_in_dependency_order(self) -> None:
        timeline = compute_phase_timeline(make_group(), self.config)
        self.assertEqual([i.phase for i in timeline], list(PHASES))

    def test_reuse_omitted_for_single_cast(self) -> None:
        timeline = compute_phase_timeline(make_group(unit_count=1), self.config)
        self.assertNotIn("reuse", timeline)
        self.assertEqual(len(timeline.intervals), 6)

    def test_deterministic(self) -> None:
        group = make_group()
        self.assertEqual(compute_phase_timeline(group, self.config), compute_phase_timeline(group, self.config))

    def test_extra_weekday_only_moves_production_phases(self) -> None:
        plain = compute_phase_timeline(make_group(), self.config)
        flagged = compute_phase_timeline(make_group(exclude_extra_weekday=True), self.config)

        # Delivery Monday 2025-06-30, 8 working days back without Fridays
        self.assertEqual(flagged.get("rest").end, date(2025, 6, 16))
        for phase in ("rest", "cast", "weld", "reuse"):
            interval = flagged.get(phase)
            self.assertNotEqual(interval.start.weekday(), 4, phase)
            self.assertNotEqual(interval.end.weekday(), 4, phase)
        self.assertLess(flagged.get("create").end, plain.get("create").end)

    def test_extra_weekday_phases_configurable(self) -> None:
        config = replace(self.config, extra_weekday_phases=())
        flagged = compute_phase_timeline(make_group(exclude_extra_weekday=True), config)
        self.assertEqual(flagged, compute_phase_timeline(make_group(), config))

    def test_chain_invariants_hold_for_random_groups(self) -> None:
        rng = random.Random(42)
        for _ in range(150):
            units = rng.randint(1, 12)
            group = make_group(
                unit_count=units,
                delivery_date=date(2025, 1, 6) + timedelta(days=rng.randint(0, 500)),
                create_hours=rng.choice([0, 8, 37.5, 100, 260]),
                reuse_rate=rng.choice([0, 2, 4.5]),
                design_1_hours=rng.choice([0, 6, 24]),
                design_2_hours=rng.choice([0, 10, 16]),
                exclude_extra_weekday=rng.random() < 0.5,
            )
            with self.subTest(group=group):
                self._assert_chain(group)

    def _assert_chain(self, group) -> None:
        t = compute_phase_timeline(group, self.config)
        flag = group.exclude_extra_weekday
        for interval in t:
            self.assertLessEqual(interval.start, interval.end)
            self.assertGreaterEqual(interval.hours, 0)
            strict = flag and interval.phase in self.config.extra_weekday_phases
            self.assertTrue(is_working_day(interval.start, strict), interval)
            self.assertTrue(is_working_day(interval.end, strict), interval)

        self.assertLess(t.get("rest").end, group.delivery_date)
        self.assertLess(t.get("cast").end, t.get("rest").start)
        self.assertLess(t.get("weld").end, t.get("cast").start)
        self.assertLess(t.get("create").end, t.get("weld").start)
        self.assertLess(t.get("design_2").end, t.get("create").start)
        self.assertLess(t.get("design_1").end, t.get("design_2").start)
        if "reuse" in t:
            self.assertGreater(t.get("reuse").start, t.get("cast").start)
            self.assertLess(t.get("reuse").end, t.get("cast").end)


if __name__ == "__main__":
    unittest.main()
