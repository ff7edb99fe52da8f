"""Backward phase scheduling from a delivery date.

Overview
========
Every phase is placed relative to the one after it, walking back from the
delivery date in working days:

    rest     ends ``production_buffer_days`` before delivery
    cast     ends 1 day before rest starts
    weld     ends 1 day before cast starts
    reuse    runs inside the cast window: from 1 day after cast starts to
             1 day before cast ends (only when reuse hours > 0)
    create   ends 1 day before weld starts
    design_2 ends ``design_to_production_buffer_days`` before create starts
    design_1 ends ``design_phase_gap_days`` before design_2 starts

Production phases span ``2 * casts - 1`` working days (a pour every other
working day). Create spans ``ceil(ceil(hours / efficiency) / hours_per_day)``
days; each design phase spans ``ceil(hours / hours_per_day)`` days plus the
customer-response buffer.

Production phases honour the group's extra excluded weekday; design and
create work use the standard Monday-Friday calendar (configurable through
``PlannerConfig.extra_weekday_phases``).

The schedule is a pure function of the group and the configuration.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Dict

from datatypes import PhaseInterval, PhaseTimeline, PlannerConfig, ProductionGroup, PHASES
from logger import get_logger
from utilities import hours_to_days
from working_days import add_working_days, sub_working_days

logger = get_logger(__name__)


def phase_hours(group: ProductionGroup) -> Dict[str, float]:
    """Effort hours per phase.

    Production hours scale with the pour count; reuse only applies from the
    second pour on, so it is zero for a single pour. Create and design hours
    are taken as given.
    """
    casts = group.casts
    return {
        "rest": casts * group.rest_rate,
        "cast": casts * group.cast_rate,
        "weld": casts * group.weld_rate,
        "reuse": (casts - 1) * group.reuse_rate if casts > 1 else 0,
        "create": group.create_hours,
        "design_1": group.design_1_hours,
        "design_2": group.design_2_hours,
    }


def create_days(create_hours: float, config: PlannerConfig) -> int:
    """Working days needed for mold creation at the configured efficiency."""
    effective_hours = math.ceil(round(create_hours / config.efficiency_factor, 9))
    return hours_to_days(effective_hours, config.hours_per_day)


def compute_phase_timeline(group: ProductionGroup, config: PlannerConfig) -> PhaseTimeline:
    """Derive the full phase chain for ``group``.

    Returns:
        PhaseTimeline with intervals in dependency order (design_1 first).
        The reuse interval is omitted when its hours are zero.
    """
    hours = phase_hours(group)
    span = 2 * group.casts - 1

    def back(phase: str, d: date, days: int) -> date:
        excluded = group.exclude_extra_weekday and phase in config.extra_weekday_phases
        return sub_working_days(d, days, excluded, config.extra_excluded_weekday)

    def forward(phase: str, d: date, days: int) -> date:
        excluded = group.exclude_extra_weekday and phase in config.extra_weekday_phases
        return add_working_days(d, days, excluded, config.extra_excluded_weekday)

    end: Dict[str, date] = {}
    start: Dict[str, date] = {}

    end["rest"] = back("rest", group.delivery_date, config.production_buffer_days)
    start["rest"] = back("rest", end["rest"], span)

    end["cast"] = back("cast", start["rest"], 1)
    start["cast"] = back("cast", end["cast"], span)

    end["weld"] = back("weld", start["cast"], 1)
    start["weld"] = back("weld", end["weld"], span)

    if hours["reuse"] > 0:
        end["reuse"] = back("reuse", end["cast"], 1)
        start["reuse"] = forward("reuse", start["cast"], 1)

    end["create"] = back("create", start["weld"], 1)
    start["create"] = back("create", end["create"], create_days(hours["create"], config))

    design_2_days = hours_to_days(group.design_2_hours, config.hours_per_day) + config.customer_response_buffer_days
    end["design_2"] = back("design_2", start["create"], config.design_to_production_buffer_days)
    start["design_2"] = back("design_2", end["design_2"], design_2_days)

    design_1_days = hours_to_days(group.design_1_hours, config.hours_per_day) + config.customer_response_buffer_days
    end["design_1"] = back("design_1", start["design_2"], config.design_phase_gap_days)
    start["design_1"] = back("design_1", end["design_1"], design_1_days)

    intervals = tuple(
        PhaseInterval(phase=p, start=start[p], end=end[p], hours=hours[p])
        for p in PHASES
        if p in end
    )
    for interval in intervals:
        logger.debug(f"{group.name} {interval.phase}: {interval.start} -> {interval.end} ({interval.hours}h)")
    return PhaseTimeline(intervals=intervals)
