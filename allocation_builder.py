"""Expand a phase timeline into planned allocation entities."""
from __future__ import annotations

from typing import List, Mapping

from datatypes import (
    AllocationEntity,
    GROUP_PHASES,
    PER_UNIT_PHASES,
    PhaseTimeline,
    PlannerConfig,
    ProductionGroup,
)


def build_allocation_key(group_name: str, unit_index: int, department: str, activity: str) -> str:
    """Stable identity of an allocation.

    Changing any of the four inputs yields a different key; a renamed group
    therefore gets fresh allocations and its old ones go stale.
    """
    return f"{group_name or 'G'}-T{unit_index}-{department}-{activity}"


def build_planned_allocations(
    group: ProductionGroup,
    timeline: PhaseTimeline,
    department_ids: Mapping[str, str],
    config: PlannerConfig,
) -> List[AllocationEntity]:
    """Planned allocations for every unit of ``group``.

    Per unit (1..unit_count): rest, cast, weld, reuse (when scheduled),
    create. Then design_1 and design_2 once for the group, on unit 1.

    Args:
        group: The production group being planned.
        timeline: Output of ``scheduler.compute_phase_timeline`` for the group.
        department_ids: Department name -> store record id.
        config: Supplies the phase -> (department, activity) assignments.

    Returns:
        Entities in emission order; the same inputs always give the same list.
    """
    planned: List[AllocationEntity] = []

    def emit(phase: str, unit_index: int) -> None:
        interval = timeline.get(phase)
        if interval is None:
            return
        assignment = config.assignments[phase]
        planned.append(AllocationEntity(
            key=build_allocation_key(group.name, unit_index, assignment.department, assignment.activity),
            phase=interval.phase,
            department=assignment.department,
            department_id=department_ids[assignment.department],
            activity=assignment.activity,
            hours=interval.hours,
            start=interval.start,
            end=interval.end,
            unit_index=unit_index,
        ))

    for unit_index in range(1, group.unit_count + 1):
        for phase in PER_UNIT_PHASES:
            emit(phase, unit_index)

    for phase in GROUP_PHASES:
        emit(phase, 1)

    return planned
