# --------------------------- Typed planning structures ---------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator, List, Literal, Optional, Tuple

Phase = Literal["design_1", "design_2", "create", "reuse", "weld", "cast", "rest"]

# Dependency order, earliest first.
PHASES: Tuple[Phase, ...] = ("design_1", "design_2", "create", "reuse", "weld", "cast", "rest")

# Phases emitted once per production unit, in emission order.
PER_UNIT_PHASES: Tuple[Phase, ...] = ("rest", "cast", "weld", "reuse", "create")
# Phases emitted once per group, pinned to unit 1.
GROUP_PHASES: Tuple[Phase, ...] = ("design_1", "design_2")


@dataclass(frozen=True)
class PhaseAssignment:
    """Department and activity label that carry the work of one phase."""
    department: str
    activity: str


def _default_assignments() -> Dict[str, PhaseAssignment]:
    return {
        "rest": PhaseAssignment("Rest", "Rest"),
        "cast": PhaseAssignment("Beton", "Beton"),
        "weld": PhaseAssignment("Lashoek", "Las"),
        "reuse": PhaseAssignment("Bekisting", "Reuse"),
        "create": PhaseAssignment("Bekisting", "Create"),
        "design_1": PhaseAssignment("Ontwerp", "Ontwerp 1"),
        "design_2": PhaseAssignment("Ontwerp", "Ontwerp 2"),
    }


@dataclass(frozen=True)
class TableNames:
    groups: str = "Bekistingen"
    allocations: str = "Workload Allocation"
    departments: str = "Afdelingen"
    errors: str = "Errors"
    audit: str = "Allocation Audit"


@dataclass(frozen=True)
class GroupFields:
    """Field names on the production group table."""
    unit_count: str = "Aantal Tafels"
    delivery_date: str = "Leverdatum"
    cast_count: str = "aantal_giet"
    create_hours: str = "BEK_uren_create"
    reuse_rate: str = "BEK_gem_u"
    weld_rate: str = "LAS_gem_u"
    cast_rate: str = "GIET_gem_u"
    rest_rate: str = "HOF_gem_rest_per_giet"
    design_1_hours: str = "TEK_fase_1_uren"
    design_2_hours: str = "TEK_fase_2_uren"
    name: str = "Naam"
    calendar_flag: str = "Kleur"
    generated: str = "Allocations Generated"
    generated_at: str = "LastAllocationsGeneratedAt"
    generation_id: str = "GenerationID"


@dataclass(frozen=True)
class AllocationFields:
    """Field names on the workload allocation table."""
    key: str = "Allocation Key"
    generation_id: str = "GenerationID"
    group: str = "Bekistingsgroep ID"
    unit_index: str = "Tafel Index"
    department: str = "Afdeling"
    activity: str = "Activiteit"
    hours: str = "Werkuren (totaal)"
    start: str = "Start Datum"
    end: str = "Eind Datum"
    deleted: str = "Deleted"


@dataclass(frozen=True)
class PlannerConfig:
    """Every tunable of a run, passed explicitly to the planning components.

    Attributes
    ----------
    production_buffer_days : working days between end of Rest and delivery
    efficiency_factor      : share of a working day available for mold creation
    design_to_production_buffer_days : gap between Design-2 end and Create start
    design_phase_gap_days  : gap between Design-1 end and Design-2 start
    customer_response_buffer_days : added to each design phase span
    hours_per_day          : hours in one working day
    batch_size             : maximum records per batched store write
    extra_excluded_weekday : weekday (Monday=0) dropped when a group's calendar flag is set
    calendar_flag_suffix   : flag value suffix that activates the extra excluded weekday
    extra_weekday_phases   : phases that honour the extra excluded weekday
    assignments            : phase -> (department, activity)
    """
    production_buffer_days: int = 8
    efficiency_factor: float = 0.65
    design_to_production_buffer_days: int = 10
    design_phase_gap_days: int = 1
    customer_response_buffer_days: int = 10
    hours_per_day: int = 8
    batch_size: int = 50
    extra_excluded_weekday: int = 4
    calendar_flag_suffix: str = "B"
    extra_weekday_phases: Tuple[str, ...] = ("rest", "cast", "weld", "reuse")
    assignments: Dict[str, PhaseAssignment] = field(default_factory=_default_assignments)
    tables: TableNames = field(default_factory=TableNames)
    group_fields: GroupFields = field(default_factory=GroupFields)
    allocation_fields: AllocationFields = field(default_factory=AllocationFields)
    department_name_field: str = "Name"

    @property
    def required_departments(self) -> List[str]:
        return _unique(self.assignments[p].department for p in PHASES)

    @property
    def required_activities(self) -> List[str]:
        return _unique(self.assignments[p].activity for p in PHASES)


def _unique(values) -> List[str]:
    out: List[str] = []
    for v in values:
        if v not in out:
            out.append(v)
    return out


@dataclass(frozen=True)
class ProductionGroup:
    """A batch of identical production units, as read from the group table."""
    record_id: str
    name: str
    unit_count: int
    delivery_date: date
    create_hours: float
    reuse_rate: float
    weld_rate: float
    cast_rate: float
    rest_rate: float
    design_1_hours: float
    design_2_hours: float
    cast_count: Optional[int] = None
    exclude_extra_weekday: bool = False

    @property
    def casts(self) -> int:
        """Number of pours driving production spans and hours."""
        return self.cast_count if self.cast_count is not None else self.unit_count


@dataclass(frozen=True)
class PhaseInterval:
    phase: Phase
    start: date
    end: date
    hours: float


@dataclass(frozen=True)
class PhaseTimeline:
    """The backward-chained phase intervals of one group, earliest phase first."""
    intervals: Tuple[PhaseInterval, ...]

    def get(self, phase: str) -> Optional[PhaseInterval]:
        for interval in self.intervals:
            if interval.phase == phase:
                return interval
        return None

    def __contains__(self, phase: object) -> bool:
        return any(i.phase == phase for i in self.intervals)

    def __iter__(self) -> Iterator[PhaseInterval]:
        return iter(self.intervals)


@dataclass(frozen=True)
class AllocationEntity:
    """One planned workload allocation (the unit of reconciliation)."""
    key: str
    phase: Phase
    department: str
    department_id: str
    activity: str
    hours: float
    start: date
    end: date
    unit_index: int
    generation_id: Optional[str] = None
    deleted: bool = False


@dataclass(frozen=True)
class StoredAllocation:
    """Typed view of an allocation record already in the store."""
    record_id: str
    key: str
    generation_id: Optional[str]
    group_ids: Tuple[str, ...]
    department_ids: Tuple[str, ...]
    activity: Optional[str]
    hours: Optional[float]
    start: Optional[date]
    end: Optional[date]
    unit_index: Optional[int]
    deleted: bool = False
