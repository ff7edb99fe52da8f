"""
Translation between raw store records and the typed planning structures.

This is the only place that knows store field names; callers pass the
``PlannerConfig`` that carries them.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from datatypes import AllocationEntity, PlannerConfig, ProductionGroup, StoredAllocation
from domain_types import LinkValue, StoreRecord
from inputvalidations import validate_group_fields
from utilities import iso_date, parse_iso_date, utc_timestamp


def _link_ids(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    ids = []
    for item in value:
        if isinstance(item, dict) and item.get("id"):
            ids.append(str(item["id"]))
        elif isinstance(item, str):
            ids.append(item)
    return tuple(ids)


def _link(record_id: str) -> LinkValue:
    return [{"id": record_id}]


def calendar_flag_active(value: Any, suffix: str) -> bool:
    """Whether a group's calendar flag selects the extra excluded weekday.

    The flag is a text attribute (e.g. a colour code); it is active when it
    ends with ``suffix``, case-insensitively.
    """
    if not isinstance(value, str) or not value or not suffix:
        return False
    return value.strip().upper().endswith(suffix.upper())


def group_from_record(record: StoreRecord, config: PlannerConfig) -> ProductionGroup:
    """Build a ProductionGroup from its store record.

    Raises:
        ValidationError: naming every missing/invalid field.
    """
    fields = record["fields"]
    names = config.group_fields
    validate_group_fields(fields, names)

    cast_count = fields.get(names.cast_count)
    return ProductionGroup(
        record_id=record["id"],
        name=str(fields[names.name]).strip(),
        unit_count=int(math.floor(fields[names.unit_count])),
        delivery_date=parse_iso_date(fields[names.delivery_date]),
        create_hours=fields[names.create_hours],
        reuse_rate=fields[names.reuse_rate],
        weld_rate=fields[names.weld_rate],
        cast_rate=fields[names.cast_rate],
        rest_rate=fields[names.rest_rate],
        design_1_hours=fields[names.design_1_hours],
        design_2_hours=fields[names.design_2_hours],
        cast_count=int(math.floor(cast_count)) if cast_count is not None else None,
        exclude_extra_weekday=calendar_flag_active(fields.get(names.calendar_flag), config.calendar_flag_suffix),
    )


def department_lookup(records: List[StoreRecord], config: PlannerConfig) -> Dict[str, str]:
    """Department name -> record id (first record wins on duplicate names)."""
    lookup: Dict[str, str] = {}
    for r in records:
        name = r["fields"].get(config.department_name_field)
        if isinstance(name, str) and name and name not in lookup:
            lookup[name] = r["id"]
    return lookup


def group_stamp_fields(generation_id: str, config: PlannerConfig) -> Dict[str, Any]:
    names = config.group_fields
    return {
        names.generated: True,
        names.generated_at: utc_timestamp(),
        names.generation_id: generation_id,
    }


def allocation_fields(
    entity: AllocationEntity,
    group_id: str,
    generation_id: str,
    config: PlannerConfig,
) -> Dict[str, Any]:
    """Full field map written when creating or rewriting an allocation."""
    names = config.allocation_fields
    return {
        names.group: _link(group_id),
        names.department: _link(entity.department_id),
        names.activity: entity.activity,
        names.hours: entity.hours,
        names.start: iso_date(entity.start),
        names.end: iso_date(entity.end),
        names.unit_index: entity.unit_index,
        names.generation_id: generation_id,
        names.key: entity.key,
        names.deleted: False,
    }


def marker_fields(generation_id: str, config: PlannerConfig) -> Dict[str, Any]:
    return {config.allocation_fields.generation_id: generation_id}


def soft_delete_fields(generation_id: str, config: PlannerConfig) -> Dict[str, Any]:
    names = config.allocation_fields
    return {names.deleted: True, names.generation_id: generation_id}


def _optional_date(value: Any):
    try:
        return parse_iso_date(value)
    except ValueError:
        return None


def _optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def stored_from_record(record: StoreRecord, config: PlannerConfig) -> StoredAllocation:
    """Typed view of an allocation record; unreadable values map to None."""
    fields = record["fields"]
    names = config.allocation_fields
    hours = fields.get(names.hours)
    activity = fields.get(names.activity)
    if isinstance(activity, dict):
        # single-select cells may come back as {"name": ...}
        activity = activity.get("name")
    return StoredAllocation(
        record_id=record["id"],
        key=fields.get(names.key) or "",
        generation_id=fields.get(names.generation_id) or None,
        group_ids=_link_ids(fields.get(names.group)),
        department_ids=_link_ids(fields.get(names.department)),
        activity=activity,
        hours=hours if isinstance(hours, (int, float)) and not isinstance(hours, bool) else None,
        start=_optional_date(fields.get(names.start)),
        end=_optional_date(fields.get(names.end)),
        unit_index=_optional_int(fields.get(names.unit_index)),
        deleted=bool(fields.get(names.deleted)),
    )


def is_linked_to(record: StoreRecord, group_id: str, config: PlannerConfig) -> bool:
    return group_id in _link_ids(record["fields"].get(config.allocation_fields.group))
