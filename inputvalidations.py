"""Input validation utilities for allocation runs.

Every check here runs before the first allocation write. Checks collect all
offending names and raise a single ``ValidationError`` so one failed run
reports everything that needs fixing.

Functions
---------
find_missing_group_fields(fields, names)
    Names of group fields that are missing or of the wrong type.
validate_departments(lookup, required)
    Every required department must resolve to a record id.
validate_activity_options(options, required)
    Every required activity label must be a known option (skipped when the
    options are unknown).
validate_settings_payload(data)
    Structural check of a parsed settings JSON object.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from datatypes import GroupFields, PHASES
from errors import ValidationError
from utilities import parse_iso_date

__all__ = [
  "find_missing_group_fields",
  "validate_group_fields",
  "validate_departments",
  "validate_activity_options",
  "validate_settings_payload",
]


def _is_number(value: Any) -> bool:
  return isinstance(value, (int, float)) and not isinstance(value, bool)


def find_missing_group_fields(fields: Mapping[str, Any], names: GroupFields) -> List[str]:
  """Return the store names of group fields that are missing or invalid.

  Args:
    fields: Raw field map of the group record.
    names: Field names to look up.

  The unit count must be a positive number and the delivery date a parseable
  date. The optional pour count, when present, must be a positive number.
  Rates and hours must be non-negative numbers and the group name
  non-empty text.
  """
  missing: List[str] = []

  unit_count = fields.get(names.unit_count)
  if not _is_number(unit_count) or unit_count < 1:
    missing.append(names.unit_count)

  delivery = fields.get(names.delivery_date)
  try:
    if parse_iso_date(delivery) is None:
      missing.append(names.delivery_date)
  except ValueError:
    missing.append(names.delivery_date)

  cast_count = fields.get(names.cast_count)
  if cast_count is not None and (not _is_number(cast_count) or cast_count < 1):
    missing.append(names.cast_count)

  for attr in ("create_hours", "reuse_rate", "weld_rate", "cast_rate", "rest_rate",
               "design_1_hours", "design_2_hours"):
    name = getattr(names, attr)
    value = fields.get(name)
    if not _is_number(value) or value < 0:
      missing.append(name)

  group_name = fields.get(names.name)
  if group_name is None or (isinstance(group_name, str) and not group_name.strip()):
    missing.append(names.name)

  return missing


def validate_group_fields(fields: Mapping[str, Any], names: GroupFields) -> None:
  """Raise ValidationError naming every missing/invalid group field."""
  missing = find_missing_group_fields(fields, names)
  if missing:
    raise ValidationError(f"Missing/invalid on main record: {', '.join(missing)}", missing)


def validate_departments(lookup: Mapping[str, str], required: Sequence[str]) -> None:
  """Ensure each required department name resolves to a record id.

  Raises:
    ValidationError: listing every unresolved department.
  """
  missing = [d for d in required if not lookup.get(d)]
  if missing:
    raise ValidationError(f"Missing departments: {', '.join(missing)}", missing)


def validate_activity_options(options: Optional[Sequence[str]], required: Sequence[str]) -> None:
  """Ensure each required activity label is an allowed option.

  An empty or unknown option list skips the check.
  """
  if not options:
    return
  known = set(options)
  missing = [a for a in required if a not in known]
  if missing:
    raise ValidationError(
      f"Missing Activiteit options in Workload Allocations single-select: {', '.join(missing)}",
      missing,
    )


_INT_KEYS = (
  "production_buffer_days",
  "design_to_production_buffer_days",
  "design_phase_gap_days",
  "customer_response_buffer_days",
  "hours_per_day",
  "batch_size",
  "extra_excluded_weekday",
)


def validate_settings_payload(data: Dict[str, Any]) -> None:
  """Validate a parsed settings JSON object.

  All keys are optional; present keys must have sane values.

  Raises:
    ValueError: If structure or values are invalid.
  """
  if not isinstance(data, dict):
    raise ValueError("Settings file must contain a JSON object.")

  for key in _INT_KEYS:
    if key in data:
      value = data[key]
      if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer; got {value!r}")
      if value < 0:
        raise ValueError(f"{key} must be >= 0; got {value}")
  for key in ("hours_per_day", "batch_size"):
    if key in data and data[key] < 1:
      raise ValueError(f"{key} must be >= 1; got {data[key]}")
  if "extra_excluded_weekday" in data and data["extra_excluded_weekday"] > 6:
    raise ValueError("extra_excluded_weekday must be 0-6 (Monday=0)")

  if "efficiency_factor" in data:
    factor = data["efficiency_factor"]
    if not _is_number(factor) or not 0 < factor <= 1:
      raise ValueError(f"efficiency_factor must be in (0, 1]; got {factor!r}")

  if "extra_weekday_phases" in data:
    phases = data["extra_weekday_phases"]
    if not isinstance(phases, list) or any(p not in PHASES for p in phases):
      raise ValueError(f"extra_weekday_phases must be a list of phases from {list(PHASES)}")

  if "assignments" in data:
    assignments = data["assignments"]
    if not isinstance(assignments, dict):
      raise ValueError("assignments must be an object keyed by phase")
    unknown = [p for p in assignments if p not in PHASES]
    if unknown:
      raise ValueError(f"assignments has unknown phases: {unknown}")
    for phase, value in assignments.items():
      if not isinstance(value, dict) or not value.get("department") or not value.get("activity"):
        raise ValueError(f"assignment for {phase} needs non-empty 'department' and 'activity'")

  for section in ("tables", "group_fields", "allocation_fields"):
    if section in data and not isinstance(data[section], dict):
      raise ValueError(f"{section} must be an object")
