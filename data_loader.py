"""
Settings loading for allocation runs.

Turns a JSON settings file into a ``PlannerConfig``. Every key is optional;
missing keys keep the defaults declared on the dataclasses in ``datatypes``.
"""
import json
import os
from dataclasses import fields, replace
from typing import Any, Dict, Optional

from datatypes import AllocationFields, GroupFields, PhaseAssignment, PlannerConfig, TableNames
from inputvalidations import validate_settings_payload

_SECTIONS = {
    "tables": TableNames,
    "group_fields": GroupFields,
    "allocation_fields": AllocationFields,
}


def config_from_payload(data: Dict[str, Any]) -> PlannerConfig:
    """Build a PlannerConfig from a parsed settings object.

    Raises:
        ValueError: If the payload fails validation or names unknown keys.
    """
    validate_settings_payload(data)
    defaults = PlannerConfig()
    known = {f.name for f in fields(PlannerConfig)}
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(f"Settings file has unknown keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS:
            section_cls = _SECTIONS[key]
            allowed = {f.name for f in fields(section_cls)}
            bad = sorted(k for k in value if k not in allowed)
            if bad:
                raise ValueError(f"{key} has unknown keys: {bad}")
            kwargs[key] = replace(getattr(defaults, key), **value)
        elif key == "assignments":
            merged = dict(defaults.assignments)
            for phase, a in value.items():
                merged[phase] = PhaseAssignment(department=a["department"], activity=a["activity"])
            kwargs[key] = merged
        elif key == "extra_weekday_phases":
            kwargs[key] = tuple(value)
        elif key == "efficiency_factor":
            kwargs[key] = float(value)
        else:
            kwargs[key] = value
    return replace(defaults, **kwargs)


def load_settings(path: str, batch_size_override: Optional[int] = None) -> PlannerConfig:
    """Load planner settings from a JSON file.

    Example JSON:
    {
      "production_buffer_days": 8,
      "efficiency_factor": 0.65,
      "batch_size": 50,
      "tables": {"groups": "Bekistingen"}
    }

    Args:
        path: Path to a JSON settings file.
        batch_size_override: Replaces ``batch_size`` when given (e.g. from the
            ALLOCATION_BATCH_SIZE environment variable).

    Returns:
        PlannerConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or values are invalid.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Settings file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data: Dict[str, Any] = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse settings JSON: {e}") from e

    config = config_from_payload(data)
    if batch_size_override is not None:
        if batch_size_override < 1:
            raise ValueError(f"batch size must be >= 1; got {batch_size_override}")
        config = replace(config, batch_size=batch_size_override)
    return config
