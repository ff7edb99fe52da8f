"""
Raw record shapes exchanged with the record store.

Only the store boundary (``store``, ``record_mapping``, ``run_logger``)
handles these; everything else works on the dataclasses in ``datatypes``.
"""
from __future__ import annotations

from typing import Any, Dict, List, TypedDict


class LinkRef(TypedDict):
    id: str


class StoreRecord(TypedDict):
    """One stored record: opaque id plus its field map."""
    id: str
    fields: Dict[str, Any]


class UpdateRequest(TypedDict):
    """Partial update for one record (only the given fields are written)."""
    id: str
    fields: Dict[str, Any]


LinkValue = List[LinkRef]
