"""
Error and audit recording for allocation runs.

Both writes are best-effort: a failure to record is reported on the
diagnostic logger and never reaches the caller.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

from allocation_types import AuditEntry
from datatypes import PlannerConfig
from logger import get_logger
from store import AllocationStore
from utilities import utc_timestamp

logger = get_logger(__name__)


class RunLogger(Protocol):
    async def log_error(self, source_id: Optional[str], message: str, details: str = "") -> None:
        ...

    async def log_audit(self, entry: AuditEntry) -> None:
        ...


class StoreRunLogger:
    """Writes ErrorEntry / AuditEntry rows into the store's Errors and Audit tables."""

    def __init__(self, store: AllocationStore, config: PlannerConfig):
        self.store = store
        self.config = config

    async def log_error(self, source_id: Optional[str], message: str, details: str = "") -> None:
        payload: Dict[str, Any] = {
            "Timestamp": utc_timestamp(),
            "Error Message": message,
            "Details": details or "",
        }
        table = self.config.tables.errors
        try:
            try:
                linked = dict(payload)
                if source_id:
                    linked["Source Record"] = [{"id": source_id}]
                await self.store.create_entities(table, [linked])
            except Exception as exc:
                # The link field may be missing or refuse the id: keep the id as text.
                logger.debug(f"Linked error entry rejected ({exc}); retrying with text source")
                fallback = dict(payload)
                fallback["Source Record (text)"] = source_id or ""
                await self.store.create_entities(table, [fallback])
        except Exception:
            logger.exception(f"Failed to write to {table} table. Original: {message} {details}")

    async def log_audit(self, entry: AuditEntry) -> None:
        payload: Dict[str, Any] = {
            "Timestamp": utc_timestamp(),
            "Main Record": [{"id": entry["group_id"]}] if entry["group_id"] else None,
            "Action": "Upsert",
            "GenerationID": entry["generation_id"],
            "Details": json.dumps(entry["details"]),
            "Created IDs": ", ".join(entry["created_ids"]),
            "Updated IDs": ", ".join(entry["updated_ids"]),
            "Deleted IDs": ", ".join(entry["deleted_ids"]),
        }
        payload = {k: v for k, v in payload.items() if v is not None}
        try:
            await self.store.create_entities(self.config.tables.audit, [payload])
        except Exception:
            logger.warning("Failed to write audit entry", exc_info=True)
