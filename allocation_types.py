"""
Type definitions for reconciliation plans, run ledgers and audit payloads.
"""
from __future__ import annotations

from typing import List, Literal, TypedDict

from datatypes import AllocationEntity, StoredAllocation


UpdateReason = Literal["changed", "revived", "marker"]


class UpdateOp(TypedDict):
    """An existing record that must be rewritten.

    Reasons:
        - changed: hours, dates or unit index differ from the plan.
        - revived: the record was soft-deleted and is planned again.
        - marker: only the generation marker is missing or outdated; the
          write carries the marker alone.
    """
    record_id: str
    entity: AllocationEntity
    reason: UpdateReason


class StaleOp(TypedDict):
    """A stored record whose key is no longer planned."""
    record: StoredAllocation
    already_deleted: bool


class ReconcileResult(TypedDict):
    """Diff of a planned allocation set against a store snapshot.

    Keys:
        create: planned entities with no stored counterpart.
        update: stored records that need a write.
        unchanged: planned entities already satisfied by the store.
        stale: stored records absent from the plan that still need a write
            (a soft-delete, or a marker refresh when already deleted).
    """
    create: List[AllocationEntity]
    update: List[UpdateOp]
    unchanged: List[AllocationEntity]
    stale: List[StaleOp]


class RecordFailure(TypedDict):
    """One record that failed both its batch and its individual retry."""
    operation: Literal["create", "update", "soft-delete"]
    target: str  # record id, or allocation key for creates
    error: str


class RunLedger(TypedDict):
    created_ids: List[str]
    updated_ids: List[str]
    refreshed_ids: List[str]
    deleted_ids: List[str]
    failures: List[RecordFailure]


class AuditDetails(TypedDict):
    planned: int
    created: int
    updated: int
    refreshed: int
    deleted: int
    failed: int


class AuditEntry(TypedDict):
    group_id: str
    generation_id: str
    created_ids: List[str]
    updated_ids: List[str]
    deleted_ids: List[str]
    details: AuditDetails


class RunResult(TypedDict):
    """Outcome of one allocation run, returned to the trigger."""
    group_id: str
    generation_id: str
    planned: int
    ledger: RunLedger
    summary: str
