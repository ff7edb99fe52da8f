"""Diff a planned allocation set against the store.

Matching is by derived key only. The key already encodes group, unit,
department and activity, so a matched pair is compared on the remaining
fields: hours, start day, end day and unit index.

Classification of a matched key:

* fields differ                      -> update ("changed")
* fields equal, record soft-deleted  -> update ("revived")
* fields equal, marker missing/old   -> update ("marker", marker-only write)
* fields equal, marker current       -> unchanged

Stored keys absent from the plan are stale: soft-deleted, or, when already
deleted, given the current marker. An already-deleted record carrying the
current marker needs nothing. Extra records sharing a key with the matched
one are stale under the same rule, so a lost create race leaves one live
record per key.

The re-check before each create chunk (``recheck_creates``) narrows the
window in which two overlapping runs both create the same key. It is not a
lock: two runs can still both pass their re-check before either writes.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from allocation_types import ReconcileResult, StaleOp, UpdateOp
from datatypes import AllocationEntity, StoredAllocation


def _norm(value: Any) -> Any:
    # Empty cells and zero compare equal, as in the store UI.
    return value if value else None


def fields_differ(stored: StoredAllocation, planned: AllocationEntity) -> bool:
    """True when hours, start/end day or unit index differ."""
    return (
        _norm(stored.hours) != _norm(planned.hours)
        or _norm(stored.start) != _norm(planned.start)
        or _norm(stored.end) != _norm(planned.end)
        or _norm(stored.unit_index) != _norm(planned.unit_index)
    )


class Reconciler:
    """Classifies planned allocations against a snapshot for one run."""

    def __init__(self, generation_id: str):
        if not generation_id:
            raise ValueError("generation_id must be a non-empty string")
        self.generation_id = generation_id

    def classify(self, stored: StoredAllocation, planned: AllocationEntity) -> Optional[UpdateOp]:
        """Update needed for a matched pair, or None when already converged."""
        if fields_differ(stored, planned):
            reason = "changed"
        elif stored.deleted:
            reason = "revived"
        elif stored.generation_id != self.generation_id:
            reason = "marker"
        else:
            return None
        return {"record_id": stored.record_id, "entity": planned, "reason": reason}

    def reconcile(
        self,
        planned: List[AllocationEntity],
        snapshot: Mapping[str, StoredAllocation],
        duplicates: Sequence[StoredAllocation] = (),
    ) -> ReconcileResult:
        """Partition ``planned`` against ``snapshot``.

        ``duplicates`` are records sharing a key with a snapshot entry; they
        are always stale, planned key or not.
        """
        result: ReconcileResult = {"create": [], "update": [], "unchanged": [], "stale": []}
        matched: set = set()

        for entity in planned:
            stored = snapshot.get(entity.key)
            if stored is None:
                result["create"].append(entity)
                continue
            matched.add(entity.key)
            op = self.classify(stored, entity)
            if op is None:
                result["unchanged"].append(entity)
            else:
                result["update"].append(op)

        leftovers = [s for k, s in snapshot.items() if k not in matched] + list(duplicates)
        for stored in leftovers:
            if stored.deleted and stored.generation_id == self.generation_id:
                continue
            stale: StaleOp = {"record": stored, "already_deleted": stored.deleted}
            result["stale"].append(stale)

        return result

    def recheck_creates(
        self,
        chunk: List[AllocationEntity],
        current: Mapping[str, StoredAllocation],
    ) -> Tuple[List[AllocationEntity], List[UpdateOp]]:
        """Re-validate a create chunk against a fresh snapshot.

        Keys that appeared since the first snapshot are not created again:
        they become a "changed" update when their fields differ from the plan,
        a "revived" update when the record is soft-deleted, and are dropped
        otherwise.

        Returns:
            (entities still to create, redirected updates)
        """
        to_create: List[AllocationEntity] = []
        redirected: List[UpdateOp] = []
        for entity in chunk:
            stored = current.get(entity.key)
            if stored is None:
                to_create.append(entity)
            elif fields_differ(stored, entity):
                redirected.append({"record_id": stored.record_id, "entity": entity, "reason": "changed"})
            elif stored.deleted:
                redirected.append({"record_id": stored.record_id, "entity": entity, "reason": "revived"})
        return to_create, redirected
