"""Load the allocations currently linked to a production group."""
from __future__ import annotations

from typing import Dict, List, Tuple

from datatypes import PlannerConfig, StoredAllocation
from logger import get_logger
from record_mapping import is_linked_to, stored_from_record
from store import AllocationStore

logger = get_logger(__name__)


async def read_snapshot_with_duplicates(
    store: AllocationStore,
    config: PlannerConfig,
    group_id: str,
) -> Tuple[Dict[str, StoredAllocation], List[StoredAllocation]]:
    """Return (key -> stored allocation, duplicate records) for ``group_id``.

    Records without a key are ignored. If two records share a key the first
    one returned by the store wins; the others are returned as duplicates so
    the run can soft-delete them.
    """
    records = await store.query_entities(
        config.tables.allocations,
        lambda r: is_linked_to(r, group_id, config),
    )
    snapshot: Dict[str, StoredAllocation] = {}
    duplicates: List[StoredAllocation] = []
    for record in records:
        stored = stored_from_record(record, config)
        if not stored.key:
            continue
        if stored.key in snapshot:
            logger.warning(
                f"Duplicate allocation key {stored.key!r}: keeping {snapshot[stored.key].record_id}, "
                f"treating {stored.record_id} as stale"
            )
            duplicates.append(stored)
            continue
        snapshot[stored.key] = stored
    return snapshot, duplicates


async def read_snapshot(store: AllocationStore, config: PlannerConfig, group_id: str) -> Dict[str, StoredAllocation]:
    """Key -> stored allocation for every record linked to ``group_id``."""
    snapshot, _ = await read_snapshot_with_duplicates(store, config, group_id)
    return snapshot
