"""End-to-end allocation run for one production group.

    load + validate group -> resolve departments -> check activity options
    -> schedule -> build planned allocations -> new generation marker
    -> stamp group -> snapshot -> reconcile -> execute -> audit -> stamp group

Everything up to and including reconciliation happens before the first
allocation write, so a ValidationError leaves the allocation table untouched.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from allocation_builder import build_planned_allocations
from allocation_types import AuditEntry, ReconcileResult, RunLedger, RunResult
from datatypes import AllocationEntity, PlannerConfig, ProductionGroup
from errors import ValidationError
from executor import ConvergenceExecutor
from inputvalidations import validate_activity_options, validate_departments
from logger import get_logger
from reconciler import Reconciler
from record_mapping import department_lookup, group_from_record
from run_logger import RunLogger, StoreRunLogger
from scheduler import compute_phase_timeline
from snapshot import read_snapshot, read_snapshot_with_duplicates
from store import AllocationStore
from utilities import make_generation_id

logger = get_logger(__name__)


async def load_group(store: AllocationStore, config: PlannerConfig, group_id: str) -> ProductionGroup:
    record = await store.get_entity(config.tables.groups, group_id)
    if record is None:
        raise ValidationError(f"Trigger record with ID {group_id} not found.", [group_id])
    return group_from_record(record, config)


async def resolve_departments(store: AllocationStore, config: PlannerConfig) -> Dict[str, str]:
    records = await store.query_entities(config.tables.departments)
    lookup = department_lookup(records, config)
    validate_departments(lookup, config.required_departments)
    return lookup


def plan_group(group: ProductionGroup, department_ids: Dict[str, str], config: PlannerConfig) -> List[AllocationEntity]:
    """Schedule the group and expand the timeline into planned allocations."""
    timeline = compute_phase_timeline(group, config)
    return build_planned_allocations(group, timeline, department_ids, config)


async def _prepare(
    store: AllocationStore,
    config: PlannerConfig,
    group_id: str,
    activity_options: Optional[Sequence[str]],
) -> Tuple[ProductionGroup, List[AllocationEntity]]:
    group = await load_group(store, config, group_id)
    department_ids = await resolve_departments(store, config)
    validate_activity_options(activity_options, config.required_activities)
    return group, plan_group(group, department_ids, config)


async def preview_allocations(
    group_id: str,
    store: AllocationStore,
    config: PlannerConfig,
    activity_options: Optional[Sequence[str]] = None,
) -> ReconcileResult:
    """Compute what a run would write, without writing anything."""
    group, planned = await _prepare(store, config, group_id, activity_options)
    snapshot, duplicates = await read_snapshot_with_duplicates(store, config, group.record_id)
    return Reconciler(make_generation_id()).reconcile(planned, snapshot, duplicates)


def summarize(generation_id: str, ledger: RunLedger) -> str:
    return (
        f"Upsert complete. Created {len(ledger['created_ids'])}, updated {len(ledger['updated_ids'])}, "
        f"soft-deleted {len(ledger['deleted_ids'])}. GenerationID: {generation_id}"
    )


async def run_allocations(
    group_id: str,
    store: AllocationStore,
    config: PlannerConfig,
    run_logger: Optional[RunLogger] = None,
    activity_options: Optional[Sequence[str]] = None,
) -> RunResult:
    """Converge the allocation table onto the current plan for ``group_id``.

    Args:
        group_id: Record id of the production group (the trigger record).
        store: Record store holding groups, departments and allocations.
        config: Planning tunables plus table/field names.
        run_logger: Error/audit sink; defaults to the store's Errors/Audit tables.
        activity_options: Allowed activity labels, when known. Every
            configured activity must be among them.

    Returns:
        RunResult with the generation marker, planned count and ledger.

    Raises:
        ValidationError: missing group record, group fields, departments or
            activity options. Nothing is written to the allocation table.
    """
    if run_logger is None:
        run_logger = StoreRunLogger(store, config)

    try:
        return await _run(group_id, store, config, run_logger, activity_options)
    except ValidationError as exc:
        await run_logger.log_error(group_id, str(exc), ", ".join(exc.missing))
        raise
    except Exception as exc:
        await run_logger.log_error(group_id, str(exc) or type(exc).__name__, repr(exc))
        raise


async def _run(
    group_id: str,
    store: AllocationStore,
    config: PlannerConfig,
    run_logger: RunLogger,
    activity_options: Optional[Sequence[str]],
) -> RunResult:
    group, planned = await _prepare(store, config, group_id, activity_options)

    generation_id = make_generation_id()
    reconciler = Reconciler(generation_id)

    async def load_snapshot():
        return await read_snapshot(store, config, group.record_id)

    executor = ConvergenceExecutor(store, config, reconciler, run_logger, group.record_id, load_snapshot)
    # Stamp up front so overlapping triggers can see the in-progress marker.
    await executor.stamp_group()

    snapshot, duplicates = await read_snapshot_with_duplicates(store, config, group.record_id)
    plan = reconciler.reconcile(planned, snapshot, duplicates)
    logger.info(
        f"Group {group.name} ({group.record_id}): planned {len(planned)}, to create {len(plan['create'])}, "
        f"to update {len(plan['update'])}, unchanged {len(plan['unchanged'])}, stale {len(plan['stale'])}"
    )
    ledger = await executor.execute(plan)

    audit: AuditEntry = {
        "group_id": group.record_id,
        "generation_id": generation_id,
        "created_ids": ledger["created_ids"],
        "updated_ids": ledger["updated_ids"],
        "deleted_ids": ledger["deleted_ids"],
        "details": {
            "planned": len(planned),
            "created": len(ledger["created_ids"]),
            "updated": len(ledger["updated_ids"]),
            "refreshed": len(ledger["refreshed_ids"]),
            "deleted": len(ledger["deleted_ids"]),
            "failed": len(ledger["failures"]),
        },
    }
    await run_logger.log_audit(audit)
    await executor.stamp_group()

    summary = summarize(generation_id, ledger)
    logger.info(summary)
    return {
        "group_id": group.record_id,
        "generation_id": generation_id,
        "planned": len(planned),
        "ledger": ledger,
        "summary": summary,
    }
