"""Apply a reconciliation plan to the store.

Writes happen in three strict phases: creates, updates, soft-deletes. Each
phase is cut into batches of ``PlannerConfig.batch_size``. A rejected batch
is retried one record at a time; a record that fails its retry is written to
the error log and left out of the ledger. Already-applied batches are never
rolled back, so a run that hits failures converges partially.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Mapping, Set

from allocation_types import ReconcileResult, RecordFailure, RunLedger, UpdateOp
from datatypes import AllocationEntity, PlannerConfig, StoredAllocation
from domain_types import UpdateRequest
from errors import StoreError
from logger import get_logger
from reconciler import Reconciler
from record_mapping import allocation_fields, group_stamp_fields, marker_fields, soft_delete_fields
from run_logger import RunLogger
from store import AllocationStore
from utilities import chunked

logger = get_logger(__name__)

SnapshotLoader = Callable[[], Awaitable[Mapping[str, StoredAllocation]]]


def empty_ledger() -> RunLedger:
    return {"created_ids": [], "updated_ids": [], "refreshed_ids": [], "deleted_ids": [], "failures": []}


class ConvergenceExecutor:
    """Runs the writes of one allocation run for one production group.

    Args:
        store: Record store to write to.
        config: Table/field names and batch size.
        reconciler: The run's reconciler (supplies the generation marker and
            the create re-check).
        run_logger: Error/audit sink.
        group_id: Record id of the production group.
        load_snapshot: Re-reads the group's allocations before every create
            batch.
    """

    def __init__(
        self,
        store: AllocationStore,
        config: PlannerConfig,
        reconciler: Reconciler,
        run_logger: RunLogger,
        group_id: str,
        load_snapshot: SnapshotLoader,
    ):
        self.store = store
        self.config = config
        self.reconciler = reconciler
        self.run_logger = run_logger
        self.group_id = group_id
        self.load_snapshot = load_snapshot
        self.batch_size = min(config.batch_size, getattr(store, "max_batch_size", config.batch_size))

    @property
    def generation_id(self) -> str:
        return self.reconciler.generation_id

    @property
    def table(self) -> str:
        return self.config.tables.allocations

    async def stamp_group(self) -> bool:
        """Mark the group as generated under this run's marker (best-effort)."""
        try:
            await self.store.update_entities(
                self.config.tables.groups,
                [{"id": self.group_id, "fields": group_stamp_fields(self.generation_id, self.config)}],
            )
            return True
        except StoreError as exc:
            logger.warning(f"Could not write generation marker to group {self.group_id}: {exc}")
            return False

    async def execute(self, plan: ReconcileResult) -> RunLedger:
        ledger = empty_ledger()
        updates: List[UpdateOp] = list(plan["update"])

        await self._apply_creates(plan["create"], updates, ledger)
        redirected_ids = {op["record_id"] for op in updates[len(plan["update"]):]}
        await self._apply_updates(updates, ledger)
        await self._apply_soft_deletes(plan, redirected_ids, ledger)

        logger.info(
            f"Group {self.group_id}: created {len(ledger['created_ids'])}, updated {len(ledger['updated_ids'])}, "
            f"refreshed {len(ledger['refreshed_ids'])}, soft-deleted {len(ledger['deleted_ids'])}, "
            f"failed {len(ledger['failures'])}"
        )
        return ledger

    # ------------------------------------------------------------------ phases

    async def _apply_creates(self, creates: List[AllocationEntity], updates: List[UpdateOp], ledger: RunLedger) -> None:
        for chunk in chunked(creates, self.batch_size):
            current = await self.load_snapshot()
            to_create, redirected = self.reconciler.recheck_creates(chunk, current)
            if len(to_create) != len(chunk):
                logger.info(
                    f"{len(chunk) - len(to_create)} planned allocation(s) appeared concurrently; "
                    f"{len(redirected)} redirected to update"
                )
            updates.extend(redirected)
            if not to_create:
                continue
            payloads = [allocation_fields(e, self.group_id, self.generation_id, self.config) for e in to_create]
            try:
                ids = await self.store.create_entities(self.table, payloads)
                ledger["created_ids"].extend(ids)
            except StoreError as exc:
                logger.warning(f"Batch create failed; retrying individually: {exc}")
                for entity, fields in zip(to_create, payloads):
                    try:
                        ids = await self.store.create_entities(self.table, [fields])
                        ledger["created_ids"].extend(ids)
                    except StoreError as err:
                        await self._record_failure(ledger, "create", entity.key, err)

    async def _apply_updates(self, updates: List[UpdateOp], ledger: RunLedger) -> None:
        requests: List[UpdateRequest] = []
        refresh_ids: Set[str] = set()
        for op in updates:
            if op["reason"] == "marker":
                fields = marker_fields(self.generation_id, self.config)
                refresh_ids.add(op["record_id"])
            else:
                fields = allocation_fields(op["entity"], self.group_id, self.generation_id, self.config)
            requests.append({"id": op["record_id"], "fields": fields})

        def sink(record_id: str) -> List[str]:
            return ledger["refreshed_ids"] if record_id in refresh_ids else ledger["updated_ids"]

        await self._write_updates(requests, "update", sink, ledger)

    async def _apply_soft_deletes(self, plan: ReconcileResult, skip_ids: Set[str], ledger: RunLedger) -> None:
        requests: List[UpdateRequest] = []
        refresh_ids: Set[str] = set()
        for op in plan["stale"]:
            record_id = op["record"].record_id
            if record_id in skip_ids:
                continue
            if op["already_deleted"]:
                fields = marker_fields(self.generation_id, self.config)
                refresh_ids.add(record_id)
            else:
                fields = soft_delete_fields(self.generation_id, self.config)
            requests.append({"id": record_id, "fields": fields})

        def sink(record_id: str) -> List[str]:
            return ledger["refreshed_ids"] if record_id in refresh_ids else ledger["deleted_ids"]

        await self._write_updates(requests, "soft-delete", sink, ledger)

    async def _write_updates(
        self,
        requests: List[UpdateRequest],
        operation: str,
        sink: Callable[[str], List[str]],
        ledger: RunLedger,
    ) -> None:
        for batch in chunked(requests, self.batch_size):
            try:
                await self.store.update_entities(self.table, batch)
                for request in batch:
                    sink(request["id"]).append(request["id"])
            except StoreError as exc:
                logger.warning(f"Batch {operation} failed; retrying individually: {exc}")
                for request in batch:
                    try:
                        await self.store.update_entities(self.table, [request])
                        sink(request["id"]).append(request["id"])
                    except StoreError as err:
                        await self._record_failure(ledger, operation, request["id"], err)

    async def _record_failure(self, ledger: RunLedger, operation: Any, target: str, err: Exception) -> None:
        logger.error(f"Failed to {operation} allocation {target}: {err}")
        failure: RecordFailure = {"operation": operation, "target": target, "error": str(err)}
        ledger["failures"].append(failure)
        await self.run_logger.log_error(self.group_id, f"Failed to {operation} allocation {target}", str(err))
