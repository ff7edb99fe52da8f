"""
Record-store collaborator contract and an in-memory implementation.

The planner only needs four calls: read one record, query a table, create
records in batches and update records in batches. Batch calls accept at most
``max_batch_size`` records and may fail as a whole (``BatchError``) or for a
single record (``StoreWriteError``); nothing is transactional.

``InMemoryStore`` backs the tests and the CLI. It can be loaded from and
dumped to a JSON file shaped like::

    {"tables": {"Bekistingen": [{"id": "rec...", "fields": {...}}, ...], ...}}

and supports fault injection for exercising the executor's retry paths.
"""
from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Set

from domain_types import StoreRecord, UpdateRequest
from errors import BatchError, StoreWriteError

RecordPredicate = Callable[[StoreRecord], bool]


class AllocationStore(Protocol):
    max_batch_size: int

    async def get_entity(self, table: str, record_id: str) -> Optional[StoreRecord]:
        ...

    async def query_entities(self, table: str, predicate: Optional[RecordPredicate] = None) -> List[StoreRecord]:
        ...

    async def create_entities(self, table: str, fields_list: List[Dict[str, Any]]) -> List[str]:
        ...

    async def update_entities(self, table: str, updates: List[UpdateRequest]) -> List[str]:
        ...


class InMemoryStore:
    """Dict-backed store with Airtable-like semantics.

    Fault injection (all optional, for tests):
        fail_batches: number of upcoming multi-record writes to reject.
        fail_keys: record ids, or values of any written field, whose writes
            are always rejected.
        rejected_fields: table -> field names that make a write fail (used to
            simulate a link field the table refuses).
        on_query: async hook awaited before every query; lets a test play a
            concurrent writer between snapshot reads.
    """

    def __init__(self, tables: Optional[Dict[str, List[StoreRecord]]] = None, max_batch_size: int = 50):
        self.max_batch_size = max_batch_size
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._next_id = 1
        self.fail_batches = 0
        self.fail_keys: Set[str] = set()
        self.rejected_fields: Dict[str, Set[str]] = {}
        self.on_query: Optional[Callable[["InMemoryStore", str], Any]] = None
        self.write_log: List[tuple] = []
        for table, records in (tables or {}).items():
            self.add_table(table)
            for r in records:
                self._tables[table][r["id"]] = copy.deepcopy(r.get("fields", {}))
                self._bump_id(r["id"])

    # ------------------------------------------------------------------ setup

    @classmethod
    def load(cls, path: str | Path, max_batch_size: int = 50) -> "InMemoryStore":
        """Load a store snapshot from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the JSON structure is invalid.
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"store file not found: {p}")
        with p.open("r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in store file: {p}") from exc
        tables = data.get("tables") if isinstance(data, dict) else None
        if not isinstance(tables, dict):
            raise ValueError("Store JSON must have key 'tables' as an object.")
        for name, records in tables.items():
            if not isinstance(records, list) or any(not isinstance(r, dict) or "id" not in r for r in records):
                raise ValueError(f"Table {name!r} must be a list of objects with an 'id'.")
        return cls(tables, max_batch_size=max_batch_size)

    def dump(self, path: str | Path) -> None:
        data = {"tables": {name: self.records(name) for name in self._tables}}
        Path(path).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def add_table(self, table: str) -> None:
        self._tables.setdefault(table, {})

    def records(self, table: str) -> List[StoreRecord]:
        """Synchronous copy of a table's records (inspection helper)."""
        return [{"id": rid, "fields": copy.deepcopy(f)} for rid, f in self._table(table).items()]

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        if table not in self._tables:
            raise KeyError(f'Table "{table}" not found in this store.')
        return self._tables[table]

    def _bump_id(self, record_id: str) -> None:
        digits = record_id[3:] if record_id.startswith("rec") else ""
        if digits.isdigit():
            self._next_id = max(self._next_id, int(digits) + 1)

    def _new_id(self) -> str:
        record_id = f"rec{self._next_id:06d}"
        self._next_id += 1
        return record_id

    # ------------------------------------------------------------------ checks

    def _check_batch(self, table: str, size: int) -> None:
        if size > self.max_batch_size:
            raise BatchError(f"{table}: batch of {size} exceeds max batch size {self.max_batch_size}")
        if size > 1 and self.fail_batches > 0:
            self.fail_batches -= 1
            raise BatchError(f"{table}: batch of {size} rejected")

    def _check_record(self, table: str, record_id: Optional[str], fields: Dict[str, Any]) -> None:
        rejected = self.rejected_fields.get(table, set())
        bad = [k for k in fields if k in rejected]
        if bad:
            raise StoreWriteError(f"{table}: field(s) {bad} rejected", record_id)
        if record_id is not None and record_id in self.fail_keys:
            raise StoreWriteError(f"{table}: write to {record_id} rejected", record_id)
        for value in fields.values():
            if isinstance(value, str) and value in self.fail_keys:
                raise StoreWriteError(f"{table}: write of {value!r} rejected", record_id)

    # ------------------------------------------------------------------ API

    async def get_entity(self, table: str, record_id: str) -> Optional[StoreRecord]:
        await asyncio.sleep(0)
        fields = self._table(table).get(record_id)
        if fields is None:
            return None
        return {"id": record_id, "fields": copy.deepcopy(fields)}

    async def query_entities(self, table: str, predicate: Optional[RecordPredicate] = None) -> List[StoreRecord]:
        if self.on_query is not None:
            await self.on_query(self, table)
        await asyncio.sleep(0)
        out = self.records(table)
        if predicate is not None:
            out = [r for r in out if predicate(r)]
        return out

    async def create_entities(self, table: str, fields_list: List[Dict[str, Any]]) -> List[str]:
        await asyncio.sleep(0)
        records = self._table(table)
        self._check_batch(table, len(fields_list))
        for fields in fields_list:
            self._check_record(table, None, fields)
        ids = []
        for fields in fields_list:
            record_id = self._new_id()
            records[record_id] = copy.deepcopy(fields)
            ids.append(record_id)
        self.write_log.append(("create", table, list(ids)))
        return ids

    async def update_entities(self, table: str, updates: List[UpdateRequest]) -> List[str]:
        await asyncio.sleep(0)
        records = self._table(table)
        self._check_batch(table, len(updates))
        for u in updates:
            if u["id"] not in records:
                raise StoreWriteError(f"{table}: record {u['id']} does not exist", u["id"])
            self._check_record(table, u["id"], u["fields"])
        for u in updates:
            records[u["id"]].update(copy.deepcopy(u["fields"]))
        ids = [u["id"] for u in updates]
        self.write_log.append(("update", table, ids))
        return ids
