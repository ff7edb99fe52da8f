


# --------------------------- Command line entry point ---------------------------
import argparse
import asyncio
import json

from config import config
from data_loader import load_settings
from pipeline import preview_allocations, run_allocations
from store import InMemoryStore
from utilities import iso_date


def _preview_rows(plan):
    rows = []
    for entity in plan["create"]:
        rows.append(("create", entity.key, iso_date(entity.start), iso_date(entity.end), entity.hours))
    for op in plan["update"]:
        e = op["entity"]
        rows.append((f"update/{op['reason']}", e.key, iso_date(e.start), iso_date(e.end), e.hours))
    for op in plan["stale"]:
        r = op["record"]
        rows.append(("refresh" if op["already_deleted"] else "soft-delete", r.key, iso_date(r.start), iso_date(r.end), r.hours))
    return rows


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate workload allocations for one production group")
    parser.add_argument("--store-file", default=config.STORE_FILE or None, required=not config.STORE_FILE,
                        help="Path to the JSON store file (updated in place unless --dry-run)")
    parser.add_argument("--settings-file", default=config.SETTINGS_FILE, help="Path to planner settings JSON")
    parser.add_argument("--group-id", required=True, help="Record id of the production group")
    parser.add_argument("--activity-option", action="append", default=[],
                        help="Allowed activity label (repeatable); all configured activities must be listed")
    parser.add_argument("--dry-run", action="store_true", help="Print the planned writes without applying them")
    args = parser.parse_args()

    planner_config = load_settings(args.settings_file, batch_size_override=config.BATCH_SIZE)
    store = InMemoryStore.load(args.store_file, max_batch_size=planner_config.batch_size)

    if args.dry_run:
        plan = asyncio.run(preview_allocations(args.group_id, store, planner_config, args.activity_option))
        for op, key, start, end, hours in _preview_rows(plan):
            print(f"{op:<12} {key:<45} {start} -> {end}  {hours}h")
        print(f"unchanged: {len(plan['unchanged'])}")
    else:
        try:
            result = asyncio.run(run_allocations(args.group_id, store, planner_config, activity_options=args.activity_option))
        finally:
            # keep error entries even when the run is rejected
            store.dump(args.store_file)
        print(result["summary"])
        print(json.dumps(result["ledger"], indent=2))
