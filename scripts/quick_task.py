#!/usr/bin/env python3
from __future__ import annotations

import argparse
import uuid
from datetime import datetime
from pathlib import Path

from crm_followup.config import AppConfig, load_config
from crm_followup.models.schemas import Activity, ParsedTaskInput
from crm_followup.parsing.task_parser import parse_task_input
from crm_followup.pipeline import load_records
from crm_followup.storage.api_client import RecordStoreClient, activity_to_record
from crm_followup.storage.csv_store import read_csv, write_csv

ACTIVITY_FIELDNAMES = [
    "id",
    "type",
    "title",
    "dueDate",
    "isCompleted",
    "linkedCompanyId",
]


def build_task(parsed: ParsedTaskInput, fallback_title: str) -> Activity:
    return Activity(
        id=str(uuid.uuid4()),
        type="task",
        title=parsed.clean_title or fallback_title.strip(),
        due_date=parsed.due_date,
        is_completed=False,
        linked_company_id=parsed.linked_company_id,
    )


def _append_activity(path: Path, activity: Activity) -> None:
    record = activity_to_record(activity)
    existing = read_csv(path)
    fieldnames = list(existing[0].keys()) if existing else ACTIVITY_FIELDNAMES
    row = {name: record.get(name) or "" for name in fieldnames}
    row["isCompleted"] = "true" if activity.is_completed else "false"
    write_csv(path, [row], fieldnames, append=True)


def describe(parsed: ParsedTaskInput) -> str:
    company = parsed.linked_company.name if parsed.linked_company else "-"
    if parsed.due_date is None:
        due = "-"
    elif parsed.has_time:
        due = parsed.due_date.strftime("%Y-%m-%d %H:%M")
    else:
        due = parsed.due_date.strftime("%Y-%m-%d")
    return f"title={parsed.clean_title!r} due={due} company={company}"


def add_quick_task(
    text: str,
    config: AppConfig,
    dry_run: bool = False,
    now: datetime | None = None,
) -> Activity:
    companies, _activities = load_records(config)
    parsed = parse_task_input(text, companies, now=now)
    task = build_task(parsed, text)
    print(describe(parsed))

    if dry_run:
        print("Dry run: task not saved.")
        return task

    if config.record_source == "api":
        client = RecordStoreClient(config.api_base_url, config.api_timeout)
        client.create_activity(task)
        print(f"Created task {task.id} via {config.api_base_url}")
    else:
        _append_activity(config.activities_csv, task)
        print(f"Appended task {task.id} to {config.activities_csv}")
    return task


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Create a task from a quick-entry line like 'call @Acme tmr 3pm'"
    )
    parser.add_argument("text", help="Task text with optional @Company and date")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    add_quick_task(args.text, load_config(), dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
