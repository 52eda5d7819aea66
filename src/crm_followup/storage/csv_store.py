import csv
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List


def read_csv(path: Path) -> List[Dict[str, str]]:
    if not path.exists():
        return []
    with path.open("r", newline="", encoding="utf-8") as handle:
        return list(csv.DictReader(handle))


def write_csv(
    path: Path,
    rows: Iterable[Dict[str, Any]],
    fieldnames: List[str],
    append: bool = False,
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = "a" if append else "w"
    with path.open(mode, newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        if not append or path.stat().st_size == 0:
            writer.writeheader()
        for row in rows:
            writer.writerow(row)


def _export_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def export_records(path: Path, records: List[Dict[str, Any]]) -> int:
    """Write records to CSV using the first record's keys as the header.

    Nested values are JSON encoded and dates ISO-8601 encoded. Returns the
    number of rows written; nothing is written for an empty list.
    """
    if not records:
        return 0
    fieldnames = list(records[0].keys())
    rows = [
        {name: _export_value(record.get(name)) for name in fieldnames}
        for record in records
    ]
    write_csv(path, rows, fieldnames, append=False)
    return len(rows)


def parse_bool(value: str, default: bool = False) -> bool:
    if not value:
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False

    return default
