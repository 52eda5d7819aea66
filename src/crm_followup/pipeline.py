import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from crm_followup.alerts.dispatcher import dispatch_alerts
from crm_followup.alerts.engine import build_company_alerts
from crm_followup.config import AppConfig, load_config
from crm_followup.models.schemas import Activity, Company, CompanyAlert
from crm_followup.storage.api_client import (
    RecordStoreClient,
    activity_from_record,
    company_from_record,
)
from crm_followup.storage.csv_store import read_csv, write_csv

logger = logging.getLogger(__name__)

REPORT_FIELDNAMES = [
    "company_id",
    "company_name",
    "meeting",
    "task",
    "log",
    "worst_severity",
    "generated_at",
]

_SEVERITY_RANK = {
    "danger": 3,
    "warning": 2,
    "info": 1,
    "success": 1,
    "neutral": 0,
}

ACTIVITY_TYPES = {"task", "call", "meeting"}


def load_companies(path: Path) -> list[Company]:
    companies: list[Company] = []
    for row in read_csv(path):
        if not row.get("id"):
            logger.warning("Skipping company row without id: %s", row)
            continue
        companies.append(company_from_record(row))
    return companies


def load_activities(path: Path) -> list[Activity]:
    activities: list[Activity] = []
    for row in read_csv(path):
        activity = activity_from_record(row)
        if activity.type not in ACTIVITY_TYPES:
            logger.warning(
                "Skipping activity %s with unknown type: %s",
                activity.id,
                activity.type,
            )
            continue
        activities.append(activity)
    return activities


def load_records(config: AppConfig) -> tuple[list[Company], list[Activity]]:
    if config.record_source == "csv":
        return (
            load_companies(config.companies_csv),
            load_activities(config.activities_csv),
        )
    if config.record_source == "api":
        client = RecordStoreClient(config.api_base_url, config.api_timeout)
        return client.fetch_companies(), client.fetch_activities()

    print(
        f"ERROR: unknown RECORD_SOURCE '{config.record_source}' "
        "(expected 'csv' or 'api')."
    )
    raise SystemExit(1)


def worst_severity(alert: CompanyAlert) -> str:
    return max(
        (segment.severity for segment in alert.segments),
        key=lambda severity: _SEVERITY_RANK.get(severity, 0),
    )


def needs_attention(alert: CompanyAlert) -> bool:
    return worst_severity(alert) == "danger"


def _report_row(alert: CompanyAlert, generated_at: str) -> dict[str, str]:
    meeting, task = alert.segments[0], alert.segments[1]
    log = alert.segments[2] if len(alert.segments) > 2 else None
    return {
        "company_id": alert.company_id,
        "company_name": alert.company_name,
        "meeting": meeting.text,
        "task": task.text,
        "log": log.text if log else "",
        "worst_severity": worst_severity(alert),
        "generated_at": generated_at,
    }


def _is_env_override(name: str) -> bool:
    return bool(os.getenv(name))


def _print_provenance(
    config: AppConfig,
    companies: list[Company],
    activities: list[Activity],
) -> None:
    linked = sum(1 for activity in activities if activity.linked_company_id)
    print("PROVENANCE")
    print(
        f"Record source: {config.record_source} "
        f"(override: {_is_env_override('RECORD_SOURCE')})"
    )
    if config.record_source == "api":
        print(f"Using api_base_url: {config.api_base_url}")
    else:
        print(
            f"Using companies_csv: {config.companies_csv.resolve()} "
            f"(override: {_is_env_override('COMPANIES_CSV')})"
        )
        print(
            f"Using activities_csv: {config.activities_csv.resolve()} "
            f"(override: {_is_env_override('ACTIVITIES_CSV')})"
        )
    print(
        f"Using report_csv: {config.report_csv.resolve()} "
        f"(override: {_is_env_override('REPORT_CSV')})"
    )
    print(f"companies: rows_loaded={len(companies)}")
    print(f"activities: rows_loaded={len(activities)} linked={linked}")


def run_daily() -> None:
    config = load_config()
    _run_pipeline(config)


def _run_pipeline(
    config: AppConfig,
    now: Optional[datetime] = None,
) -> list[CompanyAlert]:
    if (
        config.alerts_enabled
        and config.alert_channel == "slack"
        and not config.slack_webhook_url
    ):
        print(
            "ERROR: ALERTS_ENABLED=true and ALERT_CHANNEL=slack, but "
            "SLACK_WEBHOOK_URL is empty."
        )
        raise SystemExit(1)

    companies, activities = load_records(config)
    _print_provenance(config, companies, activities)

    current = now or datetime.now()
    alerts = build_company_alerts(companies, activities, now=current)
    generated_at = current.isoformat(timespec="seconds")
    rows = [_report_row(alert, generated_at) for alert in alerts]
    write_csv(config.report_csv, rows, REPORT_FIELDNAMES, append=False)

    flagged = [alert for alert in alerts if needs_attention(alert)]
    print(
        f"Companies evaluated: {len(alerts)} | "
        f"Needing attention: {len(flagged)}"
    )

    dispatch_alerts(
        flagged,
        config.alert_channel,
        config.alerts_enabled,
        config.slack_webhook_url,
    )
    return alerts


if __name__ == "__main__":
    run_daily()
