from __future__ import annotations

import requests

from crm_followup.models.schemas import CompanyAlert


def format_segments(alert: CompanyAlert) -> str:
    return " | ".join(
        f"[{segment.severity}] {segment.text}" for segment in alert.segments
    )


def dispatch_alerts(
    alerts: list[CompanyAlert],
    channel: str,
    enabled: bool,
    slack_webhook_url: str,
) -> set[str]:
    """Print follow-up alerts and optionally post them to Slack.

    Returns the ids of the companies whose alert was delivered.
    """
    if not alerts:
        print("No follow-up alerts to dispatch.")
        return set()

    print(f"Companies needing attention: {len(alerts)}")
    for alert in alerts:
        print(f"ALERT | {alert.company_name} | {format_segments(alert)}")

    if not enabled:
        print("Dispatch disabled. Set ALERTS_ENABLED=true to enable.")
        return set()

    if channel != "slack":
        return set()

    if not slack_webhook_url:
        print("Slack webhook URL not set. Skipping dispatch.")
        return set()

    sent_ids: set[str] = set()
    for alert in alerts:
        segments = ", ".join(segment.text for segment in alert.segments)
        payload = {"text": f"[Follow-up] {alert.company_name} | {segments}"}
        try:
            response = requests.post(
                slack_webhook_url,
                json=payload,
                timeout=5,
            )
        except requests.RequestException as exc:
            print(f"Slack send failed for {alert.company_id}: {exc}")
            continue

        if not 200 <= response.status_code < 300:
            print(f"Slack send failed: status {response.status_code}")
            continue

        sent_ids.add(alert.company_id)

    return sent_ids
