from __future__ import annotations

from datetime import datetime
from typing import Optional

from crm_followup.models.dates import to_local_datetime
from crm_followup.models.schemas import Activity, AlertSegment, Company, CompanyAlert

LOG_RECENT_DAYS = 10
LOG_STALE_DAYS = 15


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def calendar_days_between(later: datetime, earlier: datetime) -> int:
    return (later.date() - earlier.date()).days


def _due_dates(activities: list[Activity]) -> list[datetime]:
    due_dates: list[datetime] = []
    for activity in activities:
        due = to_local_datetime(activity.due_date)
        if due is not None:
            due_dates.append(due)
    return due_dates


def _meeting_segment(meetings: list[Activity], today: datetime) -> AlertSegment:
    due_dates = _due_dates(meetings)
    upcoming = [due for due in due_dates if due >= today]
    past = [due for due in due_dates if due < today]

    if not upcoming and not past:
        return AlertSegment("CalendarX", "danger", "No meeting scheduled")

    if upcoming:
        days = calendar_days_between(min(upcoming), today)
        if days == 0:
            return AlertSegment("Calendar", "info", "Meeting today")
        if days == 1:
            return AlertSegment("Calendar", "info", "Meeting tomorrow")
        return AlertSegment("Calendar", "neutral", f"Meeting in {days} days")

    days = calendar_days_between(today, max(past))
    return AlertSegment(
        "CalendarClock", "warning", f"Meeting overdue by {days} days"
    )


def _task_segment(tasks: list[Activity], today: datetime) -> AlertSegment:
    incomplete = [task for task in tasks if not task.is_completed]
    if not incomplete:
        return AlertSegment("ListX", "warning", "No tasks planned")

    due_dates = _due_dates(incomplete)
    if not due_dates:
        return AlertSegment("Disc", "warning", "Task missing due date")

    future_or_today = [due for due in due_dates if due >= today]
    if future_or_today:
        target = min(future_or_today)
    else:
        # least overdue, not most overdue
        target = max(due_dates)

    days = calendar_days_between(target, today)
    if days < 0:
        return AlertSegment(
            "AlertCircle", "danger", f"Task overdue by {-days} days"
        )
    if days == 0:
        return AlertSegment("CheckCircle", "success", "Task due today")
    if days == 1:
        return AlertSegment("CheckCircle", "success", "Task due tomorrow")
    return AlertSegment("CheckCircle", "neutral", f"Task due in {days} days")


def _log_segment(company: Company, today: datetime) -> AlertSegment:
    last_logged = to_local_datetime(company.last_logged_at)
    if last_logged is None:
        return AlertSegment("History", "warning", "Not logged -1")

    days = max(0, calendar_days_between(today, last_logged))
    if days <= LOG_RECENT_DAYS:
        suffix, severity = " -3", "neutral"
    elif days <= LOG_STALE_DAYS:
        suffix, severity = " -2", "warning"
    else:
        suffix, severity = "", "danger"

    return AlertSegment("History", severity, f"Logged {days} days ago{suffix}")


def compute_company_alert(
    company: Company,
    activities: list[Activity],
    *,
    now: Optional[datetime] = None,
) -> list[AlertSegment]:
    """Return the meeting, task and log-recency segments for a company.

    Only activities whose ``linked_company_id`` equals ``company.id`` are
    considered. Day counts are calendar-day differences from the start of
    today, so the hour of a due date never changes its classification.
    """
    today = _start_of_day(to_local_datetime(now) or datetime.now())
    linked = [
        activity
        for activity in activities
        if activity.linked_company_id == company.id
    ]
    meetings = [activity for activity in linked if activity.type == "meeting"]
    tasks = [activity for activity in linked if activity.type == "task"]

    return [
        _meeting_segment(meetings, today),
        _task_segment(tasks, today),
        _log_segment(company, today),
    ]


def build_company_alerts(
    companies: list[Company],
    activities: list[Activity],
    *,
    now: Optional[datetime] = None,
) -> list[CompanyAlert]:
    current = to_local_datetime(now) or datetime.now()
    return [
        CompanyAlert(
            company_id=company.id,
            company_name=company.name,
            segments=compute_company_alert(company, activities, now=current),
        )
        for company in companies
    ]
