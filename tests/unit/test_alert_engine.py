from datetime import datetime, timedelta, timezone

from crm_followup.alerts.engine import build_company_alerts, compute_company_alert
from crm_followup.models.schemas import Activity, Company

NOW = datetime(2026, 10, 14, 12, 0)


def _company(last_logged_at: str | None = None) -> Company:
    return Company(id="c001", name="Acme", last_logged_at=last_logged_at)


def _activity(
    activity_id: str,
    activity_type: str,
    due_date,
    is_completed: bool = False,
    linked_company_id: str | None = "c001",
) -> Activity:
    return Activity(
        id=activity_id,
        type=activity_type,
        due_date=due_date,
        is_completed=is_completed,
        linked_company_id=linked_company_id,
    )


def _texts(segments) -> list[str]:
    return [segment.text for segment in segments]


def test_company_without_activities_or_logs() -> None:
    segments = compute_company_alert(_company(), [], now=NOW)

    assert [(s.text, s.severity) for s in segments] == [
        ("No meeting scheduled", "danger"),
        ("No tasks planned", "warning"),
        ("Not logged -1", "warning"),
    ]


def test_unlinked_activities_are_ignored() -> None:
    activities = [
        _activity("m1", "meeting", NOW, linked_company_id="c999"),
        _activity("t1", "task", NOW, linked_company_id=None),
    ]

    segments = compute_company_alert(_company(), activities, now=NOW)

    assert _texts(segments)[:2] == ["No meeting scheduled", "No tasks planned"]


def test_upcoming_meeting_classification() -> None:
    cases = [
        (datetime(2026, 10, 14, 18, 0), "Meeting today", "info"),
        (datetime(2026, 10, 14, 8, 0), "Meeting today", "info"),
        (datetime(2026, 10, 15, 9, 0), "Meeting tomorrow", "info"),
        (datetime(2026, 10, 19, 9, 0), "Meeting in 5 days", "neutral"),
    ]
    for due, text, severity in cases:
        segment = compute_company_alert(
            _company(), [_activity("m1", "meeting", due)], now=NOW
        )[0]
        assert (segment.text, segment.severity) == (text, severity)


def test_earliest_upcoming_meeting_wins_over_past() -> None:
    activities = [
        _activity("m1", "meeting", datetime(2026, 10, 20, 9, 0)),
        _activity("m2", "meeting", datetime(2026, 10, 16, 9, 0)),
        _activity("m3", "meeting", datetime(2026, 10, 1, 9, 0)),
    ]

    segment = compute_company_alert(_company(), activities, now=NOW)[0]

    assert segment.text == "Meeting in 2 days"


def test_most_recent_past_meeting_is_overdue() -> None:
    activities = [
        _activity("m1", "meeting", datetime(2026, 10, 1, 9, 0)),
        _activity("m2", "meeting", datetime(2026, 10, 10, 9, 0)),
    ]

    segment = compute_company_alert(_company(), activities, now=NOW)[0]

    assert (segment.text, segment.severity) == ("Meeting overdue by 4 days", "warning")


def test_meeting_without_due_date_is_not_scheduled() -> None:
    segment = compute_company_alert(
        _company(), [_activity("m1", "meeting", None)], now=NOW
    )[0]

    assert segment.text == "No meeting scheduled"


def test_calendar_day_boundary_ignores_hour_of_day() -> None:
    late_meeting = _activity("m1", "meeting", datetime(2026, 10, 13, 23, 59))
    just_after_midnight = datetime(2026, 10, 14, 0, 1)

    segment = compute_company_alert(
        _company(), [late_meeting], now=just_after_midnight
    )[0]

    assert segment.text == "Meeting overdue by 1 days"


def test_completed_tasks_count_as_no_tasks_planned() -> None:
    activities = [_activity("t1", "task", NOW + timedelta(days=2), is_completed=True)]

    segment = compute_company_alert(_company(), activities, now=NOW)[1]

    assert (segment.text, segment.severity) == ("No tasks planned", "warning")


def test_incomplete_tasks_without_due_date() -> None:
    activities = [_activity("t1", "task", None), _activity("t2", "task", "")]

    segment = compute_company_alert(_company(), activities, now=NOW)[1]

    assert (segment.text, segment.severity) == ("Task missing due date", "warning")


def test_future_task_preferred_over_overdue() -> None:
    activities = [
        _activity("t1", "task", datetime(2026, 10, 4)),
        _activity("t2", "task", datetime(2026, 10, 20)),
        _activity("t3", "task", datetime(2026, 10, 18)),
        _activity("t4", "task", None),
    ]

    segment = compute_company_alert(_company(), activities, now=NOW)[1]

    assert (segment.text, segment.severity) == ("Task due in 4 days", "neutral")


def test_least_overdue_task_is_selected() -> None:
    activities = [
        _activity("t1", "task", NOW - timedelta(days=10)),
        _activity("t2", "task", NOW - timedelta(days=3)),
    ]

    segment = compute_company_alert(_company(), activities, now=NOW)[1]

    assert (segment.text, segment.severity) == ("Task overdue by 3 days", "danger")


def test_task_due_today_and_tomorrow() -> None:
    earlier_today = _activity("t1", "task", datetime(2026, 10, 14, 7, 0))
    tomorrow = _activity("t2", "task", datetime(2026, 10, 15, 23, 0))

    today_segment = compute_company_alert(_company(), [earlier_today], now=NOW)[1]
    tomorrow_segment = compute_company_alert(_company(), [tomorrow], now=NOW)[1]

    assert (today_segment.text, today_segment.severity) == ("Task due today", "success")
    assert (tomorrow_segment.text, tomorrow_segment.severity) == (
        "Task due tomorrow",
        "success",
    )


def test_log_recency_boundaries() -> None:
    cases = [
        ("2026-10-04T09:00:00", "Logged 10 days ago -3", "neutral"),
        ("2026-10-03T09:00:00", "Logged 11 days ago -2", "warning"),
        ("2026-09-29T09:00:00", "Logged 15 days ago -2", "warning"),
        ("2026-09-28T09:00:00", "Logged 16 days ago", "danger"),
        ("2026-10-14T18:00:00", "Logged 0 days ago -3", "neutral"),
        ("2026-10-20T09:00:00", "Logged 0 days ago -3", "neutral"),
    ]
    for last_logged_at, text, severity in cases:
        segment = compute_company_alert(_company(last_logged_at), [], now=NOW)[2]
        assert (segment.text, segment.severity) == (text, severity)


def test_string_due_dates_are_accepted() -> None:
    activities = [
        _activity("m1", "meeting", "2026-10-15T10:30:00"),
        _activity("t1", "task", "2026-10-11"),
    ]

    segments = compute_company_alert(_company(), activities, now=NOW)

    assert _texts(segments)[:2] == ["Meeting tomorrow", "Task overdue by 3 days"]


def test_unparseable_dates_are_treated_as_absent() -> None:
    activities = [
        _activity("m1", "meeting", "not a date"),
        _activity("t1", "task", "31/31/2026"),
    ]

    segments = compute_company_alert(_company("garbage"), activities, now=NOW)

    assert _texts(segments) == [
        "No meeting scheduled",
        "Task missing due date",
        "Not logged -1",
    ]


def test_inputs_are_not_mutated() -> None:
    activities = [
        _activity("t1", "task", "2026-10-11"),
        _activity("m1", "meeting", datetime(2026, 10, 20, 9, 0)),
    ]
    snapshot = [(a.id, a.due_date, a.is_completed) for a in activities]

    compute_company_alert(_company(), activities, now=NOW)

    assert [(a.id, a.due_date, a.is_completed) for a in activities] == snapshot


def test_build_company_alerts_covers_every_company() -> None:
    companies = [
        Company(id="c001", name="Acme"),
        Company(id="c002", name="Vercel Labs", last_logged_at="2026-10-13T10:00:00"),
    ]
    activities = [_activity("t1", "task", datetime(2026, 10, 14, 9, 0))]

    alerts = build_company_alerts(companies, activities, now=NOW)

    assert [alert.company_id for alert in alerts] == ["c001", "c002"]
    assert _texts(alerts[0].segments)[1] == "Task due today"
    assert _texts(alerts[1].segments) == [
        "No meeting scheduled",
        "No tasks planned",
        "Logged 1 days ago -3",
    ]


def test_timezone_aware_now_is_accepted() -> None:
    aware_now = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
    local_now = aware_now.astimezone().replace(tzinfo=None)
    activities = [
        _activity("m1", "meeting", local_now + timedelta(days=3)),
        _activity("t1", "task", local_now - timedelta(days=2)),
    ]

    company = _company("2026-10-01T09:00:00")

    aware = compute_company_alert(company, activities, now=aware_now)
    naive = compute_company_alert(company, activities, now=local_now)

    assert aware == naive
    assert _texts(aware)[:2] == ["Meeting in 3 days", "Task overdue by 2 days"]
    alerts = build_company_alerts([_company()], activities, now=aware_now)
    assert alerts[0].segments[:2] == aware[:2]
