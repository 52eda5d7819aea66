from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import requests

from crm_followup.models.dates import to_local_datetime
from crm_followup.models.schemas import Activity, Company
from crm_followup.storage.csv_store import parse_bool


class ApiError(Exception):
    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


def company_from_record(record: dict[str, Any]) -> Company:
    return Company(
        id=str(record.get("id", "")),
        name=record.get("name") or "",
        last_logged_at=record.get("lastLoggedAt") or None,
    )


def activity_from_record(record: dict[str, Any]) -> Activity:
    completed = record.get("isCompleted", False)
    if isinstance(completed, str):
        completed = parse_bool(completed)
    linked_company_id = record.get("linkedCompanyId")
    return Activity(
        id=str(record.get("id", "")),
        type=(record.get("type") or "task").lower(),
        due_date=to_local_datetime(record.get("dueDate")),
        is_completed=bool(completed),
        linked_company_id=str(linked_company_id) if linked_company_id else None,
        title=record.get("title") or "",
    )


def activity_to_record(activity: Activity) -> dict[str, Any]:
    due = to_local_datetime(activity.due_date)
    return {
        "id": activity.id,
        "type": activity.type,
        "title": activity.title,
        "dueDate": due.isoformat() if due else None,
        "isCompleted": activity.is_completed,
        "linkedCompanyId": activity.linked_company_id,
    }


class RecordStoreClient:
    """REST client for the CRM record store."""

    def __init__(self, base_url: str, timeout: int = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        response = requests.request(
            method,
            f"{self.base_url}{endpoint}",
            json=payload,
            timeout=self.timeout,
        )
        if not 200 <= response.status_code < 300:
            try:
                message = response.json().get("error")
            except ValueError:
                message = None
            raise ApiError(
                message or f"HTTP {response.status_code}",
                response.status_code,
            )
        return response.json()

    def get(self, endpoint: str) -> Any:
        return self._request("GET", endpoint)

    def post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        return self._request("POST", endpoint, payload)

    def put(self, endpoint: str, payload: dict[str, Any]) -> Any:
        return self._request("PUT", endpoint, payload)

    def delete(self, endpoint: str) -> Any:
        return self._request("DELETE", endpoint)

    def list_records(self, collection: str) -> list[dict[str, Any]]:
        data = self.get(f"/{collection}")
        return data if isinstance(data, list) else []

    def create_record(
        self, collection: str, record: dict[str, Any]
    ) -> dict[str, Any]:
        payload = dict(record)
        payload.setdefault("createdAt", datetime.now().isoformat())
        return self.post(f"/{collection}", payload)

    def update_record(
        self, collection: str, record_id: str, record: dict[str, Any]
    ) -> dict[str, Any]:
        return self.put(f"/{collection}/{record_id}", record)

    def delete_record(self, collection: str, record_id: str) -> dict[str, Any]:
        return self.delete(f"/{collection}/{record_id}")

    def list_objects(self) -> list[dict[str, Any]]:
        return self.list_records("objects")

    def list_attributes(self, object_id: str) -> list[dict[str, Any]]:
        data = self.get(f"/objects/{object_id}/attributes")
        return data if isinstance(data, list) else []

    def fetch_companies(self) -> list[Company]:
        return [company_from_record(row) for row in self.list_records("companies")]

    def fetch_activities(self) -> list[Activity]:
        return [
            activity_from_record(row) for row in self.list_records("activities")
        ]

    def create_activity(self, activity: Activity) -> dict[str, Any]:
        return self.create_record("activities", activity_to_record(activity))
