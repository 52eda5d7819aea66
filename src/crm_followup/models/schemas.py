from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

DateInput = Union[datetime, str, None]


@dataclass
class Company:
    id: str
    name: str
    last_logged_at: Optional[str] = None


@dataclass
class Activity:
    id: str
    type: str  # task, call, meeting
    due_date: DateInput = None
    is_completed: bool = False
    linked_company_id: Optional[str] = None
    title: str = ""


@dataclass
class HighlightRange:
    start: int
    end: int
    type: str  # date, mention


@dataclass
class ParsedTaskInput:
    clean_title: str
    due_date: Optional[datetime] = None
    linked_company_id: Optional[str] = None
    has_time: bool = False
    highlight_ranges: list[HighlightRange] = field(default_factory=list)
    linked_company: Optional[Company] = None
    extracted_date_text: Optional[str] = None
    matched_mention: Optional[str] = None


@dataclass
class AlertSegment:
    icon: str
    severity: str  # danger, warning, info, success, neutral
    text: str


@dataclass
class CompanyAlert:
    company_id: str
    company_name: str
    segments: list[AlertSegment]
