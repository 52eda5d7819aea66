from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import parsedatetime

from crm_followup.models.schemas import Company, HighlightRange, ParsedTaskInput

logger = logging.getLogger(__name__)

SHORTHANDS = {
    "tmr": "tomorrow",
    "tom": "tomorrow",
    "tod": "today",
    "mon": "monday",
    "tue": "tuesday",
    "wed": "wednesday",
    "thu": "thursday",
    "fri": "friday",
    "sat": "saturday",
    "sun": "sunday",
}

_WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")
_WHITESPACE_RE = re.compile(r"\s+")

_calendar = parsedatetime.Calendar(version=parsedatetime.VERSION_CONTEXT_STYLE)


@dataclass
class _Token:
    start: int
    end: int
    original_start: int
    original_end: int


@dataclass
class _DateCandidate:
    value: datetime
    has_time: bool
    start: int
    end: int


def _source_time(now: Optional[datetime]):
    return (now or datetime.now()).timetuple()


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _match_mention(
    text: str,
    companies: list[Company],
) -> tuple[Optional[Company], Optional[re.Match]]:
    ordered = sorted(companies, key=lambda company: len(company.name), reverse=True)
    for company in ordered:
        if not company.name:
            continue
        pattern = re.compile(rf"@{re.escape(company.name)}\b", re.IGNORECASE)
        match = pattern.search(text)
        if match:
            return company, match
    return None, None


def _expand_shorthands(text: str) -> tuple[str, list[_Token]]:
    expanded_parts: list[str] = []
    expanded_length = 0
    original_index = 0
    tokens: list[_Token] = []

    for word in _WHITESPACE_SPLIT_RE.split(text):
        if not word:
            continue
        if not word.strip():
            expanded_parts.append(word)
            expanded_length += len(word)
            original_index += len(word)
            continue

        expansion = SHORTHANDS.get(word.lower(), word)
        tokens.append(
            _Token(
                start=expanded_length,
                end=expanded_length + len(expansion),
                original_start=original_index,
                original_end=original_index + len(word),
            )
        )
        expanded_parts.append(expansion)
        expanded_length += len(expansion)
        original_index += len(word)

    return "".join(expanded_parts), tokens


def _extract_dates(text: str, now: Optional[datetime]) -> list[_DateCandidate]:
    try:
        results = _calendar.nlp(text, sourceTime=_source_time(now))
    except (ValueError, OverflowError) as exc:
        logger.debug("Date extraction failed for %r: %s", text, exc)
        return []

    candidates: list[_DateCandidate] = []
    for value, context, start, end, _matched in results or ():
        if not context.hasDateOrTime:
            continue
        candidates.append(
            _DateCandidate(
                value=value,
                has_time=context.hasTime,
                start=start,
                end=end,
            )
        )
    return candidates


def _overlaps(first: HighlightRange, second: HighlightRange) -> bool:
    return first.start < second.end and second.start < first.end


def _original_range(
    candidate: _DateCandidate,
    tokens: list[_Token],
) -> Optional[HighlightRange]:
    matching = [
        token
        for token in tokens
        if token.start < candidate.end and token.end > candidate.start
    ]
    if not matching:
        return None
    return HighlightRange(
        start=matching[0].original_start,
        end=matching[-1].original_end,
        type="date",
    )


def _remove_ranges(text: str, ranges: list[HighlightRange]) -> str:
    cleaned = text
    for highlight in sorted(ranges, key=lambda r: r.start, reverse=True):
        cleaned = cleaned[: highlight.start] + cleaned[highlight.end :]
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def parse_task_input(
    text: str,
    companies: list[Company],
    *,
    now: Optional[datetime] = None,
) -> ParsedTaskInput:
    """Split a quick-task line into title, due date and linked company.

    Mentions are ``@Company Name`` tokens matched against ``companies``,
    longest name first. Date phrases may use shorthands such as ``tmr`` or
    ``fri``; ``highlight_ranges`` always index into the original ``text``.
    """
    highlight_ranges: list[HighlightRange] = []

    company, mention = _match_mention(text, companies)
    if mention:
        highlight_ranges.append(
            HighlightRange(start=mention.start(), end=mention.end(), type="mention")
        )

    due_date: Optional[datetime] = None
    has_time = False
    extracted_date_text: Optional[str] = None

    expanded_text, tokens = _expand_shorthands(text)
    candidates = _extract_dates(expanded_text, now) if tokens else []
    placed: list[tuple[_DateCandidate, HighlightRange]] = []
    for candidate in candidates:
        date_range = _original_range(candidate, tokens)
        if date_range is None:
            continue
        if any(_overlaps(date_range, existing) for existing in highlight_ranges):
            logger.debug("Skipping date phrase inside mention in %r", text)
            continue
        placed.append((candidate, date_range))

    if placed:
        chosen, date_range = next(
            (entry for entry in placed if entry[0].has_time),
            placed[0],
        )
        highlight_ranges.append(date_range)
        has_time = chosen.has_time
        due_date = chosen.value if has_time else _midnight(chosen.value)
        extracted_date_text = text[date_range.start : date_range.end]

    return ParsedTaskInput(
        clean_title=_remove_ranges(text, highlight_ranges),
        due_date=due_date,
        linked_company_id=company.id if company else None,
        has_time=has_time,
        highlight_ranges=highlight_ranges,
        linked_company=company,
        extracted_date_text=extracted_date_text,
        matched_mention=mention.group(0) if mention else None,
    )


def parse_date_string(
    text: str,
    *,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Parse a single free-standing date, as typed into a date picker."""
    if not text or not text.strip():
        return None
    try:
        value, context = _calendar.parseDT(text, sourceTime=_source_time(now))
    except (ValueError, OverflowError) as exc:
        logger.debug("Date parse failed for %r: %s", text, exc)
        return None
    if not context.hasDateOrTime:
        return None
    return value if context.hasTime else _midnight(value)
