"""Resolve timeline phrases such as "next quarter" or "by September" to dates.

Dates are always projected forward from an explicit reference date. Rules are
tried in a fixed order and the first match wins.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

_IN_MONTHS_RE = re.compile(r"\bin\s+(\d+)\s*months?\b")
_IN_DAYS_RE = re.compile(r"\bin\s+(\d+)\s*days?\b")
_QUARTER_RE = re.compile(r"\bq([1-4])\b")
_MONTH_NAME_RE = re.compile(
    r"\b(" + "|".join(name.lower() for name in calendar.month_name[1:]) + r")\b"
)
_MONTH_INDEX = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}


def parse_explicit_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO date or datetime string, keeping only the date part."""
    if not value:
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def add_months(reference: date, months: int) -> date:
    """Same day-of-month ``months`` later, clamped to the target month's end."""
    month_index = reference.month - 1 + months
    year = reference.year + month_index // 12
    month = month_index % 12 + 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def quarter_start(reference: date, quarter: int) -> date:
    """First day of ``quarter``; next year once the quarter has ended."""
    year = reference.year if reference.month <= quarter * 3 else reference.year + 1
    return date(year, (quarter - 1) * 3 + 1, 1)


def next_quarter_start(reference: date) -> date:
    next_quarter = ((reference.month - 1) // 3 + 1) % 4
    year = reference.year + 1 if next_quarter == 0 else reference.year
    return date(year, next_quarter * 3 + 1, 1)


def next_month_start(reference: date) -> date:
    if reference.month == 12:
        return date(reference.year + 1, 1, 1)
    return date(reference.year, reference.month + 1, 1)


def month_name_start(reference: date, month: int) -> date:
    # A month equal to the reference month stays in the current year.
    year = reference.year + 1 if month < reference.month else reference.year
    return date(year, month, 1)


def resolve_timeline_phrase(timeline: str, reference: date) -> Optional[date]:
    try:
        return _apply_phrase_rules(timeline.lower(), reference)
    except (ValueError, OverflowError):
        # Offsets that land outside the representable date range
        logger.debug("Timeline %r resolves outside the date range", timeline)
        return None


def _apply_phrase_rules(phrase: str, reference: date) -> Optional[date]:
    match = _IN_MONTHS_RE.search(phrase)
    if match:
        return add_months(reference, int(match.group(1)))

    match = _IN_DAYS_RE.search(phrase)
    if match:
        return reference + timedelta(days=int(match.group(1)))

    match = _QUARTER_RE.search(phrase)
    if match:
        return quarter_start(reference, int(match.group(1)))

    if "next quarter" in phrase:
        return next_quarter_start(reference)

    if "next month" in phrase:
        return next_month_start(reference)

    match = _MONTH_NAME_RE.search(phrase)
    if match:
        return month_name_start(reference, _MONTH_INDEX[match.group(1)])

    return None


def resolve_follow_up_date(
    timeline: Optional[str],
    calculated_date: Optional[str],
    reference: date,
) -> Optional[date]:
    """
    Pick a follow-up date for an insight.

    Args:
        timeline: Free-text timeline phrase from the transcript, if any
        calculated_date: Date the model computed itself, if any
        reference: The date "now" is taken to be

    Returns:
        The model's date when it parses, otherwise the date implied by the
        timeline phrase, otherwise ``None``.
    """
    explicit = parse_explicit_date(calculated_date)
    if explicit is not None:
        return explicit
    if not timeline:
        return None
    return resolve_timeline_phrase(timeline, reference)
