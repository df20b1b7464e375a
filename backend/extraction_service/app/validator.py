"""Turn parsed model output into well-formed candidate insights.

Validation is best-effort: a candidate missing its description or urgency is
dropped and the rest of the batch is kept.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional

from backend.common.constants import MAX_URGENCY, MIN_URGENCY
from backend.common.models import CandidateInsight, TranscriptAnalysis

logger = logging.getLogger(__name__)

# Checked in order when the payload is an object rather than a bare list.
CANDIDATE_LIST_KEYS = (
    "needs",
    "customerNeeds",
    "customer_needs",
    "painPoints",
    "pain_points",
    "insights",
)

DESCRIPTION_KEYS = ("painPoint", "pain_point", "pain_point_description", "description")
URGENCY_KEYS = ("urgency", "urgency_level", "urgencyLevel")
QUOTE_KEYS = ("rawQuote", "raw_quote", "quote")
PERSON_KEYS = ("personMentioned", "person_mentioned", "person")
TIMELINE_KEYS = ("mentionedTimeline", "mentioned_timeline", "timeline")
CALCULATED_DATE_KEYS = (
    "calculatedDate",
    "calculated_date",
    "followUpDate",
    "follow_up_date",
)

COMPANY_NAME_KEYS = (
    "organization_name",
    "organizationName",
    "company_name",
    "companyName",
    "company",
)
CUSTOMER_NAME_KEYS = ("customer_name", "customerName", "contact_name", "contactName")
CALL_SUMMARY_KEYS = ("call_summary", "callSummary", "summary")


def _pick(raw: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def clean_text(value: Any) -> Optional[str]:
    """Trim a string field; blanks and non-strings become ``None``."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def clamp_urgency(value: Any) -> Optional[int]:
    """Round half-up and clamp into [1, 5]; ``None`` when not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    rounded = math.floor(value + 0.5)
    return max(MIN_URGENCY, min(MAX_URGENCY, rounded))


def decode_candidates(payload: Any) -> list:
    """Find the list of candidate insights in whatever shape the model chose."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in CANDIDATE_LIST_KEYS:
            candidates = payload.get(key)
            if isinstance(candidates, list):
                return candidates
    return []


def validate_candidate(raw: Any) -> Optional[CandidateInsight]:
    if not isinstance(raw, dict):
        return None

    description = clean_text(_pick(raw, DESCRIPTION_KEYS))
    urgency = clamp_urgency(_pick(raw, URGENCY_KEYS))
    if description is None or urgency is None:
        return None

    return CandidateInsight(
        pain_point_description=description,
        urgency_level=urgency,
        raw_quote=clean_text(_pick(raw, QUOTE_KEYS)),
        person_mentioned=clean_text(_pick(raw, PERSON_KEYS)),
        mentioned_timeline=clean_text(_pick(raw, TIMELINE_KEYS)),
        calculated_date=clean_text(_pick(raw, CALCULATED_DATE_KEYS)),
    )


def validate_insights(payload: Any) -> list[CandidateInsight]:
    """Validate every candidate in the payload, preserving model order."""
    validated = []
    for index, raw in enumerate(decode_candidates(payload)):
        candidate = validate_candidate(raw)
        if candidate is None:
            logger.debug("Dropping invalid candidate insight #%d: %s", index, raw)
            continue
        validated.append(candidate)
    return validated


def analyze_payload(payload: Any) -> TranscriptAnalysis:
    """Validated insights plus the call metadata found alongside them."""
    metadata = payload if isinstance(payload, dict) else {}
    return TranscriptAnalysis(
        company_name=clean_text(_pick(metadata, COMPANY_NAME_KEYS)),
        customer_name=clean_text(_pick(metadata, CUSTOMER_NAME_KEYS)),
        call_summary=clean_text(_pick(metadata, CALL_SUMMARY_KEYS)),
        insights=validate_insights(payload),
    )
