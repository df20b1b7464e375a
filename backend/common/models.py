from __future__ import annotations

import enum
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class InsightStatus(str, enum.Enum):
    to_do = "to_do"
    scheduled_call = "scheduled_call"
    proceed = "proceed"
    sales_loss = "sales_loss"


# Written by earlier releases; read back as to_do.
LEGACY_PENDING_STATUSES = frozenset({"pending", "new"})


def normalize_status(raw: Optional[str]) -> str:
    """Map legacy or missing statuses onto the closed status enum."""
    if not raw or raw in LEGACY_PENDING_STATUSES:
        return InsightStatus.to_do.value
    return raw


class CandidateInsight(BaseModel):
    """A pain point that survived validation, prior to persistence."""

    pain_point_description: str
    urgency_level: int = Field(ge=1, le=5)
    raw_quote: Optional[str] = None
    person_mentioned: Optional[str] = None
    mentioned_timeline: Optional[str] = None
    calculated_date: Optional[str] = None
    follow_up_date: Optional[date] = None


class TranscriptAnalysis(BaseModel):
    """Everything the model told us about one transcript."""

    company_name: Optional[str] = None
    customer_name: Optional[str] = None
    call_summary: Optional[str] = None
    insights: list[CandidateInsight] = Field(default_factory=list)
