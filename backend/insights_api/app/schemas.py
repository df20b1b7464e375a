"""Pydantic schemas for the insights API."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from backend.common.models import normalize_status


class ErrorOut(BaseModel):
    """Body of every pipeline error response."""
    kind: str
    message: str


# ============ Company Schemas ============

class CompanyOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyListOut(BaseModel):
    companies: List[CompanyOut]


class CompanyOverviewOut(BaseModel):
    """Per-company stats for the companies list page."""
    id: int
    name: str
    contact_person: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    call_count: int = 0
    pain_point_count: int = 0
    customer_type: str  # new, existing
    created_at: datetime


class CompanyOverviewListOut(BaseModel):
    companies: List[CompanyOverviewOut]


# ============ Call Schemas ============

class CallOut(BaseModel):
    id: int
    company_id: int
    transcript_text: str
    customer_name: Optional[str] = None
    call_summary: Optional[str] = None
    call_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


# ============ Insight Schemas ============

class InsightOut(BaseModel):
    id: int
    call_id: int
    pain_point_description: str
    raw_quote: Optional[str] = None
    person_mentioned: Optional[str] = None
    urgency_level: int
    mentioned_timeline: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: str  # to_do, scheduled_call, proceed, sales_loss
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_legacy_status(cls, value: Optional[str]) -> str:
        return normalize_status(value)


class InsightUpdateIn(BaseModel):
    """Fields an insight can be edited on. Send ``null`` to clear the date."""
    follow_up_date: Optional[date] = None
    status: Optional[str] = None


class CompanyAnalysisOut(BaseModel):
    company_id: int
    calls: List[CallOut] = []
    insights: List[InsightOut] = []


class AllInsightsOut(BaseModel):
    """Calls and insights across every company that could be read."""
    companies: List[CompanyOut] = []
    calls: List[CallOut] = []
    insights: List[InsightOut] = []
    failed_company_ids: List[int] = []


# ============ Transcript Schemas ============

class TranscriptIn(BaseModel):
    transcript: Optional[str] = None
    current_date: Optional[date] = None


class ExtractionOut(BaseModel):
    company: CompanyOut
    call: CallOut
    insights: List[InsightOut]
    company_created: bool
    purged_insights_count: int
    count: int
