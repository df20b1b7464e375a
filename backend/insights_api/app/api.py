from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.common.config import Settings, get_settings
from backend.common.db import get_session
from backend.common.errors import PipelineError
from backend.common.llm_utils import LLMClient, get_llm_client
from backend.common.models import TranscriptAnalysis
from backend.extraction_service.app.orchestrator import TranscriptExtractor
from backend.extraction_service.app.store import InsightStore
from backend.insights_api.app import schemas
from backend.insights_api.app.repos.companies import (
    collect_all_company_analysis,
    get_companies_overview,
    get_company_analysis,
    list_companies,
)

logger = logging.getLogger("insights_api")

router = APIRouter(
    prefix="/v1",
    tags=["insights"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorOut},
        status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorOut},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": schemas.ErrorOut},
        status.HTTP_502_BAD_GATEWAY: {"model": schemas.ErrorOut},
    },
)

ERROR_STATUS_CODES = {
    "EmptyTranscript": status.HTTP_400_BAD_REQUEST,
    "MissingCompanyName": status.HTTP_400_BAD_REQUEST,
    "InvalidStatusValue": status.HTTP_400_BAD_REQUEST,
    "UpstreamUnavailable": status.HTTP_502_BAD_GATEWAY,
    "MalformedModelOutput": status.HTTP_502_BAD_GATEWAY,
    "PersistenceFailure": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "InsightNotFound": status.HTTP_404_NOT_FOUND,
    "CompanyNotFound": status.HTTP_404_NOT_FOUND,
}


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:  # noqa: ARG001
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@lru_cache()
def get_shared_llm_client() -> LLMClient:
    """One LLM client per process."""
    return get_llm_client(get_settings())


def get_store(db: AsyncSession = Depends(get_session)) -> InsightStore:
    return InsightStore(db)


def get_extractor(
    store: InsightStore = Depends(get_store),
    llm_client: LLMClient = Depends(get_shared_llm_client),
) -> TranscriptExtractor:
    return TranscriptExtractor(llm_client, store)


@router.post("/transcripts/analyze", response_model=schemas.ExtractionOut, status_code=status.HTTP_201_CREATED)
async def analyze_and_save_transcript(
    payload: schemas.TranscriptIn,
    extractor: TranscriptExtractor = Depends(get_extractor),
) -> schemas.ExtractionOut:
    """
    Analyze a transcript and persist the result.

    Finds or creates the company, saves the call, replaces the company's
    previous insights and saves the newly extracted ones.
    """
    outcome = await extractor.extract(payload.transcript, payload.current_date)
    if not outcome.ok:
        raise outcome.error

    return schemas.ExtractionOut(
        company=schemas.CompanyOut.model_validate(outcome.company),
        call=schemas.CallOut.model_validate(outcome.call),
        insights=[schemas.InsightOut.model_validate(i) for i in outcome.insights],
        company_created=outcome.company_created,
        purged_insights_count=outcome.purged_insights,
        count=len(outcome.insights),
    )


@router.post("/transcripts/preview", response_model=TranscriptAnalysis)
async def preview_transcript(
    payload: schemas.TranscriptIn,
    extractor: TranscriptExtractor = Depends(get_extractor),
) -> TranscriptAnalysis:
    """Analyze a transcript without saving anything."""
    outcome = await extractor.preview(payload.transcript, payload.current_date)
    if not outcome.ok:
        raise outcome.error
    return outcome.analysis


@router.get("/companies", response_model=schemas.CompanyListOut)
async def list_companies_endpoint(
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """List all companies ordered by name."""
    companies = await list_companies(db, settings.company_list_limit)
    return schemas.CompanyListOut(companies=companies)


@router.get("/companies/overview", response_model=schemas.CompanyOverviewListOut)
async def companies_overview_endpoint(
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Companies with call and pain point counts."""
    companies = await get_companies_overview(db, settings.company_list_limit)
    return schemas.CompanyOverviewListOut(companies=companies)


@router.get("/companies/analysis", response_model=schemas.CompanyAnalysisOut)
async def company_analysis_endpoint(
    company_id: int | None = Query(None, description="Company ID"),
    company_name: str | None = Query(None, description="Company name (case-insensitive)"),
    db: AsyncSession = Depends(get_session),
):
    """Get all calls and insights for a company."""
    if company_id is None and not company_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="company_id or company_name query parameter is required",
        )
    return await get_company_analysis(db, company_id=company_id, company_name=company_name)


@router.get("/insights", response_model=schemas.AllInsightsOut)
async def all_insights_endpoint(
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Calls and insights for every company; unreadable companies are skipped."""
    return await collect_all_company_analysis(db, settings.company_list_limit)


@router.patch("/insights/{insight_id}", response_model=schemas.InsightOut)
async def update_insight_endpoint(
    insight_id: int,
    update_data: schemas.InsightUpdateIn,
    store: InsightStore = Depends(get_store),
):
    """Update an insight's follow-up date and/or status."""
    changes = update_data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update. Provide follow_up_date or status.",
        )
    insight = await store.update_insight(insight_id, changes)
    return schemas.InsightOut.model_validate(insight)
