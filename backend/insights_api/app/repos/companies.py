"""Repository layer for company-related read paths."""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.common.constants import EXISTING_CUSTOMER_CALL_THRESHOLD
from backend.common.errors import CompanyNotFound, PipelineError
from backend.common.models_db import Call, Company, Insight
from backend.insights_api.app.schemas import (
    AllInsightsOut,
    CallOut,
    CompanyAnalysisOut,
    CompanyOut,
    CompanyOverviewOut,
    InsightOut,
)

logger = logging.getLogger(__name__)


async def list_companies(db: AsyncSession, limit: int = 500) -> List[CompanyOut]:
    """List companies ordered by name."""
    result = await db.execute(
        select(Company).order_by(Company.name, Company.id).limit(limit)
    )
    return [CompanyOut.model_validate(c) for c in result.scalars().all()]


async def get_companies_overview(db: AsyncSession, limit: int = 500) -> List[CompanyOverviewOut]:
    """Companies with call/pain point counts and the latest contact."""
    result = await db.execute(
        select(Company).order_by(Company.name, Company.id).limit(limit)
    )
    companies = result.scalars().all()

    output = []
    for company in companies:
        call_count_result = await db.execute(
            select(func.count(Call.id)).where(Call.company_id == company.id)
        )
        call_count = call_count_result.scalar() or 0

        pain_point_result = await db.execute(
            select(func.count(Insight.id))
            .join(Call, Call.id == Insight.call_id)
            .where(Call.company_id == company.id)
        )
        pain_point_count = pain_point_result.scalar() or 0

        last_call_result = await db.execute(
            select(Call.call_date, Call.customer_name)
            .where(Call.company_id == company.id)
            .order_by(desc(Call.call_date), desc(Call.id))
            .limit(1)
        )
        last_call = last_call_result.first()

        output.append(CompanyOverviewOut(
            id=company.id,
            name=company.name,
            contact_person=last_call.customer_name if last_call else None,
            last_contact_date=last_call.call_date if last_call else None,
            call_count=call_count,
            pain_point_count=pain_point_count,
            customer_type="existing" if call_count >= EXISTING_CUSTOMER_CALL_THRESHOLD else "new",
            created_at=company.created_at,
        ))

    return output


async def resolve_company_id(db: AsyncSession, company_name: str) -> int:
    """
    Pick the company a name refers to for read paths.

    With duplicate names, prefer the company with the most calls, then the
    most recent call; if none has calls, the most recently created one.
    """
    result = await db.execute(
        select(Company)
        .where(func.lower(Company.name) == company_name.strip().lower())
        .order_by(desc(Company.created_at), desc(Company.id))
    )
    companies = result.scalars().all()
    if not companies:
        raise CompanyNotFound(f"Company not found: {company_name}")
    if len(companies) == 1:
        return companies[0].id

    logger.warning("Multiple companies found with name %r. Checking which has data...", company_name)
    best_id = companies[0].id
    best_call_count = 0
    best_latest_call = None
    for company in companies:
        stats_result = await db.execute(
            select(func.count(Call.id), func.max(Call.call_date))
            .where(Call.company_id == company.id)
        )
        call_count, latest_call = stats_result.one()
        if not call_count:
            continue
        if call_count > best_call_count or (
            call_count == best_call_count
            and latest_call is not None
            and (best_latest_call is None or latest_call > best_latest_call)
        ):
            best_id = company.id
            best_call_count = call_count
            best_latest_call = latest_call

    logger.info("Using company id %s (found %d calls)", best_id, best_call_count)
    return best_id


async def get_company_analysis(
    db: AsyncSession,
    company_id: Optional[int] = None,
    company_name: Optional[str] = None,
) -> CompanyAnalysisOut:
    """All calls and insights for one company, newest first."""
    if company_id is None:
        if not company_name:
            raise ValueError("company_id or company_name is required")
        company_id = await resolve_company_id(db, company_name)
    else:
        company = await db.get(Company, company_id)
        if company is None:
            raise CompanyNotFound(f"Company not found: {company_id}")

    calls_result = await db.execute(
        select(Call)
        .where(Call.company_id == company_id)
        .order_by(desc(Call.call_date), desc(Call.id))
    )
    calls = calls_result.scalars().all()
    if not calls:
        logger.warning("No calls found for company id %s", company_id)
        return CompanyAnalysisOut(company_id=company_id)

    insights_result = await db.execute(
        select(Insight)
        .where(Insight.call_id.in_([call.id for call in calls]))
        .order_by(desc(Insight.created_at), desc(Insight.id))
    )
    insights = insights_result.scalars().all()

    return CompanyAnalysisOut(
        company_id=company_id,
        calls=[CallOut.model_validate(c) for c in calls],
        insights=[InsightOut.model_validate(i) for i in insights],
    )


async def collect_all_company_analysis(db: AsyncSession, limit: int = 500) -> AllInsightsOut:
    """
    Fetch every company's analysis one company at a time.

    A company whose analysis cannot be read is logged and skipped so the
    rest of the batch is still returned.
    """
    companies = await list_companies(db, limit)
    output = AllInsightsOut(companies=companies)

    for company in companies:
        try:
            analysis = await get_company_analysis(db, company_id=company.id)
        except (PipelineError, SQLAlchemyError) as e:
            logger.error("Error fetching data for company %s: %s", company.name, e)
            await db.rollback()
            output.failed_company_ids.append(company.id)
            continue
        output.calls.extend(analysis.calls)
        output.insights.extend(analysis.insights)

    return output
