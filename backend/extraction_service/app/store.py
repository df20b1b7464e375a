"""Storage operations the extraction pipeline performs against PostgreSQL."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.common.errors import InsightNotFound, InvalidStatusValue, PersistenceFailure
from backend.common.models import InsightStatus
from backend.common.models_db import Call, Company, Insight

logger = logging.getLogger(__name__)

VALID_STATUSES = tuple(status.value for status in InsightStatus)


class InsightStore:
    """Company, call and insight persistence over one async session.

    Every write commits on its own, so rows written before a later failure
    stay written.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise PersistenceFailure(f"Failed to {action}: {e}") from e

    async def find_companies_by_name_ci(self, name: str) -> List[Company]:
        """Companies whose name matches case-insensitively, newest first."""
        async with self._guard("look up company"):
            result = await self.session.execute(
                select(Company)
                .where(func.lower(Company.name) == name.strip().lower())
                .order_by(desc(Company.created_at), desc(Company.id))
            )
            return list(result.scalars().all())

    async def create_company(self, name: str) -> Company:
        async with self._guard("create company"):
            company = Company(name=name)
            self.session.add(company)
            await self.session.commit()
            await self.session.refresh(company)
        logger.info("Created new company: %s (id=%s)", company.name, company.id)
        return company

    async def list_calls_by_company(self, company_id: int) -> List[Call]:
        async with self._guard("fetch calls"):
            result = await self.session.execute(
                select(Call)
                .where(Call.company_id == company_id)
                .order_by(desc(Call.call_date), desc(Call.id))
            )
            return list(result.scalars().all())

    async def delete_insights_by_call_ids(self, call_ids: Iterable[int]) -> int:
        call_ids = list(call_ids)
        if not call_ids:
            return 0
        async with self._guard("delete insights"):
            result = await self.session.execute(
                delete(Insight).where(Insight.call_id.in_(call_ids))
            )
            await self.session.commit()
        return result.rowcount or 0

    async def create_call(self, fields: dict[str, Any]) -> Call:
        async with self._guard("save call to database"):
            call = Call(**fields)
            self.session.add(call)
            await self.session.commit()
            await self.session.refresh(call)
        return call

    async def insert_insights(self, rows: List[dict[str, Any]]) -> List[Insight]:
        if not rows:
            return []
        async with self._guard("save insights to database"):
            insights = [Insight(**row) for row in rows]
            self.session.add_all(insights)
            await self.session.commit()
            for insight in insights:
                await self.session.refresh(insight)
        return insights

    async def get_insight(self, insight_id: int) -> Optional[Insight]:
        async with self._guard("fetch insight"):
            result = await self.session.execute(
                select(Insight).where(Insight.id == insight_id)
            )
            return result.scalar_one_or_none()

    async def update_insight(self, insight_id: int, changes: dict[str, Any]) -> Insight:
        """
        Update ``follow_up_date`` and/or ``status`` on one insight.

        Raises:
            InvalidStatusValue: If ``status`` is not one of the closed enum values.
            InsightNotFound: If no insight has this id.
        """
        updates = {
            key: value
            for key, value in changes.items()
            if key in ("follow_up_date", "status")
        }
        status = updates.get("status")
        if "status" in updates:
            if isinstance(status, InsightStatus):
                updates["status"] = status = status.value
            if status not in VALID_STATUSES:
                raise InvalidStatusValue(
                    f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"
                )

        insight = await self.get_insight(insight_id)
        if insight is None:
            raise InsightNotFound(f"Insight not found: {insight_id}")
        if not updates:
            return insight

        async with self._guard("update insight"):
            for key, value in updates.items():
                setattr(insight, key, value)
            await self.session.commit()
            await self.session.refresh(insight)
        logger.info("Updated insight %s: %s", insight_id, updates)
        return insight
