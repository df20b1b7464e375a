"""pytest configuration and shared fixtures for backend tests."""

import json
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the repository root to the path so `backend.*` imports resolve
backend_path = Path(__file__).parent.parent.parent
sys.path.insert(0, str(backend_path))

from backend.common.db import Base  # noqa: E402
from backend.common.models_db import Call, Company, Insight  # noqa: E402
from backend.extraction_service.app.store import InsightStore  # noqa: E402


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def async_db_session(async_engine):
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(async_db_session):
    return InsightStore(async_db_session)


@pytest.fixture
def add_company(async_db_session):
    """Insert a company with an explicit creation time."""

    async def _add(name: str, created_at: datetime) -> Company:
        company = Company(name=name, created_at=created_at)
        async_db_session.add(company)
        await async_db_session.commit()
        await async_db_session.refresh(company)
        return company

    return _add


@pytest.fixture
def add_call_with_insights(async_db_session):
    """Insert a call for a company plus one insight per description."""

    async def _add(company: Company, descriptions: list[str], call_date: datetime | None = None, customer_name: str | None = None) -> Call:
        call = Call(
            company_id=company.id,
            transcript_text="previous call",
            customer_name=customer_name,
            call_date=call_date or datetime(2024, 1, 10, 9, 0, 0),
        )
        async_db_session.add(call)
        await async_db_session.flush()
        for description in descriptions:
            async_db_session.add(Insight(
                call_id=call.id,
                pain_point_description=description,
                urgency_level=3,
                status="to_do",
            ))
        await async_db_session.commit()
        await async_db_session.refresh(call)
        return call

    return _add


@pytest.fixture
def make_llm():
    """Build an LLM test double whose completion is ``raw`` or ``payload`` as JSON."""

    def _make(payload=None, raw: str | None = None) -> Mock:
        llm = Mock()
        llm.complete.return_value = raw if raw is not None else json.dumps(payload)
        return llm

    return _make


@pytest.fixture
def globex_payload():
    return {
        "organization_name": "Globex",
        "customer_name": "Hank Scorpio",
        "call_summary": "Globex wants to automate billing before Q3.",
        "needs": [
            {
                "painPoint": "Manual invoicing",
                "urgency": 4.4,
                "mentionedTimeline": "next quarter",
                "rawQuote": "We still invoice by hand.",
            },
            {
                "painPoint": "  Audit readiness  ",
                "urgency": 7,
                "mentionedTimeline": "by September",
                "personMentioned": "Hank",
            },
            {
                "painPoint": "Nice-to-have dashboards",
            },
        ],
    }
