"""Tests for the company read-path repository."""

from datetime import datetime
from unittest.mock import patch

import pytest

from backend.common.errors import CompanyNotFound
from backend.insights_api.app.repos import companies as companies_repo


@pytest.mark.asyncio
async def test_list_companies_is_ordered_by_name(async_db_session, add_company):
    await add_company("Soylent", datetime(2024, 1, 1, 12, 0, 0))
    await add_company("Acme", datetime(2024, 1, 2, 12, 0, 0))

    companies = await companies_repo.list_companies(async_db_session)

    assert [c.name for c in companies] == ["Acme", "Soylent"]


@pytest.mark.asyncio
async def test_companies_overview_counts(async_db_session, add_company, add_call_with_insights):
    acme = await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))
    globex = await add_company("Globex", datetime(2024, 1, 2, 12, 0, 0))
    await add_call_with_insights(acme, ["SSO"], call_date=datetime(2024, 1, 5, 9, 0, 0), customer_name="Wile")
    await add_call_with_insights(acme, ["Audit", "Exports"], call_date=datetime(2024, 2, 5, 9, 0, 0), customer_name="Road Runner")
    await add_call_with_insights(acme, [], call_date=datetime(2024, 1, 20, 9, 0, 0))

    overview = await companies_repo.get_companies_overview(async_db_session)

    by_name = {c.name: c for c in overview}
    assert by_name["Acme"].id == acme.id
    assert by_name["Acme"].call_count == 3
    assert by_name["Acme"].pain_point_count == 3
    assert by_name["Acme"].customer_type == "existing"
    assert by_name["Acme"].contact_person == "Road Runner"
    assert by_name["Acme"].last_contact_date == datetime(2024, 2, 5, 9, 0, 0)

    assert by_name["Globex"].id == globex.id
    assert by_name["Globex"].call_count == 0
    assert by_name["Globex"].customer_type == "new"
    assert by_name["Globex"].last_contact_date is None


@pytest.mark.asyncio
async def test_resolve_company_prefers_duplicate_with_most_calls(async_db_session, add_company, add_call_with_insights):
    busy = await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))
    await add_company("ACME", datetime(2024, 3, 1, 12, 0, 0))
    await add_call_with_insights(busy, ["SSO"])
    await add_call_with_insights(busy, ["Audit"])

    assert await companies_repo.resolve_company_id(async_db_session, "acme") == busy.id


@pytest.mark.asyncio
async def test_resolve_company_without_calls_uses_newest(async_db_session, add_company):
    await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))
    newest = await add_company("acme", datetime(2024, 3, 1, 12, 0, 0))

    assert await companies_repo.resolve_company_id(async_db_session, "ACME") == newest.id


@pytest.mark.asyncio
async def test_resolve_unknown_company(async_db_session):
    with pytest.raises(CompanyNotFound):
        await companies_repo.resolve_company_id(async_db_session, "Nobody Inc")


@pytest.mark.asyncio
async def test_company_analysis_by_name(async_db_session, add_company, add_call_with_insights):
    acme = await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))
    older = await add_call_with_insights(acme, ["SSO"], call_date=datetime(2024, 1, 5, 9, 0, 0))
    newer = await add_call_with_insights(acme, ["Audit"], call_date=datetime(2024, 2, 5, 9, 0, 0))

    analysis = await companies_repo.get_company_analysis(async_db_session, company_name=" acme ")

    assert analysis.company_id == acme.id
    assert [c.id for c in analysis.calls] == [newer.id, older.id]
    assert sorted(i.pain_point_description for i in analysis.insights) == ["Audit", "SSO"]


@pytest.mark.asyncio
async def test_company_analysis_without_calls(async_db_session, add_company):
    acme = await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))

    analysis = await companies_repo.get_company_analysis(async_db_session, company_id=acme.id)

    assert analysis.calls == []
    assert analysis.insights == []


@pytest.mark.asyncio
async def test_company_analysis_unknown_id(async_db_session):
    with pytest.raises(CompanyNotFound):
        await companies_repo.get_company_analysis(async_db_session, company_id=404)


@pytest.mark.asyncio
async def test_company_analysis_requires_an_identifier(async_db_session):
    with pytest.raises(ValueError):
        await companies_repo.get_company_analysis(async_db_session)


@pytest.mark.asyncio
async def test_all_insights_skips_failing_company(async_db_session, add_company, add_call_with_insights):
    acme = await add_company("Acme", datetime(2024, 1, 1, 12, 0, 0))
    globex = await add_company("Globex", datetime(2024, 1, 2, 12, 0, 0))
    await add_call_with_insights(acme, ["SSO"])
    await add_call_with_insights(globex, ["Invoicing"])
    acme_id = acme.id

    real_get_company_analysis = companies_repo.get_company_analysis

    async def flaky_get_company_analysis(db, company_id=None, company_name=None):
        if company_id == acme_id:
            raise CompanyNotFound(f"Company not found: {company_id}")
        return await real_get_company_analysis(db, company_id=company_id, company_name=company_name)

    with patch.object(companies_repo, "get_company_analysis", side_effect=flaky_get_company_analysis):
        result = await companies_repo.collect_all_company_analysis(async_db_session)

    assert [c.name for c in result.companies] == ["Acme", "Globex"]
    assert result.failed_company_ids == [acme_id]
    assert [i.pain_point_description for i in result.insights] == ["Invoicing"]
    assert len(result.calls) == 1
