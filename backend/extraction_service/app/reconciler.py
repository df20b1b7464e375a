"""Map an extracted company name onto a company record."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from backend.common.models_db import Call, Company

logger = logging.getLogger(__name__)


class CompanyStore(Protocol):
    async def find_companies_by_name_ci(self, name: str) -> list[Company]: ...

    async def create_company(self, name: str) -> Company: ...

    async def list_calls_by_company(self, company_id: int) -> list[Call]: ...

    async def delete_insights_by_call_ids(self, call_ids: list[int]) -> int: ...


ReimportPolicy = Callable[[CompanyStore, Company], Awaitable[int]]


@dataclass
class CompanyReconciliation:
    company: Company
    created: bool
    purged_insights: int = 0


# Entries vanish once no coroutine holds or awaits the lock
_company_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def normalize_company_name(name: str) -> str:
    return " ".join(name.split()).lower()


def company_lock(name: str) -> asyncio.Lock:
    """Per-process lock serializing work on one normalized company name."""
    key = normalize_company_name(name)
    lock = _company_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _company_locks[key] = lock
    return lock


async def replace_company_insights(store: CompanyStore, company: Company) -> int:
    """Replace-on-reimport: drop insights from every prior call of the company.

    Each new analysis is treated as the authoritative replacement of the
    company's insight history, including insights on calls other than the
    one being analyzed.
    """
    calls = await store.list_calls_by_company(company.id)
    if not calls:
        return 0
    deleted = await store.delete_insights_by_call_ids([call.id for call in calls])
    logger.info(
        "Deleted %d prior insights across %d calls for company %s (id=%s)",
        deleted, len(calls), company.name, company.id,
    )
    return deleted


async def reconcile_company(
    store: CompanyStore,
    company_name: str,
    reimport_policy: ReimportPolicy = replace_company_insights,
) -> CompanyReconciliation:
    """
    Resolve ``company_name`` to a company, creating it when unknown.

    When several companies share the name (case-insensitively) the most
    recently created one wins. Reusing a company applies ``reimport_policy``
    before any new insights are written.
    """
    matches = await store.find_companies_by_name_ci(company_name)
    if not matches:
        company = await store.create_company(company_name)
        return CompanyReconciliation(company=company, created=True)

    if len(matches) > 1:
        logger.warning(
            "Multiple companies found with name %r (%d); using most recent id=%s",
            company_name, len(matches), matches[0].id,
        )
    company = matches[0]
    logger.info("Using existing company: %s (id=%s)", company.name, company.id)
    purged = await reimport_policy(store, company)
    return CompanyReconciliation(company=company, created=False, purged_insights=purged)
