"""Tenant liveness: expiration checks, reconciliation, list filtering."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from postl_admin.common.logging import get_logger
from postl_admin.tenants.schemas import Tenant

logger = get_logger("tenants.status")

VIEW_DASHBOARD = "dashboard"
VIEW_ALL = "all"
VIEW_LOCKED = "locked"
VIEWS = (VIEW_DASHBOARD, VIEW_ALL, VIEW_LOCKED)

STATUS_ACTIVE = "active"
STATUS_EXPIRED = "expired"
STATUS_LOCKED = "locked"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(tenant: Tenant, now: Optional[datetime] = None) -> bool:
    """True when the contract has ended. No expiration counts as ended."""
    if tenant.expired_at is None:
        return True
    return tenant.expired_at < (now or utcnow())


def is_locked(tenant: Tenant, now: Optional[datetime] = None) -> bool:
    """Locked = switched off by hand or past expiration.

    Re-derives expiration instead of trusting the stored flag, so a shop
    the reconciler has not corrected yet is still shown as locked.
    """
    return not tenant.active or is_expired(tenant, now)


def status_of(tenant: Tenant, now: Optional[datetime] = None) -> str:
    if is_expired(tenant, now):
        return STATUS_EXPIRED
    return STATUS_ACTIVE if tenant.active else STATUS_LOCKED


def stale_tenants(tenants: Iterable[Tenant], now: Optional[datetime] = None) -> list[Tenant]:
    """Tenants still flagged active although their contract has expired."""
    now = now or utcnow()
    return [t for t in tenants if t.active and is_expired(t, now)]


async def reconcile(
    tenants: Sequence[Tenant], repository, now: Optional[datetime] = None
) -> list[Tenant]:
    """Flip stale ``active`` flags off, locally and in storage.

    The returned list always carries the corrected flag. The storage
    writes are best effort: a failed write is logged and picked up again
    on the next load, since writing ``active = false`` twice is harmless.
    """
    now = now or utcnow()
    stale = {t.id for t in stale_tenants(tenants, now)}
    if not stale:
        return list(tenants)

    corrected = [
        t.model_copy(update={"active": False}) if t.id in stale else t
        for t in tenants
    ]
    ids = [t.id for t in tenants if t.id in stale]
    outcomes = await asyncio.gather(
        *(repository.update(tenant_id, {"active": False}) for tenant_id in ids),
        return_exceptions=True,
    )
    for tenant_id, outcome in zip(ids, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(
                "Could not deactivate expired tenant: %s", outcome,
                extra={"tenant_id": tenant_id},
            )
        else:
            logger.info("Deactivated expired tenant", extra={"tenant_id": tenant_id})
    return corrected


def _contains(value: Optional[str], term: str) -> bool:
    return value is not None and term in value.lower()


def filter_tenants(
    tenants: Sequence[Tenant],
    view: str = VIEW_ALL,
    query: str = "",
    now: Optional[datetime] = None,
) -> list[Tenant]:
    """Tenants shown for a view and search term, in stored order."""
    now = now or utcnow()
    filtered = list(tenants)
    if view == VIEW_LOCKED:
        filtered = [t for t in filtered if is_locked(t, now)]

    if query.strip():
        term = query.lower()
        filtered = [
            t for t in filtered
            if _contains(t.name, term)
            or _contains(t.owner_name, term)
            or _contains(t.email, term)
        ]
    return filtered


def locked_count(tenants: Iterable[Tenant], now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    return sum(1 for t in tenants if is_locked(t, now))


@dataclass(frozen=True)
class TenantStats:
    total: int
    active: int
    inactive: int


def tenant_stats(tenants: Sequence[Tenant]) -> TenantStats:
    """Overview counters, by stored flag."""
    active = sum(1 for t in tenants if t.active)
    return TenantStats(total=len(tenants), active=active, inactive=len(tenants) - active)
