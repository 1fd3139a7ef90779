"""Dashboard state: immutable snapshots replaced by named transitions."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional

from postl_admin.common.logging import get_logger
from postl_admin.tenants.form import TenantForm
from postl_admin.tenants.schemas import Tenant
from postl_admin.tenants.status import (
    VIEW_ALL,
    VIEW_DASHBOARD,
    VIEWS,
    TenantStats,
    filter_tenants,
    locked_count,
    tenant_stats,
)

logger = get_logger("tenants.state")


@dataclass(frozen=True)
class AdminState:
    tenants: tuple[Tenant, ...] = ()
    view: str = VIEW_ALL
    search: str = ""
    loading: bool = False
    form: Optional[TenantForm] = None
    editing_id: Optional[str] = None

    # ── Transitions ──

    def fetch_started(self) -> "AdminState":
        return replace(self, loading=True)

    def fetch_completed(self, tenants: Iterable[Tenant]) -> "AdminState":
        return replace(self, tenants=tuple(tenants), loading=False)

    def fetch_failed(self) -> "AdminState":
        return replace(self, loading=False)

    def view_selected(self, view: str) -> "AdminState":
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view}")
        if view == VIEW_DASHBOARD:
            return replace(self, view=view)
        return replace(self, view=view, search="")

    def search_changed(self, term: str) -> "AdminState":
        return replace(self, search=term)

    def create_opened(self, form: TenantForm) -> "AdminState":
        return replace(self, form=form, editing_id=None)

    def edit_opened(self, tenant_id: str, form: TenantForm) -> "AdminState":
        return replace(self, form=form, editing_id=tenant_id)

    def form_rejected(self, form: TenantForm) -> "AdminState":
        return replace(self, form=form)

    def modal_closed(self) -> "AdminState":
        return replace(self, form=None, editing_id=None)

    # ── Derived ──

    @property
    def modal_open(self) -> bool:
        return self.form is not None

    def find(self, tenant_id: str) -> Optional[Tenant]:
        return next((t for t in self.tenants if t.id == tenant_id), None)

    def display_tenants(self, now: Optional[datetime] = None) -> list[Tenant]:
        return filter_tenants(self.tenants, self.view, self.search, now)

    def locked_count(self, now: Optional[datetime] = None) -> int:
        return locked_count(self.tenants, now)

    def stats(self) -> TenantStats:
        return tenant_stats(self.tenants)


TRANSITIONS = frozenset({
    "fetch_started",
    "fetch_completed",
    "fetch_failed",
    "view_selected",
    "search_changed",
    "create_opened",
    "edit_opened",
    "form_rejected",
    "modal_closed",
})


class AdminStateStore:
    """Holds the current snapshot; the only place it is replaced."""

    def __init__(self, initial: Optional[AdminState] = None):
        self._state = initial or AdminState()

    @property
    def state(self) -> AdminState:
        return self._state

    def apply(self, transition: str, *args, **kwargs) -> AdminState:
        if transition not in TRANSITIONS:
            raise ValueError(f"Unknown transition: {transition}")
        self._state = getattr(self._state, transition)(*args, **kwargs)
        logger.debug("State transition %s", transition)
        return self._state
