"""Shared template context helpers for the dashboard."""

from postl_admin.tenants.state import AdminState
from postl_admin.tenants.status import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_LOCKED,
    VIEW_ALL,
    VIEW_DASHBOARD,
    VIEW_LOCKED,
    utcnow,
)

NAV_ITEMS = [
    {"label": "Overview", "url": "/dashboard/", "icon": "home", "view": VIEW_DASHBOARD},
    {"label": "All shops", "url": "/dashboard/shops", "icon": "store", "view": VIEW_ALL},
    {"label": "Locked shops", "url": "/dashboard/shops/locked", "icon": "ban",
     "view": VIEW_LOCKED, "badge": True},
]

HEADINGS = {
    VIEW_DASHBOARD: "Dashboard",
    VIEW_ALL: "Shops",
    VIEW_LOCKED: "Locked shops",
}

STATUS_LABELS = {
    STATUS_ACTIVE: "Active",
    STATUS_EXPIRED: "Expired",
    STATUS_LOCKED: "Locked",
}


def table_context(state: AdminState) -> dict:
    """Context for the shop table partial and the locked-count badge."""
    now = utcnow()
    return {
        "state": state,
        "now": now,
        "tenants": state.display_tenants(now),
        "locked_count": state.locked_count(now),
        "status_labels": STATUS_LABELS,
    }


def base_context(state: AdminState) -> dict:
    """Build the base template context with nav items and counters."""
    nav = [dict(item, active=item["view"] == state.view) for item in NAV_ITEMS]
    ctx = table_context(state)
    ctx.update({
        "nav_items": nav,
        "heading": HEADINGS.get(state.view, ""),
    })
    return ctx
