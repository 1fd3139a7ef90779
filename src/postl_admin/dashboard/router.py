"""Dashboard sub-application: routes and handlers."""

import json
import pathlib
from datetime import date, datetime, timezone

from fastapi import FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.base import BaseHTTPMiddleware

from postl_admin.common.exceptions import PostlError, ProfileLinkError
from postl_admin.dashboard.auth import (
    COOKIE_NAME,
    MAX_AGE,
    check_dashboard_key,
    create_session_cookie,
    get_session,
    login_redirect,
)
from postl_admin.dashboard.context import base_context, table_context
from postl_admin.tenants.form import TenantForm
from postl_admin.tenants.state import AdminState
from postl_admin.tenants.status import VIEW_ALL, VIEW_DASHBOARD, VIEW_LOCKED, status_of

_DIR = pathlib.Path(__file__).parent
_TEMPLATES_DIR = _DIR / "templates"
_STATIC_DIR = _DIR / "static"


def _format_day(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.astimezone(timezone.utc).strftime("%d/%m/%Y")


templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
templates.env.filters["ddmmyyyy"] = _format_day
templates.env.globals["status_of"] = status_of


# ── Auth middleware ──


class DashboardAuthMiddleware(BaseHTTPMiddleware):
    """Redirect unauthenticated requests to login page."""

    async def dispatch(self, request, call_next):
        path = request.url.path
        # Allow login page and static assets
        if path == "/dashboard/login" or path.startswith("/dashboard/static"):
            return await call_next(request)
        session = get_session(request)
        if session is None:
            return login_redirect()
        request.state.session = session
        return await call_next(request)


# ── Helpers ──


def _get_tenant_service():
    from postl_admin.deps import get_tenant_service
    return get_tenant_service()


def _get_store():
    from postl_admin.deps import get_state_store
    return get_state_store()


def _get_settings():
    from postl_admin.common.config import get_settings
    return get_settings()


def _today() -> date:
    return date.today()


def _is_htmx(request: Request) -> bool:
    return request.headers.get("HX-Request") == "true"


def _flash(response, message: str, level: str = "success", close_modal: bool = False):
    """Set HX-Trigger header for flash messages."""
    events = {"showFlash": {"message": message, "level": level}}
    if close_modal:
        events["closeModal"] = True
    response.headers["HX-Trigger"] = json.dumps(events)
    return response


async def _refresh() -> AdminState:
    """Refetch the full list (with reconciliation) into the state store."""
    store = _get_store()
    store.apply("fetch_started")
    tenants = await _get_tenant_service().load()
    if tenants is None:
        return store.apply("fetch_failed")
    return store.apply("fetch_completed", tenants)


def _list_page(request: Request, state: AdminState, error: str | None = None):
    ctx = base_context(state)
    ctx["error"] = error
    ctx["show_modal"] = error is not None
    return templates.TemplateResponse(request, "shops/list.html", ctx)


def _table_response(
    request: Request,
    state: AdminState,
    message: str,
    level: str = "success",
    close_modal: bool = False,
):
    ctx = table_context(state)
    ctx["oob"] = True
    resp = templates.TemplateResponse(request, "shops/_table_response.html", ctx)
    return _flash(resp, message, level, close_modal=close_modal)


def _form_rejected(request: Request, form: TenantForm, error: str):
    """Keep the modal open with the submitted values and the error."""
    state = _get_store().apply("form_rejected", form)
    if _is_htmx(request):
        resp = templates.TemplateResponse(
            request, "shops/_form.html", {"state": state, "error": error},
        )
        resp.headers["HX-Retarget"] = "#modal"
        resp.headers["HX-Reswap"] = "innerHTML"
        return _flash(resp, error, "error")
    return _list_page(request, state, error=error)


# ── App factory ──


def create_dashboard_app() -> FastAPI:
    """Create the dashboard FastAPI sub-application."""
    app = FastAPI(docs_url=None, openapi_url=None, redoc_url=None)
    app.add_middleware(DashboardAuthMiddleware)
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="dashboard-static")

    # ────────────────────────────────────────────
    # Auth routes
    # ────────────────────────────────────────────

    @app.get("/login", response_class=HTMLResponse)
    async def login_page(request: Request):
        return templates.TemplateResponse(request, "login.html", {"error": None})

    @app.post("/login")
    async def login_submit(request: Request, dashboard_key: str = Form(...)):
        if not check_dashboard_key(dashboard_key):
            return templates.TemplateResponse(
                request, "login.html", {"error": "Invalid dashboard key"},
                status_code=401,
            )

        response = RedirectResponse("/dashboard/", status_code=302)
        response.set_cookie(
            COOKIE_NAME, create_session_cookie(), max_age=MAX_AGE,
            httponly=True, samesite="lax",
        )
        return response

    @app.post("/logout")
    async def logout():
        response = RedirectResponse("/dashboard/login", status_code=302)
        response.delete_cookie(COOKIE_NAME)
        return response

    # ────────────────────────────────────────────
    # Overview
    # ────────────────────────────────────────────

    @app.get("/", response_class=HTMLResponse)
    async def overview(request: Request):
        _get_store().apply("view_selected", VIEW_DASHBOARD)
        state = await _refresh()
        ctx = base_context(state)
        ctx["stats"] = state.stats()
        return templates.TemplateResponse(request, "overview.html", ctx)

    # ────────────────────────────────────────────
    # Shop lists
    # ────────────────────────────────────────────

    async def _shops_page(request: Request, view: str, q: str):
        store = _get_store()
        store.apply("view_selected", view)
        if q:
            store.apply("search_changed", q)
        state = await _refresh()
        return _list_page(request, state)

    @app.get("/shops", response_class=HTMLResponse)
    async def shops_page(request: Request, q: str = Query("")):
        return await _shops_page(request, VIEW_ALL, q)

    @app.get("/shops/locked", response_class=HTMLResponse)
    async def locked_shops_page(request: Request, q: str = Query("")):
        return await _shops_page(request, VIEW_LOCKED, q)

    @app.get("/shops/table", response_class=HTMLResponse)
    async def shops_table(request: Request, q: str = Query(""), view: str = Query(VIEW_ALL)):
        # Search filters the list already loaded; no refetch.
        if view not in (VIEW_ALL, VIEW_LOCKED):
            return HTMLResponse("Unknown view", status_code=400)
        store = _get_store()
        store.apply("view_selected", view)
        state = store.apply("search_changed", q)
        return templates.TemplateResponse(request, "shops/_table.html", table_context(state))

    # ────────────────────────────────────────────
    # Modal
    # ────────────────────────────────────────────

    @app.get("/shops/new", response_class=HTMLResponse)
    async def new_shop_form(request: Request):
        settings = _get_settings()
        form = TenantForm.blank(
            _today(),
            password=settings.default_password,
            years=settings.default_contract_years,
        )
        state = _get_store().apply("create_opened", form)
        return templates.TemplateResponse(
            request, "shops/_form.html", {"state": state, "error": None},
        )

    @app.get("/shops/{tenant_id}/edit", response_class=HTMLResponse)
    async def edit_shop_form(request: Request, tenant_id: str):
        store = _get_store()
        tenant = store.state.find(tenant_id)
        if tenant is None:
            return HTMLResponse("Not found", status_code=404)
        state = store.apply("edit_opened", tenant.id, TenantForm.from_tenant(tenant, _today()))
        return templates.TemplateResponse(
            request, "shops/_form.html", {"state": state, "error": None},
        )

    @app.get("/modal/close", response_class=HTMLResponse)
    async def close_modal():
        _get_store().apply("modal_closed")
        return HTMLResponse("")

    # ────────────────────────────────────────────
    # Mutations
    # ────────────────────────────────────────────

    @app.post("/shops", response_class=HTMLResponse)
    async def create_shop(
        request: Request,
        name: str = Form(""),
        owner: str = Form(""),
        email: str = Form(""),
        password: str = Form(""),
        start_date: str = Form(""),
        end_date: str = Form(""),
    ):
        form = TenantForm(
            name=name, owner=owner, email=email, password=password,
            start_date=start_date, end_date=end_date,
        )
        message, level = "Shop created", "success"
        try:
            await _get_tenant_service().create(form, _today())
        except ProfileLinkError as e:
            # The shop exists already; resubmitting would only collide.
            message, level = e.message, "error"
        except PostlError as e:
            return _form_rejected(request, form, e.message)

        _get_store().apply("modal_closed")
        state = await _refresh()
        if _is_htmx(request):
            return _table_response(request, state, message, level, close_modal=True)
        return RedirectResponse("/dashboard/shops", status_code=303)

    @app.patch("/shops/{tenant_id}", response_class=HTMLResponse)
    async def update_shop(
        request: Request,
        tenant_id: str,
        name: str = Form(""),
        owner: str = Form(""),
        email: str = Form(""),
        password: str = Form(""),
        start_date: str = Form(""),
        end_date: str = Form(""),
    ):
        form = TenantForm(
            name=name, owner=owner, email=email, password=password,
            start_date=start_date, end_date=end_date,
        )
        current = _get_store().state.find(tenant_id)
        owner_id = current.owner_id if current else None
        try:
            result = await _get_tenant_service().update(
                tenant_id, form, _today(), owner_id=owner_id,
            )
        except PostlError as e:
            return _form_rejected(request, form, e.message)

        _get_store().apply("modal_closed")
        state = await _refresh()
        return _table_response(
            request, state, result.message,
            level="success" if result.ok else "error",
            close_modal=True,
        )

    @app.post("/shops/{tenant_id}/toggle", response_class=HTMLResponse)
    async def toggle_shop(request: Request, tenant_id: str, active: bool = Form(...)):
        try:
            now_active = await _get_tenant_service().toggle(tenant_id, active)
        except PostlError as e:
            message, level = f"Error: {e.message}", "error"
        else:
            message, level = ("Shop unlocked" if now_active else "Shop locked"), "success"
        state = await _refresh()
        return _table_response(request, state, message, level)

    @app.delete("/shops/{tenant_id}", response_class=HTMLResponse)
    async def delete_shop(request: Request, tenant_id: str):
        try:
            await _get_tenant_service().delete(tenant_id)
        except PostlError as e:
            message, level = f"Delete failed: {e.message}", "error"
        else:
            message, level = "Shop deleted", "success"
        state = await _refresh()
        return _table_response(request, state, message, level)

    return app
