"""Shared test fixtures for PosTL Admin."""

from datetime import datetime, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from postl_admin.common.exceptions import TenantNotFoundError
from postl_admin.tenants.schemas import Tenant

BACKEND_URL = "http://backend.test"
ANON_KEY = "test-anon-key"
SERVICE_KEY = "test-service-key"
DASHBOARD_KEY = "test-dashboard-key"
SECRET_KEY = "test-secret-key"

PAST = "2000-01-01T00:00:00+00:00"
FUTURE = "2099-12-31T00:00:00+00:00"


class FakeTenantRepository:
    """In-memory TenantRepository that records every call.

    Put an exception in ``fail[method]`` to make that method raise it.
    """

    def __init__(self):
        self.tenants: list[Tenant] = []
        self.calls: list[tuple[str, tuple]] = []
        self.fail: dict[str, Exception] = {}
        self._next_id = 0

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def calls_to(self, name: str) -> list[tuple]:
        return [args for method, args in self.calls if method == name]

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def add(self, **fields: Any) -> Tenant:
        """Seed a stored tenant (newest first, like the backend ordering)."""
        values = {"id": self._new_id("t"), "name": "Shop", "expired_at": FUTURE, "active": True}
        values.update(fields)
        tenant = Tenant.model_validate(values)
        self.tenants.insert(0, tenant)
        return tenant

    def get(self, tenant_id: str) -> Tenant | None:
        return next((t for t in self.tenants if t.id == tenant_id), None)

    async def fetch_all(self) -> list[Tenant]:
        self._call("fetch_all")
        return list(self.tenants)

    async def insert(self, values: dict[str, Any]) -> Tenant:
        self._call("insert", values)
        return self.add(created_at=datetime.now(timezone.utc), **values)

    async def update(self, tenant_id: str, values: dict[str, Any]) -> None:
        self._call("update", tenant_id, values)
        for i, t in enumerate(self.tenants):
            if t.id == tenant_id:
                self.tenants[i] = Tenant.model_validate({**t.model_dump(), **values})

    async def delete(self, tenant_id: str) -> None:
        self._call("delete", tenant_id)
        if self.get(tenant_id) is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        self.tenants = [t for t in self.tenants if t.id != tenant_id]

    async def create_account(self, email: str, password: str, metadata: dict[str, Any]) -> str:
        self._call("create_account", email, password, metadata)
        return self._new_id("acct")

    async def delete_account(self, account_id: str) -> None:
        self._call("delete_account", account_id)

    async def reset_password(self, account_id: str, password: str) -> None:
        self._call("reset_password", account_id, password)

    async def link_profile(self, account_id: str, tenant_id: str) -> None:
        self._call("link_profile", account_id, tenant_id)


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Point settings at a fake backend and reset cached singletons."""
    monkeypatch.setenv("POSTL_SUPABASE_URL", BACKEND_URL)
    monkeypatch.setenv("POSTL_SUPABASE_ANON_KEY", ANON_KEY)
    monkeypatch.setenv("POSTL_SUPABASE_SERVICE_ROLE_KEY", SERVICE_KEY)
    monkeypatch.setenv("POSTL_DASHBOARD_KEY", DASHBOARD_KEY)
    monkeypatch.setenv("POSTL_SECRET_KEY", SECRET_KEY)

    from postl_admin.common.config import get_settings
    from postl_admin.deps import reset_singletons

    get_settings.cache_clear()
    reset_singletons()
    yield
    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
def repo():
    return FakeTenantRepository()


@pytest.fixture
def app(repo):
    """Create a test app wired to the in-memory repository."""
    from postl_admin.deps import set_tenant_repository
    set_tenant_repository(repo)

    from postl_admin.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def admin_client(app):
    """Client carrying a valid dashboard session cookie."""
    from postl_admin.dashboard.auth import COOKIE_NAME, create_session_cookie

    transport = ASGITransport(app=app)
    headers = {"Cookie": f"{COOKIE_NAME}={create_session_cookie()}"}
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as ac:
        yield ac


@pytest.fixture
def htmx_headers():
    return {"HX-Request": "true"}
