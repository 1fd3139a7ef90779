"""Tenant store access over the hosted backend."""

from typing import Any, Protocol

from pydantic import ValidationError

from postl_admin.backend.client import BackendClient
from postl_admin.common.exceptions import BackendError, TenantNotFoundError
from postl_admin.tenants.schemas import Tenant


class TenantRepository(Protocol):
    """Everything the tenant logic needs from the backend."""

    async def fetch_all(self) -> list[Tenant]: ...

    async def insert(self, values: dict[str, Any]) -> Tenant: ...

    async def update(self, tenant_id: str, values: dict[str, Any]) -> None: ...

    async def delete(self, tenant_id: str) -> None: ...

    async def create_account(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> str: ...

    async def delete_account(self, account_id: str) -> None: ...

    async def reset_password(self, account_id: str, password: str) -> None: ...

    async def link_profile(self, account_id: str, tenant_id: str) -> None: ...


class BackendTenantRepository:
    """TenantRepository on two backend clients.

    ``public`` (row-level-security key) serves the tenants table;
    ``admin`` (service key) serves the identity API and profiles table.
    """

    def __init__(
        self,
        public: BackendClient,
        admin: BackendClient,
        tenants_table: str = "tenants",
        profiles_table: str = "profiles",
    ):
        self.public = public
        self.admin = admin
        self.tenants_table = tenants_table
        self.profiles_table = profiles_table

    async def fetch_all(self) -> list[Tenant]:
        """All shops, newest first."""
        rows = await self.public.select(self.tenants_table, order="created_at.desc")
        return [Tenant.model_validate(row) for row in rows]

    async def insert(self, values: dict[str, Any]) -> Tenant:
        rows = await self.public.insert(self.tenants_table, [values])
        if not rows:
            raise BackendError("Insert returned no tenant row")
        try:
            return Tenant.model_validate(rows[0])
        except ValidationError as e:
            raise BackendError(f"Unreadable tenant row: {e.error_count()} invalid field(s)") from e

    async def update(self, tenant_id: str, values: dict[str, Any]) -> None:
        await self.public.update(self.tenants_table, values, tenant_id)

    async def delete(self, tenant_id: str) -> None:
        removed = await self.public.delete(self.tenants_table, tenant_id)
        if not removed:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")

    async def create_account(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> str:
        """Create a pre-confirmed account; returns its id."""
        user = await self.admin.create_user(
            email=email, password=password, email_confirm=True, user_metadata=metadata,
        )
        account_id = user.get("id")
        if not account_id:
            raise BackendError("Account creation returned no user id")
        return str(account_id)

    async def delete_account(self, account_id: str) -> None:
        await self.admin.delete_user(account_id)

    async def reset_password(self, account_id: str, password: str) -> None:
        await self.admin.update_user_by_id(account_id, {"password": password})

    async def link_profile(self, account_id: str, tenant_id: str) -> None:
        await self.admin.update(self.profiles_table, {"tenant_id": tenant_id}, account_id)
