"""Tenant (shop) management operations."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import AsyncIterator, Optional

from pydantic import ValidationError

from postl_admin.common.exceptions import (
    BackendError,
    PostlError,
    ProfileLinkError,
    SubmissionInProgressError,
)
from postl_admin.common.logging import get_logger
from postl_admin.tenants.form import TenantForm
from postl_admin.tenants.repository import TenantRepository
from postl_admin.tenants.schemas import Tenant
from postl_admin.tenants.status import reconcile

logger = get_logger("tenants.service")


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of an edit. The password step is reported on its own."""

    password_requested: bool = False
    password_changed: bool = False
    password_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.password_error is None

    @property
    def message(self) -> str:
        if self.password_error:
            return f"Shop updated, but the password change failed: {self.password_error}"
        if self.password_changed:
            return "Shop updated and password changed"
        return "Shop updated"


class TenantService:
    """Loads, creates, edits, locks and deletes shops."""

    def __init__(
        self,
        repository: TenantRepository,
        default_password: str = "123456",
        account_role: str = "tenant_admin",
        compensate_orphaned_accounts: bool = True,
    ):
        self.repository = repository
        self.default_password = default_password
        self.account_role = account_role
        self.compensate_orphaned_accounts = compensate_orphaned_accounts
        self._submit_lock = asyncio.Lock()

    @asynccontextmanager
    async def _submission(self) -> AsyncIterator[None]:
        if self._submit_lock.locked():
            raise SubmissionInProgressError()
        async with self._submit_lock:
            yield

    async def load(self) -> Optional[list[Tenant]]:
        """Fetch every shop and reconcile expired ones.

        Returns None when the fetch fails; the caller keeps what it shows.
        """
        try:
            tenants = await self.repository.fetch_all()
        except PostlError as e:
            logger.error("Failed to load tenants: %s", e.message)
            return None
        except ValidationError as e:
            logger.error("Unreadable tenant rows: %s", e)
            return None
        return await reconcile(tenants, self.repository)

    async def create(self, form: TenantForm, today: date) -> Tenant:
        """Provision the owner account, insert the shop, link the profile.

        New shops always start active, whatever the chosen dates. When the
        insert fails the new account is removed again.
        """
        form.validate_required()
        payload = form.record_payload(today)

        async with self._submission():
            account_id = await self.repository.create_account(
                form.email,
                form.account_password(self.default_password),
                {"full_name": form.owner, "role": self.account_role},
            )
            try:
                tenant = await self.repository.insert(
                    {**payload, "active": True, "owner_id": account_id}
                )
            except PostlError:
                await self._remove_orphaned_account(account_id)
                raise
            try:
                await self.repository.link_profile(account_id, tenant.id)
            except PostlError as e:
                logger.error(
                    "Profile link failed for %s: %s", account_id, e.message,
                    extra={"tenant_id": tenant.id},
                )
                raise ProfileLinkError(
                    f"Shop created, but linking the owner profile failed: {e.message}"
                ) from e

        logger.info("Created tenant %s", tenant.name, extra={"tenant_id": tenant.id})
        return tenant

    async def _remove_orphaned_account(self, account_id: str) -> None:
        if not self.compensate_orphaned_accounts:
            logger.warning("Leaving orphaned account %s in place", account_id)
            return
        try:
            await self.repository.delete_account(account_id)
        except PostlError as e:
            logger.error("Could not remove orphaned account %s: %s", account_id, e.message)
        else:
            logger.info("Removed orphaned account %s", account_id)

    async def update(
        self,
        tenant_id: str,
        form: TenantForm,
        today: date,
        owner_id: Optional[str] = None,
    ) -> UpdateResult:
        """Save edited fields, then reset the owner's password if one was typed."""
        form.validate_required()
        payload = form.record_payload(today)

        async with self._submission():
            await self.repository.update(tenant_id, payload)
            logger.info("Updated tenant", extra={"tenant_id": tenant_id})

            if not form.wants_password_reset:
                return UpdateResult()
            if not owner_id:
                return UpdateResult(
                    password_requested=True,
                    password_error="shop has no owner account",
                )
            try:
                await self.repository.reset_password(owner_id, form.password)
            except BackendError as e:
                return UpdateResult(password_requested=True, password_error=e.message)
        return UpdateResult(password_requested=True, password_changed=True)

    async def toggle(self, tenant_id: str, active: bool) -> bool:
        """Flip the stored flag from ``active``; returns the new value."""
        new_value = not active
        await self.repository.update(tenant_id, {"active": new_value})
        logger.info(
            "%s tenant", "Unlocked" if new_value else "Locked",
            extra={"tenant_id": tenant_id},
        )
        return new_value

    async def delete(self, tenant_id: str) -> None:
        """Remove a shop for good."""
        await self.repository.delete(tenant_id)
        logger.info("Deleted tenant", extra={"tenant_id": tenant_id})
