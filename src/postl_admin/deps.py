"""Dependency injection singletons for PosTL Admin."""

from postl_admin.backend.client import BackendClient
from postl_admin.common.config import get_settings
from postl_admin.tenants.repository import BackendTenantRepository, TenantRepository
from postl_admin.tenants.service import TenantService
from postl_admin.tenants.state import AdminStateStore

_public_client: BackendClient | None = None
_admin_client: BackendClient | None = None
_repository: TenantRepository | None = None
_tenants: TenantService | None = None
_state: AdminStateStore | None = None


def get_public_client() -> BackendClient:
    global _public_client
    if _public_client is None:
        settings = get_settings()
        settings.require_backend()
        _public_client = BackendClient(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.request_timeout,
        )
    return _public_client


def get_admin_client() -> BackendClient:
    global _admin_client
    if _admin_client is None:
        settings = get_settings()
        settings.require_backend()
        _admin_client = BackendClient(
            settings.supabase_url,
            settings.admin_api_key,
            timeout=settings.request_timeout,
        )
    return _admin_client


def get_tenant_repository() -> TenantRepository:
    global _repository
    if _repository is None:
        settings = get_settings()
        _repository = BackendTenantRepository(
            get_public_client(),
            get_admin_client(),
            tenants_table=settings.tenants_table,
            profiles_table=settings.profiles_table,
        )
    return _repository


def set_tenant_repository(repository: TenantRepository) -> None:
    """Swap in another repository (for testing)."""
    global _repository, _tenants
    _repository = repository
    _tenants = None


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        settings = get_settings()
        _tenants = TenantService(
            get_tenant_repository(),
            default_password=settings.default_password,
            account_role=settings.account_role,
            compensate_orphaned_accounts=settings.compensate_orphaned_accounts,
        )
    return _tenants


def get_state_store() -> AdminStateStore:
    global _state
    if _state is None:
        _state = AdminStateStore()
    return _state


async def close_clients() -> None:
    global _public_client, _admin_client
    for client in (_public_client, _admin_client):
        if client is not None:
            await client.close()
    _public_client = None
    _admin_client = None


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _public_client, _admin_client, _repository, _tenants, _state
    _public_client = None
    _admin_client = None
    _repository = None
    _tenants = None
    _state = None
