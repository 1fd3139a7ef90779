"""PosTL Admin: super-admin panel for shop tenants on a hosted backend."""

from postl_admin.tenants.form import TenantForm, derive_active
from postl_admin.tenants.schemas import Tenant
from postl_admin.tenants.service import TenantService, UpdateResult
from postl_admin.tenants.status import filter_tenants, is_expired, is_locked, reconcile

__all__ = [
    "Tenant",
    "TenantForm",
    "TenantService",
    "UpdateResult",
    "derive_active",
    "filter_tenants",
    "is_expired",
    "is_locked",
    "reconcile",
]
__version__ = "0.1.0"
