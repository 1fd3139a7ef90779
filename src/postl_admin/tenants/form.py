"""Create/edit form state for the shop modal."""

from datetime import date, datetime, time, timezone
from typing import Any

from pydantic import BaseModel

from postl_admin.common.exceptions import FormValidationError
from postl_admin.tenants.schemas import Tenant


def add_years(day: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 Feb falls back to 28 Feb."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def derive_active(end_date: date, today: date) -> bool:
    """A contract ending today still counts as active."""
    return end_date >= today


def _midnight_utc(day: date) -> str:
    return datetime.combine(day, time.min, tzinfo=timezone.utc).isoformat()


def _parse_day(value: str, label: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise FormValidationError(f"Invalid {label}: {value!r}") from None


class TenantForm(BaseModel):
    """Raw field values of the shop modal. Dates are ``YYYY-MM-DD``."""

    name: str = ""
    owner: str = ""
    email: str = ""
    password: str = ""
    start_date: str = ""
    end_date: str = ""

    @classmethod
    def blank(cls, today: date, password: str = "123456", years: int = 1) -> "TenantForm":
        """Defaults for a new shop: contract from today, for ``years`` years."""
        return cls(
            password=password,
            start_date=today.isoformat(),
            end_date=add_years(today, years).isoformat(),
        )

    @classmethod
    def from_tenant(cls, tenant: Tenant, today: date) -> "TenantForm":
        """Prefill from a stored shop. The password stays blank (unchanged)."""
        def day_of(value: datetime | None) -> str:
            return value.astimezone(timezone.utc).date().isoformat() if value else ""

        return cls(
            name=tenant.name,
            owner=tenant.owner_name or "",
            email=tenant.email or "",
            password="",
            start_date=day_of(tenant.start_date) or today.isoformat(),
            end_date=day_of(tenant.expired_at),
        )

    def validate_required(self) -> None:
        if not (self.name and self.email and self.start_date and self.end_date):
            raise FormValidationError()

    @property
    def start(self) -> date:
        return _parse_day(self.start_date, "start date")

    @property
    def end(self) -> date:
        return _parse_day(self.end_date, "end date")

    @property
    def wants_password_reset(self) -> bool:
        return bool(self.password.strip())

    def account_password(self, default: str) -> str:
        return self.password or default

    def record_payload(self, today: date) -> dict[str, Any]:
        """Fields written to the tenants table.

        ``active`` is only included when the end date is not in the past;
        otherwise the stored flag is left as it is.
        """
        end = self.end
        payload: dict[str, Any] = {
            "name": self.name,
            "owner_name": self.owner,
            "email": self.email,
            "start_date": _midnight_utc(self.start),
            "expired_at": _midnight_utc(end),
        }
        if derive_active(end, today):
            payload["active"] = True
        return payload
