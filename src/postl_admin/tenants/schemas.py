"""Pydantic schemas for tenant (shop) records."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class Tenant(BaseModel):
    """A shop record as stored in the tenants table.

    ``active`` is cached state; a shop is only live while
    ``expired_at >= now``.
    """

    id: str
    name: str = ""
    owner_name: Optional[str] = None
    email: Optional[str] = None
    owner_id: Optional[str] = None
    logo_url: Optional[str] = None
    start_date: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    active: bool = False
    created_at: Optional[datetime] = None

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def _as_str(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("start_date", "expired_at", "created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
