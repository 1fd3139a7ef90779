"""Shared Pydantic schemas for PosTL Admin."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "postl-admin"
    admin_capabilities: bool = True
