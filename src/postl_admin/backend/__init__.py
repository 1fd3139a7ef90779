"""HTTP access to the hosted table and identity backend."""

from postl_admin.backend.client import BackendClient

__all__ = ["BackendClient"]
