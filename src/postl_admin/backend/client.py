"""
BackendClient: async client for the hosted backend-as-a-service.

Speaks the backend's table API (``/rest/v1``) and identity admin API
(``/auth/v1/admin``). Every call is attempted once; failures raise
BackendError with the backend's own message.
"""

from typing import Any, Optional

import httpx

from postl_admin.common.exceptions import BackendError
from postl_admin.common.logging import get_logger

logger = get_logger("backend")

REST_PREFIX = "/rest/v1"
ADMIN_USERS_PATH = "/auth/v1/admin/users"

_RETURN_ROWS = {"Prefer": "return=representation"}


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {resp.status_code}"


class BackendClient:
    """Async HTTP client bound to one backend key."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Backend %s %s failed: %s", method, path, e)
            raise BackendError(str(e) or e.__class__.__name__) from e
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning(
                "Backend %s %s returned %s: %s", method, path, resp.status_code, message,
                extra={"status": resp.status_code},
            )
            raise BackendError(message, status_code=resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ── Tables ──

    async def select(
        self, table: str, columns: str = "*", order: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Select rows; ``order`` uses the ``column.desc`` form."""
        params = {"select": columns}
        if order:
            params["order"] = order
        return await self._request("GET", f"{REST_PREFIX}/{table}", params=params) or []

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert rows and return them as stored."""
        return await self._request(
            "POST", f"{REST_PREFIX}/{table}", json=rows, headers=_RETURN_ROWS,
        ) or []

    async def update(
        self, table: str, values: dict[str, Any], row_id: str
    ) -> list[dict[str, Any]]:
        """Update the row with ``id = row_id``; returns the affected rows."""
        return await self._request(
            "PATCH", f"{REST_PREFIX}/{table}",
            params={"id": f"eq.{row_id}"}, json=values, headers=_RETURN_ROWS,
        ) or []

    async def delete(self, table: str, row_id: str) -> list[dict[str, Any]]:
        """Delete the row with ``id = row_id``; returns the removed rows."""
        return await self._request(
            "DELETE", f"{REST_PREFIX}/{table}",
            params={"id": f"eq.{row_id}"}, headers=_RETURN_ROWS,
        ) or []

    # ── Identity admin ──

    async def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an identity account; returns the account object."""
        body = {
            "email": email,
            "password": password,
            "email_confirm": email_confirm,
            "user_metadata": user_metadata or {},
        }
        data = await self._request("POST", ADMIN_USERS_PATH, json=body)
        # Some deployments wrap the account in {"user": {...}}.
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            return data["user"]
        return data or {}

    async def update_user_by_id(
        self, user_id: str, attributes: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._request(
            "PUT", f"{ADMIN_USERS_PATH}/{user_id}", json=attributes,
        ) or {}

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"{ADMIN_USERS_PATH}/{user_id}")

    # ── Lifecycle ──

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()
