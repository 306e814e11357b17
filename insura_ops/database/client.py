"""Supabase data API client over httpx."""

from typing import Any, Dict, Optional

import httpx

from insura_ops.database.auth_client import AdminAuthClient, AuthClient
from insura_ops.database.http import response_json, send_request
from insura_ops.database.query import APIResponse, QueryBuilder, backend_error_from_response
from insura_ops.schemas.auth import Session
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

ANON_ROLE = "anon"
SERVICE_ROLE = "service_role"


class SupabaseClient:
    """Handle to one Supabase project under one API key.

    The restricted handle is built from the anonymous key and, once a user
    signs in, sends that user's access token so row-level security applies to
    them. The privileged handle is built from the service-role key, bypasses
    row-level security and additionally exposes the admin auth API.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        role: str = ANON_ROLE,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.role = role
        self.timeout = timeout
        self.transport = transport
        self.rest_url = f"{self.url}/rest/v1"
        self._access_token: Optional[str] = None

        self.auth = AuthClient(
            self.url,
            api_key,
            timeout=timeout,
            transport=transport,
            on_session_change=self._on_session_change,
        )
        self.admin: Optional[AdminAuthClient] = None
        if role == SERVICE_ROLE:
            self.admin = AdminAuthClient(self.url, api_key, timeout=timeout, transport=transport)

    @property
    def is_privileged(self) -> bool:
        return self.role == SERVICE_ROLE

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def headers(self) -> Dict[str, str]:
        bearer = self._access_token or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json",
        }

    def set_access_token(self, token: Optional[str]) -> None:
        """Act as the given user on subsequent data calls (None reverts to the API key)."""
        self._access_token = token

    def _on_session_change(self, session: Optional[Session]) -> None:
        self.set_access_token(session.access_token if session else None)

    def table(self, name: str) -> QueryBuilder:
        return QueryBuilder(self, name)

    from_ = table

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a raw request to the data API."""
        url = f"{self.rest_url}/{path.lstrip('/')}"
        LOGGER.debug(f"{method} {url}", extra={"role": self.role})
        return await send_request(
            method,
            url,
            headers={**self.headers, **(headers or {})},
            params=params,
            json=json,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> APIResponse:
        """Call a stored function.

        Raises:
            BackendError: If the backend rejects the call
        """
        response = await self.request("POST", f"rpc/{function}", json=params or {})
        if response.status_code >= 400:
            raise backend_error_from_response(response)
        return APIResponse(data=response_json(response))

    async def ping(self) -> int:
        """Reach the data API root and return the HTTP status.

        Raises:
            BackendConnectionError: If the backend cannot be reached
        """
        response = await self.request("GET", "")
        return response.status_code


__all__ = ["SupabaseClient", "ANON_ROLE", "SERVICE_ROLE"]
