"""Supabase auth (GoTrue) API client.

``AuthClient`` owns the current session for one client handle and notifies
listeners when it changes. ``AdminAuthClient`` wraps the admin endpoints and
is only built for the service-role handle.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from insura_ops.core.exceptions import AuthApiError
from insura_ops.core.jwt import is_token_expired
from insura_ops.database.http import response_json, send_request
from insura_ops.schemas.auth import AuthResponse, AuthUser, Session
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AuthChangeEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


AuthListener = Callable[[AuthChangeEvent, Optional[Session]], None]


def auth_error_from_response(response: httpx.Response) -> AuthApiError:
    body = response_json(response)
    message = None
    error_code = None
    if isinstance(body, dict):
        message = (
            body.get("msg")
            or body.get("error_description")
            or body.get("message")
            or body.get("error")
        )
        error_code = body.get("error_code") or body.get("code")
    if not message:
        message = response.text or response.reason_phrase or "Auth request failed"
    return AuthApiError(
        str(message),
        status_code=response.status_code,
        error_code=str(error_code) if error_code is not None else None,
    )


def _parse_user(body: Any) -> Optional[AuthUser]:
    if not isinstance(body, dict):
        return None
    if isinstance(body.get("user"), dict):
        return AuthUser(**body["user"])
    if body.get("id"):
        return AuthUser(**body)
    return None


def _parse_auth_response(body: Any) -> AuthResponse:
    """Token responses carry ``access_token``; unconfirmed sign-ups return a bare user."""
    if isinstance(body, dict) and body.get("access_token"):
        session = Session(**body)
        return AuthResponse(user=session.user, session=session)
    return AuthResponse(user=_parse_user(body), session=None)


class _GoTrueBase:
    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth_url = f"{url.rstrip('/')}/auth/v1"
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self, bearer: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.api_key}",
            "Content-Type": "application/json",
        }

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        bearer: Optional[str] = None,
    ) -> Any:
        url = f"{self.auth_url}/{path.lstrip('/')}"
        response = await send_request(
            method,
            url,
            headers=self._headers(bearer),
            params=params,
            json=json,
            timeout=self.timeout,
            transport=self.transport,
        )
        if response.status_code >= 400:
            error = auth_error_from_response(response)
            LOGGER.warning(
                f"Auth API rejected {method} {path}: {error.message}",
                extra={"status_code": response.status_code, "error_code": error.error_code},
            )
            raise error
        return response_json(response)


class AuthClient(_GoTrueBase):
    """Session-holding auth API client."""

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_session_change: Optional[Callable[[Optional[Session]], None]] = None,
    ):
        super().__init__(url, api_key, timeout=timeout, transport=transport)
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []
        self._on_session_change = on_session_change

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Subscribe to session changes.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _store_session(self, session: Optional[Session], event: AuthChangeEvent) -> None:
        self._session = session
        if self._on_session_change:
            self._on_session_change(session)
        for listener in list(self._listeners):
            listener(event, session)

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> AuthResponse:
        params = {"redirect_to": redirect_to} if redirect_to else None
        body = await self._call(
            "POST",
            "signup",
            json={"email": email, "password": password, "data": data or {}},
            params=params,
        )
        result = _parse_auth_response(body)
        if result.session:
            self._store_session(result.session, AuthChangeEvent.SIGNED_IN)
        return result

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        """Exchange credentials for a session.

        Raises:
            AuthApiError: If the credentials are rejected
        """
        body = await self._call(
            "POST",
            "token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        result = _parse_auth_response(body)
        self._store_session(result.session, AuthChangeEvent.SIGNED_IN)
        return result

    async def refresh_session(self, refresh_token: Optional[str] = None) -> AuthResponse:
        token = refresh_token or (self._session.refresh_token if self._session else None)
        if not token:
            raise AuthApiError("Refresh token not found", status_code=400)
        body = await self._call(
            "POST",
            "token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": token},
        )
        result = _parse_auth_response(body)
        self._store_session(result.session, AuthChangeEvent.TOKEN_REFRESHED)
        return result

    async def set_session(self, access_token: str, refresh_token: str) -> Optional[Session]:
        """Adopt an existing token pair, refreshing it when the access token has expired."""
        if is_token_expired(access_token):
            result = await self.refresh_session(refresh_token)
            return result.session
        user = await self.get_user(access_token)
        session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._store_session(session, AuthChangeEvent.SIGNED_IN)
        return session

    async def get_session(self) -> Optional[Session]:
        """Return the stored session, refreshed first if its access token has expired."""
        if self._session is None:
            return None
        if is_token_expired(self._session.access_token):
            LOGGER.info("Access token expired, refreshing session")
            result = await self.refresh_session()
            return result.session
        return self._session

    async def sign_out(self) -> None:
        """End the session locally; the remote revoke is best effort."""
        session = self._session
        try:
            if session:
                await self._call("POST", "logout", bearer=session.access_token)
        except AuthApiError as e:
            LOGGER.warning(f"Remote sign-out failed, clearing local session anyway: {e.message}")
        finally:
            self._store_session(None, AuthChangeEvent.SIGNED_OUT)

    async def get_user(self, access_token: Optional[str] = None) -> AuthUser:
        token = access_token or (self._session.access_token if self._session else None)
        if not token:
            raise AuthApiError("Auth session missing!", status_code=401)
        body = await self._call("GET", "user", bearer=token)
        return AuthUser(**body)

    async def update_user(self, attributes: Dict[str, Any]) -> AuthUser:
        """Update the signed-in user's email, password or metadata."""
        if not self._session:
            raise AuthApiError("Auth session missing!", status_code=401)
        body = await self._call("PUT", "user", json=attributes, bearer=self._session.access_token)
        user = AuthUser(**body)
        self._store_session(
            self._session.model_copy(update={"user": user}), AuthChangeEvent.USER_UPDATED
        )
        return user

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._call("POST", "recover", json={"email": email}, params=params)

    async def sign_in_with_otp(self, email: str, create_user: bool = False) -> None:
        await self._call("POST", "otp", json={"email": email, "create_user": create_user})

    async def verify_otp(self, email: str, token: str, type: str = "email") -> AuthResponse:
        body = await self._call("POST", "verify", json={"email": email, "token": token, "type": type})
        result = _parse_auth_response(body)
        if result.session:
            self._store_session(result.session, AuthChangeEvent.SIGNED_IN)
        return result

    async def resend(self, email: str, type: str = "signup", redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._call("POST", "resend", json={"email": email, "type": type}, params=params)

    async def health(self) -> Dict[str, Any]:
        return await self._call("GET", "health") or {}


class AdminAuthClient(_GoTrueBase):
    """Admin auth endpoints; requires the service-role key."""

    async def list_users(self, page: int = 1, per_page: int = 50) -> List[AuthUser]:
        body = await self._call("GET", "admin/users", params={"page": page, "per_page": per_page})
        users = body.get("users", []) if isinstance(body, dict) else body or []
        return [AuthUser(**u) for u in users]

    async def get_user_by_id(self, user_id: str) -> AuthUser:
        body = await self._call("GET", f"admin/users/{user_id}")
        return AuthUser(**body)

    async def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirm: bool = True,
        user_metadata: Optional[Dict[str, Any]] = None,
    ) -> AuthUser:
        body = await self._call(
            "POST",
            "admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        return AuthUser(**body)

    async def update_user_by_id(self, user_id: str, attributes: Dict[str, Any]) -> AuthUser:
        body = await self._call("PUT", f"admin/users/{user_id}", json=attributes)
        return AuthUser(**body)

    async def delete_user(self, user_id: str) -> None:
        await self._call("DELETE", f"admin/users/{user_id}")
