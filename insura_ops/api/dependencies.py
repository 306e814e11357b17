"""Dependency injection for the diagnostics API.

Backend clients are created once in the application lifespan and read from
``app.state``. Caller identity comes from the bearer token, verified against
the auth API; admin checks read the caller's profile.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from insura_ops.core.config import Settings, settings
from insura_ops.core.exceptions import AuthApiError
from insura_ops.database import BackendClients
from insura_ops.database.client import SupabaseClient
from insura_ops.schemas.auth import AuthUser
from insura_ops.schemas.entities import UserProfile
from insura_ops.schemas.enums import UserRole
from insura_ops.services.privileged_profiles import get_profile_with_service_key
from insura_ops.services.user_profile_service import UserProfileService
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_settings() -> Settings:
    return settings


async def get_backend_clients(request: Request) -> BackendClients:
    """Backend clients created at startup.

    Raises:
        HTTPException: 503 if the backend is not configured
    """
    clients: Optional[BackendClients] = getattr(request.app.state, "backend_clients", None)
    if clients is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Backend is not configured",
        )
    return clients


async def get_access_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(
    token: Annotated[str, Depends(get_access_token)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
) -> AuthUser:
    """Resolve the caller from their access token.

    Args:
        token: Bearer access token
        clients: Backend clients

    Returns:
        AuthUser: The verified caller

    Raises:
        HTTPException: 401 if the auth API rejects the token
    """
    try:
        return await clients.restricted.auth.get_user(token)
    except AuthApiError as e:
        LOGGER.warning(f"Rejected access token: {e.message}", extra={"status_code": e.status_code})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def user_scoped_client(clients: BackendClients, token: str) -> SupabaseClient:
    """A restricted handle that acts as the token's user for one request."""
    base = clients.restricted
    client = SupabaseClient(base.url, base.api_key, timeout=base.timeout, transport=base.transport)
    client.set_access_token(token)
    return client


async def get_current_profile(
    user: Annotated[AuthUser, Depends(get_current_user)],
    token: Annotated[str, Depends(get_access_token)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
) -> Optional[UserProfile]:
    if clients.has_service_key():
        result = await get_profile_with_service_key(clients.privileged, user.id)
    else:
        result = await UserProfileService(user_scoped_client(clients, token)).find_by_user_id(user.id)

    if not result.success:
        LOGGER.error(f"Profile lookup failed for {user.id}: {result.error.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error.message)
    return result.data


async def require_admin(
    user: Annotated[AuthUser, Depends(get_current_user)],
    profile: Annotated[Optional[UserProfile], Depends(get_current_profile)],
) -> AuthUser:
    """Allow only callers whose profile role is admin.

    Raises:
        HTTPException: 403 if the caller has no profile or is not an admin
    """
    if profile is None or profile.role != UserRole.ADMIN:
        LOGGER.warning(f"Admin access denied for {user.id}", extra={"role": profile.role.value if profile else None})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
