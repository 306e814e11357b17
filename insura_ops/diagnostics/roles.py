"""Role verification and fixups for user profiles."""

from typing import Optional

from pydantic import BaseModel

from insura_ops.auth.redirects import Route, route_for_role
from insura_ops.database import BackendClients
from insura_ops.database.client import SupabaseClient
from insura_ops.schemas.common import ServiceResult
from insura_ops.schemas.entities import UserProfile, UserProfileCreate, UserProfileUpdate
from insura_ops.schemas.enums import UserRole
from insura_ops.services.privileged_profiles import (
    create_profile_with_service_key,
    get_profile_with_service_key,
    update_profile_with_service_key,
)
from insura_ops.services.user_profile_service import UserProfileService
from insura_ops.utils.errors import FriendlyError
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class RoleReport(BaseModel):
    user_id: str
    profile_exists: bool
    role: Optional[UserRole] = None
    full_name: Optional[str] = None
    expected_route: Route
    used_service_key: bool
    error: Optional[FriendlyError] = None


async def verify_user_role(clients: BackendClients, user_id: str) -> RoleReport:
    """Report a user's profile, role and where they would be redirected.

    Uses the privileged handle when available so row-level security does not
    hide the profile.
    """
    if clients.has_service_key():
        result = await get_profile_with_service_key(clients.privileged, user_id)
    else:
        result = await UserProfileService(clients.restricted).find_by_user_id(user_id)

    profile: Optional[UserProfile] = result.data if result.success else None
    expected = Route.PROFILE_REMEDIATION
    if profile is not None:
        expected = route_for_role(profile.role) or Route.PROFILE_REMEDIATION

    return RoleReport(
        user_id=user_id,
        profile_exists=profile is not None,
        role=profile.role if profile else None,
        full_name=profile.full_name if profile else None,
        expected_route=expected,
        used_service_key=clients.has_service_key(),
        error=result.error,
    )


async def promote_to_admin(service_client: Optional[SupabaseClient], user_id: str) -> ServiceResult[UserProfile]:
    LOGGER.info(f"Promoting {user_id} to admin")
    return await update_profile_with_service_key(service_client, user_id, UserProfileUpdate(role=UserRole.ADMIN))


async def ensure_profile(
    service_client: Optional[SupabaseClient],
    user_id: str,
    role: UserRole = UserRole.CLIENT,
    full_name: Optional[str] = None,
) -> ServiceResult[UserProfile]:
    """Create the profile if missing, or correct its role if it differs."""
    existing = await get_profile_with_service_key(service_client, user_id)
    if not existing.success:
        return existing

    if existing.data is None:
        LOGGER.info(f"Creating missing {UserRole(role).value} profile for {user_id}")
        return await create_profile_with_service_key(
            service_client, UserProfileCreate(user_id=user_id, role=role, full_name=full_name)
        )

    if existing.data.role != UserRole(role):
        LOGGER.info(f"Fixing role for {user_id}: {existing.data.role.value} -> {UserRole(role).value}")
        return await update_profile_with_service_key(service_client, user_id, UserProfileUpdate(role=role))

    return existing
