"""Profile operations that bypass row-level security.

Each function takes the privileged client explicitly. When no service-role
key is configured the caller passes ``None`` and gets a "Service role key not
available" error back without any network call.
"""

from typing import Any, Dict, Optional, Union

from insura_ops.core.exceptions import ServiceKeyUnavailableError
from insura_ops.database import BackendClients
from insura_ops.database.client import SupabaseClient
from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.schemas.entities import UserProfile, UserProfileCreate, UserProfileUpdate
from insura_ops.services.user_profile_service import UserProfileService
from insura_ops.utils.errors import get_friendly_error_message
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


def has_service_key(clients: BackendClients) -> bool:
    return clients.has_service_key()


def _unavailable() -> ServiceResult:
    LOGGER.warning("Privileged profile operation requested without a service role key")
    return ServiceResult.fail(get_friendly_error_message(ServiceKeyUnavailableError()))


async def create_profile_with_service_key(
    service_client: Optional[SupabaseClient],
    data: Union[UserProfileCreate, Dict[str, Any]],
) -> ServiceResult[UserProfile]:
    """Create a profile with the service role (defaults: role client, empty preferences)."""
    if service_client is None:
        return _unavailable()
    LOGGER.info("Creating profile with service role key (RLS bypass)")
    return await UserProfileService(service_client).create(data)


async def get_profile_with_service_key(
    service_client: Optional[SupabaseClient], user_id: str
) -> ServiceResult[Optional[UserProfile]]:
    if service_client is None:
        return _unavailable()
    return await UserProfileService(service_client).find_by_user_id(user_id)


async def get_all_profiles_with_service_key(
    service_client: Optional[SupabaseClient],
    options: Optional[QueryOptions] = None,
) -> PaginatedResult[UserProfile]:
    if service_client is None:
        LOGGER.warning("Privileged profile listing requested without a service role key")
        return PaginatedResult(error=get_friendly_error_message(ServiceKeyUnavailableError()))
    return await UserProfileService(service_client).get_all(options)


async def update_profile_with_service_key(
    service_client: Optional[SupabaseClient],
    user_id: str,
    changes: Union[UserProfileUpdate, Dict[str, Any]],
) -> ServiceResult[UserProfile]:
    if service_client is None:
        return _unavailable()
    return await UserProfileService(service_client).update_by_user_id(user_id, changes)


async def delete_profile_with_service_key(
    service_client: Optional[SupabaseClient], user_id: str
) -> ServiceResult[None]:
    if service_client is None:
        return _unavailable()
    return await UserProfileService(service_client).delete_where("user_id", user_id)
