"""User administration through the admin auth API.

All operations need the privileged client; without it they return the
"Service role key not available" error.
"""

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Set

from insura_ops.core.config import settings
from insura_ops.core.exceptions import ServiceKeyUnavailableError
from insura_ops.database.client import SupabaseClient
from insura_ops.schemas.auth import AuthUser
from insura_ops.schemas.common import ServiceResult
from insura_ops.schemas.entities import UserProfile, UserProfileCreate
from insura_ops.schemas.enums import UserRole
from insura_ops.services.privileged_profiles import (
    create_profile_with_service_key,
    delete_profile_with_service_key,
)
from insura_ops.utils.errors import ErrorOperation, get_friendly_error_message, get_operation_specific_error
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class OnboardedUser:
    user: AuthUser
    profile: Optional[UserProfile] = None
    profile_pending: bool = False


class UserService:
    """Service for user administration operations."""

    def __init__(self, service_client: Optional[SupabaseClient], profile_timeout: Optional[float] = None):
        """Initialize service with the privileged client.

        Args:
            service_client: Service-role client, or None when no key is configured
            profile_timeout: Seconds to wait for profile creation during onboarding
        """
        self.service_client = service_client
        self.profile_timeout = profile_timeout if profile_timeout is not None else settings.profile_creation_timeout
        self._tasks: Set[asyncio.Future] = set()

    def _unavailable(self) -> ServiceResult:
        return ServiceResult.fail(get_friendly_error_message(ServiceKeyUnavailableError()))

    async def list_users(self, page: int = 1, per_page: int = 50) -> ServiceResult[List[AuthUser]]:
        """List auth users.

        Args:
            page: 1-based page
            per_page: Users per page

        Returns:
            ServiceResult with the users on the page
        """
        if self.service_client is None:
            return self._unavailable()
        try:
            users = await self.service_client.admin.list_users(page=page, per_page=per_page)
            return ServiceResult.ok(users)
        except Exception as e:
            LOGGER.error(f"Failed to list users: {str(e)}")
            return ServiceResult.fail(get_friendly_error_message(e))

    async def onboard_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        role: UserRole = UserRole.CLIENT,
        company_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ServiceResult[OnboardedUser]:
        """Create an auth user and their profile.

        Profile creation races a timer. If the timer wins the user is returned
        without a profile (``profile_pending``) while creation continues in the
        background. If profile creation fails outright the auth user is removed
        again.

        Returns:
            ServiceResult with the created user and, when ready, the profile
        """
        if self.service_client is None:
            return self._unavailable()

        try:
            user = await self.service_client.admin.create_user(
                email,
                password,
                email_confirm=True,
                user_metadata={"full_name": full_name, "role": UserRole(role).value},
            )
        except Exception as e:
            LOGGER.error(f"Failed to create auth user {email}: {str(e)}")
            return ServiceResult.fail(get_operation_specific_error(e, ErrorOperation.USER_CREATION))

        LOGGER.info(f"Created auth user {user.id}", extra={"email": email, "role": UserRole(role).value})

        profile_task = asyncio.ensure_future(
            create_profile_with_service_key(
                self.service_client,
                UserProfileCreate(
                    user_id=user.id,
                    role=role,
                    full_name=full_name,
                    company_id=company_id,
                    created_by=created_by,
                ),
            )
        )
        self._track(profile_task)
        try:
            profile_result = await asyncio.wait_for(asyncio.shield(profile_task), timeout=self.profile_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning(
                f"Profile creation for {user.id} still running after {self.profile_timeout}s, continuing without it"
            )
            profile_task.add_done_callback(partial(self._finish_late_profile, user.id))
            return ServiceResult.ok(OnboardedUser(user=user, profile=None, profile_pending=True))

        if not profile_result.success:
            LOGGER.error(f"Profile creation failed for {user.id}, removing auth user")
            await self._remove_auth_user(user.id)
            return ServiceResult.fail(
                get_operation_specific_error(profile_result.error, ErrorOperation.USER_CREATION)
            )

        return ServiceResult.ok(OnboardedUser(user=user, profile=profile_result.data))

    async def delete_user(self, user_id: str) -> ServiceResult[None]:
        """Delete a user's profile (if any) and their auth identity."""
        if self.service_client is None:
            return self._unavailable()

        profile_result = await delete_profile_with_service_key(self.service_client, user_id)
        if not profile_result.success:
            LOGGER.info(f"No profile removed for {user_id}: {profile_result.error.message}")

        try:
            await self.service_client.admin.delete_user(user_id)
        except Exception as e:
            LOGGER.error(f"Failed to delete auth user {user_id}: {str(e)}")
            return ServiceResult.fail(get_friendly_error_message(e))

        LOGGER.info(f"Deleted user {user_id}")
        return ServiceResult.ok(None)

    def _track(self, task: asyncio.Future) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _finish_late_profile(self, user_id: str, task: asyncio.Future) -> None:
        """Collect a profile creation that outlived the onboarding timeout.

        A late failure is rolled back the same way as one inside the timeout.
        """
        if task.cancelled():
            LOGGER.warning(f"Profile creation for {user_id} was cancelled, removing auth user")
        elif task.exception() is not None:
            LOGGER.error(f"Profile creation for {user_id} raised, removing auth user: {task.exception()}")
        elif not task.result().success:
            LOGGER.error(f"Profile creation for {user_id} failed, removing auth user: {task.result().error.message}")
        else:
            LOGGER.info(f"Profile for {user_id} created after onboarding returned")
            return
        self._track(asyncio.ensure_future(self._remove_auth_user(user_id)))

    async def wait_idle(self) -> None:
        """Wait for background profile creations and rollbacks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _remove_auth_user(self, user_id: str) -> None:
        try:
            await self.service_client.admin.delete_user(user_id)
        except Exception as e:
            LOGGER.error(f"Rollback of auth user {user_id} failed: {str(e)}")
