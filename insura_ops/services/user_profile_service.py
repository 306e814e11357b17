"""User profiles: role, display details and company link for an auth identity.

Admin management operations take the acting user explicitly and only touch
profiles that the acting admin created.
"""

from typing import Any, Dict, Optional, Union

from insura_ops.core.exceptions import AccessDeniedError
from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.schemas.entities import (
    UserProfile,
    UserProfileCreate,
    UserProfileRow,
    UserProfileUpdate,
    user_profile_from_row,
)
from insura_ops.schemas.enums import UserRole
from insura_ops.services.base_service import BaseService

ADMIN_REQUIRED = "Access denied: Admin role required"


class UserProfileService(BaseService[UserProfile]):
    table = "user_profiles"
    select_columns = "*, companies(name)"
    row_model = UserProfileRow
    create_model = UserProfileCreate
    update_model = UserProfileUpdate
    search_columns = ("full_name", "phone")

    def from_row(self, row: UserProfileRow) -> UserProfile:
        return user_profile_from_row(row)

    async def find_by_user_id(self, user_id: str) -> ServiceResult[Optional[UserProfile]]:
        """Profile for an auth identity; ``data`` is None when none exists."""
        try:
            response = await (
                self.client.table(self.table)
                .select(self.select_columns)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            if response.data is None:
                return ServiceResult.ok(None)
            return ServiceResult.ok(self.parse_row(response.data))
        except Exception as e:
            return ServiceResult.fail(self._fail("get", e))

    async def update_by_user_id(
        self, user_id: str, changes: Union[UserProfileUpdate, Dict[str, Any]]
    ) -> ServiceResult[UserProfile]:
        return await self.update_where("user_id", user_id, changes)

    async def is_admin(self, user_id: str) -> bool:
        result = await self.find_by_user_id(user_id)
        return bool(result.success and result.data and result.data.role == UserRole.ADMIN)

    async def _require_admin(self, acting_user_id: str) -> None:
        if not await self.is_admin(acting_user_id):
            raise AccessDeniedError(ADMIN_REQUIRED)

    async def _require_created_by(self, acting_user_id: str, user_id: str, verb: str) -> None:
        await self._require_admin(acting_user_id)
        target = await self.find_by_user_id(user_id)
        if not target.success:
            raise AccessDeniedError(target.error.message)
        if target.data is None or target.data.created_by != acting_user_id:
            raise AccessDeniedError(f"Access denied: You can only {verb} profiles you created")

    async def get_created_profiles(
        self, acting_user_id: str, options: Optional[QueryOptions] = None
    ) -> PaginatedResult[UserProfile]:
        """Profiles created by the acting admin."""
        options = options or QueryOptions()
        try:
            await self._require_admin(acting_user_id)
        except AccessDeniedError as e:
            return PaginatedResult(page=options.page, page_size=options.page_size, error=self._fail("list", e))
        return await self.list_where(options, created_by=acting_user_id)

    async def get_profiles_by_role(
        self, acting_user_id: str, role: UserRole, options: Optional[QueryOptions] = None
    ) -> PaginatedResult[UserProfile]:
        options = options or QueryOptions()
        try:
            await self._require_admin(acting_user_id)
        except AccessDeniedError as e:
            return PaginatedResult(page=options.page, page_size=options.page_size, error=self._fail("list", e))
        return await self.list_where(options, created_by=acting_user_id, role=UserRole(role).value)

    async def create_user_profile(
        self, acting_user_id: str, data: Union[UserProfileCreate, Dict[str, Any]]
    ) -> ServiceResult[UserProfile]:
        """Create a profile owned by the acting admin."""
        try:
            await self._require_admin(acting_user_id)
            payload = self._payload(data, self.create_model, partial=False)
        except Exception as e:
            return ServiceResult.fail(self._fail("create", e))
        payload["created_by"] = acting_user_id
        return await self.create(payload)

    async def update_user_profile(
        self, acting_user_id: str, user_id: str, changes: Union[UserProfileUpdate, Dict[str, Any]]
    ) -> ServiceResult[UserProfile]:
        try:
            await self._require_created_by(acting_user_id, user_id, "edit")
        except AccessDeniedError as e:
            return ServiceResult.fail(self._fail("update", e))
        return await self.update_by_user_id(user_id, changes)

    async def delete_user_profile(self, acting_user_id: str, user_id: str) -> ServiceResult[None]:
        try:
            await self._require_created_by(acting_user_id, user_id, "delete")
        except AccessDeniedError as e:
            return ServiceResult.fail(self._fail("delete", e))
        return await self.delete_where("user_id", user_id)
