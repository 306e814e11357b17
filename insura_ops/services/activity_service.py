"""Audit trail of changes to any entity."""

from typing import Any, Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.schemas.entities import Activity, ActivityCreate, ActivityRow, activity_from_row
from insura_ops.services.base_service import BaseService


class ActivityService(BaseService[Activity]):
    table = "activities"
    row_model = ActivityRow
    create_model = ActivityCreate
    search_columns = ("description", "action")

    def from_row(self, row: ActivityRow) -> Activity:
        return activity_from_row(row)

    async def log(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        description: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        user_id: Optional[str] = None,
    ) -> ServiceResult[Activity]:
        """Write one audit record.

        Args:
            entity_type: Table the record belongs to (e.g. "quote")
            entity_id: ID of the changed record
            action: Short verb such as "status_changed"
            description: Human-readable summary
            old_value: Value before the change
            new_value: Value after the change
            user_id: Acting user, when known

        Returns:
            ServiceResult with the stored activity
        """
        return await self.create(
            ActivityCreate(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                description=description,
                old_value=old_value,
                new_value=new_value,
                user_id=user_id,
            )
        )

    async def get_for_entity(
        self, entity_type: str, entity_id: str, options: Optional[QueryOptions] = None
    ) -> PaginatedResult[Activity]:
        return await self.list_where(options, entity_type=entity_type, entity_id=entity_id)
