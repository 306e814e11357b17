"""Quote records and the quote status workflow."""

from typing import Any, Dict, Optional

from insura_ops.schemas.common import ServiceResult, generate_reference
from insura_ops.schemas.entities import Quote, QuoteCreate, QuoteRow, QuoteUpdate, quote_from_row
from insura_ops.schemas.enums import QuoteStatus
from insura_ops.services.activity_service import ActivityService
from insura_ops.services.base_service import BaseService
from insura_ops.services.deal_service import DealService

QUOTE_PREFIX = "Q"


class QuoteService(BaseService[Quote]):
    table = "quotes"
    select_columns = "*, companies(name), providers(name)"
    row_model = QuoteRow
    create_model = QuoteCreate
    update_model = QuoteUpdate
    search_columns = ("quote_number", "product_type")

    def __init__(
        self,
        client,
        activities: Optional[ActivityService] = None,
        deals: Optional[DealService] = None,
    ):
        super().__init__(client)
        self.activities = activities or ActivityService(client)
        self.deals = deals or DealService(client)

    def from_row(self, row: QuoteRow) -> Quote:
        return quote_from_row(row)

    def prepare_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["quote_number"] = generate_reference(QUOTE_PREFIX)
        payload["status"] = QuoteStatus.DRAFT.value
        return payload

    async def update_quote_status(
        self, quote_id: str, status: QuoteStatus, user_id: Optional[str] = None
    ) -> ServiceResult[Quote]:
        """Change a quote's status and propagate it.

        When the status actually changes, the quote is updated, one activity
        record is written and linked deals are moved once. Setting the current
        status again writes nothing.

        Args:
            quote_id: Quote to update
            status: New status
            user_id: Acting user for the audit record

        Returns:
            ServiceResult with the quote as it now stands; ``changed`` is
            False when the quote already had the requested status
        """
        status = QuoteStatus(status)
        current = await self.get_by_id(quote_id)
        if not current.success:
            return current

        old_status = current.data.status
        if old_status == status:
            self.logger.debug(f"Quote {quote_id} already {status.value}, nothing to do")
            return ServiceResult.ok(current.data, changed=False)

        updated = await self.update(quote_id, QuoteUpdate(status=status))
        if not updated.success:
            return updated

        activity = await self.activities.log(
            entity_type="quote",
            entity_id=quote_id,
            action="status_changed",
            description=f"Quote {updated.data.quote_number} status changed from {old_status.value} to {status.value}",
            old_value={"status": old_status.value},
            new_value={"status": status.value},
            user_id=user_id,
        )
        if not activity.success:
            self.logger.warning(f"Activity log failed for quote {quote_id}: {activity.error.message}")

        synced = await self.deals.sync_stage_from_quote(quote_id, old_status, status)
        if not synced.success:
            self.logger.warning(f"Deal stage sync failed for quote {quote_id}: {synced.error.message}")

        return updated

    async def copy_quote(self, quote_id: str) -> ServiceResult[Quote]:
        """Duplicate a quote as a new draft with a fresh quote number."""
        original = await self.get_by_id(quote_id)
        if not original.success:
            return original

        source = original.data
        return await self.create(
            QuoteCreate(
                company_id=source.company_id,
                product_type=source.product_type,
                provider_id=source.provider_id,
                premium=source.premium,
                employee_count=source.employee_count,
                valid_until=source.valid_until,
            )
        )
