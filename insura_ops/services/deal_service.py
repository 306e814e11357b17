"""Sales pipeline deals.

Deals that reference a quote follow that quote's status through
``sync_stage_from_quote``; the mapping is the explicit table below.
"""

from typing import Dict, Iterable, List, Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.schemas.entities import Deal, DealCreate, DealRow, DealUpdate, deal_from_row
from insura_ops.schemas.enums import STAGE_PROBABILITY, DealStage, QuoteStatus
from insura_ops.services.base_service import BaseService

# New quote status -> deal stage; None leaves the deal where it is
QUOTE_STATUS_STAGE: Dict[QuoteStatus, Optional[DealStage]] = {
    QuoteStatus.DRAFT: None,
    QuoteStatus.PENDING: DealStage.QUOTE,
    QuoteStatus.SENT: DealStage.QUOTE,
    QuoteStatus.APPROVED: DealStage.NEGOTIATION,
    QuoteStatus.ACCEPTED: DealStage.CLOSED_WON,
    QuoteStatus.REJECTED: DealStage.CLOSED_LOST,
    QuoteStatus.EXPIRED: DealStage.CLOSED_LOST,
}

# (old, new) transitions that override the table above.
# Reopening an accepted quote puts a won deal back into negotiation; reopening
# a rejected or expired quote revives a lost deal at the quote stage.
QUOTE_TRANSITION_OVERRIDES: Dict[tuple, DealStage] = {
    (QuoteStatus.ACCEPTED, QuoteStatus.DRAFT): DealStage.NEGOTIATION,
    (QuoteStatus.ACCEPTED, QuoteStatus.PENDING): DealStage.NEGOTIATION,
    (QuoteStatus.ACCEPTED, QuoteStatus.SENT): DealStage.NEGOTIATION,
    (QuoteStatus.REJECTED, QuoteStatus.DRAFT): DealStage.QUOTE,
    (QuoteStatus.REJECTED, QuoteStatus.PENDING): DealStage.QUOTE,
    (QuoteStatus.REJECTED, QuoteStatus.SENT): DealStage.QUOTE,
    (QuoteStatus.EXPIRED, QuoteStatus.DRAFT): DealStage.QUOTE,
    (QuoteStatus.EXPIRED, QuoteStatus.PENDING): DealStage.QUOTE,
    (QuoteStatus.EXPIRED, QuoteStatus.SENT): DealStage.QUOTE,
}


def stage_for_quote_transition(old_status: Optional[QuoteStatus], new_status: QuoteStatus) -> Optional[DealStage]:
    """Deal stage implied by a quote moving from ``old_status`` to ``new_status``."""
    new_status = QuoteStatus(new_status)
    if old_status is not None:
        override = QUOTE_TRANSITION_OVERRIDES.get((QuoteStatus(old_status), new_status))
        if override is not None:
            return override
    return QUOTE_STATUS_STAGE[new_status]


def weighted_value(deal: Deal) -> float:
    if deal.stage == DealStage.CLOSED_WON:
        return deal.value
    if deal.stage == DealStage.CLOSED_LOST:
        return 0.0
    return deal.value * deal.probability / 100


class DealService(BaseService[Deal]):
    table = "deals"
    select_columns = "*, companies(name)"
    row_model = DealRow
    create_model = DealCreate
    update_model = DealUpdate
    search_columns = ("name", "assigned_to")

    def from_row(self, row: DealRow) -> Deal:
        return deal_from_row(row)

    async def get_by_stage(self, stage: DealStage, options: Optional[QueryOptions] = None) -> PaginatedResult[Deal]:
        return await self.list_where(options, stage=DealStage(stage).value)

    async def update_stage(self, deal_id: str, stage: DealStage) -> ServiceResult[Deal]:
        """Move a deal to a stage, resetting probability to the stage default."""
        stage = DealStage(stage)
        return await self.update(deal_id, DealUpdate(stage=stage, probability=STAGE_PROBABILITY[stage]))

    async def sync_stage_from_quote(
        self,
        quote_id: str,
        old_status: Optional[QuoteStatus],
        new_status: QuoteStatus,
    ) -> ServiceResult[List[Deal]]:
        """Move every deal that references the quote to the stage the transition implies.

        Args:
            quote_id: Quote whose status changed
            old_status: Status before the change
            new_status: Status after the change

        Returns:
            ServiceResult with the updated deals (empty when nothing moves)
        """
        stage = stage_for_quote_transition(old_status, new_status)
        if stage is None:
            return ServiceResult.ok([])

        try:
            response = await (
                self.client.table(self.table)
                .update(DealUpdate(stage=stage, probability=STAGE_PROBABILITY[stage]).to_payload())
                .eq("quote_id", quote_id)
                .select(self.select_columns)
                .execute()
            )
            deals = self.parse_rows(response.data)
            self.logger.info(
                f"Synced {len(deals)} deal(s) for quote {quote_id} to stage {stage.value}",
                extra={"quote_id": quote_id, "old_status": old_status, "new_status": new_status},
            )
            return ServiceResult.ok(deals)
        except Exception as e:
            return ServiceResult.fail(self._fail("sync stage of", e))

    @staticmethod
    def weighted_pipeline(deals: Iterable[Deal]) -> float:
        """Expected pipeline value: won deals in full, lost deals as zero, open deals by probability."""
        return sum(weighted_value(deal) for deal in deals)

    @staticmethod
    def group_by_stage(deals: Iterable[Deal]) -> Dict[DealStage, List[Deal]]:
        grouped: Dict[DealStage, List[Deal]] = {stage: [] for stage in DealStage}
        for deal in deals:
            grouped[deal.stage].append(deal)
        return grouped
