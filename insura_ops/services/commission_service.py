"""Commission records on won deals."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import (
    Commission,
    CommissionCreate,
    CommissionRow,
    CommissionUpdate,
    commission_from_row,
)
from insura_ops.schemas.enums import CommissionStatus
from insura_ops.services.base_service import BaseService


class CommissionService(BaseService[Commission]):
    table = "commissions"
    select_columns = "*, deals(name)"
    row_model = CommissionRow
    create_model = CommissionCreate
    update_model = CommissionUpdate

    def from_row(self, row: CommissionRow) -> Commission:
        return commission_from_row(row)

    @staticmethod
    def calculate(premium: float, rate: float) -> float:
        """Commission amount for a premium at a percentage rate, rounded to cents."""
        amount = Decimal(str(premium)) * Decimal(str(rate)) / Decimal(100)
        return float(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

    def prepare_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not payload.get("amount"):
            payload["amount"] = self.calculate(payload["premium"], payload["rate"])
            if payload.get("status", CommissionStatus.PENDING.value) == CommissionStatus.PENDING.value:
                payload["status"] = CommissionStatus.CALCULATED.value
        return payload

    async def get_by_deal(self, deal_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Commission]:
        return await self.list_where(options, deal_id=deal_id)
