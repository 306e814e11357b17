"""Benefit configurations attached to quotes."""

from typing import Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import Benefit, BenefitCreate, BenefitRow, BenefitUpdate, benefit_from_row
from insura_ops.services.base_service import BaseService


class BenefitService(BaseService[Benefit]):
    table = "benefits"
    row_model = BenefitRow
    create_model = BenefitCreate
    update_model = BenefitUpdate
    search_columns = ("name", "coverage_level")

    def from_row(self, row: BenefitRow) -> Benefit:
        return benefit_from_row(row)

    async def get_by_quote(self, quote_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Benefit]:
        return await self.list_where(options, quote_id=quote_id)
