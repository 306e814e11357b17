"""Policy records, joined with company and provider names."""

from typing import Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import Policy, PolicyCreate, PolicyRow, PolicyUpdate, policy_from_row
from insura_ops.services.base_service import BaseService


class PolicyService(BaseService[Policy]):
    table = "policies"
    select_columns = "*, companies(name), providers(name)"
    row_model = PolicyRow
    create_model = PolicyCreate
    update_model = PolicyUpdate
    search_columns = ("policy_number", "product_type")

    def from_row(self, row: PolicyRow) -> Policy:
        return policy_from_row(row)

    async def get_by_company(self, company_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Policy]:
        return await self.list_where(options, company_id=company_id)
