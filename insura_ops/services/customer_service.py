"""CRM contacts at client companies and their interaction history."""

from typing import Any, Dict, Optional, Union

from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.schemas.entities import (
    Customer,
    CustomerCreate,
    CustomerInteraction,
    CustomerInteractionCreate,
    CustomerInteractionRow,
    CustomerRow,
    CustomerUpdate,
    customer_from_row,
    customer_interaction_from_row,
)
from insura_ops.services.base_service import BaseService


class CustomerInteractionService(BaseService[CustomerInteraction]):
    table = "customer_interactions"
    row_model = CustomerInteractionRow
    create_model = CustomerInteractionCreate
    search_columns = ("subject", "notes")
    default_sort = "interaction_date"

    def from_row(self, row: CustomerInteractionRow) -> CustomerInteraction:
        return customer_interaction_from_row(row)


class CustomerService(BaseService[Customer]):
    table = "customers"
    select_columns = "*, companies(name)"
    row_model = CustomerRow
    create_model = CustomerCreate
    update_model = CustomerUpdate
    search_columns = ("first_name", "last_name", "email")

    def __init__(self, client, interactions: Optional[CustomerInteractionService] = None):
        super().__init__(client)
        self.interactions = interactions or CustomerInteractionService(client)

    def from_row(self, row: CustomerRow) -> Customer:
        return customer_from_row(row)

    async def get_by_company(self, company_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Customer]:
        return await self.list_where(options, company_id=company_id)

    async def get_interactions(
        self, customer_id: str, options: Optional[QueryOptions] = None
    ) -> PaginatedResult[CustomerInteraction]:
        return await self.interactions.list_where(options, customer_id=customer_id)

    async def add_interaction(
        self, data: Union[CustomerInteractionCreate, Dict[str, Any]]
    ) -> ServiceResult[CustomerInteraction]:
        return await self.interactions.create(data)
