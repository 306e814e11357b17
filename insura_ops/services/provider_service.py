"""Insurer and broker records."""

from typing import Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import Provider, ProviderCreate, ProviderRow, ProviderUpdate, provider_from_row
from insura_ops.schemas.enums import ProviderType
from insura_ops.services.base_service import BaseService


class ProviderService(BaseService[Provider]):
    table = "providers"
    row_model = ProviderRow
    create_model = ProviderCreate
    update_model = ProviderUpdate
    search_columns = ("name", "country")
    default_sort = "name"

    def from_row(self, row: ProviderRow) -> Provider:
        return provider_from_row(row)

    async def get_by_type(self, provider_type: ProviderType, options: Optional[QueryOptions] = None) -> PaginatedResult[Provider]:
        return await self.list_where(options, type=ProviderType(provider_type).value)
