"""Company (client) records."""

from insura_ops.schemas.entities import Company, CompanyCreate, CompanyRow, CompanyUpdate, company_from_row
from insura_ops.services.base_service import BaseService


class CompanyService(BaseService[Company]):
    table = "companies"
    row_model = CompanyRow
    create_model = CompanyCreate
    update_model = CompanyUpdate
    search_columns = ("name", "industry", "country")

    def from_row(self, row: CompanyRow) -> Company:
        return company_from_row(row)
