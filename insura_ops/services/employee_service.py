"""Employee records, joined with their company name."""

from typing import Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import Employee, EmployeeCreate, EmployeeRow, EmployeeUpdate, employee_from_row
from insura_ops.services.base_service import BaseService


class EmployeeService(BaseService[Employee]):
    table = "employees"
    select_columns = "*, companies(name)"
    row_model = EmployeeRow
    create_model = EmployeeCreate
    update_model = EmployeeUpdate
    search_columns = ("first_name", "last_name", "email", "department")

    def from_row(self, row: EmployeeRow) -> Employee:
        return employee_from_row(row)

    async def get_by_company(self, company_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Employee]:
        return await self.list_where(options, company_id=company_id)
