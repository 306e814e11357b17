"""Policy renewals."""

from datetime import date, timedelta
from typing import Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions
from insura_ops.schemas.entities import Renewal, RenewalCreate, RenewalRow, RenewalUpdate, renewal_from_row
from insura_ops.schemas.enums import RenewalStatus
from insura_ops.services.base_service import BaseService

OPEN_STATUSES = (RenewalStatus.UPCOMING, RenewalStatus.IN_PROGRESS, RenewalStatus.QUOTED)


class RenewalService(BaseService[Renewal]):
    table = "renewals"
    select_columns = "*, policies(policy_number)"
    row_model = RenewalRow
    create_model = RenewalCreate
    update_model = RenewalUpdate
    search_columns = ("notes",)
    default_sort = "renewal_date"

    def from_row(self, row: RenewalRow) -> Renewal:
        return renewal_from_row(row)

    async def get_by_status(self, status: RenewalStatus, options: Optional[QueryOptions] = None) -> PaginatedResult[Renewal]:
        return await self.list_where(options, status=RenewalStatus(status).value)

    async def get_upcoming(self, days: int = 90, today: Optional[date] = None) -> PaginatedResult[Renewal]:
        """Open renewals due within the next ``days`` days, soonest first."""
        today = today or date.today()
        options = QueryOptions(page_size=100, sort_by="renewal_date", sort_order="asc")
        try:
            response = await (
                self.build_list_query(options)
                .gte("renewal_date", today.isoformat())
                .lte("renewal_date", (today + timedelta(days=days)).isoformat())
                .in_("status", OPEN_STATUSES)
                .execute()
            )
            records = self.parse_rows(response.data)
            total = response.count if response.count is not None else len(records)
            return PaginatedResult(data=records, total=total, page=1, page_size=options.page_size)
        except Exception as e:
            return PaginatedResult(page=1, page_size=options.page_size, error=self._fail("list upcoming", e))
