"""Claim records, joined with policy number and claimant name."""

from datetime import date
from typing import Any, Dict, Optional

from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult, generate_reference
from insura_ops.schemas.entities import Claim, ClaimCreate, ClaimRow, ClaimUpdate, claim_from_row
from insura_ops.schemas.enums import ClaimStatus
from insura_ops.services.base_service import BaseService

CLAIM_PREFIX = "CLM"

RESOLVED_STATUSES = frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.PAID})


class ClaimService(BaseService[Claim]):
    table = "claims"
    select_columns = "*, policies(policy_number), employees(first_name, last_name)"
    row_model = ClaimRow
    create_model = ClaimCreate
    update_model = ClaimUpdate
    search_columns = ("claim_number", "claim_type", "description")

    def from_row(self, row: ClaimRow) -> Claim:
        return claim_from_row(row)

    def prepare_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["claim_number"] = generate_reference(CLAIM_PREFIX)
        payload.setdefault("submitted_date", date.today().isoformat())
        payload.setdefault("status", ClaimStatus.SUBMITTED.value)
        return payload

    async def get_by_policy(self, policy_id: str, options: Optional[QueryOptions] = None) -> PaginatedResult[Claim]:
        return await self.list_where(options, policy_id=policy_id)

    async def update_status(self, claim_id: str, status: ClaimStatus) -> ServiceResult[Claim]:
        """Move a claim through review; resolved statuses stamp the resolution date."""
        status = ClaimStatus(status)
        changes: Dict[str, Any] = {"status": status}
        if status in RESOLVED_STATUSES:
            changes["resolved_date"] = date.today()
        return await self.update(claim_id, ClaimUpdate(**changes))
