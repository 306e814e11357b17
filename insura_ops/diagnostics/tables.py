"""Table existence checks.

Only the missing-relation codes mean a table is absent. Any other failure
(permission denied, policy recursion, network) means the table exists but
the check errored, and is reported as such.
"""

from enum import Enum
from typing import Dict, Iterable, Optional

from pydantic import BaseModel

from insura_ops.core.exceptions import BackendError
from insura_ops.database.client import SupabaseClient
from insura_ops.utils.errors import MISSING_TABLE_CODES, FriendlyError, get_friendly_error_message
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

EXPECTED_TABLES = (
    "companies",
    "employees",
    "policies",
    "claims",
    "quotes",
    "commissions",
    "deals",
    "renewals",
    "providers",
    "customers",
    "customer_interactions",
    "countries",
    "benefits",
    "user_profiles",
    "activities",
)


class TableStatus(str, Enum):
    EXISTS = "exists"
    MISSING = "missing"
    ERRORED = "errored"


class TableCheck(BaseModel):
    name: str
    status: TableStatus
    error: Optional[FriendlyError] = None

    @property
    def exists(self) -> bool:
        return self.status != TableStatus.MISSING


async def check_table(client: SupabaseClient, name: str) -> TableCheck:
    try:
        await client.table(name).select("*").limit(1).execute()
    except BackendError as e:
        status = TableStatus.MISSING if e.code in MISSING_TABLE_CODES else TableStatus.ERRORED
        LOGGER.warning(f"Table check {name}: {status.value} ({e.code}: {e.message})")
        return TableCheck(name=name, status=status, error=get_friendly_error_message(e))
    LOGGER.debug(f"Table {name} exists")
    return TableCheck(name=name, status=TableStatus.EXISTS)


async def inspect_tables(client: SupabaseClient, tables: Optional[Iterable[str]] = None) -> Dict[str, TableCheck]:
    """Check each table with ``select * limit 1``.

    Args:
        client: Backend client to check with
        tables: Table names (default: every expected table)

    Returns:
        Status per table name
    """
    names = EXPECTED_TABLES if tables is None else tables
    return {name: await check_table(client, name) for name in names}


async def check_tables(client: SupabaseClient, tables: Optional[Iterable[str]] = None) -> Dict[str, bool]:
    """Existence per table; only a missing relation is False."""
    checks = await inspect_tables(client, tables)
    return {name: check.exists for name, check in checks.items()}
