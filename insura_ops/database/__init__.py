"""Backend client construction.

Two handles are built from configuration: the restricted handle (anonymous
key, subject to row-level security) used by every service, and the privileged
handle (service-role key) that exists only when that key is configured.
Functions that need elevated access receive the privileged handle explicitly.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from insura_ops.core.config import Settings
from insura_ops.database.client import ANON_ROLE, SERVICE_ROLE, SupabaseClient
from insura_ops.database.query import APIResponse, QueryBuilder
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class BackendClients:
    restricted: SupabaseClient
    privileged: Optional[SupabaseClient] = None

    def has_service_key(self) -> bool:
        return self.privileged is not None


def create_backend_clients(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BackendClients:
    """Build the restricted and (optionally) privileged handles.

    Args:
        settings: Application settings
        transport: Optional httpx transport, used by tests to fake the backend

    Returns:
        BackendClients with ``privileged`` set only when a service-role key exists

    Raises:
        ConfigurationError: If the backend URL or anonymous key is missing
    """
    settings.validate_required()

    restricted = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        role=ANON_ROLE,
        timeout=settings.http_timeout,
        transport=transport,
    )

    privileged = None
    if settings.supabase_service_role_key:
        privileged = SupabaseClient(
            settings.supabase_url,
            settings.supabase_service_role_key,
            role=SERVICE_ROLE,
            timeout=settings.http_timeout,
            transport=transport,
        )
    else:
        LOGGER.warning("SUPABASE_SERVICE_ROLE_KEY not set, privileged operations are disabled")

    LOGGER.info(
        f"Backend clients created for {settings.supabase_url}",
        extra={"privileged": privileged is not None},
    )
    return BackendClients(restricted=restricted, privileged=privileged)


__all__ = [
    "APIResponse",
    "BackendClients",
    "QueryBuilder",
    "SupabaseClient",
    "create_backend_clients",
]
