"""Backend connection test."""

from typing import List, Optional

from pydantic import BaseModel, Field

from insura_ops.core.config import Settings
from insura_ops.database import BackendClients
from insura_ops.utils.errors import ErrorOperation, FriendlyError, get_operation_specific_error
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ConfigurationReport(BaseModel):
    url_configured: bool
    anon_key_configured: bool
    service_key_configured: bool
    project_id: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.url_configured and self.anon_key_configured


class ConnectionReport(BaseModel):
    configuration: ConfigurationReport
    rest_reachable: bool = False
    rest_status: Optional[int] = None
    auth_healthy: bool = False
    errors: List[FriendlyError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.configuration.complete and self.rest_reachable and self.auth_healthy


def inspect_configuration(settings: Settings) -> ConfigurationReport:
    return ConfigurationReport(
        url_configured=bool(settings.supabase_url),
        anon_key_configured=bool(settings.supabase_anon_key),
        service_key_configured=bool(settings.supabase_service_role_key),
        project_id=settings.supabase_project_id or None,
    )


async def run_connection_test(settings: Settings, clients: Optional[BackendClients] = None) -> ConnectionReport:
    """Check configuration, data API reachability and auth API health.

    Missing configuration is reported without any network call.

    Args:
        settings: Application settings
        clients: Backend clients; required when configuration is complete

    Returns:
        ConnectionReport
    """
    report = ConnectionReport(configuration=inspect_configuration(settings))
    if not report.configuration.complete or clients is None:
        LOGGER.warning("Connection test skipped: backend configuration incomplete")
        report.errors.append(
            FriendlyError(
                title="Configuration Missing",
                message="SUPABASE_URL and SUPABASE_ANON_KEY must both be set.",
                action="Set the missing environment variables and restart the service.",
            )
        )
        return report

    try:
        report.rest_status = await clients.restricted.ping()
        report.rest_reachable = report.rest_status < 500
    except Exception as e:
        LOGGER.error(f"Data API unreachable: {str(e)}")
        report.errors.append(get_operation_specific_error(e, ErrorOperation.DATABASE_CONNECTION))

    try:
        await clients.restricted.auth.health()
        report.auth_healthy = True
    except Exception as e:
        LOGGER.error(f"Auth API health check failed: {str(e)}")
        report.errors.append(get_operation_specific_error(e, ErrorOperation.AUTHENTICATION))

    LOGGER.info(
        f"Connection test finished: rest={report.rest_reachable} auth={report.auth_healthy}",
        extra={"rest_status": report.rest_status},
    )
    return report
