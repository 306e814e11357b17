"""Operational diagnostics endpoints.

Table checks, DDL generation, connection testing and role verification for
administrators. ``/whoami`` is open to any signed-in user so they can see
which profile and landing route the backend resolves for them.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from insura_ops.api.dependencies import (
    get_backend_clients,
    get_current_profile,
    get_current_user,
    get_settings,
    require_admin,
)
from insura_ops.auth.redirects import Route, route_for_role
from insura_ops.core.config import Settings
from insura_ops.database import BackendClients
from insura_ops.diagnostics import (
    ConnectionReport,
    RoleReport,
    generate_table_sql,
    inspect_tables,
    promote_to_admin,
    run_connection_test,
    verify_user_role,
)
from insura_ops.schemas.auth import AuthUser
from insura_ops.schemas.entities import UserProfile
from insura_ops.schemas.responses import (
    ErrorResponse,
    SqlResponse,
    TablesResponse,
    TableStatusEntry,
    WhoAmIResponse,
)
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/tables",
    response_model=TablesResponse,
    summary="Check expected tables",
    description="Check every expected table and report whether it exists, is missing or errored",
    operation_id="get_table_status",
)
async def get_table_status(
    _admin: Annotated[AuthUser, Depends(require_admin)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
) -> TablesResponse:
    """Check the expected tables.

    The privileged handle is used when available so row-level security does
    not turn a present table into a permission error.
    """
    client = clients.privileged if clients.has_service_key() else clients.restricted
    checks = await inspect_tables(client)

    entries = [
        TableStatusEntry(name=name, status=check.status, exists=check.exists, error=check.error)
        for name, check in checks.items()
    ]
    missing = [entry.name for entry in entries if not entry.exists]
    LOGGER.info(f"Table check finished: {len(missing)} missing", extra={"missing": missing})
    return TablesResponse(tables=entries, missing=missing, all_present=not missing)


@router.get(
    "/sql",
    response_model=SqlResponse,
    responses={400: {"description": "Unknown table requested", "model": ErrorResponse}},
    summary="Generate CREATE TABLE statements",
    description="Return the DDL for the requested tables (default: all) to run in the SQL editor",
    operation_id="get_table_sql",
)
async def get_table_sql(
    _admin: Annotated[AuthUser, Depends(require_admin)],
    tables: Annotated[Optional[List[str]], Query(description="Tables to generate; repeat the parameter")] = None,
) -> SqlResponse:
    try:
        script = generate_table_sql(tables)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return SqlResponse(
        tables=[statement.name for statement in script.tables],
        message=script.message,
        migration_file=script.migration_file,
        sql=script.render(),
    )


@router.get(
    "/connection",
    response_model=ConnectionReport,
    summary="Test backend connection",
    description="Check configuration presence, data API reachability and auth API health",
    operation_id="get_connection_report",
)
async def get_connection_report(
    _admin: Annotated[AuthUser, Depends(require_admin)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
) -> ConnectionReport:
    return await run_connection_test(app_settings, clients)


@router.get(
    "/roles/{user_id}",
    response_model=RoleReport,
    summary="Verify a user's role",
    description="Report the user's profile, role and the route they would be sent to after login",
    operation_id="get_user_role_report",
)
async def get_user_role_report(
    user_id: str,
    _admin: Annotated[AuthUser, Depends(require_admin)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
) -> RoleReport:
    return await verify_user_role(clients, user_id)


@router.post(
    "/roles/{user_id}/promote",
    response_model=UserProfile,
    responses={400: {"description": "Promotion failed", "model": ErrorResponse}},
    summary="Promote a user to admin",
    description="Set the user's profile role to admin using the service-role key",
    operation_id="promote_user_to_admin",
)
async def promote_user(
    user_id: str,
    admin: Annotated[AuthUser, Depends(require_admin)],
    clients: Annotated[BackendClients, Depends(get_backend_clients)],
):
    result = await promote_to_admin(clients.privileged, user_id)
    if not result.success:
        LOGGER.warning(f"Promotion of {user_id} by {admin.id} failed: {result.error.message}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse.from_friendly(result.error).model_dump(),
        )
    LOGGER.info(f"User {user_id} promoted to admin by {admin.id}")
    return result.data


@router.get(
    "/whoami",
    response_model=WhoAmIResponse,
    summary="Describe the caller",
    description="Return the signed-in user, their profile and the route they land on",
    operation_id="get_caller_identity",
)
async def whoami(
    user: Annotated[AuthUser, Depends(get_current_user)],
    profile: Annotated[Optional[UserProfile], Depends(get_current_profile)],
) -> WhoAmIResponse:
    route = route_for_role(profile.role) if profile else None
    return WhoAmIResponse(
        user=user,
        profile=profile,
        expected_route=(route or Route.PROFILE_REMEDIATION).value,
    )
