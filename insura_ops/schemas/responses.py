"""Response models for the diagnostics HTTP API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from insura_ops.diagnostics.tables import TableStatus
from insura_ops.schemas.auth import AuthUser
from insura_ops.schemas.entities import UserProfile
from insura_ops.utils.errors import FriendlyError


class HealthCheckResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Service status
        version: Application version
        service: Service name
        backend_configured: Whether the backend URL and anonymous key are set
        privileged_access: Whether a service-role key is configured
    """

    status: str = Field(
        default="healthy",
        description="Service health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(..., description="Application version", examples=["0.1.0"])
    service: str = Field(..., description="Service name", examples=["Insura Ops"])
    backend_configured: bool = Field(default=False, description="Backend URL and anonymous key present")
    privileged_access: bool = Field(default=False, description="Service-role key present")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    error: str = Field(..., description="Error title")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Suggested action")

    @classmethod
    def from_friendly(cls, error: FriendlyError) -> "ErrorResponse":
        return cls(error=error.title, message=error.message, detail=error.action)


class TableStatusEntry(BaseModel):
    name: str
    status: TableStatus
    exists: bool
    error: Optional[FriendlyError] = None


class TablesResponse(BaseModel):
    """Result of probing every expected table."""

    tables: List[TableStatusEntry]
    missing: List[str] = Field(default_factory=list, description="Tables whose relation does not exist")
    all_present: bool


class SqlResponse(BaseModel):
    tables: List[str]
    message: str
    migration_file: str
    sql: str


class WhoAmIResponse(BaseModel):
    user: AuthUser
    profile: Optional[UserProfile] = None
    expected_route: str
