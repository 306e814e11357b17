"""Role-based redirect policy."""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from insura_ops.schemas.enums import UserRole

if TYPE_CHECKING:
    from insura_ops.auth.context import AuthState


class Route(str, Enum):
    LANDING = "/"
    CLIENT_LOGIN = "/client/login"
    ADMIN_LOGIN = "/admin/login"
    ADMIN_DASHBOARD = "/dashboard"
    CLIENT_DASHBOARD = "/client/dashboard"
    PROFILE_REMEDIATION = "/account/profile-missing"


ROLE_ROUTES = {
    UserRole.ADMIN: Route.ADMIN_DASHBOARD,
    UserRole.AGENT: Route.ADMIN_DASHBOARD,
    UserRole.CLIENT: Route.CLIENT_DASHBOARD,
}


def route_for_role(role: Optional[UserRole]) -> Optional[Route]:
    if role is None:
        return None
    return ROLE_ROUTES.get(UserRole(role))


def resolve_redirect(state: "AuthState") -> Route:
    """Where a session should land.

    An authenticated session without a resolvable profile goes to the
    remediation screen rather than defaulting to a role.
    """
    if not state.is_authenticated:
        return Route.CLIENT_LOGIN
    if state.profile is None:
        return Route.PROFILE_REMEDIATION
    return route_for_role(state.profile.role) or Route.PROFILE_REMEDIATION
