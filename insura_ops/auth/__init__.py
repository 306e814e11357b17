"""Operator authentication state and redirect policy."""

from insura_ops.auth.context import AuthContext, AuthState, AuthStatus
from insura_ops.auth.redirects import Route, resolve_redirect

__all__ = ["AuthContext", "AuthState", "AuthStatus", "Route", "resolve_redirect"]
