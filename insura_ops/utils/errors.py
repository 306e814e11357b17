"""Friendly error normalization.

Maps any failure value (backend error, auth error, network exception, plain
exception, mapping or string) onto the ``FriendlyError`` shape shown to
operators. Classification order: auth messages, backend error code, message
keywords, generic fallback. Everything here is pure.
"""

import re
from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from insura_ops.core.exceptions import (
    AccessDeniedError,
    BackendConnectionError,
    BackendTimeoutError,
    RowShapeError,
)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorOperation(str, Enum):
    """Operations that get their own error titles."""

    CLIENT_CREATION = "client_creation"
    CLIENT_UPDATE = "client_update"
    USER_CREATION = "user_creation"
    DATABASE_CONNECTION = "database_connection"
    TABLE_CREATION = "table_creation"
    AUTHENTICATION = "authentication"


class FriendlyError(BaseModel):
    """User-facing error description."""

    title: str = Field(..., description="Short headline")
    message: str = Field(..., description="What went wrong")
    type: Severity = Field(default=Severity.ERROR, description="Severity")
    action: Optional[str] = Field(None, description="Suggested next step")


# (substring, title, message, severity, action)
AUTH_MESSAGE_RULES = [
    (
        "Invalid login credentials",
        "Invalid Login Credentials",
        "The email or password you entered is incorrect.",
        Severity.ERROR,
        'Please check your email and password and try again. If you forgot your password, use the "Forgot Password" link.',
    ),
    (
        "Email not confirmed",
        "Email Not Verified",
        "Please verify your email address before logging in.",
        Severity.WARNING,
        "Check your inbox for the verification email. If you didn't receive it, click \"Resend Verification\".",
    ),
    (
        "User already registered",
        "Account Already Exists",
        "An account with this email address is already registered.",
        Severity.WARNING,
        "Try logging in instead, or use a different email address.",
    ),
    (
        "Password should be at least",
        "Password Too Short",
        "Your password doesn't meet the minimum requirements.",
        Severity.WARNING,
        "Please choose a password with at least 6 characters.",
    ),
    (
        "Password should be different from the old password",
        "Password Reused",
        "Your new password must be different from your current password.",
        Severity.WARNING,
        "Please choose a different password.",
    ),
    (
        "Invalid email",
        "Invalid Email Address",
        "The email address you entered is not valid.",
        Severity.WARNING,
        "Please enter a valid email address (e.g., user@example.com).",
    ),
    (
        "Too many requests",
        "Too Many Attempts",
        "You've made too many login attempts. Please wait before trying again.",
        Severity.WARNING,
        "Wait a few minutes and try again, or reset your password if you've forgotten it.",
    ),
    (
        "Signup disabled",
        "Registration Disabled",
        "New user registration is currently disabled.",
        Severity.ERROR,
        "Please contact your administrator to create an account.",
    ),
    (
        "Email rate limit exceeded",
        "Too Many Emails Sent",
        "We've sent too many emails to this address recently.",
        Severity.WARNING,
        "Please wait a few minutes before requesting another email.",
    ),
    (
        "Token has expired or is invalid",
        "Link Expired",
        "The password reset or email verification link has expired.",
        Severity.ERROR,
        "Please request a new password reset or verification email.",
    ),
    (
        "Refresh token not found",
        "Session Expired",
        "Your session has expired. Please log in again.",
        Severity.WARNING,
        "Please log in again to continue.",
    ),
]

MISSING_TABLE_CODES = frozenset({"PGRST205", "42P01"})

CODE_RULES = {
    "PGRST204": FriendlyError(
        title="Database Schema Issue",
        message="The database table structure doesn't match what we expected. This might be due to a recent database update.",
        type=Severity.ERROR,
        action="Please check if all required database tables exist and have the correct columns.",
    ),
    "23505": FriendlyError(
        title="Duplicate Entry",
        message="A record with this information already exists.",
        type=Severity.WARNING,
        action="Please check if this client already exists or use different information.",
    ),
    "23514": FriendlyError(
        title="Invalid Data",
        message="Some of the information provided is not valid.",
        type=Severity.ERROR,
        action="Please check all required fields and try again.",
    ),
    "42501": FriendlyError(
        title="Permission Denied",
        message="You don't have permission to perform this action.",
        type=Severity.ERROR,
        action="Please check your account permissions or contact your administrator.",
    ),
    "PGRST301": FriendlyError(
        title="Connection Error",
        message="Unable to connect to the database.",
        type=Severity.ERROR,
        action="Please check your internet connection and try again.",
    ),
    "23503": FriendlyError(
        title="Reference Error",
        message="The data you're trying to reference doesn't exist.",
        type=Severity.ERROR,
        action="Please make sure all related records exist before creating this one.",
    ),
    "42P17": FriendlyError(
        title="Database Policy Error",
        message="There's an issue with the database access policies.",
        type=Severity.ERROR,
        action="Please contact your administrator to fix the database policies.",
    ),
    "PGRST116": FriendlyError(
        title="Record Not Found",
        message="The requested record could not be found.",
        type=Severity.WARNING,
        action="It may have been deleted. Refresh the list and try again.",
    ),
}

NETWORK_ERROR = FriendlyError(
    title="Network Error",
    message="Unable to connect to the server. Please check your internet connection.",
    type=Severity.ERROR,
    action="Check your connection and try again.",
)

VALIDATION_ERROR = FriendlyError(
    title="Validation Error",
    message="Please fill in all required fields correctly.",
    type=Severity.WARNING,
    action="Check the highlighted fields and try again.",
)

TIMEOUT_ERROR = FriendlyError(
    title="Request Timeout",
    message="The request took too long to complete.",
    type=Severity.WARNING,
    action="Please try again. If this continues, the server might be busy.",
)

OPERATION_RULES = {
    ErrorOperation.CLIENT_CREATION: (
        "Client Creation Failed",
        "Unable to create new client.",
        "Please check all required fields and try again.",
    ),
    ErrorOperation.CLIENT_UPDATE: (
        "Client Update Failed",
        "Unable to update client information.",
        "Please check your changes and try again.",
    ),
    ErrorOperation.USER_CREATION: (
        "User Creation Failed",
        "Unable to create new user.",
        "Please check all required fields and try again.",
    ),
    ErrorOperation.DATABASE_CONNECTION: (
        "Database Connection Issue",
        "Unable to connect to database.",
        "Please check if database is accessible and try again.",
    ),
    ErrorOperation.TABLE_CREATION: (
        "Table Creation Failed",
        "Unable to create database tables.",
        "Please check your database permissions and try again.",
    ),
    ErrorOperation.AUTHENTICATION: (
        "Authentication Error",
        "Unable to authenticate with database.",
        "Please check your login credentials and try again.",
    ),
}

_TABLE_NAME_PATTERN = re.compile(r"'public\.(\w+)'")


def _field(error: Any, name: str) -> Any:
    if isinstance(error, dict):
        return error.get(name)
    return getattr(error, name, None)


def _message_of(error: Any) -> str:
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    message = _field(error, "message")
    if message:
        return str(message)
    if isinstance(error, BaseException):
        return str(error)
    return ""


def _missing_table_name(error: Any) -> str:
    for source in (_field(error, "hint"), _message_of(error)):
        if source:
            match = _TABLE_NAME_PATTERN.search(str(source))
            if match:
                return match.group(1)
    return "unknown"


def get_friendly_error_message(error: Any) -> FriendlyError:
    """Normalize any failure into a FriendlyError.

    Args:
        error: Backend error, auth error, exception, mapping or string

    Returns:
        FriendlyError for display
    """
    if isinstance(error, FriendlyError):
        return error

    message = _message_of(error)

    for needle, title, text, severity, action in AUTH_MESSAGE_RULES:
        if needle in message:
            return FriendlyError(title=title, message=text, type=severity, action=action)

    code = _field(error, "code")
    if code:
        code = str(code)
        if code in MISSING_TABLE_CODES:
            return FriendlyError(
                title="Table Not Found",
                message=f"The table '{_missing_table_name(error)}' doesn't exist in the database.",
                type=Severity.ERROR,
                action="Please create the missing tables using the SQL generator in the diagnostics tools.",
            )
        if code in CODE_RULES:
            return CODE_RULES[code].model_copy()
        return FriendlyError(
            title="Database Error",
            message=f"A database error occurred: {message or 'Unknown error'}",
            type=Severity.ERROR,
            action="Please try again. If the problem persists, contact support.",
        )

    if isinstance(error, AccessDeniedError):
        return FriendlyError(
            title="Permission Denied",
            message=error.message,
            type=Severity.ERROR,
            action="Please check your account permissions or contact your administrator.",
        )
    if isinstance(error, RowShapeError):
        return FriendlyError(
            title="Invalid Data",
            message="The server returned data in an unexpected format.",
            type=Severity.ERROR,
            action="Please refresh and try again. If this continues, the database schema may be out of date.",
        )
    if isinstance(error, (BackendTimeoutError, httpx.TimeoutException)):
        return TIMEOUT_ERROR.model_copy()
    if isinstance(error, (BackendConnectionError, httpx.TransportError, ConnectionError)):
        return NETWORK_ERROR.model_copy()

    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return TIMEOUT_ERROR.model_copy()
    if "fetch" in lowered or "network" in lowered or "connect" in lowered:
        return NETWORK_ERROR.model_copy()
    if "validation" in lowered or "required" in lowered:
        return VALIDATION_ERROR.model_copy()

    return FriendlyError(
        title="Unexpected Error",
        message=message or "Something went wrong. Please try again.",
        type=Severity.ERROR,
        action="If the problem continues, please contact support.",
    )


def get_operation_specific_error(error: Any, operation: ErrorOperation) -> FriendlyError:
    """Normalize an error and retitle it for the operation that failed.

    The base classification (``type`` and ``message``) is preserved; only the
    title changes, and message/action are filled in when the base lacks them.
    """
    base = get_friendly_error_message(error)
    try:
        rule = OPERATION_RULES[ErrorOperation(operation)]
    except (KeyError, ValueError):
        return base

    title, default_message, default_action = rule
    return base.model_copy(
        update={
            "title": title,
            "message": base.message or default_message,
            "action": base.action or default_action,
        }
    )


def get_success_message(action: str) -> FriendlyError:
    """Info-typed confirmation for a completed action."""
    return FriendlyError(
        title="Success!",
        message=f"{action} completed successfully.",
        type=Severity.INFO,
    )
