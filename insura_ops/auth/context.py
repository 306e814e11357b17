"""Authentication state machine.

``AuthContext`` owns the signed-in identity, its profile and derived role for
one operator session. It moves between ``unauthenticated``,
``authenticating``, ``authenticated`` and ``error`` and notifies subscribers
on every change. Public operations never raise; failures come back as
normalized errors on the returned result.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from insura_ops.auth.redirects import Route, resolve_redirect
from insura_ops.core.config import Settings, settings as default_settings
from insura_ops.database import BackendClients
from insura_ops.schemas.auth import ActionResult, AuthUser, LoginResult, SignUpResult
from insura_ops.schemas.entities import UserProfile, UserProfileCreate, UserProfileUpdate
from insura_ops.schemas.enums import UserRole
from insura_ops.services.privileged_profiles import create_profile_with_service_key
from insura_ops.services.user_profile_service import UserProfileService
from insura_ops.utils.errors import FriendlyError, Severity, get_friendly_error_message
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

NOT_AUTHENTICATED = FriendlyError(
    title="Not Authenticated",
    message="You must be logged in to update your profile.",
    type=Severity.ERROR,
)

SIGN_UP_MESSAGE = "Account created successfully! Please check your email to confirm your account."


class AuthStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


@dataclass(frozen=True)
class AuthState:
    status: AuthStatus = AuthStatus.UNAUTHENTICATED
    user: Optional[AuthUser] = None
    profile: Optional[UserProfile] = None
    error: Optional[FriendlyError] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    @property
    def role(self) -> Optional[UserRole]:
        return self.profile.role if self.profile else None


AuthStateListener = Callable[[AuthState], None]


class AuthContext:
    """Session state for one operator."""

    def __init__(
        self,
        clients: BackendClients,
        app_settings: Optional[Settings] = None,
        profiles: Optional[UserProfileService] = None,
    ):
        """Initialize the context.

        Args:
            clients: Restricted and (optional) privileged backend handles
            app_settings: Settings providing redirect URLs
            profiles: Profile service on the restricted handle
        """
        self.clients = clients
        self.settings = app_settings or default_settings
        self.auth = clients.restricted.auth
        self.profiles = profiles or UserProfileService(clients.restricted)
        self._state = AuthState()
        self._listeners: List[AuthStateListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register a state listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: AuthState) -> None:
        previous = self._state.status
        self._state = state
        if previous != state.status:
            LOGGER.info(f"Auth state {previous.value} -> {state.status.value}")
        for listener in list(self._listeners):
            listener(state)

    def redirect_target(self) -> Route:
        return resolve_redirect(self._state)

    async def _load_profile(self, user: AuthUser) -> Optional[UserProfile]:
        """Fetch the user's profile, creating a default client profile when none exists.

        Creation needs the privileged handle; without it the user stays
        profile-less and is sent to remediation.
        """
        result = await self.profiles.find_by_user_id(user.id)
        if not result.success:
            LOGGER.error(f"Could not load profile for {user.id}: {result.error.message}")
            return None
        if result.data is not None:
            return result.data

        if not self.clients.has_service_key():
            LOGGER.warning(f"No profile for {user.id} and no service role key to create one")
            return None

        LOGGER.info(f"Creating default client profile for {user.id}")
        created = await create_profile_with_service_key(
            self.clients.privileged,
            UserProfileCreate(user_id=user.id, role=UserRole.CLIENT, full_name=user.display_name),
        )
        if not created.success:
            LOGGER.error(f"Default profile creation failed for {user.id}: {created.error.message}")
            return None
        return created.data

    async def _authenticate(self, user: AuthUser) -> AuthState:
        profile = await self._load_profile(user)
        state = AuthState(status=AuthStatus.AUTHENTICATED, user=user, profile=profile)
        self._set_state(state)
        return state

    async def initialize(
        self, access_token: Optional[str] = None, refresh_token: Optional[str] = None
    ) -> AuthState:
        """Restore a session, either the client's stored one or a supplied token pair."""
        try:
            if access_token and refresh_token:
                session = await self.auth.set_session(access_token, refresh_token)
            else:
                session = await self.auth.get_session()
            if session is None:
                self._set_state(AuthState())
                return self._state
            user = session.user or await self.auth.get_user()
            return await self._authenticate(user)
        except Exception as e:
            LOGGER.warning(f"Session restore failed: {str(e)}")
            self._set_state(AuthState())
            return self._state

    async def login(self, email: str, password: str) -> LoginResult:
        """Sign in with email and password.

        Returns:
            LoginResult with the resolved role, or the normalized error
        """
        self._set_state(AuthState(status=AuthStatus.AUTHENTICATING))
        try:
            response = await self.auth.sign_in_with_password(email, password)
            user = response.user or await self.auth.get_user()
            state = await self._authenticate(user)
            LOGGER.info(f"Login successful, role: {state.role.value if state.role else None}")
            return LoginResult(success=True, role=state.role)
        except Exception as e:
            error = get_friendly_error_message(e)
            LOGGER.error(f"Login failed: {error.title}")
            self._set_state(AuthState(status=AuthStatus.ERROR, error=error))
            return LoginResult(success=False, error=error)

    def acknowledge_error(self) -> None:
        """Return from the error state once it has been shown."""
        if self._state.status == AuthStatus.ERROR:
            self._set_state(AuthState())

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> SignUpResult:
        try:
            response = await self.auth.sign_up(
                email,
                password,
                data={"full_name": full_name},
                redirect_to=self.settings.confirmation_redirect_url,
            )
        except Exception as e:
            return SignUpResult(success=False, error=get_friendly_error_message(e))

        if response.session and response.user:
            await self._authenticate(response.user)
        return SignUpResult(success=True, user=response.user, message=SIGN_UP_MESSAGE)

    async def reset_password(self, email: str) -> ActionResult:
        """Send a password-reset email; the auth state does not change."""
        try:
            await self.auth.reset_password_for_email(email, redirect_to=self.settings.password_reset_redirect_url)
        except Exception as e:
            LOGGER.error(f"Password reset error: {str(e)}")
            return ActionResult(success=False, error=get_friendly_error_message(e))
        return ActionResult(
            success=True,
            notice=FriendlyError(
                title="Password Reset Email Sent",
                message="Check your email for password reset instructions.",
                type=Severity.INFO,
                action="Follow the link in your email to reset your password.",
            ),
        )

    async def update_password(self, new_password: str) -> ActionResult:
        try:
            await self.auth.update_user({"password": new_password})
        except Exception as e:
            return ActionResult(success=False, error=get_friendly_error_message(e))
        return ActionResult(success=True)

    async def confirm_email(self, email: str, token: str) -> ActionResult:
        """Verify a sign-up confirmation code and sign the user in."""
        try:
            response = await self.auth.verify_otp(email, token, type="signup")
            if response.session and response.user:
                await self._authenticate(response.user)
        except Exception as e:
            return ActionResult(success=False, error=get_friendly_error_message(e))
        return ActionResult(success=True)

    async def resend_confirmation(self, email: str) -> ActionResult:
        try:
            await self.auth.resend(email, type="signup", redirect_to=self.settings.confirmation_redirect_url)
        except Exception as e:
            return ActionResult(success=False, error=get_friendly_error_message(e))
        return ActionResult(success=True)

    async def update_profile(self, changes: Union[UserProfileUpdate, Dict[str, Any]]) -> ActionResult:
        state = self._state
        if not state.is_authenticated or state.user is None:
            return ActionResult(success=False, error=NOT_AUTHENTICATED)

        result = await self.profiles.update_by_user_id(state.user.id, changes)
        if not result.success:
            return ActionResult(success=False, error=result.error)

        self._set_state(replace(state, profile=result.data))
        return ActionResult(success=True)

    async def logout(self) -> None:
        """Clear local state, then end the backend session."""
        self._set_state(AuthState())
        try:
            await self.auth.sign_out()
        except Exception as e:
            LOGGER.error(f"Logout error: {str(e)}")
