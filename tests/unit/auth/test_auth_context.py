"""Unit tests for the operator auth state machine and redirect policy."""

import pytest

from insura_ops.auth import AuthContext, AuthState, AuthStatus, Route, resolve_redirect
from insura_ops.auth.redirects import route_for_role
from insura_ops.schemas.entities import UserProfile
from insura_ops.schemas.enums import UserRole

from conftest import make_access_token


@pytest.fixture
def admin_user(fake_backend):
    user = fake_backend.add_user("admin@example.com", "secret123", full_name="Ops Admin")
    fake_backend.seed("user_profiles", user_id=user["id"], role="admin", full_name="Ops Admin")
    return user


@pytest.fixture
def context(backend_clients, test_settings):
    return AuthContext(backend_clients, test_settings)


class TestLogin:
    @pytest.mark.asyncio
    async def test_admin_login(self, context, admin_user):
        statuses = []
        context.subscribe(lambda state: statuses.append(state.status))

        result = await context.login("admin@example.com", "secret123")

        assert result.success
        assert result.role == UserRole.ADMIN
        assert context.state.is_authenticated
        assert context.state.user.id == admin_user["id"]
        assert context.redirect_target() == Route.ADMIN_DASHBOARD
        assert statuses == [AuthStatus.AUTHENTICATING, AuthStatus.AUTHENTICATED]

    @pytest.mark.asyncio
    async def test_client_login(self, fake_backend, context):
        user = fake_backend.add_user("client@example.com", "secret123")
        fake_backend.seed("user_profiles", user_id=user["id"], role="client")

        result = await context.login("client@example.com", "secret123")

        assert result.role == UserRole.CLIENT
        assert context.redirect_target() == Route.CLIENT_DASHBOARD

    @pytest.mark.asyncio
    async def test_wrong_password(self, context, admin_user):
        result = await context.login("admin@example.com", "wrong")

        assert not result.success
        assert result.error.title == "Invalid Login Credentials"
        assert context.state.status == AuthStatus.ERROR
        assert not context.state.is_authenticated
        assert context.redirect_target() == Route.CLIENT_LOGIN

    @pytest.mark.asyncio
    async def test_acknowledge_error(self, context, admin_user):
        await context.login("admin@example.com", "wrong")

        context.acknowledge_error()

        assert context.state.status == AuthStatus.UNAUTHENTICATED
        assert context.state.error is None


class TestMissingProfile:
    @pytest.mark.asyncio
    async def test_profile_created_with_service_key(self, fake_backend, context):
        user = fake_backend.add_user("new@example.com", "secret123", full_name="New Person")

        result = await context.login("new@example.com", "secret123")

        assert result.role == UserRole.CLIENT
        assert context.state.profile.full_name == "New Person"
        profile_post = fake_backend.calls("POST", "/rest/v1/user_profiles")[0]
        assert profile_post.headers["authorization"] == "Bearer service-key"
        assert fake_backend.tables["user_profiles"][0]["user_id"] == user["id"]

    @pytest.mark.asyncio
    async def test_without_service_key_goes_to_remediation(self, fake_backend, restricted_only, test_settings):
        fake_backend.add_user("new@example.com", "secret123")
        context = AuthContext(restricted_only, test_settings)

        result = await context.login("new@example.com", "secret123")

        assert result.success
        assert result.role is None
        assert context.state.is_authenticated
        assert context.redirect_target() == Route.PROFILE_REMEDIATION
        assert fake_backend.tables["user_profiles"] == []

    @pytest.mark.asyncio
    async def test_profile_table_missing(self, fake_backend, context, admin_user):
        del fake_backend.tables["user_profiles"]

        result = await context.login("admin@example.com", "secret123")

        assert result.success
        assert context.state.profile is None
        assert context.redirect_target() == Route.PROFILE_REMEDIATION


class TestSession:
    @pytest.mark.asyncio
    async def test_initialize_without_session(self, context):
        state = await context.initialize()

        assert state.status == AuthStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_initialize_from_tokens(self, context, admin_user):
        token = make_access_token(admin_user["id"], admin_user["email"])

        state = await context.initialize(token, f"refresh-{admin_user['id']}")

        assert state.is_authenticated
        assert state.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_initialize_with_bad_refresh_token(self, context, admin_user):
        expired = make_access_token(admin_user["id"], expires_in=-60)

        state = await context.initialize(expired, "refresh-unknown")

        assert state.status == AuthStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_logout(self, fake_backend, context, admin_user):
        await context.login("admin@example.com", "secret123")

        await context.logout()

        assert context.state == AuthState()
        assert len(fake_backend.calls("POST", "/auth/v1/logout")) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, context, admin_user):
        seen = []
        unsubscribe = context.subscribe(seen.append)
        unsubscribe()

        await context.login("admin@example.com", "secret123")

        assert seen == []


class TestAccountActions:
    @pytest.mark.asyncio
    async def test_sign_up_needs_confirmation(self, fake_backend, context):
        result = await context.sign_up("fresh@example.com", "secret123", full_name="Fresh Person")

        assert result.success
        assert "check your email" in result.message
        assert result.user.email == "fresh@example.com"
        assert not context.state.is_authenticated
        signup = fake_backend.calls("POST", "/auth/v1/signup")[0]
        assert signup.url.params["redirect_to"] == "https://ops.example.com/confirm-email"

    @pytest.mark.asyncio
    async def test_sign_up_existing_email(self, context, admin_user):
        result = await context.sign_up("admin@example.com", "secret123")

        assert result.error.title == "Account Already Exists"

    @pytest.mark.asyncio
    async def test_reset_password_leaves_state(self, fake_backend, context):
        result = await context.reset_password("someone@example.com")

        assert result.success
        assert result.notice.title == "Password Reset Email Sent"
        assert context.state.status == AuthStatus.UNAUTHENTICATED
        recover = fake_backend.calls("POST", "/auth/v1/recover")[0]
        assert recover.url.params["redirect_to"] == "https://ops.example.com/reset-password"

    @pytest.mark.asyncio
    async def test_update_profile_requires_session(self, fake_backend, context):
        result = await context.update_profile({"full_name": "Nobody"})

        assert result.error.title == "Not Authenticated"
        assert fake_backend.calls("PATCH", "/rest/v1/user_profiles") == []

    @pytest.mark.asyncio
    async def test_update_profile(self, context, admin_user):
        await context.login("admin@example.com", "secret123")

        result = await context.update_profile({"phone": "+254700000000"})

        assert result.success
        assert context.state.profile.phone == "+254700000000"

    @pytest.mark.asyncio
    async def test_update_password(self, fake_backend, context, admin_user):
        await context.login("admin@example.com", "secret123")

        result = await context.update_password("newsecret456")

        assert result.success
        assert fake_backend.passwords["admin@example.com"] == "newsecret456"


class TestRedirects:
    @pytest.mark.parametrize(
        "role,route",
        [
            (UserRole.ADMIN, Route.ADMIN_DASHBOARD),
            (UserRole.AGENT, Route.ADMIN_DASHBOARD),
            (UserRole.CLIENT, Route.CLIENT_DASHBOARD),
        ],
    )
    def test_authenticated_role(self, role, route):
        state = AuthState(status=AuthStatus.AUTHENTICATED, profile=UserProfile(id="p1", user_id="u1", role=role))

        assert resolve_redirect(state) == route
        assert route_for_role(role) == route

    def test_unauthenticated(self):
        assert resolve_redirect(AuthState()) == Route.CLIENT_LOGIN

    def test_authenticated_without_profile(self):
        assert resolve_redirect(AuthState(status=AuthStatus.AUTHENTICATED)) == Route.PROFILE_REMEDIATION

    def test_no_role(self):
        assert route_for_role(None) is None
