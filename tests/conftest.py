"""Pytest configuration and shared fixtures.

Backend calls go through ``httpx.MockTransport`` into ``FakeSupabase``, a small
in-memory stand-in for the PostgREST data API and the GoTrue auth API.
"""

import json
import os
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

os.environ.setdefault("SUPABASE_URL", "https://fake.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

from insura_ops.core.config import Settings, SupabaseSettings
from insura_ops.database import BackendClients
from insura_ops.database.client import ANON_ROLE, SERVICE_ROLE, SupabaseClient
from insura_ops.diagnostics.tables import EXPECTED_TABLES
from insura_ops.main import app

BASE_URL = "https://fake.supabase.co"
TOKEN_SECRET = "fake-jwt-secret"

# embedded relation -> foreign key column on the child row
EMBED_KEYS = {
    "companies": "company_id",
    "providers": "provider_id",
    "policies": "policy_id",
    "employees": "employee_id",
    "deals": "deal_id",
}

_EMBED_PATTERN = re.compile(r"(\w+)\(([^)]*)\)")
_RESERVED_PARAMS = {"select", "order", "offset", "limit", "on_conflict", "or"}


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _compare(left: Any, right: str) -> Tuple[Any, Any]:
    try:
        return float(left), float(right)
    except (TypeError, ValueError):
        return _render(left), right


def make_access_token(user_id: str, email: Optional[str] = None, expires_in: int = 3600) -> str:
    claims = {
        "sub": user_id,
        "email": email,
        "role": "authenticated",
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(claims, TOKEN_SECRET, algorithm="HS256")


class FakeSupabase:
    """In-memory data and auth API that records every request it serves."""

    def __init__(self, tables=EXPECTED_TABLES):
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in tables}
        self.table_errors: Dict[str, Tuple[int, Dict[str, Any]]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.passwords: Dict[str, str] = {}
        self.requests: List[httpx.Request] = []
        self.auth_healthy = True

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Seeding

    def seed(self, table: str, **row: Any) -> Dict[str, Any]:
        record = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **row}
        self.tables[table].append(record)
        return record

    def add_user(self, email: str, password: str, **metadata: Any) -> Dict[str, Any]:
        user = {
            "id": str(uuid.uuid4()),
            "email": email,
            "role": "authenticated",
            "user_metadata": metadata,
            "app_metadata": {},
        }
        self.users[user["id"]] = user
        self.passwords[email] = password
        return user

    def fail_table(self, table: str, status_code: int, code: str, message: str, hint: Optional[str] = None) -> None:
        self.table_errors[table] = (status_code, {"code": code, "message": message, "details": None, "hint": hint})

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    # Dispatch

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/rest/v1"):
            return self._handle_rest(request, path[len("/rest/v1"):].strip("/"))
        if path.startswith("/auth/v1"):
            return self._handle_auth(request, path[len("/auth/v1"):].strip("/"))
        return httpx.Response(404, json={"message": "not found"})

    # Data API

    def _body(self, request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def _matches(self, row: Dict[str, Any], params: List[Tuple[str, str]]) -> bool:
        for column, expression in params:
            if column in _RESERVED_PARAMS:
                if column == "or" and not self._matches_any(row, expression):
                    return False
                continue
            operator, _, value = expression.partition(".")
            actual = row.get(column)
            if operator in ("eq", "is") and _render(actual) != value:
                return False
            if operator == "neq" and _render(actual) == value:
                return False
            if operator == "in" and _render(actual) not in value.strip("()").split(","):
                return False
            if operator in ("gt", "gte", "lt", "lte"):
                if actual is None:
                    return False
                left, right = _compare(actual, value)
                if not {"gt": left > right, "gte": left >= right, "lt": left < right, "lte": left <= right}[operator]:
                    return False
            if operator == "ilike" and value.strip("*").lower() not in _render(actual).lower():
                return False
        return True

    def _matches_any(self, row: Dict[str, Any], expression: str) -> bool:
        for clause in expression.strip("()").split(","):
            column, operator, value = clause.split(".", 2)
            if operator == "ilike" and value.strip("*").lower() in _render(row.get(column, "")).lower():
                return True
        return False

    def _embed(self, row: Dict[str, Any], select: str) -> Dict[str, Any]:
        shaped = dict(row)
        for relation, columns in _EMBED_PATTERN.findall(select):
            parent_id = row.get(EMBED_KEYS.get(relation, ""))
            parent = next((p for p in self.tables.get(relation, []) if p["id"] == parent_id), None)
            wanted = [c for c in columns.split(",") if c]
            shaped[relation] = {c: parent.get(c) for c in wanted} if parent else None
        return shaped

    def _handle_rest(self, request: httpx.Request, table: str) -> httpx.Response:
        if table == "":
            return httpx.Response(200, json={"swagger": "2.0"})
        if table.startswith("rpc/"):
            return httpx.Response(200, json=None)
        if table in self.table_errors:
            status_code, body = self.table_errors[table]
            return httpx.Response(status_code, json=body)
        if table not in self.tables:
            return httpx.Response(
                404,
                json={
                    "code": "PGRST205",
                    "message": f"Could not find the table 'public.{table}' in the schema cache",
                    "details": None,
                    "hint": None,
                },
            )

        params = list(request.url.params.multi_items())
        select = dict(params).get("select", "*")
        rows = self.tables[table]
        matched = [row for row in rows if self._matches(row, params)]
        prefer = request.headers.get("prefer", "")

        if request.method == "POST":
            body = self._body(request)
            created = []
            for item in body if isinstance(body, list) else [body]:
                record = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **item}
                rows.append(record)
                created.append(self._embed(record, select))
            return httpx.Response(201, json=created)

        if request.method == "PATCH":
            changes = self._body(request) or {}
            for row in matched:
                row.update(changes)
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
            return httpx.Response(200, json=[self._embed(row, select) for row in matched])

        if request.method == "DELETE":
            for row in matched:
                rows.remove(row)
            return httpx.Response(200, json=[{"id": row["id"]} for row in matched])

        for column_order in reversed([o for p, v in params if p == "order" for o in v.split(",")]):
            column, _, direction = column_order.partition(".")
            matched.sort(key=lambda r: _render(r.get(column)), reverse=direction == "desc")

        total = len(matched)
        query = dict(params)
        offset = int(query.get("offset", 0))
        limit = int(query["limit"]) if "limit" in query else total
        page = [self._embed(row, select) for row in matched[offset:offset + limit]]

        headers = {}
        if "count=exact" in prefer:
            end = offset + len(page) - 1 if page else offset
            headers["content-range"] = f"{offset}-{end}/{total}"

        if request.headers.get("accept") == "application/vnd.pgrst.object+json":
            if len(page) != 1:
                return httpx.Response(
                    406,
                    json={"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"},
                )
            return httpx.Response(200, json=page[0], headers=headers)
        return httpx.Response(200, json=page, headers=headers)

    # Auth API

    def _session_for(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "access_token": make_access_token(user["id"], user.get("email")),
            "refresh_token": f"refresh-{user['id']}",
            "token_type": "bearer",
            "expires_in": 3600,
            "user": user,
        }

    def _bearer_user(self, request: httpx.Request) -> Optional[Dict[str, Any]]:
        token = request.headers.get("authorization", "").replace("Bearer ", "")
        try:
            claims = jwt.decode(token, TOKEN_SECRET, algorithms=["HS256"], audience="authenticated")
        except jwt.InvalidTokenError:
            return None
        return self.users.get(claims["sub"])

    def _handle_auth(self, request: httpx.Request, path: str) -> httpx.Response:
        body = self._body(request) or {}

        if path == "health":
            if not self.auth_healthy:
                return httpx.Response(503, json={"msg": "auth unavailable"})
            return httpx.Response(200, json={"version": "fake", "name": "GoTrue"})

        if path == "token":
            grant = request.url.params.get("grant_type")
            if grant == "password":
                user = next((u for u in self.users.values() if u["email"] == body.get("email")), None)
                if user is None or self.passwords.get(user["email"]) != body.get("password"):
                    return httpx.Response(
                        400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
                    )
                return httpx.Response(200, json=self._session_for(user))
            user_id = str(body.get("refresh_token", "")).replace("refresh-", "", 1)
            if user_id not in self.users:
                return httpx.Response(400, json={"msg": "Invalid Refresh Token: Refresh Token Not Found"})
            return httpx.Response(200, json=self._session_for(self.users[user_id]))

        if path == "signup":
            if body.get("email") in self.passwords:
                return httpx.Response(422, json={"msg": "User already registered", "error_code": "user_already_exists"})
            user = self.add_user(body["email"], body["password"], **(body.get("data") or {}))
            return httpx.Response(200, json=user)

        if path == "user":
            user = self._bearer_user(request)
            if user is None:
                return httpx.Response(401, json={"msg": "invalid JWT: unable to parse or verify signature"})
            if request.method == "PUT":
                if "password" in body:
                    self.passwords[user["email"]] = body["password"]
            return httpx.Response(200, json=user)

        if path in ("logout", "recover", "otp", "resend"):
            return httpx.Response(204 if path == "logout" else 200, json=None if path == "logout" else {})

        if path == "admin/users":
            if request.method == "GET":
                return httpx.Response(200, json={"users": list(self.users.values())})
            if body.get("email") in self.passwords:
                return httpx.Response(422, json={"msg": "A user with this email address has already been registered"})
            user = self.add_user(body["email"], body["password"], **(body.get("user_metadata") or {}))
            return httpx.Response(200, json=user)

        if path.startswith("admin/users/"):
            user_id = path.rsplit("/", 1)[1]
            user = self.users.get(user_id)
            if user is None:
                return httpx.Response(404, json={"msg": "User not found"})
            if request.method == "DELETE":
                del self.users[user_id]
                self.passwords.pop(user["email"], None)
                return httpx.Response(200, json={})
            return httpx.Response(200, json=user)

        return httpx.Response(404, json={"msg": f"Unknown auth path {path}"})


@pytest.fixture
def fake_backend() -> FakeSupabase:
    """Create an empty in-memory backend with every expected table."""
    return FakeSupabase()


@pytest.fixture
def anon_client(fake_backend: FakeSupabase) -> SupabaseClient:
    return SupabaseClient(BASE_URL, "anon-key", role=ANON_ROLE, transport=fake_backend.transport())


@pytest.fixture
def service_client(fake_backend: FakeSupabase) -> SupabaseClient:
    return SupabaseClient(BASE_URL, "service-key", role=SERVICE_ROLE, transport=fake_backend.transport())


@pytest.fixture
def backend_clients(anon_client: SupabaseClient, service_client: SupabaseClient) -> BackendClients:
    """Restricted and privileged handles on the same fake backend."""
    return BackendClients(restricted=anon_client, privileged=service_client)


@pytest.fixture
def restricted_only(anon_client: SupabaseClient) -> BackendClients:
    """Clients as built when no service-role key is configured."""
    return BackendClients(restricted=anon_client, privileged=None)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        supabase=SupabaseSettings(
            SUPABASE_URL=BASE_URL,
            SUPABASE_ANON_KEY="anon-key",
            SUPABASE_SERVICE_ROLE_KEY="service-key",
        ),
        SITE_URL="https://ops.example.com",
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(supabase=SupabaseSettings(SUPABASE_URL="", SUPABASE_ANON_KEY="", SUPABASE_SERVICE_ROLE_KEY=""))


@pytest.fixture
def company(fake_backend: FakeSupabase) -> Dict[str, Any]:
    return fake_backend.seed("companies", name="Acme Logistics", industry="Logistics", status="active", employee_count=40)


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}
