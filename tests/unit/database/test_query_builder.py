"""Unit tests for the PostgREST query builder."""

from enum import Enum

import httpx
import pytest

from insura_ops.core.exceptions import BackendError
from insura_ops.database.client import SupabaseClient
from insura_ops.database.query import format_value, parse_content_range


class Color(str, Enum):
    RED = "red"


def _client(handler) -> SupabaseClient:
    return SupabaseClient("https://fake.supabase.co", "anon-key", transport=httpx.MockTransport(handler))


class TestFormatting:
    def test_format_value(self):
        assert format_value(None) == "null"
        assert format_value(True) == "true"
        assert format_value(False) == "false"
        assert format_value(Color.RED) == "red"
        assert format_value(12) == "12"

    @pytest.mark.parametrize(
        "header,expected",
        [("0-9/42", 42), ("*/0", 0), ("0-9/*", None), (None, None), ("garbage", None)],
    )
    def test_parse_content_range(self, header, expected):
        assert parse_content_range(header) == expected


class TestBuild:
    """Filters and modifiers become query parameters and headers."""

    def test_list_query_params(self, anon_client):
        query = (
            anon_client.table("companies")
            .select("*, companies(name)", count="exact")
            .eq("status", "active")
            .in_("country", ["Kenya", "Uganda"])
            .or_("name.ilike.*acme*,industry.ilike.*acme*")
            .order("created_at", ascending=False)
            .range(20, 29)
        )

        params = query.build_params()

        assert ("select", "*,companies(name)") in params
        assert ("status", "eq.active") in params
        assert ("country", "in.(Kenya,Uganda)") in params
        assert ("or", "(name.ilike.*acme*,industry.ilike.*acme*)") in params
        assert ("offset", "20") in params
        assert ("limit", "10") in params
        assert ("order", "created_at.desc") in params
        assert query.build_headers()["Prefer"] == "count=exact"

    def test_comparison_filters(self, anon_client):
        params = (
            anon_client.table("renewals")
            .select()
            .gte("renewal_date", "2024-01-01")
            .lte("renewal_date", "2024-03-31")
            .neq("status", "lapsed")
            .is_("notes", None)
            .build_params()
        )

        assert ("renewal_date", "gte.2024-01-01") in params
        assert ("renewal_date", "lte.2024-03-31") in params
        assert ("status", "neq.lapsed") in params
        assert ("notes", "is.null") in params

    def test_write_headers(self, anon_client):
        assert anon_client.table("quotes").insert({}).build_headers()["Prefer"] == "return=representation"
        assert anon_client.table("quotes").delete().build_headers()["Prefer"] == "return=representation"
        upsert = anon_client.table("countries").upsert({}, on_conflict="code")
        assert "resolution=merge-duplicates" in upsert.build_headers()["Prefer"]
        assert ("on_conflict", "code") in upsert.build_params()

    def test_single_sets_accept(self, anon_client):
        headers = anon_client.table("quotes").select().single().build_headers()

        assert headers["Accept"] == "application/vnd.pgrst.object+json"

    def test_limit_replaces_previous(self, anon_client):
        params = anon_client.table("quotes").select().limit(5).limit(1).build_params()

        assert [p for p in params if p[0] == "limit"] == [("limit", "1")]


class TestExecute:
    @pytest.mark.asyncio
    async def test_sends_api_key_and_reads_count(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["url"] = request.url
            return httpx.Response(200, json=[{"id": "1"}], headers={"content-range": "0-0/7"})

        response = await _client(handler).table("companies").select("*", count="exact").execute()

        assert response.data == [{"id": "1"}]
        assert response.count == 7
        assert seen["headers"]["apikey"] == "anon-key"
        assert seen["headers"]["authorization"] == "Bearer anon-key"
        assert seen["url"].path == "/rest/v1/companies"

    @pytest.mark.asyncio
    async def test_access_token_replaces_bearer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers["authorization"]
            return httpx.Response(200, json=[])

        client = _client(handler)
        client.set_access_token("user-token")
        await client.table("companies").select().execute()

        assert seen["authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_error_body_raises_backend_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409,
                json={"code": "23505", "message": "duplicate key value", "details": "Key (name)", "hint": None},
            )

        with pytest.raises(BackendError) as exc_info:
            await _client(handler).table("companies").insert({"name": "Acme"}).execute()

        assert exc_info.value.code == "23505"
        assert exc_info.value.status_code == 409
        assert exc_info.value.details == "Key (name)"

    @pytest.mark.asyncio
    async def test_maybe_single(self):
        rows = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=rows)

        client = _client(handler)
        assert (await client.table("quotes").select().maybe_single().execute()).data is None

        rows.append({"id": "1"})
        assert (await client.table("quotes").select().maybe_single().execute()).data == {"id": "1"}

        rows.append({"id": "2"})
        with pytest.raises(BackendError) as exc_info:
            await client.table("quotes").select().maybe_single().execute()
        assert exc_info.value.code == "PGRST116"

    @pytest.mark.asyncio
    async def test_timeout_becomes_backend_timeout(self):
        from insura_ops.core.exceptions import BackendTimeoutError

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(BackendTimeoutError):
            await _client(handler).table("quotes").select().execute()

    @pytest.mark.asyncio
    async def test_connect_error_becomes_connection_error(self):
        from insura_ops.core.exceptions import BackendConnectionError

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BackendConnectionError):
            await _client(handler).table("quotes").select().execute()

    @pytest.mark.asyncio
    async def test_rpc(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/rpc/pipeline_total"
            return httpx.Response(200, json=1250.5)

        response = await _client(handler).rpc("pipeline_total", {"stage": "quote"})

        assert response.data == 1250.5
