"""Unit tests for table checks and DDL generation."""

import pytest

from insura_ops.diagnostics import EXPECTED_TABLES, TableStatus, check_tables, generate_table_sql, inspect_tables
from insura_ops.diagnostics.schema_sql import MIGRATION_FILE


class TestCheckTables:
    @pytest.mark.asyncio
    async def test_only_missing_table_is_false(self, fake_backend, anon_client):
        del fake_backend.tables["renewals"]

        result = await check_tables(anon_client)

        assert result["renewals"] is False
        assert all(exists for name, exists in result.items() if name != "renewals")
        assert set(result) == set(EXPECTED_TABLES)

    @pytest.mark.asyncio
    async def test_permission_error_counts_as_existing(self, fake_backend, anon_client):
        fake_backend.fail_table("claims", 401, "42501", "permission denied for table claims")

        checks = await inspect_tables(anon_client, ["claims", "deals"])

        assert checks["claims"].status == TableStatus.ERRORED
        assert checks["claims"].exists
        assert checks["claims"].error.title == "Permission Denied"
        assert checks["deals"].status == TableStatus.EXISTS
        assert checks["deals"].error is None

    @pytest.mark.asyncio
    async def test_check_is_a_single_row_select(self, fake_backend, anon_client):
        await inspect_tables(anon_client, ["companies"])

        request = fake_backend.calls("GET", "/rest/v1/companies")[0]
        assert request.url.params["select"] == "*"
        assert request.url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_empty_table_list_checks_nothing(self, fake_backend, anon_client):
        assert await check_tables(anon_client, []) == {}
        assert await inspect_tables(anon_client, ()) == {}
        assert fake_backend.requests == []


class TestGenerateTableSql:
    def test_only_requested_tables(self):
        script = generate_table_sql(["renewals"])

        assert [t.name for t in script.tables] == ["renewals"]
        assert "CREATE TABLE IF NOT EXISTS renewals" in script.tables[0].sql
        assert "CREATE TABLE IF NOT EXISTS companies" not in script.render()
        assert script.migration_file == MIGRATION_FILE

    def test_dependency_order(self):
        script = generate_table_sql(["claims", "policies", "companies"])

        assert [t.name for t in script.tables] == ["companies", "policies", "claims"]

    def test_all_tables_by_default(self):
        script = generate_table_sql()

        assert {t.name for t in script.tables} == set(EXPECTED_TABLES)

    def test_unknown_table(self):
        with pytest.raises(ValueError, match="Unknown table"):
            generate_table_sql(["renewals", "spaceships"])
