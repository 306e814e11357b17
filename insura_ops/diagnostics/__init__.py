"""Operational diagnostics: table checks, DDL, connection and role tools."""

from insura_ops.diagnostics.connection import ConnectionReport, run_connection_test
from insura_ops.diagnostics.roles import RoleReport, ensure_profile, promote_to_admin, verify_user_role
from insura_ops.diagnostics.schema_sql import SqlScript, generate_table_sql
from insura_ops.diagnostics.tables import EXPECTED_TABLES, TableCheck, TableStatus, check_tables, inspect_tables

__all__ = [
    "EXPECTED_TABLES",
    "ConnectionReport",
    "RoleReport",
    "SqlScript",
    "TableCheck",
    "TableStatus",
    "check_tables",
    "ensure_profile",
    "generate_table_sql",
    "inspect_tables",
    "promote_to_admin",
    "run_connection_test",
    "verify_user_role",
]
