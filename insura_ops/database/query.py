"""PostgREST query builder.

Mirrors the chained style of the Supabase client libraries:

    await client.table("quotes").select("*, companies(name)").eq("id", quote_id).single().execute()
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

import httpx

from insura_ops.core.exceptions import BackendError
from insura_ops.database.http import response_json

if TYPE_CHECKING:
    from insura_ops.database.client import SupabaseClient

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


@dataclass
class APIResponse:
    """Result of a data API call."""

    data: Any
    count: Optional[int] = None


def format_value(value: Any) -> str:
    """Render a Python value the way PostgREST filters expect it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """Extract the total from a ``Content-Range: 0-9/42`` header."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


def backend_error_from_response(response: httpx.Response) -> BackendError:
    body = response_json(response)
    if isinstance(body, dict):
        return BackendError(
            body.get("message") or response.reason_phrase or "Backend request failed",
            code=body.get("code"),
            details=body.get("details"),
            hint=body.get("hint"),
            status_code=response.status_code,
        )
    return BackendError(
        response.text or response.reason_phrase or "Backend request failed",
        status_code=response.status_code,
    )


class QueryBuilder:
    """Builds and executes one request against a table endpoint."""

    def __init__(self, client: "SupabaseClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._orders: List[str] = []
        self._prefer: List[str] = []
        self._headers: Dict[str, str] = {}
        self._json: Any = None
        self._single = False
        self._maybe_single = False

    @property
    def table_name(self) -> str:
        return self._table

    # Operations

    def select(self, columns: str = "*", count: Optional[str] = None) -> "QueryBuilder":
        cleaned = "".join(columns.split())
        self._params = [p for p in self._params if p[0] != "select"]
        self._params.append(("select", cleaned))
        if count:
            self._prefer.append(f"count={count}")
        return self

    def insert(self, payload: Any) -> "QueryBuilder":
        self._method = "POST"
        self._json = payload
        self._prefer.append("return=representation")
        return self

    def upsert(self, payload: Any, on_conflict: Optional[str] = None) -> "QueryBuilder":
        self._method = "POST"
        self._json = payload
        self._prefer.extend(["return=representation", "resolution=merge-duplicates"])
        if on_conflict:
            self._params.append(("on_conflict", on_conflict))
        return self

    def update(self, payload: Dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._json = payload
        self._prefer.append("return=representation")
        return self

    def delete(self) -> "QueryBuilder":
        self._method = "DELETE"
        self._prefer.append("return=representation")
        return self

    # Filters

    def _filter(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"{operator}.{format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lte", value)

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        return self._filter(column, "ilike", pattern)

    def is_(self, column: str, value: Optional[bool]) -> "QueryBuilder":
        return self._filter(column, "is", value)

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        rendered = ",".join(format_value(v) for v in values)
        self._params.append((column, f"in.({rendered})"))
        return self

    def or_(self, filters: str) -> "QueryBuilder":
        self._params.append(("or", f"({filters})"))
        return self

    # Modifiers

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        self._orders.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self._params = [p for p in self._params if p[0] != "limit"]
        self._params.append(("limit", str(count)))
        return self

    def range(self, start: int, end: int) -> "QueryBuilder":
        self._params = [p for p in self._params if p[0] not in ("offset", "limit")]
        self._params.append(("offset", str(start)))
        self._params.append(("limit", str(end - start + 1)))
        return self

    def single(self) -> "QueryBuilder":
        """Expect exactly one row; zero or several rows is a PGRST116 error."""
        self._single = True
        self._headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        return self

    def maybe_single(self) -> "QueryBuilder":
        """Expect at most one row; data is None when nothing matched."""
        self._maybe_single = True
        return self

    def build_params(self) -> List[Tuple[str, str]]:
        params = list(self._params)
        if self._orders:
            params.append(("order", ",".join(self._orders)))
        return params

    def build_headers(self) -> Dict[str, str]:
        headers = dict(self._headers)
        if self._prefer:
            headers["Prefer"] = ",".join(self._prefer)
        return headers

    async def execute(self) -> APIResponse:
        """Send the request.

        Raises:
            BackendError: If the backend rejects the request
        """
        response = await self._client.request(
            self._method,
            self._table,
            params=self.build_params(),
            json=self._json,
            headers=self.build_headers(),
        )
        if response.status_code >= 400:
            raise backend_error_from_response(response)

        data = response_json(response)
        count = parse_content_range(response.headers.get("content-range"))

        if self._maybe_single:
            rows = data or []
            if isinstance(rows, dict):
                return APIResponse(data=rows, count=count)
            if len(rows) > 1:
                raise BackendError(
                    "JSON object requested, multiple (or no) rows returned",
                    code="PGRST116",
                    details=f"The result contains {len(rows)} rows",
                    status_code=406,
                )
            return APIResponse(data=rows[0] if rows else None, count=count)

        return APIResponse(data=data, count=count)
