"""Generic table-backed service.

Every entity service runs the same five operations against one table through
the restricted client. Backend and unexpected failures are caught here,
logged and returned as a normalized ``FriendlyError`` on the result; nothing
raises past this boundary.
"""

import re
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from insura_ops.core.exceptions import AppError, BackendError, RowShapeError
from insura_ops.database.client import SupabaseClient
from insura_ops.database.query import QueryBuilder
from insura_ops.schemas.common import PaginatedResult, QueryOptions, ServiceResult
from insura_ops.utils.errors import FriendlyError, get_friendly_error_message
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_SEARCH_UNSAFE = re.compile(r"[,()*]")


def not_found_error(table: str, value: Any) -> BackendError:
    return BackendError(
        f"No {table} record matching {value}",
        code="PGRST116",
        status_code=404,
    )


class BaseService(Generic[ModelT]):
    """CRUD over one backend table.

    Subclasses set the table, the select shape, the row/create/update models
    and map rows to public records in ``from_row``.
    """

    table: str = ""
    select_columns: str = "*"
    row_model: Type[BaseModel] = BaseModel
    create_model: Optional[Type[BaseModel]] = None
    update_model: Optional[Type[BaseModel]] = None
    search_columns: Sequence[str] = ()
    default_sort: str = "created_at"

    def __init__(self, client: SupabaseClient):
        """Initialize the service.

        Args:
            client: Restricted backend client
        """
        self.client = client
        self.logger = LOGGER

    def from_row(self, row: BaseModel) -> ModelT:
        raise NotImplementedError

    # Row handling

    def parse_row(self, raw: Any) -> ModelT:
        """Validate a wire row and map it to the public record.

        Raises:
            RowShapeError: If the row does not match the row model
        """
        if not isinstance(raw, Mapping):
            raise RowShapeError(f"Expected a {self.table} row object, got {type(raw).__name__}")
        try:
            row = self.row_model.model_validate(raw)
        except ValidationError as e:
            raise RowShapeError(f"Unexpected {self.table} row shape: {e}", original_error=e) from e
        return self.from_row(row)

    def parse_rows(self, raw: Any) -> List[ModelT]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise RowShapeError(f"Expected a list of {self.table} rows, got {type(raw).__name__}")
        return [self.parse_row(item) for item in raw]

    def _payload(self, data: Union[BaseModel, Dict[str, Any]], model: Optional[Type[BaseModel]], partial: bool) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            instance = data
        elif model is not None:
            instance = model.model_validate(data)
        else:
            return dict(data)

        if hasattr(instance, "to_payload"):
            return instance.to_payload()
        if partial:
            return instance.model_dump(mode="json", exclude_unset=True)
        return instance.model_dump(mode="json", exclude_none=True)

    def _fail(self, operation: str, error: Exception) -> FriendlyError:
        if isinstance(error, AppError):
            self.logger.error(
                f"Failed to {operation} {self.table}: {error.message}",
                extra={"table": self.table, "code": getattr(error, "code", None)},
            )
        else:
            self.logger.error(
                f"Unexpected error during {operation} on {self.table}: {str(error)}",
                exc_info=True,
                extra={"table": self.table},
            )
        return get_friendly_error_message(error)

    # Query construction

    def build_list_query(self, options: QueryOptions, **equals: Any) -> QueryBuilder:
        query = self.client.table(self.table).select(self.select_columns, count="exact")

        for column, value in {**options.active_filters(), **equals}.items():
            query = query.eq(column, value)

        if options.search and self.search_columns:
            term = _SEARCH_UNSAFE.sub(" ", options.search).strip()
            if term:
                query = query.or_(",".join(f"{c}.ilike.*{term}*" for c in self.search_columns))

        query = query.order(options.sort_by or self.default_sort, ascending=options.sort_order == "asc")
        return query.range(options.range_start, options.range_end)

    async def list_where(self, options: Optional[QueryOptions] = None, **equals: Any) -> PaginatedResult[ModelT]:
        """List rows matching the options plus fixed equality filters."""
        options = options or QueryOptions()
        try:
            response = await self.build_list_query(options, **equals).execute()
            records = self.parse_rows(response.data)
            total = response.count if response.count is not None else len(records)
            return PaginatedResult(data=records, total=total, page=options.page, page_size=options.page_size)
        except Exception as e:
            return PaginatedResult(page=options.page, page_size=options.page_size, error=self._fail("list", e))

    # CRUD

    async def get_all(self, options: Optional[QueryOptions] = None) -> PaginatedResult[ModelT]:
        """Get one page of records.

        Args:
            options: Paging, sorting, filters and search

        Returns:
            PaginatedResult with records and the exact total
        """
        return await self.list_where(options)

    async def get_by_id(self, record_id: str) -> ServiceResult[ModelT]:
        """Get a single record; a missing id yields a "Record Not Found" error."""
        return await self.get_where("id", record_id)

    async def get_where(self, column: str, value: Any) -> ServiceResult[ModelT]:
        try:
            response = await (
                self.client.table(self.table)
                .select(self.select_columns)
                .eq(column, value)
                .maybe_single()
                .execute()
            )
            if response.data is None:
                raise not_found_error(self.table, value)
            return ServiceResult.ok(self.parse_row(response.data))
        except Exception as e:
            return ServiceResult.fail(self._fail("get", e))

    def prepare_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Hook for services that synthesize fields on insert."""
        return payload

    async def create(self, data: Union[BaseModel, Dict[str, Any]]) -> ServiceResult[ModelT]:
        """Insert a record and return it as stored.

        Args:
            data: Create model or mapping of column values

        Returns:
            ServiceResult with the created record
        """
        try:
            payload = self.prepare_create(self._payload(data, self.create_model, partial=False))
            response = await (
                self.client.table(self.table)
                .insert(payload)
                .select(self.select_columns)
                .execute()
            )
            rows = self.parse_rows(response.data)
            if not rows:
                raise RowShapeError(f"Insert into {self.table} returned no row")
            self.logger.info(f"Created {self.table} record {rows[0].id}", extra={"table": self.table})
            return ServiceResult.ok(rows[0])
        except Exception as e:
            return ServiceResult.fail(self._fail("create", e))

    async def update(self, record_id: str, changes: Union[BaseModel, Dict[str, Any]]) -> ServiceResult[ModelT]:
        """Apply a partial update and return the updated record."""
        return await self.update_where("id", record_id, changes)

    async def update_where(
        self, column: str, value: Any, changes: Union[BaseModel, Dict[str, Any]]
    ) -> ServiceResult[ModelT]:
        try:
            payload = self._payload(changes, self.update_model, partial=True)
            response = await (
                self.client.table(self.table)
                .update(payload)
                .eq(column, value)
                .select(self.select_columns)
                .execute()
            )
            rows = self.parse_rows(response.data)
            if not rows:
                raise not_found_error(self.table, value)
            return ServiceResult.ok(rows[0])
        except Exception as e:
            return ServiceResult.fail(self._fail("update", e))

    async def delete(self, record_id: str) -> ServiceResult[None]:
        """Delete a record.

        The deleted representation is requested so that deleting an id that no
        longer exists reports "Record Not Found" instead of silently passing.
        """
        return await self.delete_where("id", record_id)

    async def delete_where(self, column: str, value: Any) -> ServiceResult[None]:
        try:
            response = await (
                self.client.table(self.table)
                .delete()
                .eq(column, value)
                .select("id")
                .execute()
            )
            if not response.data:
                raise not_found_error(self.table, value)
            self.logger.info(f"Deleted {self.table} record where {column}={value}", extra={"table": self.table})
            return ServiceResult.ok(None)
        except Exception as e:
            return ServiceResult.fail(self._fail("delete", e))
