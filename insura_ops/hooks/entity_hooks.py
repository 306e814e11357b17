"""Per-entity query and mutation hooks.

Queries read through the shared ``QueryClient``. Mutations call the service,
invalidate every query under the entity's tag on success and raise a toast
either way.
"""

from typing import Any, Awaitable, Callable, Optional

from insura_ops.hooks.notifications import Notifier
from insura_ops.hooks.query_client import QueryClient, QueryState, make_query_key
from insura_ops.schemas.common import QueryOptions, ServiceResult
from insura_ops.services.base_service import BaseService
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class EntityHooks:
    """Query and mutation entry points for one entity service."""

    def __init__(
        self,
        service: BaseService,
        tag: str,
        query_client: QueryClient,
        notifier: Notifier,
        label: Optional[str] = None,
    ):
        """Initialize hooks.

        Args:
            service: Entity service to call
            tag: Cache tag shared by all of this entity's queries
            query_client: Shared query cache
            notifier: Toast sink
            label: Display name used in toasts (e.g. "Company")
        """
        self.service = service
        self.tag = tag
        self.query_client = query_client
        self.notifier = notifier
        self.label = label or tag.capitalize()

    def list_key(self, options: Optional[QueryOptions] = None):
        return make_query_key(self.tag, {"list": options.model_dump(mode="json") if options else None})

    def detail_key(self, record_id: str):
        return make_query_key(self.tag, {"id": record_id})

    async def use_list(self, options: Optional[QueryOptions] = None) -> QueryState:
        async def fetch_list() -> ServiceResult:
            page = await self.service.get_all(options)
            if not page.success:
                return ServiceResult.fail(page.error)
            return ServiceResult.ok(page)

        return await self.query_client.ensure(self.list_key(options), fetch_list)

    async def use_detail(self, record_id: str) -> QueryState:
        if not record_id:
            return QueryState()
        return await self.query_client.ensure(
            self.detail_key(record_id), lambda: self.service.get_by_id(record_id)
        )

    def release_list(self, options: Optional[QueryOptions] = None) -> None:
        self.query_client.release(self.list_key(options))

    def release_detail(self, record_id: str) -> None:
        self.query_client.release(self.detail_key(record_id))

    def _finish(self, result: ServiceResult, verb: str) -> ServiceResult:
        if result.success:
            self.query_client.invalidate(self.tag)
            self.notifier.success(f"{self.label} {verb} successfully")
        else:
            self.notifier.error(result.error)
        return result

    def use_create(self) -> Callable[[Any], Awaitable[ServiceResult]]:
        async def create(data: Any) -> ServiceResult:
            return self._finish(await self.service.create(data), "created")

        return create

    def use_update(self) -> Callable[[str, Any], Awaitable[ServiceResult]]:
        async def update(record_id: str, changes: Any) -> ServiceResult:
            return self._finish(await self.service.update(record_id, changes), "updated")

        return update

    def use_delete(self) -> Callable[[str], Awaitable[ServiceResult]]:
        async def delete(record_id: str) -> ServiceResult:
            return self._finish(await self.service.delete(record_id), "deleted")

        return delete


class QuoteHooks(EntityHooks):
    """Quote hooks; status changes also move deals and write activities."""

    def use_update_status(self) -> Callable[..., Awaitable[ServiceResult]]:
        async def update_status(quote_id: str, status: Any, user_id: Optional[str] = None) -> ServiceResult:
            result = await self.service.update_quote_status(quote_id, status, user_id=user_id)
            if result.success and not result.changed:
                LOGGER.debug(f"Quote {quote_id} status unchanged, skipping refresh")
                return result
            self._finish(result, "status updated")
            if result.success:
                self.query_client.invalidate("deals")
                self.query_client.invalidate("activities")
            return result

        return update_status

    def use_copy(self) -> Callable[[str], Awaitable[ServiceResult]]:
        async def copy(quote_id: str) -> ServiceResult:
            return self._finish(await self.service.copy_quote(quote_id), "copied")

        return copy
