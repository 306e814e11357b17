"""Read-through query cache with tag invalidation.

Each cached query is keyed by ``(entity tag, canonical JSON of its options)``.
Every fetch bumps the entry's generation; a response whose generation is no
longer current (the entry was refetched, invalidated or released meanwhile)
is discarded instead of overwriting newer state.
"""

import asyncio
import json
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel

from insura_ops.schemas.common import ServiceResult
from insura_ops.utils.errors import FriendlyError
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")

QueryKey = Tuple[str, str]
Fetcher = Callable[[], Awaitable[ServiceResult]]


def canonical_options(options: Any) -> str:
    if options is None:
        return "null"
    if isinstance(options, BaseModel):
        options = options.model_dump(mode="json", exclude_defaults=True)
    return json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)


def make_query_key(tag: str, options: Any = None) -> QueryKey:
    return (tag, canonical_options(options))


@dataclass
class QueryState(Generic[T]):
    data: Optional[T] = None
    is_loading: bool = False
    error: Optional[FriendlyError] = None


@dataclass
class _Entry:
    fetcher: Fetcher
    state: QueryState = field(default_factory=QueryState)
    generation: int = 0
    stale: bool = True


class QueryClient:
    """Cache of query states shared by all hooks."""

    def __init__(self):
        self._entries: Dict[QueryKey, _Entry] = {}
        self._tasks: Set[asyncio.Task] = set()

    def get_state(self, key: QueryKey) -> QueryState:
        entry = self._entries.get(key)
        return entry.state if entry else QueryState()

    def keys(self, tag: Optional[str] = None) -> List[QueryKey]:
        return [k for k in self._entries if tag is None or k[0] == tag]

    async def fetch(self, key: QueryKey, fetcher: Optional[Fetcher] = None) -> QueryState:
        """Run the query now and store its result unless a newer fetch superseded it."""
        entry = self._entries.get(key)
        if entry is None:
            if fetcher is None:
                raise KeyError(f"No query registered for {key}")
            entry = _Entry(fetcher=fetcher)
            self._entries[key] = entry
        elif fetcher is not None:
            entry.fetcher = fetcher

        entry.generation += 1
        generation = entry.generation
        entry.state = replace(entry.state, is_loading=True)

        result = await entry.fetcher()

        if self._entries.get(key) is not entry or entry.generation != generation:
            LOGGER.debug(f"Discarding stale response for {key}")
            return self.get_state(key)

        entry.stale = False
        if result.success:
            entry.state = QueryState(data=result.data, is_loading=False, error=None)
        else:
            entry.state = QueryState(data=entry.state.data, is_loading=False, error=result.error)
        return entry.state

    async def ensure(self, key: QueryKey, fetcher: Fetcher) -> QueryState:
        """Return cached data when fresh, otherwise fetch."""
        entry = self._entries.get(key)
        if entry is not None and not entry.stale and not entry.state.is_loading:
            entry.fetcher = fetcher
            return entry.state
        return await self.fetch(key, fetcher)

    def invalidate(self, tag: str) -> List[asyncio.Task]:
        """Mark every query under ``tag`` stale and schedule refetches.

        Returns:
            The scheduled refetch tasks; callers need not await them
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        tasks = []
        for key in self.keys(tag):
            entry = self._entries[key]
            entry.stale = True
            entry.generation += 1
            if loop is None:
                continue
            task = loop.create_task(self._refetch(key))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            tasks.append(task)
        LOGGER.debug(f"Invalidated {len(tasks)} quer{'y' if len(tasks) == 1 else 'ies'} for {tag}")
        return tasks

    async def _refetch(self, key: QueryKey) -> Optional[QueryState]:
        if key not in self._entries:
            return None
        return await self.fetch(key)

    def release(self, key: QueryKey) -> None:
        """Forget a query; an in-flight response for it will be discarded."""
        entry = self._entries.pop(key, None)
        if entry is not None:
            entry.generation += 1

    def clear(self) -> None:
        for key in list(self._entries):
            self.release(key)

    async def wait_idle(self) -> None:
        """Wait for scheduled refetches to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
