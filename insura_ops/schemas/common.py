"""Shared service-layer types: query options, results and reference numbers."""

import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from insura_ops.utils.errors import FriendlyError

T = TypeVar("T")


class QueryOptions(BaseModel):
    """Paging, sorting, filtering and search for list queries."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=1000)
    sort_by: Optional[str] = None
    sort_order: str = Field(default="desc", pattern="^(asc|desc)$")
    filters: Dict[str, Any] = Field(default_factory=dict)
    search: Optional[str] = None

    def active_filters(self) -> Dict[str, Any]:
        """Equality filters with empty values dropped."""
        return {k: v for k, v in self.filters.items() if v not in (None, "", [])}

    @property
    def range_start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def range_end(self) -> int:
        return self.range_start + self.page_size - 1


@dataclass
class ServiceResult(Generic[T]):
    """Outcome of a service call; exactly one of data/error is meaningful."""

    data: Optional[T] = None
    error: Optional[FriendlyError] = None
    # False when a mutation found nothing to write
    changed: bool = True

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, data: Optional[T] = None, changed: bool = True) -> "ServiceResult[T]":
        return cls(data=data, error=None, changed=changed)

    @classmethod
    def fail(cls, error: FriendlyError) -> "ServiceResult[T]":
        return cls(data=None, error=error)


@dataclass
class PaginatedResult(Generic[T]):
    data: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    error: Optional[FriendlyError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


def generate_reference(prefix: str) -> str:
    """Build a ``<prefix>-<ms timestamp>-<suffix>`` reference number.

    The random suffix keeps two references created in the same millisecond
    distinct.
    """
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{secrets.token_hex(3).upper()}"
