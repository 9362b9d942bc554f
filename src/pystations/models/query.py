"""Query models: store query descriptors and table view requests."""

from __future__ import annotations

import enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from pystations._constants import FIELD_CREATED_AT

T = TypeVar("T")

FilterOp = Literal["==", ">=", "<=", "array-contains-any"]


class FieldFilter(BaseModel):
    """One ``field <op> value`` clause of a store query."""

    model_config = ConfigDict(frozen=True)

    field: str
    op: FilterOp = "=="
    value: Any = None


class QueryDescriptor(BaseModel):
    """Store-side query: filters, ordering, limit and cursor.

    Field names are wire (camelCase) names.
    """

    model_config = ConfigDict(frozen=True)

    filters: tuple[FieldFilter, ...] = ()
    order_by: str | None = FIELD_CREATED_AT
    descending: bool = True
    limit: int | None = Field(default=None, ge=1)
    start_after: str | None = None

    def where(self, field: str, op: FilterOp, value: Any) -> QueryDescriptor:
        return self.model_copy(update={"filters": (*self.filters, FieldFilter(field=field, op=op, value=value))})

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "where": [{"field": f.field, "op": f.op, "value": f.value} for f in self.filters],
        }
        if self.order_by is not None:
            payload["orderBy"] = {"field": self.order_by, "direction": "desc" if self.descending else "asc"}
        if self.limit is not None:
            payload["limit"] = self.limit
        if self.start_after is not None:
            payload["startAfter"] = self.start_after
        return payload


class SortField(enum.StrEnum):
    NAME = "name"
    ADDRESS = "address"
    PRICE = "price"
    CREATED_AT = "createdAt"


class SortOrder(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortOrder:
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class StationQuery(BaseModel):
    """Filter, sort and page request for the table view."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search: str = ""
    sort_by: SortField = Field(default=SortField.CREATED_AT, alias="sortBy")
    sort_order: SortOrder = Field(default=SortOrder.DESC, alias="sortOrder")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, alias="pageSize")


class PageInfo(BaseModel):
    """Pagination metadata, always computed from the filtered count."""

    model_config = ConfigDict(frozen=True)

    current_page: int
    total_pages: int
    total_items: int
    page_size: int
    has_next: bool
    has_prev: bool


class Page(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    items: tuple[T, ...]
    info: PageInfo
