"""
Worknest - Ticket Query Engine
==============================

Filtering, sorting and pagination of tickets, compiled to a single
parameterized SELECT.

Filters combine with AND. Sorting on ``priority`` uses the priority rank
(Low=1 .. Critical=4), never the label text. Every ordering ends with
``created_at DESC, id`` so pages are stable across repeated requests.
"""

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Select, case, func, select

from worknest.core.errors import ValidationError
from worknest.core.models import (
    PRIORITY_RANK,
    Ticket,
    TicketPriority,
    TicketStatus,
    WireEnum,
)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


class TicketSort(WireEnum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    PRIORITY = "priority"


class SortOrder(WireEnum):
    ASC = "asc"
    DESC = "desc"


priority_rank = case(
    dict(PRIORITY_RANK),
    value=Ticket.priority,
    else_=0,
)


def _parse_choice(enum_cls: type[WireEnum], value: Any, label: str) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value.strip() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value}") from None


@dataclass(frozen=True)
class TicketQuery:
    """
    Ticket list request.

    All filters are optional. ``limit`` defaults to 50 and is clamped to
    100; ``offset`` defaults to 0.
    """

    project_id: Optional[UUID] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assignee_id: Optional[UUID] = None
    sort: TicketSort = TicketSort.CREATED_AT
    order: SortOrder = SortOrder.DESC
    limit: Optional[int] = None
    offset: int = 0

    @classmethod
    def build(
        cls,
        *,
        project_id: Optional[UUID] = None,
        status: Any = None,
        priority: Any = None,
        assignee_id: Optional[UUID] = None,
        sort: Any = None,
        order: Any = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> "TicketQuery":
        """Build a query from loosely-typed input, raising ValidationError on bad values."""
        return cls(
            project_id=project_id,
            status=_parse_choice(TicketStatus, status, "status"),
            priority=_parse_choice(TicketPriority, priority, "priority"),
            assignee_id=assignee_id,
            sort=_parse_choice(TicketSort, sort, "sort field") or TicketSort.CREATED_AT,
            order=_parse_choice(SortOrder, order, "sort order") or SortOrder.DESC,
            limit=limit,
            offset=offset or 0,
        )

    def effective_limit(self, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
        if self.limit is None:
            return min(default, maximum)
        if self.limit < 1:
            raise ValidationError("limit must be at least 1")
        return min(self.limit, maximum)


def _filters(query: TicketQuery) -> list[Any]:
    conditions = []
    if query.project_id is not None:
        conditions.append(Ticket.project_id == query.project_id)
    if query.status is not None:
        conditions.append(Ticket.status == query.status)
    if query.priority is not None:
        conditions.append(Ticket.priority == query.priority)
    if query.assignee_id is not None:
        conditions.append(Ticket.assignee_id == query.assignee_id)
    return conditions


def build_list_statement(
    query: TicketQuery,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Select:
    if query.offset < 0:
        raise ValidationError("offset must not be negative")
    limit = query.effective_limit(default_limit, max_limit)

    sort_column = {
        TicketSort.CREATED_AT: Ticket.created_at,
        TicketSort.UPDATED_AT: Ticket.updated_at,
        TicketSort.PRIORITY: priority_rank,
    }[query.sort]
    primary = sort_column.asc() if query.order == SortOrder.ASC else sort_column.desc()

    ordering = [primary]
    if query.sort != TicketSort.CREATED_AT:
        ordering.append(Ticket.created_at.desc())
    ordering.append(Ticket.id)

    return (
        select(Ticket)
        .where(*_filters(query))
        .order_by(*ordering)
        .limit(limit)
        .offset(query.offset)
    )


def build_count_statement(query: TicketQuery) -> Select:
    """Count of all tickets matching the filters, ignoring paging."""
    return select(func.count()).select_from(Ticket).where(*_filters(query))
