"""
Worknest - Ticket Search
========================

Token-based full-text search over ticket titles and descriptions.

Every ticket owns one row in ``ticket_search_index`` whose ``document``
holds the distinct lowercase word tokens of its title and description,
space delimited and padded (`` alpha beta ``). A query token matches a
document token it is a prefix of; the leading space in the pattern anchors
it to a token start. Each matching query token adds one to the relevance
score. Results are ordered by score, then by most recent update.
"""

import functools
import operator
import re
from typing import Optional
from uuid import UUID

from sqlalchemy import Select, case, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknest.core.models import Ticket, TicketSearchEntry, utcnow

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: Optional[str]) -> list[str]:
    """Lowercase word tokens in first-seen order, without duplicates."""
    if not text:
        return []
    return list(dict.fromkeys(_TOKEN_RE.findall(text.lower())))


def build_document(title: str, description: Optional[str] = None) -> str:
    tokens = tokenize(f"{title} {description or ''}")
    if not tokens:
        return ""
    return f" {' '.join(tokens)} "


async def index_ticket(session: AsyncSession, ticket: Ticket) -> None:
    """Write the search document for a ticket inside the caller's transaction."""
    document = build_document(ticket.title, ticket.description)
    entry = await session.get(TicketSearchEntry, ticket.id)
    if entry is None:
        session.add(TicketSearchEntry(ticket_id=ticket.id, document=document))
    else:
        entry.document = document
        entry.updated_at = utcnow()


def build_search_statement(
    query: str,
    *,
    project_id: Optional[UUID] = None,
    limit: int = 50,
) -> Optional[Select]:
    """
    Build the ranked search query, or None when the text has no tokens.

    Token text is bound as a parameter and LIKE wildcards in it are
    escaped, so query input never alters the statement.
    """
    terms = tokenize(query)
    if not terms:
        return None

    hits = [
        case((TicketSearchEntry.document.contains(f" {term}", autoescape=True), 1), else_=0)
        for term in terms
    ]
    score = functools.reduce(operator.add, hits)

    stmt = (
        select(Ticket)
        .join(TicketSearchEntry, TicketSearchEntry.ticket_id == Ticket.id)
        .where(score > 0)
    )
    if project_id is not None:
        stmt = stmt.where(Ticket.project_id == project_id)

    return stmt.order_by(score.desc(), Ticket.updated_at.desc(), Ticket.id).limit(limit)
