"""
Worknest - Database Models
==========================

SQLAlchemy models for users, projects, tickets, comments and attachments.

Relationships are plain foreign keys. Cascading deletes are performed
explicitly by the repositories, with ``ON DELETE CASCADE`` on the child
foreign keys as the storage-level backstop.
"""

import enum
import re
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    String,
    Text,
    TypeDecorator,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from worknest.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==========================================================================
# Enums
# ==========================================================================

def _normalize_label(value: str) -> str:
    return re.sub(r"[\s_\-]", "", value).lower()


class WireEnum(str, enum.Enum):
    """
    String enum with a canonical wire form and lenient parsing.

    ``TicketStatus("in_progress")``, ``TicketStatus("InProgress")`` and
    ``TicketStatus("in progress")`` all resolve to ``IN_PROGRESS``.
    Unknown values raise ``ValueError``.
    """

    @classmethod
    def _missing_(cls, value: object) -> Optional["WireEnum"]:
        if isinstance(value, str):
            key = _normalize_label(value)
            for member in cls:
                if _normalize_label(member.value) == key:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> "WireEnum":
        if isinstance(value, cls):
            return value
        return cls(value)


class TicketType(WireEnum):
    """Kind of work a ticket represents."""
    TASK = "Task"
    BUG = "Bug"
    FEATURE = "Feature"
    EPIC = "Epic"


class TicketStatus(WireEnum):
    """Workflow state. Any transition between states is allowed."""
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    REVIEW = "Review"
    DONE = "Done"
    CLOSED = "Closed"


class TicketPriority(WireEnum):
    """Ticket urgency, ordered Low < Medium < High < Critical."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[TicketPriority, int] = {
    TicketPriority.LOW: 1,
    TicketPriority.MEDIUM: 2,
    TicketPriority.HIGH: 3,
    TicketPriority.CRITICAL: 4,
}


def _enum_column(enum_cls: type[WireEnum]) -> Enum:
    # Stored as VARCHAR holding the canonical value, portable across backends
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ==========================================================================
# Column Types & Mixins
# ==========================================================================

class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# ==========================================================================
# User Models
# ==========================================================================

class User(Base, TimestampMixin):
    """User account. Usernames and emails are unique."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


# ==========================================================================
# Project Models
# ==========================================================================

class Project(Base, TimestampMixin):
    """Container for tickets."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        index=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Project {self.name}>"


# ==========================================================================
# Ticket Models
# ==========================================================================

class Ticket(Base, TimestampMixin):
    """Unit of work within a project."""

    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ticket_type: Mapped[TicketType] = mapped_column(
        _enum_column(TicketType),
        nullable=False,
    )
    status: Mapped[TicketStatus] = mapped_column(
        _enum_column(TicketStatus),
        default=TicketStatus.OPEN,
        index=True,
        nullable=False,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        _enum_column(TicketPriority),
        default=TicketPriority.MEDIUM,
        index=True,
        nullable=False,
    )
    assignee_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        index=True,
        nullable=True,
    )
    created_by: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    estimate_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Ticket {self.title[:30]}>"


class TicketSearchEntry(Base):
    """
    Derived full-text document for one ticket.

    Holds the normalized tokens of the ticket's title and description.
    Rewritten in the same transaction as every ticket mutation.
    """

    __tablename__ = "ticket_search_index"

    ticket_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        primary_key=True,
    )
    document: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# ==========================================================================
# Comment & Attachment Models
# ==========================================================================

class Comment(Base, TimestampMixin):
    """Text note on a ticket."""

    __tablename__ = "comments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        index=True,
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)


class Attachment(Base):
    """File metadata attached to a ticket. The bytes live in upload storage."""

    __tablename__ = "attachments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    uploaded_by: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )

    @property
    def extension(self) -> Optional[str]:
        """Text after the last dot of the filename, if any."""
        if "." not in self.filename:
            return None
        return self.filename.rsplit(".", 1)[1].lower() or None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def formatted_size(self) -> str:
        size = float(self.file_size)
        for unit in ("B", "KB", "MB"):
            if size < 1024:
                return f"{size:.2f} {unit}"
            size /= 1024
        return f"{size:.2f} GB"

    def __repr__(self) -> str:
        return f"<Attachment {self.filename}>"
