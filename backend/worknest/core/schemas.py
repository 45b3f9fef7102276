"""
Worknest - Pydantic Schemas
===========================

Request and response schemas.

Create/Update schemas carry the field rules for every entity and are what
repositories accept. Update schemas are partial: only fields the caller
explicitly set are applied (``model_dump(exclude_unset=True)``).
"""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from worknest.core.models import TicketPriority, TicketStatus, TicketType

MAX_ATTACHMENT_SIZE = 100 * 1024 * 1024


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields."""

    created_at: datetime
    updated_at: datetime


class PartialUpdateSchema(BaseSchema):
    """Update schema whose listed fields may be omitted but never nulled."""

    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "PartialUpdateSchema":
        for name in self.non_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


TicketTypeField = Annotated[TicketType, BeforeValidator(TicketType.parse)]
TicketStatusField = Annotated[TicketStatus, BeforeValidator(TicketStatus.parse)]
TicketPriorityField = Annotated[TicketPriority, BeforeValidator(TicketPriority.parse)]


# ==========================================================================
# Auth Schemas
# ==========================================================================

class RegisterRequest(BaseSchema):
    """Schema for user registration."""

    model_config = ConfigDict(str_strip_whitespace=False)

    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError("Username cannot start or end with whitespace")
        return v


class LoginRequest(BaseSchema):
    """Schema for login. ``username`` accepts either a username or an email."""

    model_config = ConfigDict(str_strip_whitespace=False)

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseSchema):
    model_config = ConfigDict(str_strip_whitespace=False)

    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=72)


class UserUpdate(PartialUpdateSchema):
    """Schema for updating a user profile."""

    non_nullable: ClassVar[tuple[str, ...]] = ("username", "email")

    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None


class UserResponse(TimestampSchema):
    """Schema for user in responses (no password)."""

    id: UUID
    username: str
    email: str


class TokenResponse(BaseSchema):
    token: str
    expires_at: datetime


class AuthResponse(BaseSchema):
    """Returned by register and login."""

    user: UserResponse
    token: str
    expires_at: datetime


# ==========================================================================
# Project Schemas
# ==========================================================================

class ProjectCreate(BaseSchema):
    """Schema for creating a project."""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    color: Optional[str] = Field(None, max_length=20)


class ProjectUpdate(PartialUpdateSchema):
    """Schema for updating a project."""

    non_nullable: ClassVar[tuple[str, ...]] = ("name", "archived")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    color: Optional[str] = Field(None, max_length=20)
    archived: Optional[bool] = None


class ProjectResponse(TimestampSchema):
    id: UUID
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    archived: bool
    created_by: UUID


# ==========================================================================
# Ticket Schemas
# ==========================================================================

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TicketCreate(BaseSchema):
    """Schema for creating a ticket. New tickets always start Open."""

    project_id: UUID
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    ticket_type: TicketTypeField
    priority: TicketPriorityField = TicketPriority.MEDIUM
    assignee_id: Annotated[Optional[UUID], BeforeValidator(_blank_to_none)] = None
    due_date: Optional[datetime] = None
    estimate_hours: Optional[float] = Field(None, ge=0)


class TicketUpdate(PartialUpdateSchema):
    """
    Schema for updating a ticket.

    ``assignee_id`` is tri-state: omitted leaves the assignee unchanged,
    ``null`` or ``""`` unassigns, a UUID reassigns.
    """

    non_nullable: ClassVar[tuple[str, ...]] = ("title", "ticket_type", "status", "priority")

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    ticket_type: Optional[TicketTypeField] = None
    status: Optional[TicketStatusField] = None
    priority: Optional[TicketPriorityField] = None
    assignee_id: Annotated[Optional[UUID], BeforeValidator(_blank_to_none)] = None
    due_date: Optional[datetime] = None
    estimate_hours: Optional[float] = Field(None, ge=0)


class TicketResponse(TimestampSchema):
    id: UUID
    project_id: UUID
    title: str
    description: Optional[str] = None
    ticket_type: TicketType
    status: TicketStatus
    priority: TicketPriority
    assignee_id: Optional[UUID] = None
    created_by: UUID
    due_date: Optional[datetime] = None
    estimate_hours: Optional[float] = None


# ==========================================================================
# Comment Schemas
# ==========================================================================

class CommentCreate(BaseSchema):
    content: str = Field(min_length=1, max_length=10000)


class CommentUpdate(PartialUpdateSchema):
    content: str = Field(min_length=1, max_length=10000)


class CommentResponse(TimestampSchema):
    id: UUID
    ticket_id: UUID
    user_id: UUID
    content: str


# ==========================================================================
# Attachment Schemas
# ==========================================================================

class AttachmentCreate(BaseSchema):
    """Metadata for a file already written to upload storage."""

    filename: str = Field(min_length=1, max_length=255)
    file_size: int = Field(gt=0, le=MAX_ATTACHMENT_SIZE)
    mime_type: str = Field(default="application/octet-stream", min_length=1, max_length=255)
    storage_path: str = Field(min_length=1, max_length=1024)


class AttachmentResponse(BaseSchema):
    id: UUID
    ticket_id: UUID
    filename: str
    file_size: int
    mime_type: str
    uploaded_by: UUID
    created_at: datetime


# ==========================================================================
# Common Schemas
# ==========================================================================

class ErrorResponse(BaseSchema):
    """Error body returned for every failed request."""

    error: str


class HealthResponse(BaseSchema):
    status: str
    version: str
    environment: str
    database: str
