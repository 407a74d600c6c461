"""Pydantic schemas for member directory endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MemberResponse(BaseModel):
    """Public member profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str | None
    created_at: datetime


class MemberListResponse(BaseModel):
    """Paginated member directory page."""

    items: list[MemberResponse]
    total: int
    offset: int
    limit: int
    has_more: bool
