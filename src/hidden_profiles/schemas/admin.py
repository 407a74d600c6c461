"""Pydantic schemas for admin endpoints."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

RoleName = Literal["member", "admin"]


class VisibilityResponse(BaseModel):
    """Current visibility of a profile plus a token for the next save."""

    user_id: int
    hidden: bool
    csrf_token: str


class UserCreate(BaseModel):
    """Request body for registering a user."""

    username: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    display_name: str | None = Field(default=None, max_length=255)
    role: RoleName = "member"


class RoleUpdate(BaseModel):
    """Request body for changing a user's role."""

    role: RoleName


class AdminUserResponse(BaseModel):
    """User as seen by administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str | None
    display_name: str | None
    role: str
