"""SQLAlchemy models."""
from hidden_profiles.models.base import Base, TimestampMixin
from hidden_profiles.models.user import User
from hidden_profiles.models.user_attribute import UserAttribute

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserAttribute",
]
