"""User model for community members."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hidden_profiles.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hidden_profiles.models.user_attribute import UserAttribute

ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_MEMBER, ROLE_ADMIN})


class User(Base, TimestampMixin):
    """A community member. Admins may see and manage hidden profiles."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        default=ROLE_MEMBER,
        server_default=ROLE_MEMBER,
        comment="'member' or 'admin'; admins bypass profile hiding",
    )

    attributes: Mapped[list["UserAttribute"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        """Whether this user has administrative privilege."""
        return self.role == ROLE_ADMIN
