"""Per-user string attributes (key/value metadata)."""
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hidden_profiles.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hidden_profiles.models.user import User


class UserAttribute(Base, TimestampMixin):
    """
    A single string attribute attached to a user.

    One row per (user, key). The (key, value) index serves bulk lookups such as
    "every user whose profile_visibility is hidden".
    """

    __tablename__ = "user_attributes"
    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_user_attributes_user_id_key"),
        Index("ix_user_attributes_key_value", "key", "value"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    key: Mapped[str] = mapped_column(String(255))
    value: Mapped[str] = mapped_column(Text)

    user: Mapped["User"] = relationship(back_populates="attributes")
