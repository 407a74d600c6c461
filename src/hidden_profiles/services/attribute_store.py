"""Per-user attribute storage."""
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.models.user_attribute import UserAttribute


class AttributeStore(Protocol):
    """Read/write access to string attributes keyed by (user, key)."""

    async def get(self, user_id: int, key: str) -> str | None:
        """Return the attribute value, or None when absent."""
        ...

    async def set(self, user_id: int, key: str, value: str) -> None:
        """Create or replace the attribute value."""
        ...

    async def delete(self, user_id: int, key: str) -> None:
        """Remove the attribute; absent attributes are ignored."""
        ...

    async def list_users_with_attribute(self, key: str, value: str) -> list[int]:
        """Return every user ID whose attribute ``key`` equals ``value`` (single query)."""
        ...


class SqlAttributeStore:
    """
    AttributeStore over the ``user_attributes`` table.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get(self, user_id: int, key: str) -> str | None:
        result = await self._db.execute(
            select(UserAttribute.value).where(
                UserAttribute.user_id == user_id,
                UserAttribute.key == key,
            ),
        )
        return result.scalar_one_or_none()

    async def set(self, user_id: int, key: str, value: str) -> None:
        result = await self._db.execute(
            select(UserAttribute).where(
                UserAttribute.user_id == user_id,
                UserAttribute.key == key,
            ),
        )
        attribute = result.scalar_one_or_none()
        if attribute is None:
            self._db.add(UserAttribute(user_id=user_id, key=key, value=value))
        else:
            attribute.value = value
        await self._db.flush()

    async def delete(self, user_id: int, key: str) -> None:
        await self._db.execute(
            delete(UserAttribute).where(
                UserAttribute.user_id == user_id,
                UserAttribute.key == key,
            ),
        )
        await self._db.flush()

    async def list_users_with_attribute(self, key: str, value: str) -> list[int]:
        result = await self._db.execute(
            select(UserAttribute.user_id)
            .where(UserAttribute.key == key, UserAttribute.value == value)
            .order_by(UserAttribute.user_id),
        )
        return list(result.scalars().all())
