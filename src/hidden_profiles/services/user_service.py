"""
Service layer for user lifecycle operations.

Every operation that can change the hidden set fires the matching UserEvent
before returning, so callers never observe success with a stale cache.

Note:
    Functions flush but do not commit. Caller (session generator) handles commit
    at request end.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.core.cache import SharedCache
from hidden_profiles.models.user import ROLE_MEMBER, ROLES, User
from hidden_profiles.services.attribute_store import SqlAttributeStore
from hidden_profiles.services.exceptions import InvalidRoleError, UserNotFoundError
from hidden_profiles.services.hidden_set import HIDDEN_VALUE, PROFILE_VISIBILITY_KEY
from hidden_profiles.services.invalidation import UserEvent, handle_user_event

logger = logging.getLogger(__name__)


def _validate_role(role: str) -> str:
    if role not in ROLES:
        raise InvalidRoleError(role)
    return role


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    cache: SharedCache,
    username: str,
    email: str | None = None,
    display_name: str | None = None,
    role: str = ROLE_MEMBER,
) -> User:
    """Create a user."""
    user = User(
        username=username,
        email=email,
        display_name=display_name,
        role=_validate_role(role),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    await handle_user_event(UserEvent.USER_REGISTERED, user.id, cache, db)
    return user


async def remove_user(db: AsyncSession, cache: SharedCache, user_id: int) -> bool:
    """
    Delete a user and their attributes.

    Returns:
        True if the user existed and was deleted, False otherwise.
    """
    user = await get_user(db, user_id)
    if user is None:
        return False
    await db.delete(user)
    await db.flush()
    await handle_user_event(UserEvent.USER_REMOVED, user_id, cache, db)
    return True


async def set_user_role(
    db: AsyncSession,
    cache: SharedCache,
    user_id: int,
    role: str,
) -> User:
    """
    Change a user's role.

    Raises:
        InvalidRoleError: If the role is unknown.
        UserNotFoundError: If the user does not exist.
    """
    _validate_role(role)
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if user.role == role:
        return user
    user.role = role
    await db.flush()
    await handle_user_event(UserEvent.ROLE_CHANGED, user_id, cache, db)
    return user


async def is_profile_hidden_attribute(db: AsyncSession, user_id: int) -> bool:
    """Whether the stored visibility attribute marks the profile hidden (no extensions)."""
    value = await SqlAttributeStore(db).get(user_id, PROFILE_VISIBILITY_KEY)
    return value == HIDDEN_VALUE


async def set_profile_hidden(
    db: AsyncSession,
    cache: SharedCache,
    user_id: int,
    hidden: bool,
) -> None:
    """
    Write or clear the visibility attribute for a user.

    Raises:
        UserNotFoundError: If the user does not exist.
    """
    if await get_user(db, user_id) is None:
        raise UserNotFoundError(user_id)
    store = SqlAttributeStore(db)
    if hidden:
        await store.set(user_id, PROFILE_VISIBILITY_KEY, HIDDEN_VALUE)
    else:
        await store.delete(user_id, PROFILE_VISIBILITY_KEY)
    await handle_user_event(UserEvent.VISIBILITY_CHANGED, user_id, cache, db)
