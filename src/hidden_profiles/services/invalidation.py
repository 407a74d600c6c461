"""
Ties user state changes to hidden-set cache invalidation.

Every event invalidates unconditionally. The delete happens immediately, inside
the operation that changed state, and again after the surrounding transaction
commits: a listing request that recomputes between the two would otherwise cache
the pre-commit state for a full TTL.
"""
import logging
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.core.cache import SharedCache
from hidden_profiles.services.hidden_set import invalidate_hidden_set

logger = logging.getLogger(__name__)

PENDING_INVALIDATION_KEY = "hidden_set_invalidation_pending"


class UserEvent(StrEnum):
    """User state changes that can alter the hidden set."""

    VISIBILITY_CHANGED = "visibility_changed"
    USER_REMOVED = "user_removed"
    USER_REGISTERED = "user_registered"
    ROLE_CHANGED = "role_changed"


async def handle_user_event(
    event: UserEvent,
    user_id: int,
    cache: SharedCache,
    db: AsyncSession | None = None,
) -> None:
    """
    Invalidate the hidden set in response to a user event.

    Args:
        event: What changed.
        user_id: The affected user.
        cache: Shared cache holding the hidden set.
        db: Session the change was made in; when given, a second invalidation is
            queued to run after that session commits.
    """
    await invalidate_hidden_set(cache)
    if db is not None:
        db.info[PENDING_INVALIDATION_KEY] = True
    logger.info("hidden_set_invalidated event=%s user_id=%s", event.value, user_id)


async def run_post_commit_invalidation(db: AsyncSession, cache: SharedCache | None) -> None:
    """Run the queued invalidation for a session that has just committed."""
    if not db.info.pop(PENDING_INVALIDATION_KEY, False):
        return
    if cache is None:
        return
    await invalidate_hidden_set(cache)
