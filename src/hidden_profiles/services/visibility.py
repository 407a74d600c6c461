"""Per-profile visibility decisions."""
import logging
from typing import Any

from hidden_profiles.core.extensions import Decision, ExtensionRegistry
from hidden_profiles.services.attribute_store import AttributeStore
from hidden_profiles.services.hidden_set import HIDDEN_VALUE, PROFILE_VISIBILITY_KEY

logger = logging.getLogger(__name__)


def is_valid_user_id(value: Any) -> bool:
    """Positive integer IDs only; bools are rejected even though they are ints."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


async def is_hidden(
    subject_id: int,
    viewer_id: int | None,  # noqa: ARG001
    store: AttributeStore,
    extensions: ExtensionRegistry,
) -> bool:
    """
    Whether the subject's profile is hidden.

    The ``is_hidden_override`` extension point is consulted first; a definite
    decision is returned as-is without reading the stored attribute. Otherwise the
    profile is hidden exactly when its visibility attribute equals "hidden".

    ``viewer_id`` is accepted so callers always pass the viewer; the decision does
    not currently depend on it.
    """
    decision = await extensions.is_hidden_override(subject_id)
    if decision is Decision.HIDDEN:
        return True
    if decision is Decision.VISIBLE:
        return False
    return await store.get(subject_id, PROFILE_VISIBILITY_KEY) == HIDDEN_VALUE


async def should_block_profile_view(
    subject_id: Any,
    viewer_id: int | None,
    viewer_is_admin: bool,
    store: AttributeStore,
    extensions: ExtensionRegistry,
) -> bool:
    """
    Whether a direct profile view must be answered with not-found.

    Never blocks when there is no valid subject, for admins, or for the profile
    owner. ``viewer_id`` may be None for anonymous viewers.
    """
    if not is_valid_user_id(subject_id):
        return False
    if viewer_is_admin:
        return False
    if viewer_id is not None and viewer_id == subject_id:
        return False
    if not await is_hidden(subject_id, viewer_id, store, extensions):
        return False
    logger.debug("profile_view_blocked subject_id=%s viewer_id=%s", subject_id, viewer_id)
    return True
