"""Resolution and caching of the set of hidden user IDs."""
import logging

from hidden_profiles.core.cache import SharedCache
from hidden_profiles.core.config import DAY_IN_SECONDS
from hidden_profiles.core.extensions import ExtensionRegistry
from hidden_profiles.services.attribute_store import AttributeStore

logger = logging.getLogger(__name__)

PROFILE_VISIBILITY_KEY = "profile_visibility"
HIDDEN_VALUE = "hidden"

# Cache schema version - included in the cache key.
#
# Bump this version when the cached payload shape changes. Old entries are then
# never read and expire naturally via TTL.
CACHE_SCHEMA_VERSION = 1
HIDDEN_SET_CACHE_KEY = f"hidden_profiles:v{CACHE_SCHEMA_VERSION}:hidden_user_ids"


async def invalidate_hidden_set(cache: SharedCache) -> None:
    """Delete the cached hidden set; the next resolve recomputes it. Raises CacheWriteError if unconfirmed."""
    await cache.delete(HIDDEN_SET_CACHE_KEY)
    logger.debug("hidden_set_invalidate key=%s", HIDDEN_SET_CACHE_KEY)


def _decode(data: object) -> frozenset[int] | None:
    """Validate a cached payload; None means treat as a miss."""
    if not isinstance(data, list):
        return None
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in data):
        return None
    return frozenset(data)


class HiddenSetResolver:
    """
    Computes the set of hidden user IDs and caches it in the shared cache.

    There is exactly one hidden set per deployment (not per viewer). It is the
    union of users whose visibility attribute is "hidden" and IDs contributed by
    the ``additional_hidden_ids`` extension point.
    """

    def __init__(
        self,
        store: AttributeStore,
        cache: SharedCache,
        extensions: ExtensionRegistry,
        ttl_seconds: int = DAY_IN_SECONDS,
    ) -> None:
        self._store = store
        self._cache = cache
        self._extensions = extensions
        self._ttl = ttl_seconds

    async def resolve(self) -> frozenset[int]:
        """
        Return the hidden set, computing and caching it on a miss.

        Raises whatever the attribute store raises; there is no stale fallback.
        """
        cached = await self._cache.get(HIDDEN_SET_CACHE_KEY)
        if cached is not None:
            hidden = _decode(cached)
            if hidden is not None:
                logger.debug("hidden_set_cache_hit count=%s", len(hidden))
                return hidden
            logger.warning("hidden_set_cache_corrupt key=%s", HIDDEN_SET_CACHE_KEY)

        logger.debug("hidden_set_cache_miss")
        from_attributes = await self._store.list_users_with_attribute(
            PROFILE_VISIBILITY_KEY, HIDDEN_VALUE,
        )
        additional = await self._extensions.additional_hidden_ids()
        hidden = frozenset(from_attributes) | frozenset(additional)

        await self._cache.set(HIDDEN_SET_CACHE_KEY, sorted(hidden), self._ttl)
        logger.debug(
            "hidden_set_computed count=%s from_attributes=%s additional=%s",
            len(hidden),
            len(from_attributes),
            len(additional),
        )
        return hidden

    async def invalidate(self) -> None:
        """Drop the cached hidden set."""
        await invalidate_hidden_set(self._cache)
