"""FastAPI dependencies for injection."""
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.core.auth import Viewer, get_viewer, require_admin
from hidden_profiles.core.cache import SharedCache, get_shared_cache
from hidden_profiles.core.config import Settings, get_settings
from hidden_profiles.core.extensions import ExtensionRegistry, get_extension_registry
from hidden_profiles.db.session import get_async_session
from hidden_profiles.services.attribute_store import AttributeStore, SqlAttributeStore
from hidden_profiles.services.hidden_set import HiddenSetResolver


def get_cache() -> SharedCache:
    """Shared cache configured at startup."""
    cache = get_shared_cache()
    if cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache not initialized",
        )
    return cache


def get_extensions() -> ExtensionRegistry:
    """Global extension registry."""
    return get_extension_registry()


def get_attribute_store(db: AsyncSession = Depends(get_async_session)) -> AttributeStore:
    """Attribute store bound to the request session."""
    return SqlAttributeStore(db)


def get_hidden_set_resolver(
    store: AttributeStore = Depends(get_attribute_store),
    cache: SharedCache = Depends(get_cache),
    extensions: ExtensionRegistry = Depends(get_extensions),
    settings: Settings = Depends(get_settings),
) -> HiddenSetResolver:
    """Hidden-set resolver for the current request."""
    return HiddenSetResolver(store, cache, extensions, settings.hidden_set_cache_ttl)


__all__ = [
    "Viewer",
    "get_async_session",
    "get_attribute_store",
    "get_cache",
    "get_extensions",
    "get_hidden_set_resolver",
    "get_settings",
    "get_viewer",
    "require_admin",
]
