"""Admin endpoints: profile visibility control and user lifecycle."""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.api.dependencies import (
    Viewer,
    get_async_session,
    get_cache,
    get_settings,
    require_admin,
)
from hidden_profiles.core.cache import SharedCache
from hidden_profiles.core.config import Settings
from hidden_profiles.core.csrf import VISIBILITY_ACTION, create_token, verify_token
from hidden_profiles.schemas.admin import (
    AdminUserResponse,
    RoleUpdate,
    UserCreate,
    VisibilityResponse,
)
from hidden_profiles.services import user_service
from hidden_profiles.services.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["admin"])


async def _visibility_response(
    db: AsyncSession,
    user_id: int,
    viewer: Viewer,
    settings: Settings,
) -> VisibilityResponse:
    return VisibilityResponse(
        user_id=user_id,
        hidden=await user_service.is_profile_hidden_attribute(db, user_id),
        csrf_token=create_token(
            settings.csrf_secret,
            VISIBILITY_ACTION,
            viewer.user_id,
            settings.csrf_token_ttl,
        ),
    )


@router.get("/{user_id}/visibility", response_model=VisibilityResponse)
async def get_visibility(
    user_id: int,
    viewer: Viewer = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_async_session),
) -> VisibilityResponse:
    """Current visibility of a profile and an anti-forgery token for saving it."""
    if await user_service.get_user(db, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    return await _visibility_response(db, user_id, viewer, settings)


@router.post("/{user_id}/visibility", response_model=VisibilityResponse)
async def save_visibility(
    user_id: int,
    profile_visibility: str | None = Form(default=None),
    csrf_token: str | None = Form(default=None),
    viewer: Viewer = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    cache: SharedCache = Depends(get_cache),
    db: AsyncSession = Depends(get_async_session),
) -> VisibilityResponse:
    """
    Save the hidden checkbox for a profile.

    A checked box sends ``profile_visibility``; an unchecked one omits it. Requests
    with a missing or invalid ``csrf_token`` change nothing and return the current
    state.
    """
    if not verify_token(settings.csrf_secret, csrf_token, VISIBILITY_ACTION, viewer.user_id):
        logger.warning(
            "visibility_save_rejected reason=csrf user_id=%s admin_id=%s",
            user_id,
            viewer.user_id,
        )
        if await user_service.get_user(db, user_id) is None:
            raise HTTPException(status_code=404, detail="User not found")
        return await _visibility_response(db, user_id, viewer, settings)

    hidden = profile_visibility is not None
    try:
        await user_service.set_profile_hidden(db, cache, user_id, hidden)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(
        "profile_visibility_saved user_id=%s hidden=%s admin_id=%s",
        user_id,
        hidden,
        viewer.user_id,
    )
    return await _visibility_response(db, user_id, viewer, settings)


@router.post("/", response_model=AdminUserResponse, status_code=201)
async def register_user(
    data: UserCreate,
    _viewer: Viewer = Depends(require_admin),
    cache: SharedCache = Depends(get_cache),
    db: AsyncSession = Depends(get_async_session),
) -> AdminUserResponse:
    """Register a new user."""
    try:
        user = await user_service.register_user(
            db,
            cache,
            username=data.username,
            email=data.email,
            display_name=data.display_name,
            role=data.role,
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Username already exists")
    return AdminUserResponse.model_validate(user)


@router.put("/{user_id}/role", response_model=AdminUserResponse)
async def update_role(
    user_id: int,
    data: RoleUpdate,
    _viewer: Viewer = Depends(require_admin),
    cache: SharedCache = Depends(get_cache),
    db: AsyncSession = Depends(get_async_session),
) -> AdminUserResponse:
    """Change a user's role."""
    try:
        user = await user_service.set_user_role(db, cache, user_id, data.role)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return AdminUserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=204)
async def remove_user(
    user_id: int,
    _viewer: Viewer = Depends(require_admin),
    cache: SharedCache = Depends(get_cache),
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """Remove a user."""
    if not await user_service.remove_user(db, cache, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
