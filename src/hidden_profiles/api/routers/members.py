"""Member directory and profile endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.api.dependencies import (
    Viewer,
    get_async_session,
    get_attribute_store,
    get_extensions,
    get_hidden_set_resolver,
    get_viewer,
)
from hidden_profiles.core.extensions import ExtensionRegistry
from hidden_profiles.schemas.member import MemberListResponse, MemberResponse
from hidden_profiles.services import member_service, user_service
from hidden_profiles.services.attribute_store import AttributeStore
from hidden_profiles.services.hidden_set import HiddenSetResolver
from hidden_profiles.services.member_filter import (
    MEMBERS_OBJECT_TYPE,
    apply_exclusion,
    parse_exclude,
)
from hidden_profiles.services.visibility import should_block_profile_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/members", tags=["members"])

# Hidden-profile 404s must never be cached by browsers or proxies: the same URL
# is a 200 for the owner and for admins.
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _not_found(headers: dict[str, str] | None = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Member not found",
        headers=headers,
    )


@router.get("/", response_model=MemberListResponse)
async def list_members(
    q: str | None = Query(default=None, description="Search username and display name"),
    exclude: str | None = Query(default=None, description="Comma-separated user IDs to leave out"),  # noqa: E501
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=20, ge=1, le=100, description="Pagination limit"),
    viewer: Viewer = Depends(get_viewer),
    resolver: HiddenSetResolver = Depends(get_hidden_set_resolver),
    db: AsyncSession = Depends(get_async_session),
) -> MemberListResponse:
    """
    List members. Hidden profiles are left out for everyone except admins.

    - **q**: Case-insensitive search on username and display name
    - **exclude**: Additional user IDs to leave out
    """
    params = await apply_exclusion(
        {"q": q, "exclude": exclude, "offset": offset, "limit": limit},
        MEMBERS_OBJECT_TYPE,
        viewer.is_admin,
        resolver,
    )
    members, total = await member_service.list_members(
        db,
        q=params["q"],
        exclude=parse_exclude(params["exclude"]),
        offset=params["offset"],
        limit=params["limit"],
    )
    return MemberListResponse(
        items=[MemberResponse.model_validate(m) for m in members],
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(members) < total,
    )


@router.get("/{user_id}", response_model=MemberResponse)
async def get_member(
    user_id: int,
    viewer: Viewer = Depends(get_viewer),
    store: AttributeStore = Depends(get_attribute_store),
    extensions: ExtensionRegistry = Depends(get_extensions),
    db: AsyncSession = Depends(get_async_session),
) -> MemberResponse:
    """Get a member profile. Hidden profiles are a 404 unless viewed by the owner or an admin."""
    if await should_block_profile_view(
        user_id, viewer.user_id, viewer.is_admin, store, extensions,
    ):
        raise _not_found(NO_CACHE_HEADERS)

    user = await user_service.get_user(db, user_id)
    if user is None:
        raise _not_found()
    return MemberResponse.model_validate(user)
