"""
Viewer identity for incoming requests.

The service sits behind a gateway that authenticates users and forwards the
user ID in the ``X-User-Id`` header. A missing, malformed or unknown ID yields
an anonymous viewer rather than an error: anonymous traffic is normal for
profile pages and the member directory.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.db.session import get_async_session
from hidden_profiles.services import user_service

logger = logging.getLogger(__name__)

_user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)


@dataclass(frozen=True)
class Viewer:
    """The user making the request; ``user_id`` is None for anonymous viewers."""

    user_id: int | None
    is_admin: bool = False

    @property
    def is_anonymous(self) -> bool:
        """True when no known user is attached to the request."""
        return self.user_id is None


ANONYMOUS = Viewer(user_id=None)

# users.id is a 32-bit INTEGER column
MAX_USER_ID = 2**31 - 1


def parse_user_id(raw: str | None) -> int | None:
    """Parse a forwarded user ID; None unless it is an ASCII decimal in the ID column range."""
    if not raw:
        return None
    value = raw.strip()
    if not (value.isascii() and value.isdecimal()):
        return None
    user_id = int(value)
    if not 0 < user_id <= MAX_USER_ID:
        return None
    return user_id


async def get_viewer(
    raw_user_id: str | None = Security(_user_id_header),
    db: AsyncSession = Depends(get_async_session),
) -> Viewer:
    """Resolve the viewer from the forwarded user ID header."""
    user_id = parse_user_id(raw_user_id)
    if user_id is None:
        return ANONYMOUS
    user = await user_service.get_user(db, user_id)
    if user is None:
        logger.debug("viewer_unknown user_id=%s", raw_user_id)
        return ANONYMOUS
    return Viewer(user_id=user.id, is_admin=user.is_admin)


async def require_admin(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """Allow only administrators."""
    if not viewer.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privilege required",
        )
    return viewer
