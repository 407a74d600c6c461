"""Member directory queries."""
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.models.user import User


def escape_ilike(value: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_members(
    db: AsyncSession,
    q: str | None = None,
    exclude: list[int] | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    """
    Search the member directory with pagination.

    Args:
        db: Database session.
        q: Case-insensitive match on username or display name.
        exclude: User IDs to leave out (hidden users are merged in by the caller).
        offset: Pagination offset.
        limit: Pagination limit.

    Returns:
        Tuple of (list of users, total count).
    """
    base_query = select(User)

    if q:
        pattern = f"%{escape_ilike(q)}%"
        base_query = base_query.where(
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.display_name.ilike(pattern, escape="\\"),
            ),
        )

    if exclude:
        base_query = base_query.where(User.id.not_in(exclude))

    count_query = select(func.count()).select_from(base_query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    base_query = base_query.order_by(User.username, User.id).offset(offset).limit(limit)
    result = await db.execute(base_query)
    return list(result.scalars().all()), total
