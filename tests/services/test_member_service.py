"""Tests for member directory queries."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from hidden_profiles.models.user import User
from hidden_profiles.services import member_service


@pytest.fixture
async def members(db_session: AsyncSession) -> dict[str, User]:
    """A small directory keyed by username."""
    users = [
        User(username="amy", display_name="Amy Pond"),
        User(username="bill", display_name="Bill Potts"),
        User(username="clara", display_name="Clara Oswald"),
        User(username="donna_n", display_name="Donna Noble"),
    ]
    db_session.add_all(users)
    await db_session.flush()
    return {u.username: u for u in users}


async def test__list_members__ordered_by_username(
    db_session: AsyncSession, members: dict[str, User],
) -> None:
    result, total = await member_service.list_members(db_session)

    assert [u.username for u in result] == ["amy", "bill", "clara", "donna_n"]
    assert total == 4


async def test__list_members__exclude(
    db_session: AsyncSession, members: dict[str, User],
) -> None:
    result, total = await member_service.list_members(
        db_session, exclude=[members["bill"].id, members["clara"].id],
    )

    assert [u.username for u in result] == ["amy", "donna_n"]
    assert total == 2


async def test__list_members__search_username_and_display_name(
    db_session: AsyncSession, members: dict[str, User],
) -> None:
    by_display, _ = await member_service.list_members(db_session, q="POTTS")
    by_username, _ = await member_service.list_members(db_session, q="cla")

    assert [u.username for u in by_display] == ["bill"]
    assert [u.username for u in by_username] == ["clara"]


async def test__list_members__search_escapes_wildcards(
    db_session: AsyncSession, members: dict[str, User],
) -> None:
    result, _ = await member_service.list_members(db_session, q="_")

    assert [u.username for u in result] == ["donna_n"]


async def test__list_members__pagination(
    db_session: AsyncSession, members: dict[str, User],
) -> None:
    result, total = await member_service.list_members(db_session, offset=1, limit=2)

    assert [u.username for u in result] == ["bill", "clara"]
    assert total == 4


def test__escape_ilike() -> None:
    assert member_service.escape_ilike("50%_a\\b") == "50\\%\\_a\\\\b"
