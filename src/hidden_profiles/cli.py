"""
Operational command line for hidden profiles.

For use when the admin UI cannot reach a profile (for example because the
profile itself is broken or hidden from the tooling).

Usage:
    hidden-profiles hide 42
    hidden-profiles show 42
    hidden-profiles status 42
    hidden-profiles list-hidden
    hidden-profiles flush-cache

The cached hidden set is only reachable from here through Redis. With
REDIS_ENABLED=false each server process holds its own copy: ``hide``/``show``
still write the attribute but warn that servers keep the old set until restart
(or TTL expiry), and ``flush-cache`` refuses to run.
"""
import argparse
import asyncio
import logging
import sys

from hidden_profiles.core.cache import CacheWriteError, SharedCache, build_cache
from hidden_profiles.core.config import get_settings
from hidden_profiles.core.extensions import get_extension_registry
from hidden_profiles.core.redis import RedisClient
from hidden_profiles.services import user_service
from hidden_profiles.services.attribute_store import SqlAttributeStore
from hidden_profiles.services.exceptions import UserNotFoundError
from hidden_profiles.services.hidden_set import HiddenSetResolver, invalidate_hidden_set
from hidden_profiles.services.invalidation import run_post_commit_invalidation

SERVER_CACHE_WARNING = (
    "warning: Redis is disabled; running servers keep their in-process hidden set "
    "until they restart or the cache TTL expires"
)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="hidden-profiles",
        description="Manage hidden member profiles.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    hide = sub.add_parser("hide", help="Mark a profile hidden")
    hide.add_argument("user_id", type=int)
    show = sub.add_parser("show", help="Clear the hidden flag on a profile")
    show.add_argument("user_id", type=int)
    status = sub.add_parser("status", help="Print whether a profile is hidden")
    status.add_argument("user_id", type=int)
    sub.add_parser("list-hidden", help="Print every hidden user ID")
    sub.add_parser("flush-cache", help="Delete the cached hidden user set")
    return parser


async def _set_hidden(cache: SharedCache, user_id: int, hidden: bool, shared: bool) -> int:
    from hidden_profiles.db.session import get_session_factory

    async with get_session_factory()() as session:
        try:
            await user_service.set_profile_hidden(session, cache, user_id, hidden)
        except UserNotFoundError as e:
            print(e, file=sys.stderr)  # noqa: T201
            return 1
        except CacheWriteError as e:
            # Session closes without commit, so the attribute write is rolled back
            print(f"{e}; nothing was changed", file=sys.stderr)  # noqa: T201
            return 1
        await session.commit()
        try:
            await run_post_commit_invalidation(session, cache)
        except CacheWriteError as e:
            print(f"{e}; the change is saved, run flush-cache", file=sys.stderr)  # noqa: T201
            return 1
    print(f"user {user_id}: {'hidden' if hidden else 'visible'}")  # noqa: T201
    if not shared:
        print(SERVER_CACHE_WARNING, file=sys.stderr)  # noqa: T201
    return 0


async def _status(user_id: int) -> int:
    from hidden_profiles.db.session import get_session_factory

    async with get_session_factory()() as session:
        if await user_service.get_user(session, user_id) is None:
            print(UserNotFoundError(user_id), file=sys.stderr)  # noqa: T201
            return 1
        hidden = await user_service.is_profile_hidden_attribute(session, user_id)
    print(f"user {user_id}: {'hidden' if hidden else 'visible'}")  # noqa: T201
    return 0


async def _list_hidden(cache: SharedCache) -> int:
    from hidden_profiles.db.session import get_session_factory

    settings = get_settings()
    async with get_session_factory()() as session:
        resolver = HiddenSetResolver(
            SqlAttributeStore(session),
            cache,
            get_extension_registry(),
            settings.hidden_set_cache_ttl,
        )
        hidden = await resolver.resolve()
    for user_id in sorted(hidden):
        print(user_id)  # noqa: T201
    return 0


async def _flush_cache(cache: SharedCache, shared: bool) -> int:
    if not shared:
        print(  # noqa: T201
            "Redis is disabled; the hidden set lives inside each server process. "
            "Restart the servers to flush it.",
            file=sys.stderr,
        )
        return 1
    try:
        await invalidate_hidden_set(cache)
    except CacheWriteError as e:
        print(e, file=sys.stderr)  # noqa: T201
        return 1
    print("hidden user cache flushed")  # noqa: T201
    return 0


async def dispatch(args: argparse.Namespace, cache: SharedCache, shared: bool) -> int:
    """
    Execute a parsed command against ``cache``.

    Args:
        args: Parsed arguments from ``build_parser``.
        cache: Cache holding the hidden set.
        shared: Whether ``cache`` is the one the servers read (Redis).

    Returns:
        Process exit code.
    """
    if args.command == "hide":
        return await _set_hidden(cache, args.user_id, hidden=True, shared=shared)
    if args.command == "show":
        return await _set_hidden(cache, args.user_id, hidden=False, shared=shared)
    if args.command == "status":
        return await _status(args.user_id)
    if args.command == "list-hidden":
        return await _list_hidden(cache)
    if args.command == "flush-cache":
        return await _flush_cache(cache, shared)
    return 2


async def run(args: argparse.Namespace) -> int:
    """Connect to the configured cache and execute a parsed command."""
    settings = get_settings()
    redis_client = None
    if settings.redis_enabled:
        redis_client = RedisClient(url=settings.redis_url, pool_size=settings.redis_pool_size)
        await redis_client.connect()
    cache = build_cache(redis_client)

    try:
        return await dispatch(args, cache, shared=redis_client is not None)
    finally:
        if redis_client is not None:
            await redis_client.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
