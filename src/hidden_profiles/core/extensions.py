"""
Extension points for other subsystems.

Two handler chains are exposed:

- ``additional_hidden_ids``: each handler receives the accumulated list of extra
  hidden user IDs and returns an augmented list. Used to hide users decided by
  other logic (e.g. a blocklist). Handlers run on every hidden-set recompute, so
  they should be cheap bulk queries.
- ``is_hidden_override``: each handler receives the running ``Decision`` and the
  user ID and returns a new decision. A definite decision bypasses the stored
  visibility attribute entirely.

Handlers may be plain callables or coroutine functions. Return values from
handlers are coerced; an ill-typed return never raises.
"""
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class Decision(StrEnum):
    """Tri-state visibility decision returned by override handlers."""

    HIDDEN = "hidden"
    VISIBLE = "visible"
    UNSPECIFIED = "unspecified"

    @classmethod
    def coerce(cls, value: Any) -> "Decision | None":
        """
        Convert a handler return value to a Decision.

        Accepts Decision members, booleans (True = hidden), None (no opinion) and
        the string values of the enum. Returns None for anything else.
        """
        if isinstance(value, Decision):
            return value
        if value is None:
            return cls.UNSPECIFIED
        if isinstance(value, bool):
            return cls.HIDDEN if value else cls.VISIBLE
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


AdditionalHiddenHandler = Callable[[list[int]], list[int] | Awaitable[list[int]]]
OverrideHandler = Callable[[Decision, int], Any]


def _is_user_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


async def _call(handler: Callable[..., Any], *args: Any) -> Any:
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ExtensionRegistry:
    """Registration slots for the two extension points."""

    def __init__(self) -> None:
        self._additional_hidden: list[AdditionalHiddenHandler] = []
        self._overrides: list[OverrideHandler] = []

    def add_additional_hidden_ids(self, handler: AdditionalHiddenHandler) -> AdditionalHiddenHandler:
        """Register a handler; usable as a decorator."""
        self._additional_hidden.append(handler)
        return handler

    def add_is_hidden_override(self, handler: OverrideHandler) -> OverrideHandler:
        """Register a handler; usable as a decorator."""
        self._overrides.append(handler)
        return handler

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._additional_hidden.clear()
        self._overrides.clear()

    async def additional_hidden_ids(self) -> list[int]:
        """Run the additional-hidden chain from an empty list."""
        ids: list[int] = []
        for handler in self._additional_hidden:
            result = await _call(handler, list(ids))
            if not isinstance(result, list | tuple | set | frozenset):
                logger.warning(
                    "extension_bad_return point=additional_hidden_ids handler=%r type=%s",
                    handler,
                    type(result).__name__,
                )
                continue
            valid = [value for value in result if _is_user_id(value)]
            if len(valid) != len(result):
                logger.warning(
                    "extension_dropped_ids point=additional_hidden_ids handler=%r dropped=%s",
                    handler,
                    len(result) - len(valid),
                )
            ids = valid
        return ids

    async def is_hidden_override(self, user_id: int) -> Decision:
        """Run the override chain from UNSPECIFIED."""
        decision = Decision.UNSPECIFIED
        for handler in self._overrides:
            result = await _call(handler, decision, user_id)
            coerced = Decision.coerce(result)
            if coerced is None:
                # Treated as "no opinion" from this handler
                logger.warning(
                    "extension_bad_return point=is_hidden_override handler=%r type=%s",
                    handler,
                    type(result).__name__,
                )
                continue
            decision = coerced
        return decision


# Global registry instance (handlers are registered at import/startup time)
_registry = ExtensionRegistry()


def get_extension_registry() -> ExtensionRegistry:
    """Get the global extension registry."""
    return _registry
