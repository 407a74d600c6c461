"""Exclusion of hidden users from member listings and search."""
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from hidden_profiles.services.hidden_set import HiddenSetResolver

MEMBERS_OBJECT_TYPE = "members"

# Query-string spellings of the exclude parameter (plain and PHP-style array)
EXCLUDE_KEYS = frozenset({"exclude", "exclude[]"})

_INTEGER_PATTERN = re.compile(r"-?[0-9]+")


def parse_exclude(value: Any) -> list[int]:
    """
    Normalize an ``exclude`` parameter to a list of IDs.

    Accepts None, a single int, a comma-separated string, or an iterable of ints or
    numeric strings. Unparseable entries are dropped. Order is preserved.
    """
    if value is None:
        return []
    if isinstance(value, bool):
        return []
    if isinstance(value, int):
        return [value]
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    else:
        items = list(value)

    ids: list[int] = []
    for item in items:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            ids.append(item)
        elif isinstance(item, str) and _INTEGER_PATTERN.fullmatch(item.strip()):
            ids.append(int(item.strip()))
    return ids


def merge_exclude(existing: Any, hidden: frozenset[int]) -> list[int]:
    """Existing exclusions first (deduplicated, in order), then new hidden IDs ascending."""
    merged: list[int] = []
    seen: set[int] = set()
    for user_id in parse_exclude(existing):
        if user_id not in seen:
            seen.add(user_id)
            merged.append(user_id)
    merged.extend(sorted(hidden - seen))
    return merged


async def apply_exclusion(
    params: Mapping[str, Any],
    object_type: str,
    viewer_is_admin: bool,
    resolver: HiddenSetResolver,
) -> dict[str, Any]:
    """
    Add hidden users to a member query's ``exclude`` parameter.

    Only ``members`` queries from non-admin viewers are rewritten. The input
    mapping is never mutated; other parameters keep their values and order.
    """
    if object_type != MEMBERS_OBJECT_TYPE or viewer_is_admin:
        return dict(params)

    hidden = await resolver.resolve()
    if not hidden:
        return dict(params)

    rewritten = dict(params)
    rewritten["exclude"] = merge_exclude(params.get("exclude"), hidden)
    return rewritten


async def apply_exclusion_to_query_string(
    query_string: str,
    object_type: str,
    viewer_is_admin: bool,
    resolver: HiddenSetResolver,
) -> str:
    """
    Query-string form of ``apply_exclusion``.

    Every ``exclude`` and ``exclude[]`` pair is merged into a single comma-separated
    ``exclude`` at the position of the first one (or appended). All other pairs,
    repeated keys included, keep their values and order.
    """
    if object_type != MEMBERS_OBJECT_TYPE or viewer_is_admin:
        return query_string

    hidden = await resolver.resolve()
    if not hidden:
        return query_string

    pairs = parse_qsl(query_string, keep_blank_values=True)
    existing = [value for key, value in pairs if key in EXCLUDE_KEYS]
    merged = merge_exclude(",".join(existing), hidden)
    exclude_pair = ("exclude", ",".join(str(user_id) for user_id in merged))

    rewritten: list[tuple[str, str]] = []
    placed = False
    for key, value in pairs:
        if key not in EXCLUDE_KEYS:
            rewritten.append((key, value))
        elif not placed:
            rewritten.append(exclude_pair)
            placed = True
    if not placed:
        rewritten.append(exclude_pair)
    return urlencode(rewritten, safe=",")
