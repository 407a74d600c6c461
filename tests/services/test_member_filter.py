"""Tests for excluding hidden users from member queries."""
from urllib.parse import parse_qs

import pytest

from hidden_profiles.core.extensions import ExtensionRegistry
from hidden_profiles.services.hidden_set import (
    HIDDEN_VALUE,
    PROFILE_VISIBILITY_KEY,
    HiddenSetResolver,
)
from hidden_profiles.services.member_filter import (
    apply_exclusion,
    apply_exclusion_to_query_string,
    merge_exclude,
    parse_exclude,
)
from tests.fakes import InMemoryAttributeStore


async def _hide(store: InMemoryAttributeStore, *user_ids: int) -> None:
    for user_id in user_ids:
        await store.set(user_id, PROFILE_VISIBILITY_KEY, HIDDEN_VALUE)


class TestApplyExclusion:
    """Tests for apply_exclusion."""

    async def test__apply_exclusion__merges_hidden_into_existing_exclude(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """exclude=[5,6] with hidden {6,7} becomes exactly [5,6,7]; other params untouched."""
        await _hide(store, 6, 7)
        params = {"search_terms": "bob", "exclude": [5, 6], "per_page": 20, "page": 2}

        result = await apply_exclusion(params, "members", False, resolver)

        assert result["exclude"] == [5, 6, 7]
        assert {k: v for k, v in result.items() if k != "exclude"} == {
            "search_terms": "bob",
            "per_page": 20,
            "page": 2,
        }
        assert list(result) == list(params)

    async def test__apply_exclusion__admin_sees_everyone(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Admins get the params unchanged and the hidden set is not resolved."""
        await _hide(store, 6, 7)
        params = {"exclude": [5], "page": 1}

        result = await apply_exclusion(params, "members", True, resolver)

        assert result == params
        assert store.bulk_calls == 0

    async def test__apply_exclusion__other_object_types_untouched(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Non-member queries (e.g. activity) are not rewritten."""
        await _hide(store, 6, 7)
        params = {"exclude": [5], "page": 1}

        result = await apply_exclusion(params, "activity", False, resolver)

        assert result == params
        assert store.bulk_calls == 0

    async def test__apply_exclusion__adds_exclude_when_missing(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Hidden users become the exclude list when none was given."""
        await _hide(store, 9, 3)

        result = await apply_exclusion({"page": 1}, "members", False, resolver)

        assert result == {"page": 1, "exclude": [3, 9]}

    async def test__apply_exclusion__empty_hidden_set_leaves_params(
        self, resolver: HiddenSetResolver,
    ) -> None:
        """With nobody hidden the params are returned as given."""
        params = {"page": 1}

        assert await apply_exclusion(params, "members", False, resolver) == {"page": 1}

    async def test__apply_exclusion__does_not_mutate_input(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """The caller's mapping and its exclude list are left as they were."""
        await _hide(store, 2)
        existing = [1]
        params = {"exclude": existing}

        await apply_exclusion(params, "members", False, resolver)

        assert params == {"exclude": [1]}
        assert existing == [1]

    async def test__apply_exclusion__comma_separated_exclude(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """String exclusions are parsed and kept."""
        await _hide(store, 4)

        result = await apply_exclusion({"exclude": "8,1"}, "members", False, resolver)

        assert result["exclude"] == [8, 1, 4]

    async def test__apply_exclusion__includes_extension_ids(
        self,
        extensions: ExtensionRegistry,
        resolver: HiddenSetResolver,
    ) -> None:
        """IDs contributed by extensions are excluded too."""
        extensions.add_additional_hidden_ids(lambda ids: [*ids, 12])

        result = await apply_exclusion({}, "members", False, resolver)

        assert result == {"exclude": [12]}


class TestApplyExclusionToQueryString:
    """Tests for the query-string form."""

    async def test__query_string__merges_exclude(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """exclude is re-encoded comma-separated; other keys survive."""
        await _hide(store, 6, 7)

        result = await apply_exclusion_to_query_string(
            "type=active&exclude=5,6&page=2", "members", False, resolver,
        )

        parsed = parse_qs(result)
        assert parsed["exclude"] == ["5,6,7"]
        assert parsed["type"] == ["active"]
        assert parsed["page"] == ["2"]

    async def test__query_string__repeated_keys_survive(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Repeated unrelated keys keep every value, in order."""
        await _hide(store, 7)

        result = await apply_exclusion_to_query_string(
            "type=a&type=b&exclude=5", "members", False, resolver,
        )

        assert result == "type=a&type=b&exclude=5,7"

    async def test__query_string__array_style_exclude_merged(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """exclude[] pairs are folded into one exclude at the first position."""
        await _hide(store, 6, 7)

        result = await apply_exclusion_to_query_string(
            "exclude[]=5&page=2&exclude[]=6", "members", False, resolver,
        )

        assert result == "exclude=5,6,7&page=2"

    async def test__query_string__exclude_appended_when_absent(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Without an exclude pair one is added at the end."""
        await _hide(store, 3)

        result = await apply_exclusion_to_query_string("page=1", "members", False, resolver)

        assert result == "page=1&exclude=3"

    async def test__query_string__malformed_exclude_does_not_raise(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Unparseable exclude entries are dropped instead of failing the request."""
        await _hide(store, 2)

        result = await apply_exclusion_to_query_string(
            "exclude=--5,%C2%B2,4", "members", False, resolver,
        )

        assert result == "exclude=4,2"

    async def test__query_string__admin_unchanged(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Admins get the exact same string back."""
        await _hide(store, 6)
        qs = "type=active&page=2"

        assert await apply_exclusion_to_query_string(qs, "members", True, resolver) == qs

    async def test__query_string__non_members_unchanged(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """Other object types get the exact same string back."""
        await _hide(store, 6)
        qs = "scope=friends"

        assert await apply_exclusion_to_query_string(qs, "groups", False, resolver) == qs

    async def test__query_string__nothing_hidden_unchanged(
        self, resolver: HiddenSetResolver,
    ) -> None:
        """Without hidden users the original string is returned."""
        qs = "exclude=1&page=3"

        assert await apply_exclusion_to_query_string(qs, "members", False, resolver) == qs


class TestParseExclude:
    """Tests for parse_exclude and merge_exclude."""

    def test__parse_exclude__none(self) -> None:
        """None means no exclusions."""
        assert parse_exclude(None) == []

    def test__parse_exclude__single_int(self) -> None:
        """A single ID becomes a one-element list."""
        assert parse_exclude(5) == [5]

    def test__parse_exclude__string_with_spaces_and_junk(self) -> None:
        """Whitespace is stripped and non-numeric entries dropped."""
        assert parse_exclude(" 3, x ,4,,") == [3, 4]

    def test__parse_exclude__mixed_iterable(self) -> None:
        """Numeric strings and ints are accepted; bools are not."""
        assert parse_exclude([1, "2", True, None, "z"]) == [1, 2]

    @pytest.mark.parametrize("value", ["--5", "²", "٣", "5-", " - "])
    def test__parse_exclude__rejects_non_ascii_and_malformed_numbers(self, value: str) -> None:
        """Strings int() would reject are dropped, not raised."""
        assert parse_exclude(f"1,{value},2") == [1, 2]

    def test__parse_exclude__accepts_negative_and_padded(self) -> None:
        """ASCII integers with a sign or surrounding spaces are parsed."""
        assert parse_exclude(" -3 ,  8") == [-3, 8]

    async def test__apply_exclusion__malformed_exclude_does_not_raise(
        self, store: InMemoryAttributeStore, resolver: HiddenSetResolver,
    ) -> None:
        """A malformed exclude from anonymous traffic is tolerated."""
        await _hide(store, 7)

        result = await apply_exclusion({"exclude": "--5,²"}, "members", False, resolver)

        assert result["exclude"] == [7]

    def test__merge_exclude__dedupes_existing(self) -> None:
        """Duplicate existing exclusions collapse, keeping first position."""
        assert merge_exclude([5, 5, 1], frozenset({1, 2})) == [5, 1, 2]
