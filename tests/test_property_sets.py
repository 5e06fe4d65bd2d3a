import hypothesis.strategies as st
from hypothesis import HealthCheck, given, settings

from bigset import create


def _members() -> st.SearchStrategy[list[int]]:
    return st.lists(st.integers(min_value=-1000, max_value=1000), max_size=30)


_SETTINGS = settings(
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


@given(values=_members())
@_SETTINGS
def test_add_deduplicates(values: list[int]) -> None:
    with create(int) as store:
        assert store.add_seq("s", values) == len(set(values))
        assert store.add_seq("s", values) == 0
        assert store.cardinality("s") == len(set(values))
        assert sorted(store.get("s")) == sorted(set(values))


@given(left=_members(), right=_members())
@_SETTINGS
def test_algebra_matches_python_sets(left: list[int], right: list[int]) -> None:
    with create(int) as store:
        store.add_seq("left", left)
        store.add_seq("right", right)

        assert store.union("lr", "left", "right") == len(set(left) | set(right))
        assert store.union("rl", "right", "left") == len(set(left) | set(right))
        assert sorted(store.get("lr")) == sorted(store.get("rl"))

        assert store.intersection("both", "left", "right") == len(set(left) & set(right))
        assert set(store.get("both")) == set(left) & set(right)

        store.union("diff", "left")
        assert store.subtract("diff", "right") == len(set(left) & set(right))
        assert set(store.get("diff")) == set(left) - set(right)


@given(initial=_members(), removed=_members())
@_SETTINGS
def test_discard_never_grows(initial: list[int], removed: list[int]) -> None:
    with create(int) as store:
        store.add_seq("s", initial)
        before = store.cardinality("s")
        discarded = store.discard_seq("s", removed)
        assert discarded == len(set(initial) & set(removed))
        assert store.cardinality("s") == before - discarded


@given(initial=_members(), refreshed=_members())
@_SETTINGS
def test_refresh_and_supersede_counts(initial: list[int], refreshed: list[int]) -> None:
    with create(int, key_function=lambda value: str(abs(value))) as store:
        store.add_seq("s", initial)
        keys = {abs(value) for value in initial}
        before = store.cardinality("s")
        assert before == len(keys)

        # refresh rewrites each matching element, duplicates included
        expected_refresh = sum(1 for value in refreshed if abs(value) in keys)
        assert store.refresh_seq("s", refreshed) == expected_refresh
        assert store.cardinality("s") == before

        assert store.supersede_seq("s", refreshed) == len(refreshed)
        assert store.cardinality("s") == len(keys | {abs(value) for value in refreshed})
