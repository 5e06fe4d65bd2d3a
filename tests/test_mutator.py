from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import pytest

from bigset import EncodingError, SetStore, create
from bigset.mutator import ADD, DISCARD, REFRESH, SUPERSEDE


@dataclass
class Book:
    name: str
    pages: int


def test_add_counts_only_new_keys(int_store: SetStore[int]) -> None:
    assert int_store.add("s", 1, 1, 2, 2, 3) == 3
    assert int_store.add("s", 3, 4) == 1
    assert int_store.cardinality("s") == 4


def test_add_with_no_elements_creates_empty_set(int_store: SetStore[int]) -> None:
    assert int_store.add("empty") == 0
    database = int_store.database
    assert database.table_exists(database.reader(), "empty")


def test_add_seq_pulls_elements_lazily(int_store: SetStore[int]) -> None:
    pulled: list[int] = []

    def numbers() -> Iterator[int]:
        for value in range(1000):
            pulled.append(value)
            yield value

    assert int_store.add_seq("s", numbers()) == 1000
    assert len(pulled) == 1000
    assert int_store.cardinality("s") == 1000


def test_failed_element_rolls_back_whole_batch() -> None:
    store = create()
    try:
        store.add("s", 1)
        with pytest.raises(EncodingError) as excinfo:
            store.add("s", 2, 3, object())
        assert excinfo.value.count == -1
        assert store.get("s") == [1]
    finally:
        store.close()


def test_failed_batch_does_not_create_set() -> None:
    with create() as store:
        with pytest.raises(EncodingError):
            store.add("fresh", 1, object())
        database = store.database
        assert not database.table_exists(database.reader(), "fresh")
        # the table is created cleanly by a later write
        assert store.add("fresh", 1) == 1


def test_supersede_counts_identical_overwrites() -> None:
    with create(Book, key_function=lambda book: book.name) as store:
        store.add("s", Book("x", 1))
        assert store.supersede("s", Book("x", 1)) == 1
        assert store.supersede_seq("s", [Book("x", 2), Book("y", 1)]) == 2
        assert store.retrieve_if_exists("s", Book("x", 0)) == Book("x", 2)


def test_supersede_last_duplicate_in_batch_wins() -> None:
    with create(Book, key_function=lambda book: book.name) as store:
        store.supersede("s", Book("x", 1), Book("x", 2), Book("x", 3))
        assert store.get("s") == [Book("x", 3)]


def test_refresh_of_absent_elements_changes_nothing() -> None:
    with create(Book, key_function=lambda book: book.name) as store:
        assert store.refresh("s", Book("x", 1)) == 0
        assert store.cardinality("s") == 0
        store.add("s", Book("x", 1))
        assert store.refresh_seq("s", iter([Book("x", 5), Book("z", 5)])) == 1
        assert store.get("s") == [Book("x", 5)]


def test_discard_counts_removed_rows(int_store: SetStore[int]) -> None:
    int_store.add("s", 1, 2, 3)
    assert int_store.discard("s", 2, 2, 9) == 1
    assert int_store.discard_seq("s", range(5)) == 2
    assert int_store.cardinality("s") == 0


def test_discard_from_unknown_set_creates_it(int_store: SetStore[int]) -> None:
    assert int_store.discard("unknown", 1) == 0
    database = int_store.database
    assert database.table_exists(database.reader(), "unknown")


def test_policies_bind_key_and_payload_in_statement_order() -> None:
    assert ADD.bind(b"k", b"v") == (b"k", b"v")
    assert SUPERSEDE.bind(b"k", b"v") == (b"k", b"v")
    assert REFRESH.bind(b"k", b"v") == (b"v", b"k")
    assert DISCARD.bind(b"k", b"v") == (b"k",)
    assert REFRESH.render('"s"') == 'UPDATE "s" SET v = ? WHERE k = ?;'
