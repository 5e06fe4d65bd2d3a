"""Per-element insert, upsert, update and delete against one set table."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from .cancellation import CancelToken, check
from .codec import KeyExtractor
from .database import SetDatabase
from .naming import quote_identifier, validate_name

T = TypeVar("T")

Binder = Callable[[bytes, bytes], tuple[bytes, ...]]


@dataclass(frozen=True, slots=True)
class ConflictPolicy:
    """One statement applied per element, plus how (key, payload) bind to it."""

    name: str
    statement: str
    bind: Binder

    def render(self, table: str) -> str:
        return self.statement.format(table=table)


ADD = ConflictPolicy(
    name="add",
    statement="INSERT INTO {table} (k, v) VALUES (?, ?) ON CONFLICT (k) DO NOTHING;",
    bind=lambda key, payload: (key, payload),
)
# Every upsert counts as one change, even when the payload is unchanged.
SUPERSEDE = ConflictPolicy(
    name="supersede",
    statement=(
        "INSERT INTO {table} (k, v) VALUES (?, ?) ON CONFLICT (k) DO UPDATE SET v = excluded.v;"
    ),
    bind=lambda key, payload: (key, payload),
)
REFRESH = ConflictPolicy(
    name="refresh",
    statement="UPDATE {table} SET v = ? WHERE k = ?;",
    bind=lambda key, payload: (payload, key),
)
DISCARD = ConflictPolicy(
    name="discard",
    statement="DELETE FROM {table} WHERE k = ?;",
    bind=lambda key, _payload: (key,),
)


class Mutator(Generic[T]):
    def __init__(self, database: SetDatabase, extractor: KeyExtractor[T]) -> None:
        self._database = database
        self._extractor = extractor

    def _parameters(
        self, policy: ConflictPolicy, elements: Iterable[T], cancel: CancelToken | None
    ) -> Iterator[tuple[bytes, ...]]:
        for element in elements:
            check(cancel)
            key, payload = self._extractor(element)
            yield policy.bind(key, payload)

    def apply(
        self,
        policy: ConflictPolicy,
        name: str,
        elements: Iterable[T],
        cancel: CancelToken | None = None,
    ) -> int:
        """Apply ``policy`` to every element in one transaction.

        Elements are pulled lazily from ``elements`` so arbitrarily long
        iterables are never materialized. Returns the number of rows changed.
        """

        validate_name(name)
        statement = policy.render(quote_identifier(name))
        with self._database.write(f"{policy.name} on set {name!r}", cancel) as conn:
            self._database.ensure_table(conn, name)
            cursor = conn.executemany(statement, self._parameters(policy, elements, cancel))
            return max(cursor.rowcount, 0)

    def add(self, name: str, elements: Iterable[T], cancel: CancelToken | None = None) -> int:
        return self.apply(ADD, name, elements, cancel)

    def supersede(self, name: str, elements: Iterable[T], cancel: CancelToken | None = None) -> int:
        return self.apply(SUPERSEDE, name, elements, cancel)

    def refresh(self, name: str, elements: Iterable[T], cancel: CancelToken | None = None) -> int:
        return self.apply(REFRESH, name, elements, cancel)

    def discard(self, name: str, elements: Iterable[T], cancel: CancelToken | None = None) -> int:
        return self.apply(DISCARD, name, elements, cancel)
