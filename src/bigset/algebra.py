"""Table-to-table union, intersection and subtraction."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from .cancellation import CancelToken
from .database import SetDatabase
from .naming import quote_identifier, validate_names

# "WHERE true" keeps SQLite from parsing ON CONFLICT as a join constraint.
UNION_SQL = (
    "INSERT INTO {target} (k, v) SELECT k, v FROM {source} WHERE true ON CONFLICT (k) DO NOTHING;"
)
SUBTRACT_SQL = "DELETE FROM {target} WHERE k IN (SELECT k FROM {source});"


def intersection_sql(target: str, sources: Sequence[str]) -> str:
    """Insert keys present in every source, taking payloads from the first one."""

    parts = [
        f"INSERT INTO {quote_identifier(target)} (k, v)",
        f"SELECT s0.k, s0.v FROM {quote_identifier(sources[0])} AS s0",
    ]
    for index, source in enumerate(sources[1:], start=1):
        alias = f"s{index}"
        parts.append(f"INNER JOIN {quote_identifier(source)} AS {alias} ON {alias}.k = s0.k")
    parts.append("WHERE true ON CONFLICT (k) DO NOTHING;")
    return " ".join(parts)


class SetAlgebra:
    def __init__(self, database: SetDatabase) -> None:
        self._database = database

    def _missing(self, conn: sqlite3.Connection, sources: Sequence[str]) -> set[str]:
        return {source for source in sources if not self._database.table_exists(conn, source)}

    def union(
        self, target: str, sources: Sequence[str], cancel: CancelToken | None = None
    ) -> int:
        """Copy every source row whose key is not yet in ``target``.

        Sources are applied one statement each, in argument order, so when
        several sources share a key the first listed source supplies the
        payload. Returns the number of inserted rows.
        """

        validate_names(target, *sources)
        with self._database.write(f"union into set {target!r}", cancel) as conn:
            self._database.ensure_table(conn, target)
            missing = self._missing(conn, sources)
            inserted = 0
            for source in sources:
                if source in missing:
                    continue
                cursor = conn.execute(
                    UNION_SQL.format(
                        target=quote_identifier(target), source=quote_identifier(source)
                    )
                )
                inserted += max(cursor.rowcount, 0)
            return inserted

    def intersection(
        self, target: str, sources: Sequence[str], cancel: CancelToken | None = None
    ) -> int:
        """Add keys present in every source; rows already in ``target`` are kept."""

        validate_names(target, *sources)
        with self._database.write(f"intersection into set {target!r}", cancel) as conn:
            self._database.ensure_table(conn, target)
            if not sources or self._missing(conn, sources):
                return 0
            cursor = conn.execute(intersection_sql(target, sources))
            return max(cursor.rowcount, 0)

    def subtract(
        self, target: str, sources: Sequence[str], cancel: CancelToken | None = None
    ) -> int:
        """Remove ``target`` rows whose key is in any source; returns rows removed."""

        validate_names(target, *sources)
        with self._database.write(f"subtract from set {target!r}", cancel) as conn:
            if not self._database.table_exists(conn, target):
                self._database.ensure_table(conn, target)
                return 0
            missing = self._missing(conn, sources)
            removed = 0
            for source in sources:
                if source in missing:
                    continue
                cursor = conn.execute(
                    SUBTRACT_SQL.format(
                        target=quote_identifier(target), source=quote_identifier(source)
                    )
                )
                removed += max(cursor.rowcount, 0)
            return removed
