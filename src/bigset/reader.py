"""Streaming reads, point lookups and counts over set tables."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from typing import Generic, TypeVar

from .cancellation import CancelToken, check
from .codec import ElementCodec, KeyExtractor
from .config import ReaderSettings
from .database import SetDatabase
from .naming import quote_identifier, validate_name

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SetReader(Generic[T]):
    def __init__(
        self,
        database: SetDatabase,
        codec: ElementCodec[T],
        extractor: KeyExtractor[T],
        settings: ReaderSettings,
        log: logging.Logger | None = None,
    ) -> None:
        self._database = database
        self._codec = codec
        self._extractor = extractor
        self._settings = settings
        self._logger = log or logger

    def cardinality(self, name: str, cancel: CancelToken | None = None) -> int:
        validate_name(name)
        with self._database.read(f"cardinality of set {name!r}", cancel) as conn:
            if not self._database.table_exists(conn, name):
                return 0
            (count,) = conn.execute(f"SELECT COUNT(*) FROM {quote_identifier(name)};").fetchone()
        return int(count)

    def retrieve_if_exists(
        self, name: str, probe: T, cancel: CancelToken | None = None
    ) -> T | None:
        """Return the stored element sharing ``probe``'s key, or ``None``.

        The stored payload is decoded, so with a custom key function the result
        may differ from ``probe`` in every attribute except its identity.
        """

        validate_name(name)
        key, _payload = self._extractor(probe)
        with self._database.read(f"lookup in set {name!r}", cancel) as conn:
            if not self._database.table_exists(conn, name):
                return None
            row = conn.execute(
                f"SELECT v FROM {quote_identifier(name)} WHERE k = ?;", (key,)
            ).fetchone()
        if row is None:
            return None
        return self._codec.decode(row[0])

    def all(
        self, name: str, cancel: CancelToken | None = None
    ) -> Generator[T, None, None]:
        """Return a single-pass iterator over decoded elements.

        The name is validated and the set size sampled immediately; rows are
        only fetched as the iterator is consumed.
        """

        validate_name(name)
        expected = self.cardinality(name, cancel)
        return self._stream(name, expected, cancel)

    def _stream(
        self, name: str, expected: int, cancel: CancelToken | None
    ) -> Generator[T, None, None]:
        database = self._database
        context = f"iteration over set {name!r}"
        conn = database.reader()
        with database.translate_errors(context, cancel):
            if not database.table_exists(conn, name):
                self._check_drift(name, expected, 0)
                return
            with database.interruptible(conn, cancel):
                cursor = conn.execute(f"SELECT v FROM {quote_identifier(name)};")
        cursor.arraysize = self._settings.fetch_size
        actual = 0
        try:
            while True:
                check(cancel)
                with database.translate_errors(context, cancel), database.interruptible(
                    conn, cancel
                ):
                    batch = cursor.fetchmany()
                if not batch:
                    break
                for (payload,) in batch:
                    yield self._codec.decode(payload)
                    actual += 1
        finally:
            cursor.close()
        self._check_drift(name, expected, actual)

    def _check_drift(self, name: str, expected: int, actual: int) -> None:
        if actual != expected and self._settings.warn_on_drift:
            self._logger.warning(
                f"Set {name!r} changed during read, potentially resulting in less "
                f"efficient memory usage (expected {expected} rows, read {actual})"
            )

    def each(
        self, name: str, visitor: Callable[[T], object], cancel: CancelToken | None = None
    ) -> None:
        """Call ``visitor`` on every element; an exception from it stops iteration."""

        elements = self.all(name, cancel)
        try:
            for element in elements:
                visitor(element)
        finally:
            elements.close()

    def get(self, name: str, cancel: CancelToken | None = None) -> list[T]:
        elements = self.all(name, cancel)
        try:
            return list(elements)
        finally:
            elements.close()
