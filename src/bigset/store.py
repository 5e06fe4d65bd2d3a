"""Public facade tying the codec, database, mutator, algebra and reader together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterable
from pathlib import Path
from typing import Any, Generic, TypeVar, overload

from .algebra import SetAlgebra
from .cancellation import CancelToken
from .codec import ElementCodec, build_extractor
from .config import KeyFunction, StoreConfig
from .database import SetDatabase
from .errors import StoreClosedError
from .mutator import Mutator
from .reader import SetReader

T = TypeVar("T")


class SetStore(Generic[T]):
    """Many named sets of ``element_type`` values, kept in one SQLite database.

    Sets are created by the first call that writes to them. Reading a set that
    was never written behaves like reading an empty set. Mutating calls return
    the number of rows they changed.

    Without ``config.storage.path`` the database is a temporary file removed by
    :meth:`close`; with a path it is kept, and reopening it restores every set.
    Stored payloads are only checked against ``element_type`` when read back.
    """

    def __init__(
        self,
        element_type: Any = Any,
        config: StoreConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or StoreConfig.from_env()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.codec: ElementCodec[T] = ElementCodec(element_type)
        self.extractor = build_extractor(self.codec, self.config.key_function)
        self.database = SetDatabase(self.config.storage)
        self.mutator: Mutator[T] = Mutator(self.database, self.extractor)
        self.algebra = SetAlgebra(self.database)
        self.reader: SetReader[T] = SetReader(
            self.database, self.codec, self.extractor, self.config.reader, self.logger
        )
        self._closed = False

    @property
    def path(self) -> Path:
        return self.database.path

    @property
    def persistent(self) -> bool:
        return self.database.persistent

    # Mutations

    def add(self, name: str, *elements: T, cancel: CancelToken | None = None) -> int:
        """Insert elements whose key is not already present; returns the number added."""
        return self.mutator.add(name, elements, cancel)

    def add_seq(self, name: str, elements: Iterable[T], cancel: CancelToken | None = None) -> int:
        return self.mutator.add(name, elements, cancel)

    def supersede(self, name: str, *elements: T, cancel: CancelToken | None = None) -> int:
        """Insert elements, replacing stored elements with the same key.

        Returns the number of rows inserted or overwritten; an overwrite with an
        identical payload still counts.
        """
        return self.mutator.supersede(name, elements, cancel)

    def supersede_seq(
        self, name: str, elements: Iterable[T], cancel: CancelToken | None = None
    ) -> int:
        return self.mutator.supersede(name, elements, cancel)

    def refresh(self, name: str, *elements: T, cancel: CancelToken | None = None) -> int:
        """Replace stored elements with new values only where the key already exists."""
        return self.mutator.refresh(name, elements, cancel)

    def refresh_seq(
        self, name: str, elements: Iterable[T], cancel: CancelToken | None = None
    ) -> int:
        return self.mutator.refresh(name, elements, cancel)

    def discard(self, name: str, *elements: T, cancel: CancelToken | None = None) -> int:
        """Remove elements if present; returns the number actually removed."""
        return self.mutator.discard(name, elements, cancel)

    def discard_seq(
        self, name: str, elements: Iterable[T], cancel: CancelToken | None = None
    ) -> int:
        return self.mutator.discard(name, elements, cancel)

    # Set algebra

    def union(self, target: str, *sources: str, cancel: CancelToken | None = None) -> int:
        """Add every element of each source to ``target``.

        ``target`` keeps any elements it already had. When sources disagree on
        the payload for a key, the first listed source wins.
        """
        return self.algebra.union(target, sources, cancel)

    def intersection(self, target: str, *sources: str, cancel: CancelToken | None = None) -> int:
        """Add elements present in every source to ``target``, keeping its existing ones."""
        return self.algebra.intersection(target, sources, cancel)

    def subtract(self, target: str, *sources: str, cancel: CancelToken | None = None) -> int:
        """Remove from ``target`` every element present in at least one source."""
        return self.algebra.subtract(target, sources, cancel)

    # Reads

    def cardinality(self, name: str, cancel: CancelToken | None = None) -> int:
        return self.reader.cardinality(name, cancel)

    def each(
        self, name: str, visitor: Callable[[T], object], cancel: CancelToken | None = None
    ) -> None:
        self.reader.each(name, visitor, cancel)

    def all(self, name: str, cancel: CancelToken | None = None) -> Generator[T, None, None]:
        """Lazily yield copies of the elements; they are safe to mutate."""
        return self.reader.all(name, cancel)

    def get(self, name: str, cancel: CancelToken | None = None) -> list[T]:
        return self.reader.get(name, cancel)

    def retrieve_if_exists(
        self, name: str, probe: T, cancel: CancelToken | None = None
    ) -> T | None:
        return self.reader.retrieve_if_exists(name, probe, cancel)

    # Lifecycle

    def close(self) -> None:
        """Release the database; ephemeral storage is deleted.

        The store must not be used afterwards, and every in-flight call must
        have finished before closing.
        """
        if self._closed:
            raise StoreClosedError("SetStore is already closed")
        self._closed = True
        self.database.close()

    def __enter__(self) -> SetStore[T]:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        if not self._closed:
            self.close()


@overload
def create(
    element_type: type[T],
    *,
    key_function: KeyFunction | None = None,
    path: str | Path | None = None,
    config: StoreConfig | None = None,
    logger: logging.Logger | None = None,
) -> SetStore[T]: ...


@overload
def create(
    element_type: Any = Any,
    *,
    key_function: KeyFunction | None = None,
    path: str | Path | None = None,
    config: StoreConfig | None = None,
    logger: logging.Logger | None = None,
) -> SetStore[Any]: ...


def create(
    element_type: Any = Any,
    *,
    key_function: KeyFunction | None = None,
    path: str | Path | None = None,
    config: StoreConfig | None = None,
    logger: logging.Logger | None = None,
) -> SetStore[Any]:
    """Open a :class:`SetStore`.

    ``key_function`` and ``path`` override the matching fields of ``config``
    (itself defaulting to :meth:`StoreConfig.from_env`).
    """

    resolved = config or StoreConfig.from_env()
    if key_function is not None:
        resolved = resolved.model_copy(update={"key_function": key_function})
    if path is not None:
        resolved = resolved.with_path(path)
    return SetStore(element_type, resolved, logger=logger)
