"""Element serialization and key extraction strategies."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from .errors import EncodingError

T = TypeVar("T")

KeyExtractor = Callable[[T], tuple[bytes, bytes]]


class ElementCodec(Generic[T]):
    """Canonical JSON codec for elements of one type.

    Elements are dumped through a pydantic ``TypeAdapter`` in JSON mode, then
    serialized with sorted keys and compact separators so that structurally
    equal elements always produce identical bytes.
    """

    def __init__(self, element_type: Any = Any) -> None:
        self.element_type = element_type
        self._adapter: TypeAdapter[T] = TypeAdapter(element_type)

    def encode(self, element: T) -> bytes:
        try:
            data = self._adapter.dump_python(element, mode="json")
            text = json.dumps(
                data,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"cannot serialize {element!r}: {exc}") from exc
        return text.encode("utf-8")

    def decode(self, payload: bytes) -> T:
        try:
            return self._adapter.validate_json(payload)
        except ValueError as exc:
            raise EncodingError(
                f"stored payload does not match {self.element_type!r}: {exc}"
            ) from exc


def identity_extractor(codec: ElementCodec[T]) -> KeyExtractor[T]:
    """Use the whole canonical serialization as the key."""

    def extract(element: T) -> tuple[bytes, bytes]:
        payload = codec.encode(element)
        return payload, payload

    return extract


def _as_key(value: object) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise EncodingError(f"key function must return bytes or str, got {type(value).__name__}")


def keyed_extractor(
    codec: ElementCodec[T], key_function: Callable[[T], bytes | str]
) -> KeyExtractor[T]:
    """Derive the key with ``key_function``; the payload stays canonical."""

    def extract(element: T) -> tuple[bytes, bytes]:
        payload = codec.encode(element)
        try:
            key = key_function(element)
        except Exception as exc:
            raise EncodingError(f"key function failed for {element!r}: {exc}") from exc
        return _as_key(key), payload

    return extract


def build_extractor(
    codec: ElementCodec[T], key_function: Callable[[T], bytes | str] | None = None
) -> KeyExtractor[T]:
    if key_function is None:
        return identity_extractor(codec)
    return keyed_extractor(codec, key_function)
