from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import pytest

from bigset import ElementCodec, EncodingError, create, identity_extractor, keyed_extractor


@dataclass
class Event:
    user: str
    day: date
    tags: list[str]


def test_canonical_encoding_ignores_key_order() -> None:
    codec: ElementCodec[dict[str, int]] = ElementCodec(dict[str, int])
    assert codec.encode({"b": 1, "a": 2}) == b'{"a":2,"b":1}'
    assert codec.encode({"a": 2, "b": 1}) == codec.encode({"b": 1, "a": 2})


def test_equal_structures_are_one_member() -> None:
    with create(dict[str, int]) as store:
        assert store.add("s", {"x": 1, "y": 2}, {"y": 2, "x": 1}) == 1


def test_dataclass_round_trip() -> None:
    codec: ElementCodec[Event] = ElementCodec(Event)
    event = Event("alice", date(2025, 1, 2), ["a", "b"])
    payload = codec.encode(event)
    assert payload == b'{"day":"2025-01-02","tags":["a","b"],"user":"alice"}'
    assert codec.decode(payload) == event


def test_unserializable_element_raises() -> None:
    codec: ElementCodec[Any] = ElementCodec()
    with pytest.raises(EncodingError) as excinfo:
        codec.encode(object())
    assert excinfo.value.count == -1


def test_decode_mismatch_raises() -> None:
    codec: ElementCodec[int] = ElementCodec(int)
    with pytest.raises(EncodingError):
        codec.decode(b'"not a number"')
    with pytest.raises(EncodingError):
        codec.decode(b"{broken")


def test_identity_extractor_uses_payload_as_key() -> None:
    codec: ElementCodec[int] = ElementCodec(int)
    assert identity_extractor(codec)(42) == (b"42", b"42")


def test_keyed_extractor_accepts_str_and_bytes() -> None:
    codec: ElementCodec[Event] = ElementCodec(Event)
    event = Event("alice", date(2025, 1, 2), [])
    by_str = keyed_extractor(codec, lambda e: e.user)
    by_bytes = keyed_extractor(codec, lambda e: e.user.encode())
    assert by_str(event)[0] == by_bytes(event)[0] == b"alice"
    assert by_str(event)[1] == codec.encode(event)


def test_key_function_failures_raise_encoding_error() -> None:
    codec: ElementCodec[int] = ElementCodec(int)

    def explode(_value: int) -> bytes:
        raise KeyError("missing")

    with pytest.raises(EncodingError):
        keyed_extractor(codec, explode)(1)
    with pytest.raises(EncodingError):
        keyed_extractor(codec, lambda value: value)(1)  # type: ignore[arg-type, return-value]


def test_key_function_failure_aborts_batch() -> None:
    def only_even(value: int) -> str:
        if value % 2:
            raise ValueError("odd")
        return str(value)

    with create(int, key_function=only_even) as store:
        store.add("s", 0)
        with pytest.raises(EncodingError):
            store.add("s", 2, 4, 5)
        assert store.get("s") == [0]
