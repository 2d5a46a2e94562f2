from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import pytest

from spotcore.protobuf import decode_message, encode_message, find_field, pb_field


class Color(IntEnum):
    RED = 0
    GREEN = 1
    BLUE = 2


@dataclass
class Single:
    value: int = pb_field(1, default=0)


@dataclass
class Named:
    name: Optional[str] = pb_field(2, default=None)


@dataclass
class Wrapper:
    inner: Single = pb_field(3, default_factory=Single)


@dataclass
class Inner:
    value: int = pb_field(1, default=0)
    name: str = pb_field(2, default="")


@dataclass
class Outer:
    count: int = pb_field(1, default=0)
    inner: Inner = pb_field(3, default_factory=Inner)
    maybe: Optional[Inner] = pb_field(4, default=None)
    items: list[Inner] = pb_field(5, default_factory=list)
    colors: list[Color] = pb_field(6, default_factory=list)
    blob: bytes = pb_field(7, default=b"")
    flag: bool = pb_field(8, default=False)
    label: Optional[str] = pb_field(9, default=None)
    color: Color = pb_field(10, default=Color.RED)
    numbers: list[int] = pb_field(11, default_factory=list)


def test_varint_wire_bytes():
    assert encode_message(Single(150)) == b"\x08\x96\x01"


def test_decode_varint_wire_bytes():
    assert decode_message(Single, b"\x08\x96\x01") == Single(150)


def test_string_wire_bytes():
    assert encode_message(Named("testing")) == b"\x12\x07testing"


def test_optional_none_is_not_written():
    assert encode_message(Named()) == b""


def test_embedded_message_wire_bytes():
    assert encode_message(Wrapper(Single(150))) == b"\x1a\x03\x08\x96\x01"


def test_default_scalar_is_written_and_round_trips():
    data = encode_message(Single())
    assert len(data) == 2
    assert decode_message(Single, data) == Single()


def test_full_round_trip():
    message = Outer(
        count=42,
        inner=Inner(7, "seven"),
        maybe=Inner(8, "eight"),
        items=[Inner(1, "a"), Inner(2, "b")],
        colors=[Color.BLUE, Color.GREEN],
        blob=b"\x00\x01\xff",
        flag=True,
        label="label",
        color=Color.BLUE,
        numbers=[1, 2, 300],
    )
    assert decode_message(Outer, encode_message(message)) == message


def test_negative_int_round_trip():
    assert decode_message(Single, encode_message(Single(-1))).value == -1


def test_unknown_fields_are_skipped():
    data = encode_message(Outer(count=5, inner=Inner(9, "x"), label="y"))
    assert decode_message(Single, data) == Single(5)


def test_unknown_enum_value_kept_as_int():
    message = decode_message(Outer, b"\x50\x07")
    assert message.color == 7


def test_find_field():
    field = find_field(Outer, 3)
    assert field.name == "inner"
    assert find_field(Outer, 99) is None


def test_tag_must_be_positive():
    with pytest.raises(ValueError):
        pb_field(0)


def test_encode_requires_dataclass_instance():
    with pytest.raises(TypeError):
        encode_message({"value": 1})


def test_decode_requires_dataclass_class():
    with pytest.raises(TypeError):
        decode_message(dict, b"")


def test_truncated_data_raises():
    with pytest.raises(ValueError):
        decode_message(Single, b"\x08")