import struct

import pytest

from spotcore.pb_reader import PbReader, WireType, decode_zigzag


def test_decode_varint_documented_example():
    reader = PbReader(b"\xac\x02")
    assert reader.decode_varint() == 300
    assert reader.pos == 2


def test_next_field_reads_tag_and_type():
    reader = PbReader(b"\x08\x96\x01")
    assert reader.next_field() is True
    assert reader.current_tag == 1
    assert reader.current_wire_type is WireType.VARINT
    assert reader.decode_varint() == 150
    assert reader.next_field() is False


def test_decode_string_field():
    reader = PbReader(b"\x12\x07testing")
    assert reader.next_field()
    assert reader.current_tag == 2
    assert reader.current_wire_type is WireType.LENGTH_DELIMITED
    assert reader.decode_string() == "testing"


def test_decode_bytes_field():
    payload = bytes(range(5))
    reader = PbReader(bytes([len(payload)]) + payload)
    assert reader.decode_bytes() == payload


@pytest.mark.parametrize("n", [0, 1, 2, 63, 64, 1000, 2**31 - 1, 2**62])
def test_zigzag_maps_even_and_odd(n):
    assert decode_zigzag(2 * n) == n
    assert decode_zigzag(2 * n + 1) == -n - 1


def test_decode_svarint_uses_zigzag():
    reader = PbReader(b"\x03")
    assert reader.decode_svarint() == decode_zigzag(3)


@pytest.mark.parametrize("value", [0, -7, 2**31 - 1, -(2**31)])
def test_decode_fixed32(value):
    reader = PbReader(struct.pack("<i", value))
    assert reader.decode_fixed32() == value


@pytest.mark.parametrize("value", [0, -7, 2**63 - 1, -(2**63)])
def test_decode_fixed64(value):
    reader = PbReader(struct.pack("<q", value))
    assert reader.decode_fixed64() == value


def test_skip_every_wire_type():
    data = (
        b"\x09" + bytes(8)
        + b"\x15" + bytes(4)
        + b"\x1a\x02ab"
        + b"\x20\x96\x01"
        + b"\x28\x07"
    )
    reader = PbReader(data)
    tags = []
    while reader.next_field():
        tags.append(reader.current_tag)
        if reader.current_tag == 5:
            assert reader.decode_varint() == 7
        else:
            reader.skip()
    assert tags == [1, 2, 3, 4, 5]
    assert reader.pos == len(data)


def test_max_position_limits_iteration():
    reader = PbReader(b"\x08\x01\x10\x02")
    reader.max_position = 2
    assert reader.next_field()
    reader.skip()
    assert reader.next_field() is False
    reader.reset_max_position()
    assert reader.next_field() is True
    assert reader.current_tag == 2


def test_truncated_varint_raises():
    reader = PbReader(b"\x80\x80")
    with pytest.raises(ValueError):
        reader.decode_varint()


def test_string_past_end_raises():
    reader = PbReader(b"\x05ab")
    with pytest.raises(ValueError):
        reader.decode_string()


def test_unknown_wire_type_raises():
    reader = PbReader(b"\x0e")
    with pytest.raises(ValueError):
        reader.next_field()