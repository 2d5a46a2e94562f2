import struct

import pytest

from spotcore.mercury_response import MercuryHeader, MercuryResponse
from spotcore.pb_writer import PbWriter
from spotcore.protobuf import encode_message


def _packet(sequence_id: int, header: bytes, parts: list[bytes]) -> bytes:
    data = struct.pack(">HQBHH", 8, sequence_id, 1, len(parts) + 1, len(header)) + header
    for part in parts:
        data += struct.pack(">H", len(part)) + part
    return data


def test_parse_round_trip():
    header = MercuryHeader(uri="hm://remote/user/", content_type="text/plain", method="SUB")
    parts = [b"first", b"", b"\x00\x01\x02"]
    response = MercuryResponse.parse(_packet(42, encode_message(header), parts))
    assert response.sequence_id == 42
    assert response.header == header
    assert response.parts == parts


def test_sequence_id_is_big_endian():
    raw = (
        b"\x00\x08"
        + b"\x00\x00\x00\x00\x00\x00\x01\x02"
        + b"\x01"
        + b"\x00\x01"
        + b"\x00\x00"
    )
    response = MercuryResponse.parse(raw)
    assert response.sequence_id == 0x0102
    assert response.parts == []
    assert response.header == MercuryHeader()


def test_unknown_header_fields_are_skipped():
    writer = PbWriter()
    writer.add_string(1, "hm://x")
    writer.add_varint(4, 200)
    writer.add_string(3, "GET")
    response = MercuryResponse.parse(_packet(1, bytes(writer.data), []))
    assert response.header.uri == "hm://x"
    assert response.header.method == "GET"
    assert response.header.content_type is None


def test_too_short():
    with pytest.raises(ValueError):
        MercuryResponse.parse(b"\x00\x08\x00")


def test_header_truncated():
    header = encode_message(MercuryHeader(uri="hm://x"))
    data = _packet(1, header, [])[:-1]
    with pytest.raises(ValueError):
        MercuryResponse.parse(data)


def test_part_truncated():
    data = _packet(1, b"", [b"payload"])[:-2]
    with pytest.raises(ValueError):
        MercuryResponse.parse(data)


def test_part_size_truncated():
    data = _packet(1, b"", []) + b"\x00"
    with pytest.raises(ValueError):
        MercuryResponse.parse(data)