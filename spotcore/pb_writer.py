"""Writer for the protobuf wire format."""

from __future__ import annotations

import struct

from .pb_reader import WireType

_U32_MASK = 0xFFFFFFFF
_U64_MASK = (1 << 64) - 1


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def encode_zigzag32(value: int) -> int:
    """Zigzag-encode a signed 32-bit integer."""
    signed = _to_signed(value, 32)
    return ((signed << 1) ^ (signed >> 31)) & _U32_MASK


def encode_zigzag64(value: int) -> int:
    """Zigzag-encode a signed 64-bit integer."""
    signed = _to_signed(value, 64)
    return ((signed << 1) ^ (signed >> 63)) & _U64_MASK


def _varint_bytes(value: int) -> bytes:
    value &= _U64_MASK
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


class PbWriter:
    """Appends protobuf-encoded fields to a bytearray."""

    def __init__(self, data: bytearray | None = None) -> None:
        self.data = bytearray() if data is None else data

    def encode_varint(self, value: int, offset: int = 0) -> None:
        """Write ``value`` as an unsigned 64-bit varint.

        ``offset`` is counted back from the end of the buffer; the varint is
        inserted there instead of appended.
        """
        position = len(self.data) + offset
        if not 0 <= position <= len(self.data):
            raise ValueError(f"offset {offset} is outside the buffer")
        self.data[position:position] = _varint_bytes(value)

    def encode_fixed32(self, value: int) -> None:
        """Append a little-endian 32-bit integer."""
        self.data += struct.pack("<I", value & _U32_MASK)

    def encode_fixed64(self, value: int) -> None:
        """Append a little-endian 64-bit integer."""
        self.data += struct.pack("<Q", value & _U64_MASK)

    def add_field(self, tag: int, wire_type: WireType) -> None:
        """Append a field header."""
        self.encode_varint(((tag << 3) | int(wire_type)) & _U32_MASK)

    def add_varint(self, tag: int, value: int) -> None:
        """Append a varint field."""
        self.add_field(tag, WireType.VARINT)
        self.encode_varint(value)

    def add_svarint32(self, tag: int, value: int) -> None:
        """Append a zigzag-encoded 32-bit field."""
        self.add_varint(tag, encode_zigzag32(value))

    def add_svarint64(self, tag: int, value: int) -> None:
        """Append a zigzag-encoded 64-bit field."""
        self.add_varint(tag, encode_zigzag64(value))

    def add_bool(self, tag: int, value: bool) -> None:
        """Append a boolean field."""
        self.add_field(tag, WireType.VARINT)
        self.data.append(1 if value else 0)

    def add_bytes(self, tag: int, value: bytes) -> None:
        """Append a length-delimited byte field."""
        self.add_field(tag, WireType.LENGTH_DELIMITED)
        self.encode_varint(len(value))
        self.data += value

    def add_string(self, tag: int, value: str) -> None:
        """Append a UTF-8 string field."""
        self.add_bytes(tag, value.encode("utf-8"))

    def start_message(self) -> int:
        """Mark the start of an embedded message; pass the result to :meth:`finish_message`."""
        return len(self.data)

    def finish_message(self, tag: int, start: int) -> None:
        """Prefix everything written since ``start`` with a header and length."""
        size = len(self.data) - start
        if size < 0:
            raise ValueError("message start lies past the end of the buffer")
        header = ((tag << 3) | int(WireType.LENGTH_DELIMITED)) & _U32_MASK
        self.data[start:start] = _varint_bytes(header) + _varint_bytes(size)