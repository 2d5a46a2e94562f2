"""Reader for the protobuf wire format."""

from __future__ import annotations

import struct
from enum import IntEnum

_U64_MASK = (1 << 64) - 1


class WireType(IntEnum):
    """Protobuf wire types."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


def decode_zigzag(value: int) -> int:
    """Map a zigzag-encoded unsigned 64-bit value back to a signed integer."""
    value &= _U64_MASK
    return (value >> 1) ^ -(value & 1)


class PbReader:
    """Sequential reader over protobuf-encoded bytes.

    ``max_position`` bounds iteration with :meth:`next_field`, which lets a
    caller walk an embedded message in place.
    """

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.pos = 0
        self.max_position = len(self.data)
        self.current_tag = 0
        self.current_wire_type = WireType.VARINT

    def _take(self, length: int) -> bytes:
        end = self.pos + length
        if length < 0 or end > len(self.data):
            raise ValueError(
                f"field of {length} bytes at offset {self.pos} runs past the end of the data"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def decode_varint(self) -> int:
        """Read a base-128 varint as an unsigned 64-bit integer."""
        result = 0
        shift = 0
        while True:
            if self.pos >= len(self.data):
                raise ValueError("truncated varint")
            byte = self.data[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80:
                return result & _U64_MASK

    def decode_svarint(self) -> int:
        """Read a zigzag-encoded signed varint."""
        return decode_zigzag(self.decode_varint())

    def decode_fixed32(self) -> int:
        """Read a little-endian signed 32-bit integer."""
        return struct.unpack("<i", self._take(4))[0]

    def decode_fixed64(self) -> int:
        """Read a little-endian signed 64-bit integer."""
        return struct.unpack("<q", self._take(8))[0]

    def decode_bytes(self) -> bytes:
        """Read a length-prefixed byte string."""
        length = self.decode_varint()
        return self._take(length)

    def decode_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return self.decode_bytes().decode("utf-8")

    def next_field(self) -> bool:
        """Advance to the next field header; False once ``max_position`` is reached."""
        if self.pos >= self.max_position:
            return False
        header = self.decode_varint()
        self.current_tag = header >> 3
        try:
            self.current_wire_type = WireType(header & 0x07)
        except ValueError:
            raise ValueError(f"unknown wire type {header & 0x07}") from None
        return True

    def skip(self) -> None:
        """Skip the value of the current field."""
        wire_type = self.current_wire_type
        if wire_type is WireType.VARINT:
            self.decode_varint()
        elif wire_type is WireType.FIXED64:
            self._take(8)
        elif wire_type is WireType.LENGTH_DELIMITED:
            self._take(self.decode_varint())
        elif wire_type is WireType.FIXED32:
            self._take(4)

    def reset_max_position(self) -> None:
        """Let :meth:`next_field` run to the end of the data again."""
        self.max_position = len(self.data)