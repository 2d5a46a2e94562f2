"""Parsing of Mercury response packets."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .protobuf import decode_message, pb_field

_PREFIX = struct.Struct(">HQxHH")


@dataclass
class MercuryHeader:
    """Header message carried at the front of a Mercury packet."""

    uri: str | None = pb_field(1, default=None)
    content_type: str | None = pb_field(2, default=None)
    method: str | None = pb_field(3, default=None)


@dataclass
class MercuryResponse:
    """A decoded Mercury response: sequence id, header and payload parts."""

    sequence_id: int
    header: MercuryHeader
    parts: list[bytes] = field(default_factory=list)

    @classmethod
    def parse(cls, data: bytes) -> "MercuryResponse":
        """Decode a raw Mercury packet; raise ValueError if it is truncated."""
        data = bytes(data)
        if len(data) < _PREFIX.size:
            raise ValueError("mercury packet is too short")
        _sequence_length, sequence_id, _parts_number, header_size = _PREFIX.unpack_from(data, 0)

        pos = _PREFIX.size
        header_end = pos + header_size
        if header_end > len(data):
            raise ValueError("mercury header runs past the end of the packet")
        header = decode_message(MercuryHeader, data[pos:header_end])

        parts = []
        pos = header_end
        while pos < len(data):
            if pos + 2 > len(data):
                raise ValueError("mercury part size is truncated")
            (part_size,) = struct.unpack_from(">H", data, pos)
            end = pos + 2 + part_size
            if end > len(data):
                raise ValueError("mercury part runs past the end of the packet")
            parts.append(data[pos + 2:end])
            pos = end

        return cls(sequence_id=sequence_id, header=header, parts=parts)