"""Protobuf encoding and decoding for dataclass-based messages.

A message is a dataclass whose fields are declared with :func:`pb_field`.
Field types drive the wire encoding:

* ``int`` - varint (decoded as a signed 64-bit value)
* ``bool`` - varint
* ``str`` - length-delimited UTF-8
* ``bytes`` - length-delimited
* ``enum.Enum`` subclasses - varint holding the enum value
* another message dataclass - embedded message
* ``list[X]`` - repeated field, one entry per element
* ``Optional[X]`` - only written when not ``None``

Every field of a message must have a default so it can be constructed
without arguments while decoding.

Annotations written as strings (postponed evaluation) are resolved for the
builtin scalar types, ``list``/``Optional``/``| None`` wrappers and the
message class itself. For any other type named in a string annotation,
pass the type explicitly with ``pb_field(tag, pb_type=...)``.
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import types
import typing
from typing import Any

from .pb_reader import PbReader, WireType
from .pb_writer import PbWriter

_TAG_KEY = "pb_tag"
_TYPE_KEY = "pb_type"
_U32_MASK = 0xFFFFFFFF
_SIGN_BIT = 1 << 63

_BUILTIN_NAMES: dict[str, Any] = {
    "int": int,
    "bool": bool,
    "str": str,
    "bytes": bytes,
    "bytearray": bytearray,
    "None": type(None),
    "NoneType": type(None),
}
_LIST_NAMES = {"list", "List", "typing.List"}
_OPTIONAL_NAMES = {"Optional", "typing.Optional"}


def pb_field(tag: int, **kwargs: Any) -> Any:
    """Declare a dataclass field carried under protobuf ``tag``.

    An optional ``pb_type`` keyword gives the field type explicitly; other
    keyword arguments go to :func:`dataclasses.field`.
    """
    if tag <= 0:
        raise ValueError(f"protobuf tags must be positive, got {tag}")
    explicit_type = kwargs.pop(_TYPE_KEY, None)
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[_TAG_KEY] = tag
    if explicit_type is not None:
        metadata[_TYPE_KEY] = explicit_type
    return dataclasses.field(metadata=metadata, **kwargs)


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _parse_annotation(text: str, cls: type) -> Any:
    text = text.strip()
    if not text:
        raise TypeError(f"empty type annotation in {cls.__name__}")

    union_parts = _split_top_level(text, "|")
    if len(union_parts) > 1:
        resolved = tuple(_parse_annotation(part, cls) for part in union_parts)
        return typing.Union[resolved]

    if text.endswith("]") and "[" in text:
        head, _, rest = text.partition("[")
        head = head.strip()
        inner = rest[:-1]
        if head in _LIST_NAMES:
            return list[_parse_annotation(inner, cls)]
        if head in _OPTIONAL_NAMES:
            return typing.Optional[_parse_annotation(inner, cls)]
        raise TypeError(
            f"cannot resolve annotation {text!r} in {cls.__name__}; "
            f"give the type with pb_field(..., pb_type=...)"
        )

    if text in _BUILTIN_NAMES:
        return _BUILTIN_NAMES[text]
    if text == cls.__name__ or text == cls.__qualname__:
        return cls
    raise TypeError(
        f"cannot resolve annotation {text!r} in {cls.__name__}; "
        f"give the type with pb_field(..., pb_type=...)"
    )


def _field_type(cls: type, field: dataclasses.Field) -> Any:
    explicit_type = field.metadata.get(_TYPE_KEY)
    if explicit_type is not None:
        return explicit_type
    if isinstance(field.type, str):
        return _parse_annotation(field.type, cls)
    return field.type


@functools.lru_cache(maxsize=None)
def _message_fields(cls: type) -> tuple[tuple[str, int, Any], ...]:
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"{cls!r} is not a message dataclass")
    return tuple(
        (f.name, f.metadata[_TAG_KEY], _field_type(cls, f))
        for f in dataclasses.fields(cls)
        if _TAG_KEY in f.metadata
    )


@functools.lru_cache(maxsize=None)
def _fields_by_tag(cls: type) -> dict[int, tuple[str, Any]]:
    by_tag: dict[int, tuple[str, Any]] = {}
    for name, tag, tp in _message_fields(cls):
        by_tag.setdefault(tag, (name, tp))
    return by_tag


def find_field(cls: type, tag: int) -> dataclasses.Field | None:
    """Return the first field of message class ``cls`` carrying ``tag``, or None."""
    by_tag = _fields_by_tag(cls)
    entry = by_tag.get(tag)
    if entry is None:
        return None
    name = entry[0]
    return next(f for f in dataclasses.fields(cls) if f.name == name)


def _is_message(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Enum)


def _split_optional(tp: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(tp)
        present = [arg for arg in args if arg is not type(None)]
        if len(present) == 1 and len(args) == 2:
            return present[0], True
        raise TypeError(f"unsupported union type {tp!r}")
    return tp, False


def _list_element(tp: Any) -> Any | None:
    if typing.get_origin(tp) is list:
        args = typing.get_args(tp)
        if len(args) != 1:
            raise TypeError(f"repeated field needs one element type, got {tp!r}")
        return args[0]
    return None


def _encode_fields(writer: PbWriter, message: Any) -> None:
    for name, tag, tp in _message_fields(type(message)):
        _encode_value(writer, tp, getattr(message, name), tag)


def _encode_value(writer: PbWriter, tp: Any, value: Any, tag: int) -> None:
    inner, optional = _split_optional(tp)
    if optional:
        if value is None:
            return
        tp = inner
    if value is None:
        raise ValueError(f"field {tag} is not optional but holds None")

    element = _list_element(tp)
    if _is_message(tp):
        start = writer.start_message()
        _encode_fields(writer, value)
        writer.finish_message(tag, start)
    elif tp is bytes or tp is bytearray:
        writer.add_bytes(tag, bytes(value))
    elif element is not None:
        for item in value:
            _encode_value(writer, element, item, tag)
    elif _is_enum(tp):
        raw = value.value if isinstance(value, enum.Enum) else value
        writer.add_varint(tag, int(raw) & _U32_MASK)
    elif tp is str:
        writer.add_string(tag, value)
    elif tp is bool:
        writer.add_varint(tag, 1 if value else 0)
    elif tp is int:
        writer.add_varint(tag, int(value))
    else:
        raise TypeError(f"cannot encode field {tag} of type {tp!r}")


def _empty_value(tp: Any) -> Any:
    if _is_message(tp):
        return tp()
    if _list_element(tp) is not None:
        return []
    return None


def _decode_fields(reader: PbReader, message: Any) -> None:
    by_tag = _fields_by_tag(type(message))
    while reader.next_field():
        entry = by_tag.get(reader.current_tag)
        if entry is None:
            reader.skip()
            continue
        name, tp = entry
        setattr(message, name, _decode_value(reader, tp, getattr(message, name)))


def _decode_value(reader: PbReader, tp: Any, current: Any) -> Any:
    inner, optional = _split_optional(tp)
    if optional:
        return _decode_value(reader, inner, _empty_value(inner))

    element = _list_element(tp)
    if _is_message(tp):
        message = current if current is not None else tp()
        length = reader.decode_varint()
        saved = reader.max_position
        reader.max_position = reader.pos + length
        try:
            _decode_fields(reader, message)
        finally:
            reader.max_position = saved
        return message
    if tp is bytes or tp is bytearray:
        return reader.decode_bytes()
    if element is not None:
        items = current if current is not None else []
        scalar = element in (int, bool)
        if scalar and reader.current_wire_type is not WireType.VARINT:
            # Packed repeated scalars are not supported.
            reader.skip()
            return items
        items.append(_decode_value(reader, element, _empty_value(element)))
        return items
    if _is_enum(tp):
        raw = reader.decode_varint() & _U32_MASK
        try:
            return tp(raw)
        except ValueError:
            return raw
    if tp is str:
        return reader.decode_string()
    if tp is bool:
        return bool(reader.decode_varint())
    if tp is int:
        value = reader.decode_varint()
        return value - (1 << 64) if value & _SIGN_BIT else value
    reader.skip()
    return current


def encode_message(message: Any) -> bytes:
    """Encode a message dataclass instance to protobuf bytes."""
    if isinstance(message, type) or not dataclasses.is_dataclass(message):
        raise TypeError(f"{message!r} is not a message dataclass instance")
    writer = PbWriter()
    _encode_fields(writer, message)
    return bytes(writer.data)


def decode_message(cls: type, data: bytes) -> Any:
    """Decode protobuf ``data`` into a new instance of message class ``cls``."""
    if not _is_message(cls):
        raise TypeError(f"{cls!r} is not a message dataclass")
    reader = PbReader(data)
    message = cls()
    _decode_fields(reader, message)
    return message