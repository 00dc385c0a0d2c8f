from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from typing import Any, assert_never

from .caster import cast_builtin, cast_runtime, number_text, to_binary
from .errors import CastError, InvalidInputError, NoMappedFieldsError
from .fields import SCALAR_KINDS, DeclaredType, Kind, MappedField
from .model import ArrayKind
from .registry import mapped_fields, require_mapping, table_name_of
from .wire import NULL, AttributeValue, Item, Request

_UNSET: Any = object()


def _read(obj: Any, field: MappedField, *, context: str) -> Any:
    value = getattr(obj, field.name, _UNSET)
    if value is _UNSET or isinstance(value, dataclasses.Field):
        raise CastError(f"{context}: field is not initialized")
    return value


def _encode_array(field: MappedField, value: Any, *, context: str) -> AttributeValue:
    array_kind = field.metadata.array_kind
    if array_kind is None:
        raise CastError(f"{context}: array typed field requires an array kind")
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise CastError(f"{context}: expected a sequence, got {type(value).__name__}")

    unordered = isinstance(value, (set, frozenset))

    if array_kind is ArrayKind.STRING_SET:
        for elem in value:
            if not isinstance(elem, str):
                raise CastError(f"{context}: string set elements must be str, got {type(elem).__name__}")
        return {"SS": sorted(value) if unordered else list(value)}

    if array_kind is ArrayKind.NUMBER_SET:
        numbers = [number_text(elem, context=context) for elem in value]
        return {"NS": sorted(numbers) if unordered else numbers}

    if array_kind is ArrayKind.MIXED_LIST:
        return {"L": [cast_runtime(elem, context=f"{context}[{i}]") for i, elem in enumerate(value)]}

    if array_kind is ArrayKind.BINARY_SET:
        blobs = [b"" if elem is None else to_binary(elem, context=context) for elem in value]
        return {"BS": sorted(blobs) if unordered else blobs}

    assert_never(array_kind)


def _encode_nested(declared: DeclaredType, value: Any, *, context: str) -> AttributeValue:
    require_mapping(declared.python_type)
    if not isinstance(value, declared.python_type):
        raise CastError(
            f"{context}: expected {declared.python_type.__qualname__}, got {type(value).__name__}"
        )
    return {"M": to_item(value)}


def _encode_field(obj: Any, field: MappedField, *, context: str) -> AttributeValue:
    declared = field.require_declared()
    value = _read(obj, field, context=context)

    if value is None:
        return dict(NULL)

    if field.metadata.binary:
        return {"B": to_binary(value, context=context)}

    kind = declared.kind
    if kind in SCALAR_KINDS:
        return cast_builtin(kind, value, context=context)
    if kind is Kind.ARRAY:
        return _encode_array(field, value, context=context)
    if kind is Kind.OBJECT:
        return _encode_nested(declared, value, context=context)
    raise CastError(f"{context}: unhandled field kind {kind.value}")


def to_item(obj: Any) -> Item:
    """Encode one mapped object into a wire item."""
    if obj is None or isinstance(obj, type):
        raise InvalidInputError("to_item expects an object instance")

    cls = type(obj)
    fields = mapped_fields(cls)
    if not fields:
        raise NoMappedFieldsError(f"{cls.__qualname__} does not contain a single mapped field")

    item: Item = {}
    for field in fields:
        item[field.name] = _encode_field(obj, field, context=f"{cls.__qualname__}.{field.name}")
    return item


def to_items(objs: Iterable[Any]) -> list[Item]:
    return [to_item(obj) for obj in objs]


def encode_one(obj: Any) -> Request:
    if obj is None or isinstance(obj, type):
        raise InvalidInputError("encode_one expects an object instance")
    return {"TableName": table_name_of(obj), "Item": to_item(obj)}


def encode_many(objs: Iterable[Any]) -> Request:
    objs = list(objs)
    if not objs:
        raise InvalidInputError("encode_many requires at least one object")

    first = type(objs[0])
    for obj in objs[1:]:
        if type(obj) is not first:
            raise InvalidInputError(
                f"objects are not all of the same type: {first.__qualname__} and {type(obj).__qualname__}"
            )

    return {"TableName": table_name_of(first), "Item": to_items(objs)}


def put_item_object(target: Any | Sequence[Any]) -> Request:
    if isinstance(target, (list, tuple)):
        return encode_many(target)
    return encode_one(target)
