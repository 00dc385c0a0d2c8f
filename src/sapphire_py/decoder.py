from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, assert_never

from .caster import binary_payload, parse_number, parse_runtime_number, uncast_builtin, uncast_runtime
from .errors import CastError
from .factory import instantiate, resolve_target_type
from .fields import NUMBER_KINDS, SCALAR_KINDS, DeclaredType, Kind, MappedField, classify
from .model import ArrayKind
from .registry import mapped_fields, require_mapping
from .wire import is_null, variant_of


def _expect(av: Any, tag: str, *, context: str) -> Any:
    got, payload = variant_of(av, context=context)
    if got != tag:
        raise CastError(f"{context}: expected {tag}, got {got}")
    if tag == "M" and not isinstance(payload, Mapping):
        raise CastError(f"{context}: M payload must be a map")
    if tag in {"SS", "NS", "BS", "L"} and not isinstance(payload, list):
        raise CastError(f"{context}: {tag} payload must be a list")
    return payload


def _element_number(text: Any, element: Any, *, context: str) -> Any:
    element_type = classify(element) if element is not None else None
    if element_type is not None and element_type.kind in NUMBER_KINDS:
        return parse_number(text, element_type.kind, context=context)
    return parse_runtime_number(text, context=context)


def _decode_array(field: MappedField, declared: DeclaredType, av: Any, *, context: str) -> Any:
    array_kind = field.metadata.array_kind
    if array_kind is None:
        raise CastError(f"{context}: array typed field requires an array kind")

    values: list[Any]
    if array_kind is ArrayKind.STRING_SET:
        values = _expect(av, "SS", context=context)
        for v in values:
            if not isinstance(v, str):
                raise CastError(f"{context}: string set elements must be str, got {type(v).__name__}")
        values = list(values)
    elif array_kind is ArrayKind.NUMBER_SET:
        values = [
            _element_number(v, declared.element, context=context) for v in _expect(av, "NS", context=context)
        ]
    elif array_kind is ArrayKind.MIXED_LIST:
        values = [
            uncast_runtime(v, context=f"{context}[{i}]")
            for i, v in enumerate(_expect(av, "L", context=context))
        ]
    elif array_kind is ArrayKind.BINARY_SET:
        values = []
        for v in _expect(av, "BS", context=context):
            raw = binary_payload(v, context=context)
            # an empty buffer stands for a null element
            values.append(None if raw == b"" else raw)
    else:
        assert_never(array_kind)

    container = declared.python_type
    return values if container is list else container(values)


def _decode_field(field: MappedField, av: Any, *, context: str) -> Any:
    declared = field.require_declared()

    if is_null(av):
        if not declared.nullable:
            raise CastError(f"{context}: field is not nullable, but got null")
        return None

    if field.metadata.binary:
        raw = binary_payload(_expect(av, "B", context=context), context=context)
        if declared.kind is Kind.STRING:
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as err:
                raise CastError(f"{context}: binary value is not valid utf-8") from err
        return bytearray(raw) if declared.python_type is bytearray else raw

    kind = declared.kind
    if kind in SCALAR_KINDS:
        return uncast_builtin(kind, declared.python_type, av, context=context)
    if kind is Kind.ARRAY:
        return _decode_array(field, declared, av, context=context)
    if kind is Kind.OBJECT:
        nested = _expect(av, "M", context=context)
        return from_item(nested, declared.python_type)
    raise CastError(f"{context}: unhandled field kind {kind.value}")


def _populate(obj: Any, item: Mapping[str, Any]) -> Any:
    cls = type(obj)
    require_mapping(cls)

    for field in mapped_fields(cls):
        if field.name not in item:
            continue
        value = _decode_field(field, item[field.name], context=f"{cls.__qualname__}.{field.name}")
        object.__setattr__(obj, field.name, value)
    return obj


def from_item(item: Mapping[str, Any], target: Any) -> Any:
    """Decode a wire item into ``target``.

    ``target`` is a class, a dotted type identifier, or an instance that is
    populated in place. Keys absent from ``item`` are left untouched.
    """
    if not isinstance(item, Mapping):
        raise CastError(f"item must be a mapping, got {type(item).__name__}")
    return _populate(instantiate(target), item)


def from_items(items: Iterable[Mapping[str, Any]], target: Any) -> list[Any]:
    cls = resolve_target_type(target)
    return [from_item(item, cls) for item in items]
