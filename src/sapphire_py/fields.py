from __future__ import annotations

import dataclasses
import inspect
import types
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Union, get_args, get_origin, get_type_hints

from .errors import CastError, UntypedFieldError
from .model import FIELDS_ATTR, METADATA_KEY, FieldMetadata


class Kind(Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    ARRAY = "array"
    OBJECT = "object"


SCALAR_KINDS = frozenset({Kind.STRING, Kind.INTEGER, Kind.FLOAT, Kind.DECIMAL, Kind.BOOLEAN, Kind.BYTES})
NUMBER_KINDS = frozenset({Kind.INTEGER, Kind.FLOAT, Kind.DECIMAL})

_SCALARS: dict[Any, Kind] = {
    str: Kind.STRING,
    bool: Kind.BOOLEAN,
    int: Kind.INTEGER,
    float: Kind.FLOAT,
    Decimal: Kind.DECIMAL,
    bytes: Kind.BYTES,
    bytearray: Kind.BYTES,
}

_CONTAINERS = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class DeclaredType:
    kind: Kind
    python_type: type
    nullable: bool = False
    element: Any = None


@dataclass(frozen=True)
class MappedField:
    name: str
    owner: type
    metadata: FieldMetadata
    declared: DeclaredType | None

    def require_declared(self) -> DeclaredType:
        if self.declared is None:
            raise UntypedFieldError(
                f"field {self.name!r} in {self.owner.__qualname__} is mapped but has no declared type"
            )
        return self.declared


def _is_static(annotation: Any) -> bool:
    if annotation is ClassVar or get_origin(annotation) is ClassVar:
        return True
    return isinstance(annotation, dataclasses.InitVar) or annotation is dataclasses.InitVar


def classify(annotation: Any) -> DeclaredType | None:
    """Classify a resolved annotation; ``None`` means there is no usable declared type."""
    if annotation is None or annotation is Any:
        return None

    nullable = False
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        nullable = len(args) != len(get_args(annotation))
        if len(args) != 1:
            raise CastError(f"unsupported union type: {annotation!r}")
        annotation = args[0]
        origin = get_origin(annotation)
        if annotation is Any:
            return None

    if annotation in _SCALARS:
        return DeclaredType(kind=_SCALARS[annotation], python_type=annotation, nullable=nullable)

    container = origin if origin is not None else annotation
    if container in _CONTAINERS:
        args = get_args(annotation)
        element = args[0] if args else None
        if element is Any:
            element = None
        return DeclaredType(kind=Kind.ARRAY, python_type=container, nullable=nullable, element=element)

    if isinstance(annotation, type):
        return DeclaredType(kind=Kind.OBJECT, python_type=annotation, nullable=nullable)

    raise CastError(f"unsupported declared type: {annotation!r}")


def _own_field_metadata(klass: type, name: str) -> FieldMetadata | None:
    registered = vars(klass).get(FIELDS_ATTR) or {}
    if name in registered:
        return registered[name]

    candidate = vars(klass).get(name)
    if not isinstance(candidate, dataclasses.Field):
        candidate = (vars(klass).get("__dataclass_fields__") or {}).get(name)
    if isinstance(candidate, dataclasses.Field):
        meta = candidate.metadata.get(METADATA_KEY)
        if isinstance(meta, FieldMetadata):
            return meta
    return None


def _own_names(klass: type) -> list[str]:
    names = list(inspect.get_annotations(klass))
    for name, value in vars(klass).items():
        if isinstance(value, dataclasses.Field) and name not in names:
            names.append(name)
    for name in vars(klass).get(FIELDS_ATTR) or {}:
        if name not in names:
            names.append(name)
    return names


def iter_declared_fields(model_type: type) -> Iterator[tuple[type, str]]:
    """Yield ``(owner, name)`` for every declared field, most-derived class first.

    A name re-declared by a subclass is yielded once, for the subclass.
    """
    seen: set[str] = set()
    for klass in model_type.__mro__:
        if klass is object:
            continue
        for name in _own_names(klass):
            if name in seen:
                continue
            seen.add(name)
            yield klass, name


def resolve_mapped_fields(model_type: type) -> tuple[MappedField, ...]:
    try:
        hints = get_type_hints(model_type)
    except (NameError, TypeError) as err:
        raise UntypedFieldError(f"cannot resolve declared types of {model_type.__qualname__}: {err}") from err

    out: list[MappedField] = []
    for owner, name in iter_declared_fields(model_type):
        meta = _own_field_metadata(owner, name)
        if meta is None:
            continue
        annotation = hints.get(name)
        if annotation is not None and _is_static(annotation):
            continue
        out.append(MappedField(name=name, owner=owner, metadata=meta, declared=classify(annotation)))
    return tuple(out)
