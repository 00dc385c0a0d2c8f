from __future__ import annotations

from collections.abc import Callable
from dataclasses import MISSING, dataclass, field
from enum import StrEnum
from typing import Any, TypeVar, overload

METADATA_KEY = "sapphire"
CLASS_ATTR = "__sapphire_class__"
FIELDS_ATTR = "__sapphire_fields__"

C = TypeVar("C", bound=type)


class MappingDefinitionError(ValueError):
    pass


class ArrayKind(StrEnum):
    STRING_SET = "SS"
    NUMBER_SET = "NS"
    MIXED_LIST = "L"
    BINARY_SET = "BS"


@dataclass(frozen=True)
class ClassMetadata:
    """How a type maps to the store.

    A type is either rooted in a table (``table_name``) or only valid nested
    inside another mapped object (``embeddable``), never both.
    """

    table_name: str | None = None
    embeddable: bool = False

    def __post_init__(self) -> None:
        if self.embeddable and self.table_name is not None:
            raise MappingDefinitionError("type cannot be both table-mapped and embeddable")
        if not self.embeddable and not self.table_name:
            raise MappingDefinitionError("type must be table-mapped or embeddable")


@dataclass(frozen=True)
class FieldMetadata:
    binary: bool = False
    array_kind: ArrayKind | None = None

    def __post_init__(self) -> None:
        if self.array_kind is not None and not isinstance(self.array_kind, ArrayKind):
            try:
                object.__setattr__(self, "array_kind", ArrayKind(self.array_kind))
            except ValueError as err:
                raise MappingDefinitionError(f"unknown array kind: {self.array_kind!r}") from err


@overload
def sapphire_field(
    *,
    binary: bool = False,
    array_kind: ArrayKind | str | None = None,
) -> Any: ...


@overload
def sapphire_field(
    *,
    binary: bool = False,
    array_kind: ArrayKind | str | None = None,
    default: Any,
) -> Any: ...


@overload
def sapphire_field(
    *,
    binary: bool = False,
    array_kind: ArrayKind | str | None = None,
    default_factory: Callable[[], Any],
) -> Any: ...


def sapphire_field(
    *,
    binary: bool = False,
    array_kind: ArrayKind | str | None = None,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    if default is not MISSING and default_factory is not MISSING:
        raise ValueError("sapphire_field: cannot set both default and default_factory")

    meta = FieldMetadata(binary=binary, array_kind=array_kind)  # type: ignore[arg-type]
    return field(default=default, default_factory=default_factory, metadata={METADATA_KEY: meta})


def _attach(cls: type, meta: ClassMetadata) -> None:
    existing = vars(cls).get(CLASS_ATTR)
    if existing is not None and existing != meta:
        raise MappingDefinitionError(f"{cls.__qualname__} already carries {existing!r}")
    setattr(cls, CLASS_ATTR, meta)


def dynamo_class(table_name: str) -> Callable[[C], C]:
    meta = ClassMetadata(table_name=table_name)

    def decorate(cls: C) -> C:
        _attach(cls, meta)
        return cls

    return decorate


def dynamo_embedded(cls: C) -> C:
    _attach(cls, ClassMetadata(embeddable=True))
    return cls
