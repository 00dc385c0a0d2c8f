from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from .errors import MissingMappingError
from .factory import resolve_target_type
from .fields import MappedField, resolve_mapped_fields
from .model import CLASS_ATTR, FIELDS_ATTR, ClassMetadata, FieldMetadata, MappingDefinitionError

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_resolved: dict[type, tuple[MappedField, ...]] = {}


def register(
    cls: type,
    *,
    table_name: str | None = None,
    embeddable: bool = False,
    fields: Mapping[str, FieldMetadata] | None = None,
) -> None:
    """Attach mapping metadata to a type that cannot be decorated.

    Must run before the type is first encoded or decoded.
    """
    # neither the type nor any subclass may have resolved its fields yet
    in_use = next((c for c in list(_resolved) if cls in c.__mro__), None)
    if in_use is not None:
        raise MappingDefinitionError(
            f"{cls.__qualname__} is already in use by {in_use.__qualname__}; register it before first use"
        )

    if table_name is not None or embeddable:
        meta = ClassMetadata(table_name=table_name, embeddable=embeddable)
        existing = vars(cls).get(CLASS_ATTR)
        if existing is not None and existing != meta:
            raise MappingDefinitionError(f"{cls.__qualname__} already carries {existing!r}")
        setattr(cls, CLASS_ATTR, meta)

    if fields:
        merged = dict(vars(cls).get(FIELDS_ATTR) or {})
        for name, field_meta in fields.items():
            if not isinstance(field_meta, FieldMetadata):
                raise MappingDefinitionError(f"field {name!r}: expected FieldMetadata")
            merged[name] = field_meta
        setattr(cls, FIELDS_ATTR, merged)


def class_metadata(cls: type) -> ClassMetadata | None:
    meta = vars(cls).get(CLASS_ATTR)
    return meta if isinstance(meta, ClassMetadata) else None


def is_embeddable(cls: type) -> bool:
    meta = class_metadata(cls)
    return meta is not None and meta.embeddable


def require_mapping(cls: type) -> ClassMetadata:
    meta = class_metadata(cls)
    if meta is None:
        raise MissingMappingError(
            f"{cls.__qualname__} has no table mapping and is not marked as embeddable"
        )
    return meta


def table_name_of(target: Any) -> str:
    cls = resolve_target_type(target)
    meta = class_metadata(cls)
    if meta is None or meta.table_name is None:
        raise MissingMappingError(f"{cls.__qualname__} has no table mapping")
    return meta.table_name


def mapped_fields(cls: type) -> tuple[MappedField, ...]:
    cached = _resolved.get(cls)
    if cached is not None:
        return cached

    resolved = resolve_mapped_fields(cls)
    with _lock:
        # first writer wins; entries are never replaced
        cached = _resolved.setdefault(cls, resolved)
    if cached is resolved:
        logger.debug("resolved %d mapped fields for %s", len(resolved), cls.__qualname__)
    return cached


def _reset_for_tests() -> None:
    with _lock:
        _resolved.clear()
