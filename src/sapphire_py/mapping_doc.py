from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, cast

import yaml

from .errors import ValidationError
from .factory import resolve_type
from .model import ArrayKind, FieldMetadata
from .registry import register

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = frozenset({"0.1"})


def parse_mapping_document(raw: str) -> dict[str, Any]:
    """Parse a YAML (or JSON) mapping document and check its shape."""
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise ValidationError("invalid mapping YAML/JSON") from err

    if not isinstance(parsed, dict):
        raise ValidationError("mapping document must be a map/object")

    version = parsed.get("mapping_version")
    if version not in SUPPORTED_VERSIONS:
        raise ValidationError(f"unsupported mapping_version: {version!r}")

    types = parsed.get("types")
    if not isinstance(types, list) or len(types) == 0:
        raise ValidationError("mapping document must include types[]")

    for entry in types:
        _check_type_entry(entry)

    return parsed


def _check_type_entry(entry: Any) -> None:
    if not isinstance(entry, dict):
        raise ValidationError("mapping type entry must be a map")

    name = entry.get("type")
    if not isinstance(name, str) or not name:
        raise ValidationError("mapping type entry missing type")

    table = entry.get("table")
    embeddable = entry.get("embeddable", False)
    if not isinstance(embeddable, bool):
        raise ValidationError(f"{name}: embeddable must be a boolean")
    if table is not None and (not isinstance(table, str) or not table):
        raise ValidationError(f"{name}: table must be a non-empty string")
    if (table is None) == (not embeddable):
        raise ValidationError(f"{name}: exactly one of table or embeddable is required")

    fields = entry.get("fields", {})
    if not isinstance(fields, dict):
        raise ValidationError(f"{name}: fields must be a map")
    for field_name, opts in fields.items():
        if not isinstance(field_name, str) or not field_name:
            raise ValidationError(f"{name}: field names must be non-empty strings")
        if opts is not None and not isinstance(opts, dict):
            raise ValidationError(f"{name}.{field_name}: field options must be a map")


def _field_metadata(type_name: str, field_name: str, opts: Mapping[str, Any] | None) -> FieldMetadata:
    opts = opts or {}
    unknown = set(opts).difference({"binary", "array_kind"})
    if unknown:
        raise ValidationError(f"{type_name}.{field_name}: unknown field options: {sorted(unknown)}")

    binary = opts.get("binary", False)
    if not isinstance(binary, bool):
        raise ValidationError(f"{type_name}.{field_name}: binary must be a boolean")

    raw_kind = opts.get("array_kind")
    array_kind: ArrayKind | None = None
    if raw_kind is not None:
        # accepts the wire tag ("SS") or the member name ("STRING_SET")
        array_kind = ArrayKind.__members__.get(raw_kind) if isinstance(raw_kind, str) else None
        if array_kind is None:
            try:
                array_kind = ArrayKind(raw_kind)
            except ValueError as err:
                raise ValidationError(f"{type_name}.{field_name}: unknown array_kind: {raw_kind!r}") from err

    return FieldMetadata(binary=binary, array_kind=array_kind)


def register_mapping_document(doc: Mapping[str, Any]) -> list[type]:
    """Register every type in a parsed mapping document; returns the registered types."""
    types = doc.get("types")
    if not isinstance(types, list):
        raise ValidationError("mapping document missing types[]")

    registered: list[type] = []
    for entry in types:
        _check_type_entry(entry)
        entry = cast(dict[str, Any], entry)
        type_name = cast(str, entry["type"])
        cls = resolve_type(type_name)

        fields = {
            field_name: _field_metadata(type_name, field_name, opts)
            for field_name, opts in cast(dict[str, Any], entry.get("fields") or {}).items()
        }
        register(
            cls,
            table_name=entry.get("table"),
            embeddable=bool(entry.get("embeddable", False)),
            fields=fields,
        )
        logger.debug("registered %s from mapping document (%d fields)", type_name, len(fields))
        registered.append(cls)

    return registered
