from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any, TypedDict

from .errors import CastError, ValidationError

AttributeValue = dict[str, Any]
Item = dict[str, AttributeValue]


class Request(TypedDict):
    TableName: str
    Item: Item | list[Item]


NULL: AttributeValue = {"NULL": True}

VARIANTS = frozenset({"NULL", "BOOL", "N", "S", "B", "SS", "NS", "BS", "L", "M"})


def variant_of(av: Any, *, context: str) -> tuple[str, Any]:
    """Split a wire value into its single ``(tag, payload)`` pair."""
    if not isinstance(av, Mapping) or len(av) != 1:
        raise CastError(f"{context}: attribute value must have exactly one type key")
    ((tag, payload),) = av.items()
    if tag not in VARIANTS:
        raise CastError(f"{context}: unsupported attribute value type: {tag!r}")
    return tag, payload


def is_null(av: Any) -> bool:
    return isinstance(av, Mapping) and av.get("NULL") is True


def _b64(value: Any, *, context: str) -> bytes:
    if not isinstance(value, str):
        raise ValidationError(f"{context}: binary value must be base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValidationError(f"{context}: binary value is not valid base64") from err


def from_json_attribute_value(av: Any, *, context: str = "value") -> AttributeValue:
    """Convert DynamoDB-JSON (base64 binaries) into a wire value carrying raw bytes."""
    if not isinstance(av, dict):
        raise ValidationError(f"{context}: attribute value must be a map")
    if len(av) != 1:
        raise ValidationError(f"{context}: attribute value must have exactly one type key")

    ((kind, value),) = av.items()

    if kind == "B":
        return {"B": _b64(value, context=context)}

    if kind == "BS":
        if not isinstance(value, list):
            raise ValidationError(f"{context}: binary set must be a list of base64 strings")
        return {"BS": [_b64(v, context=context) for v in value]}

    if kind == "M":
        if not isinstance(value, dict):
            raise ValidationError(f"{context}: map value must be a map")
        return {"M": from_json_item(value, context=context)}

    if kind == "L":
        if not isinstance(value, list):
            raise ValidationError(f"{context}: list value must be a list")
        return {"L": [from_json_attribute_value(v, context=f"{context}[{i}]") for i, v in enumerate(value)]}

    if kind in {"S", "N"}:
        if not isinstance(value, str):
            raise ValidationError(f"{context}: {kind} value must be a string")
        return {kind: value}

    if kind in {"SS", "NS"}:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{context}: {kind} value must be a list of strings")
        return {kind: list(value)}

    if kind == "BOOL":
        if not isinstance(value, bool):
            raise ValidationError(f"{context}: BOOL value must be a boolean")
        return {"BOOL": value}

    if kind == "NULL":
        if value is not True:
            raise ValidationError(f"{context}: NULL value must be true")
        return {"NULL": True}

    raise ValidationError(f"{context}: unsupported attribute value type: {kind}")


def from_json_item(image: Any, *, context: str = "item") -> Item:
    if not isinstance(image, dict):
        raise ValidationError(f"{context}: item must be a map")
    return {k: from_json_attribute_value(v, context=f"{context}.{k}") for k, v in image.items()}
