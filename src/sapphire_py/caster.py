from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal, DecimalException, InvalidOperation
from typing import Any, assert_never

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .errors import CastError
from .fields import Kind
from .wire import AttributeValue, variant_of

# the number grammar the store accepts; rejects NaN, Infinity and digit separators
_NUMBER_TEXT = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_serializer = TypeSerializer()


def _to_decimal(value: Any, *, context: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise CastError(f"{context}: expected a number, got {type(value).__name__}")
    number = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    if not number.is_finite():
        raise CastError(f"{context}: non-finite number cannot be stored: {value!r}")
    return number


def _serialize(value: Any, *, context: str) -> AttributeValue:
    try:
        return _serializer.serialize(value)
    except (TypeError, DecimalException) as err:
        raise CastError(f"{context}: value cannot be stored: {err}") from err


def number_text(value: Any, *, context: str) -> str:
    return _serialize(_to_decimal(value, context=context), context=context)["N"]


def parse_number(text: Any, kind: Kind, *, context: str) -> int | float | Decimal:
    if not isinstance(text, str):
        raise CastError(f"{context}: number must be carried as text, got {type(text).__name__}")
    if not _NUMBER_TEXT.fullmatch(text):
        raise CastError(f"{context}: malformed number: {text!r}")
    try:
        if kind is Kind.INTEGER:
            parsed = Decimal(text)
            if parsed != parsed.to_integral_value():
                raise CastError(f"{context}: not an integer: {text!r}")
            return int(parsed)
        if kind is Kind.FLOAT:
            number = float(text)
            if not math.isfinite(number):
                raise CastError(f"{context}: number out of float range: {text!r}")
            return number
        if kind is Kind.DECIMAL:
            return Decimal(text)
    except (InvalidOperation, ValueError) as err:
        raise CastError(f"{context}: malformed number: {text!r}") from err
    raise CastError(f"{context}: {kind.value} is not a number kind")


def parse_runtime_number(text: Any, *, context: str) -> int | float:
    if isinstance(text, str) and not any(c in text for c in ".eE"):
        return int(parse_number(text, Kind.INTEGER, context=context))
    return float(parse_number(text, Kind.FLOAT, context=context))


def to_binary(value: Any, *, context: str) -> bytes:
    if isinstance(value, Binary):
        return bytes(value.value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise CastError(f"{context}: expected bytes, got {type(value).__name__}")


def binary_payload(value: Any, *, context: str) -> bytes:
    if isinstance(value, Binary):
        return bytes(value.value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise CastError(f"{context}: B payload must be bytes, got {type(value).__name__}")


def cast_builtin(kind: Kind, value: Any, *, context: str) -> AttributeValue:
    """Cast a value of a declared scalar kind to its wire variant."""
    if kind is Kind.STRING:
        if not isinstance(value, str):
            raise CastError(f"{context}: expected str, got {type(value).__name__}")
        return {"S": value}
    if kind is Kind.BOOLEAN:
        if not isinstance(value, bool):
            raise CastError(f"{context}: expected bool, got {type(value).__name__}")
        return {"BOOL": value}
    if kind is Kind.INTEGER or kind is Kind.FLOAT or kind is Kind.DECIMAL:
        return {"N": number_text(value, context=context)}
    if kind is Kind.BYTES:
        if isinstance(value, str):
            raise CastError(f"{context}: expected bytes, got str")
        return {"B": to_binary(value, context=context)}
    if kind is Kind.ARRAY or kind is Kind.OBJECT:
        raise CastError(f"{context}: {kind.value} is not a builtin scalar")
    assert_never(kind)


def _plain(value: Any, *, context: str) -> Any:
    """Normalise a mixed-list element into the value shapes TypeSerializer takes."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float, Decimal)):
        return _to_decimal(value, context=context)
    if isinstance(value, (bytes, bytearray, Binary)):
        return to_binary(value, context=context)
    if isinstance(value, (list, tuple)):
        return [_plain(v, context=f"{context}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise CastError(f"{context}: map keys must be strings, got {type(k).__name__}")
            out[k] = _plain(v, context=f"{context}.{k}")
        return out
    raise CastError(f"{context}: cannot cast {type(value).__name__} by runtime kind")


def cast_runtime(value: Any, *, context: str) -> AttributeValue:
    """Cast by the value's own runtime kind (mixed-list elements)."""
    return _serialize(_plain(value, context=context), context=context)


class _RuntimeDeserializer(TypeDeserializer):
    """TypeDeserializer that checks payload shapes and yields plain ints, floats and bytes."""

    def __init__(self, *, context: str) -> None:
        self._context = context

    def deserialize(self, value: Any) -> Any:
        tag, payload = variant_of(value, context=self._context)
        if tag in {"SS", "NS", "BS", "L"} and not isinstance(payload, list):
            raise CastError(f"{self._context}: {tag} payload must be a list")
        if tag == "M" and not isinstance(payload, Mapping):
            raise CastError(f"{self._context}: M payload must be a map")
        return super().deserialize(value)

    def _deserialize_null(self, value: Any) -> None:
        if value is not True:
            raise CastError(f"{self._context}: NULL payload must be true")
        return None

    def _deserialize_bool(self, value: Any) -> bool:
        if not isinstance(value, bool):
            raise CastError(f"{self._context}: BOOL payload must be a boolean")
        return value

    def _deserialize_s(self, value: Any) -> str:
        if not isinstance(value, str):
            raise CastError(f"{self._context}: S payload must be a string")
        return value

    def _deserialize_n(self, value: Any) -> int | float:
        return parse_runtime_number(value, context=self._context)

    def _deserialize_b(self, value: Any) -> bytes:
        return binary_payload(value, context=self._context)


def uncast_runtime(av: Any, *, context: str) -> Any:
    """Decode a wire value by its own variant; sets come back as Python sets."""
    return _RuntimeDeserializer(context=context).deserialize(av)


def _expect(av: Any, tag: str, *, context: str) -> Any:
    got, payload = variant_of(av, context=context)
    if got != tag:
        raise CastError(f"{context}: expected {tag}, got {got}")
    return payload


def uncast_builtin(kind: Kind, python_type: type, av: Any, *, context: str) -> Any:
    """Read a declared scalar kind back from its wire variant."""
    if kind is Kind.STRING:
        payload = _expect(av, "S", context=context)
        if not isinstance(payload, str):
            raise CastError(f"{context}: S payload must be a string")
        return payload
    if kind is Kind.BOOLEAN:
        payload = _expect(av, "BOOL", context=context)
        if not isinstance(payload, bool):
            raise CastError(f"{context}: BOOL payload must be a boolean")
        return payload
    if kind is Kind.INTEGER or kind is Kind.FLOAT or kind is Kind.DECIMAL:
        return parse_number(_expect(av, "N", context=context), kind, context=context)
    if kind is Kind.BYTES:
        raw = binary_payload(_expect(av, "B", context=context), context=context)
        return bytearray(raw) if python_type is bytearray else raw
    if kind is Kind.ARRAY or kind is Kind.OBJECT:
        raise CastError(f"{context}: {kind.value} is not a builtin scalar")
    assert_never(kind)
