from __future__ import annotations

from typing import Any

from .decoder import from_item
from .errors import ValidationError
from .wire import from_json_item


def from_stream_image(stream_image: Any, target: Any) -> Any:
    return from_item(from_json_item(stream_image, context="image"), target)


def from_stream_record(record: Any, target: Any, *, image: str = "NewImage") -> Any | None:
    if not isinstance(record, dict):
        raise ValidationError("record must be a map")
    dynamodb = record.get("dynamodb")
    if not isinstance(dynamodb, dict):
        raise ValidationError("record.dynamodb must be a map")
    stream_image = dynamodb.get(image)
    if stream_image is None:
        return None
    return from_stream_image(stream_image, target)
