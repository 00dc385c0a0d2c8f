from __future__ import annotations

from typing import Any

from .mocks import FakeDynamoDBClient
from .registry import _reset_for_tests as reset_field_cache
from .runtime import _reset_clients_for_tests as reset_clients


def no_sleep(_: float) -> None:
    return None


def stream_record(new_image: dict[str, Any] | None = None, old_image: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a minimal DynamoDB Streams record around the given images."""
    dynamodb: dict[str, Any] = {}
    if new_image is not None:
        dynamodb["NewImage"] = new_image
    if old_image is not None:
        dynamodb["OldImage"] = old_image
    if new_image is not None and old_image is not None:
        event = "MODIFY"
    elif new_image is not None:
        event = "INSERT"
    else:
        event = "REMOVE"
    return {"eventName": event, "dynamodb": dynamodb}


__all__ = [
    "FakeDynamoDBClient",
    "no_sleep",
    "reset_clients",
    "reset_field_cache",
    "stream_record",
]
