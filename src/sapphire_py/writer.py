from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from botocore.exceptions import ClientError

from .encoder import encode_many, encode_one
from .errors import (
    AwsError,
    BatchRetryExceededError,
    ConditionFailedError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25

T = TypeVar("T")


def map_client_error(err: ClientError) -> Exception:
    code = str(err.response.get("Error", {}).get("Code", ""))
    message = str(err.response.get("Error", {}).get("Message", ""))

    if code == "ConditionalCheckFailedException":
        return ConditionFailedError(message)
    if code == "ValidationException":
        return ValidationError(message)
    if code == "ResourceNotFoundException":
        return NotFoundError(message)
    return AwsError(code=code or "UnknownError", message=message or str(err))


def _backoff_seconds(attempt: int) -> float:
    return min(1.0, 0.05 * (2.0 ** (attempt - 1)))


def _chunked(items: Sequence[T], size: int) -> Sequence[Sequence[T]]:
    if size <= 0:
        raise ValueError("size must be > 0")
    return [items[i : i + size] for i in range(0, len(items), size)]


class ItemWriter:
    """Send encoded objects to DynamoDB through a low-level boto3 client."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        max_retries: int = 5,
        sleep: Callable[[float], None] | None = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if client is None:
            from .runtime import get_dynamodb_client

            client = get_dynamodb_client()
        self._client: Any = client
        self._max_retries = max_retries
        self._sleep = sleep

    def put(self, obj: Any) -> None:
        req = encode_one(obj)
        try:
            self._client.put_item(**req)
        except ClientError as err:
            raise map_client_error(err) from err
        logger.info("put item into %s", req["TableName"])

    def put_many(self, objs: Iterable[Any]) -> None:
        req = encode_many(objs)
        table_name = req["TableName"]
        items = req["Item"]
        requests = [{"PutRequest": {"Item": item}} for item in items]

        for chunk in _chunked(requests, BATCH_WRITE_LIMIT):
            pending = list(chunk)
            attempts = 0
            logger.info("batch writing %d items into %s", len(pending), table_name)

            while pending:
                try:
                    resp = self._client.batch_write_item(RequestItems={table_name: pending})
                except ClientError as err:
                    raise map_client_error(err) from err

                pending = resp.get("UnprocessedItems", {}).get(table_name, []) or []
                if pending:
                    if attempts >= self._max_retries:
                        raise BatchRetryExceededError(operation="batch_write", unprocessed_count=len(pending))
                    attempts += 1
                    logger.warning(
                        "retrying %d unprocessed items for %s (attempt %d)", len(pending), table_name, attempts
                    )
                    if self._sleep is not None:
                        self._sleep(_backoff_seconds(attempts))
