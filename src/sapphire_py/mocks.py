from __future__ import annotations

from collections import defaultdict
from typing import Any

from botocore.exceptions import ClientError

from .wire import Item as WireItem
from .wire import variant_of
from .writer import BATCH_WRITE_LIMIT


def _validation_error(message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "ValidationException", "Message": message}}, operation)


def _check_item(item: Any, *, context: str) -> WireItem:
    if not isinstance(item, dict) or not item:
        raise _validation_error(f"{context}: item must be a non-empty map", context)
    for name, av in item.items():
        variant_of(av, context=f"{context}.{name}")
    return item


class FakeDynamoDBClient:
    """In-memory stand-in for the ``put_item`` and ``batch_write_item`` calls of ``ItemWriter``.

    Stored items land in ``tables``. ``fail_next`` queues an error for the next
    call and ``leave_unprocessed`` queues how many trailing requests the next
    batch calls hand back as ``UnprocessedItems``.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[WireItem]] = defaultdict(list)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._errors: list[Exception] = []
        self._unprocessed: list[int] = []

    def fail_next(self, err: Exception) -> None:
        self._errors.append(err)

    def leave_unprocessed(self, *counts: int) -> None:
        self._unprocessed.extend(counts)

    def items(self, table_name: str) -> list[WireItem]:
        return list(self.tables.get(table_name, []))

    def _record(self, operation: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((operation, kwargs))
        if self._errors:
            raise self._errors.pop(0)

    def put_item(self, *, TableName: str, Item: WireItem, **kwargs: Any) -> dict[str, Any]:  # noqa: N803
        self._record("put_item", {"TableName": TableName, "Item": Item, **kwargs})
        self.tables[TableName].append(_check_item(Item, context="PutItem"))
        return {}

    def batch_write_item(self, *, RequestItems: dict[str, list[Any]], **kwargs: Any) -> dict[str, Any]:  # noqa: N803
        self._record("batch_write_item", {"RequestItems": RequestItems, **kwargs})

        total = sum(len(requests) for requests in RequestItems.values())
        if total == 0 or total > BATCH_WRITE_LIMIT:
            raise _validation_error(
                f"batch must hold between 1 and {BATCH_WRITE_LIMIT} requests, got {total}", "BatchWriteItem"
            )

        leftover = self._unprocessed.pop(0) if self._unprocessed else 0
        unprocessed: dict[str, list[Any]] = {}
        for table_name, requests in RequestItems.items():
            keep = len(requests) - min(leftover, len(requests))
            for request in requests[:keep]:
                put = request.get("PutRequest") if isinstance(request, dict) else None
                if not isinstance(put, dict):
                    raise _validation_error("only PutRequest entries are supported", "BatchWriteItem")
                self.tables[table_name].append(_check_item(put.get("Item"), context="BatchWriteItem"))
            if keep < len(requests):
                unprocessed[table_name] = list(requests[keep:])
            leftover -= len(requests) - keep

        return {"UnprocessedItems": unprocessed}
