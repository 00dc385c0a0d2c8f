from __future__ import annotations

from dataclasses import dataclass

import pytest
from botocore.exceptions import ClientError

from sapphire_py import (
    AwsError,
    BatchRetryExceededError,
    ConditionFailedError,
    InvalidInputError,
    ItemWriter,
    NotFoundError,
    ValidationError,
    dynamo_class,
    sapphire_field,
)
from sapphire_py.testkit import FakeDynamoDBClient, no_sleep
from sapphire_py.writer import map_client_error


@dynamo_class("events")
@dataclass(frozen=True)
class Event:
    id: str = sapphire_field()
    seq: int = sapphire_field(default=0)


def _client_error(code: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "PutItem")


def test_put_sends_encoded_item() -> None:
    client = FakeDynamoDBClient()

    ItemWriter(client).put(Event(id="e1", seq=2))

    assert client.calls == [("put_item", {"TableName": "events", "Item": {"id": {"S": "e1"}, "seq": {"N": "2"}}})]
    assert client.items("events") == [{"id": {"S": "e1"}, "seq": {"N": "2"}}]


def test_put_maps_client_errors() -> None:
    client = FakeDynamoDBClient()
    client.fail_next(_client_error("ConditionalCheckFailedException"))

    with pytest.raises(ConditionFailedError, match="boom"):
        ItemWriter(client).put(Event(id="e1"))
    assert client.items("events") == []


def test_map_client_error_codes() -> None:
    assert isinstance(map_client_error(_client_error("ValidationException")), ValidationError)
    assert isinstance(map_client_error(_client_error("ResourceNotFoundException")), NotFoundError)

    err = map_client_error(_client_error("ThrottlingException", "slow down"))
    assert isinstance(err, AwsError)
    assert err.code == "ThrottlingException"
    assert err.message == "slow down"


def test_put_many_chunks_into_batches_of_25() -> None:
    client = FakeDynamoDBClient()

    ItemWriter(client).put_many(Event(id=f"e{i}", seq=i) for i in range(60))

    sizes = [len(kwargs["RequestItems"]["events"]) for _, kwargs in client.calls]
    assert sizes == [25, 25, 10]
    first = client.calls[0][1]["RequestItems"]["events"][0]
    assert first == {"PutRequest": {"Item": {"id": {"S": "e0"}, "seq": {"N": "0"}}}}
    assert [item["id"]["S"] for item in client.items("events")] == [f"e{i}" for i in range(60)]


def test_put_many_retries_unprocessed_items() -> None:
    client = FakeDynamoDBClient()
    client.leave_unprocessed(1)
    delays: list[float] = []

    ItemWriter(client, sleep=delays.append).put_many([Event(id="e0"), Event(id="e1")])

    assert [len(kwargs["RequestItems"]["events"]) for _, kwargs in client.calls] == [2, 1]
    retried = client.calls[1][1]["RequestItems"]["events"]
    assert retried == [{"PutRequest": {"Item": {"id": {"S": "e1"}, "seq": {"N": "0"}}}}]
    assert delays == [0.05]
    assert len(client.items("events")) == 2


def test_put_many_gives_up_after_max_retries() -> None:
    client = FakeDynamoDBClient()
    client.leave_unprocessed(1, 1, 1)

    with pytest.raises(BatchRetryExceededError) as excinfo:
        ItemWriter(client, max_retries=2, sleep=no_sleep).put_many([Event(id="e0")])

    assert excinfo.value.unprocessed_count == 1
    assert excinfo.value.operation == "batch_write"
    assert len(client.calls) == 3
    assert client.items("events") == []


def test_put_many_maps_batch_errors() -> None:
    client = FakeDynamoDBClient()
    client.fail_next(_client_error("ResourceNotFoundException", "no table"))

    with pytest.raises(NotFoundError, match="no table"):
        ItemWriter(client).put_many([Event(id="e0")])


def test_put_many_rejects_empty_input() -> None:
    client = FakeDynamoDBClient()

    with pytest.raises(InvalidInputError):
        ItemWriter(client).put_many([])
    assert client.calls == []


def test_item_writer_validates_max_retries() -> None:
    with pytest.raises(ValueError, match="max_retries"):
        ItemWriter(FakeDynamoDBClient(), max_retries=-1)
