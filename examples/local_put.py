from __future__ import annotations

import os
import uuid

import boto3

from sapphire_py import (
    ItemWriter,
    from_item,
    parse_mapping_document,
    register_mapping_document,
    to_item,
)


class Sensor:
    id: str
    readings: list[float]
    firmware: bytes
    location: Location

    def __init__(self, id: str, readings: list[float], firmware: bytes, location: Location) -> None:
        self.id = id
        self.readings = readings
        self.firmware = firmware
        self.location = location


class Location:
    site: str
    floor: int

    def __init__(self, site: str, floor: int) -> None:
        self.site = site
        self.floor = floor


MAPPING = """
mapping_version: "0.1"
types:
  - type: __main__.Sensor
    table: TABLE_NAME
    fields:
      id: {}
      readings: {array_kind: NS}
      firmware: {binary: true}
      location: {}
  - type: __main__.Location
    embeddable: true
    fields:
      site: {}
      floor: {}
"""


def _client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


def main() -> None:
    client = _client()
    table_name = f"sapphire_py_example_{uuid.uuid4().hex[:12]}"
    register_mapping_document(parse_mapping_document(MAPPING.replace("TABLE_NAME", table_name)))

    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        sensor = Sensor(id="s-1", readings=[20.5, 21.0], firmware=b"\x01\x02", location=Location(site="lab", floor=2))
        print("item:", to_item(sensor))

        ItemWriter(client).put(sensor)

        resp = client.get_item(TableName=table_name, Key={"id": {"S": "s-1"}})
        got = from_item(resp["Item"], Sensor)
        print("read back:", got.id, got.readings, got.location.site, got.location.floor)
    finally:
        client.delete_table(TableName=table_name)


if __name__ == "__main__":
    main()
