from __future__ import annotations

import logging
from dataclasses import dataclass

from sapphire_py import dynamo_class, from_stream_record, sapphire_field

logger = logging.getLogger(__name__)


@dynamo_class("notes")
@dataclass(frozen=True)
class Note:
    id: str = sapphire_field()
    value: int = sapphire_field(default=0)
    body: bytes = sapphire_field(binary=True, default=b"")


def handler(event, context):  # noqa: ANN001, ARG001
    records = event.get("Records", [])
    for record in records:
        note = from_stream_record(record, Note, image="NewImage")
        if note is None:
            continue
        logger.info("note %s changed (value=%d)", note.id, note.value)
