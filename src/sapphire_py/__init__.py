from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .decoder import from_item, from_items
from .encoder import encode_many, encode_one, put_item_object, to_item, to_items
from .errors import (
    AwsError,
    BatchRetryExceededError,
    CastError,
    ConditionFailedError,
    InvalidInputError,
    MissingMappingError,
    NoMappedFieldsError,
    NotFoundError,
    SapphirePyError,
    TypeNotFoundError,
    UntypedFieldError,
    ValidationError,
)
from .factory import instantiate, resolve_type
from .model import (
    ArrayKind,
    ClassMetadata,
    FieldMetadata,
    MappingDefinitionError,
    dynamo_class,
    dynamo_embedded,
    sapphire_field,
)
from .registry import class_metadata, mapped_fields, register, table_name_of
from .wire import AttributeValue, Item, Request

if TYPE_CHECKING:
    from .mapping_doc import parse_mapping_document, register_mapping_document
    from .runtime import create_boto3_config, get_dynamodb_client, is_lambda_environment
    from .streams import from_stream_image, from_stream_record
    from .writer import ItemWriter


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name in {"parse_mapping_document", "register_mapping_document"}:
        from . import mapping_doc

        return getattr(mapping_doc, name)
    if name in {"create_boto3_config", "get_dynamodb_client", "is_lambda_environment"}:
        from . import runtime

        return getattr(runtime, name)
    if name in {"from_stream_image", "from_stream_record"}:
        from . import streams

        return getattr(streams, name)
    if name == "ItemWriter":
        from .writer import ItemWriter

        return ItemWriter
    raise AttributeError(name)


__all__ = [
    "ArrayKind",
    "AttributeValue",
    "AwsError",
    "BatchRetryExceededError",
    "CastError",
    "ClassMetadata",
    "ConditionFailedError",
    "FieldMetadata",
    "InvalidInputError",
    "Item",
    "ItemWriter",
    "MappingDefinitionError",
    "MissingMappingError",
    "NoMappedFieldsError",
    "NotFoundError",
    "Request",
    "SapphirePyError",
    "TypeNotFoundError",
    "UntypedFieldError",
    "ValidationError",
    "__repo_version__",
    "__version__",
    "class_metadata",
    "create_boto3_config",
    "dynamo_class",
    "dynamo_embedded",
    "encode_many",
    "encode_one",
    "from_item",
    "from_items",
    "from_stream_image",
    "from_stream_record",
    "get_dynamodb_client",
    "instantiate",
    "is_lambda_environment",
    "mapped_fields",
    "parse_mapping_document",
    "put_item_object",
    "register",
    "register_mapping_document",
    "resolve_type",
    "sapphire_field",
    "table_name_of",
    "to_item",
    "to_items",
]
