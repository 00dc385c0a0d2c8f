from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, cast

import boto3
from botocore.config import Config


def is_lambda_environment(environ: Mapping[str, str] = os.environ) -> bool:
    return bool(
        environ.get("AWS_LAMBDA_FUNCTION_NAME") or "AWS_Lambda" in (environ.get("AWS_EXECUTION_ENV") or "")
    )


def create_boto3_config(
    *,
    connect_timeout: float = 1.0,
    read_timeout: float = 3.0,
    max_attempts: int = 3,
) -> Config:
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
    )


_clients: dict[str | None, Any] = {}


def get_dynamodb_client(
    *,
    region: str | None = None,
    config: Config | None = None,
    session: Any | None = None,
) -> Any:
    """Return a DynamoDB client, reused per region.

    Inside Lambda the short-timeout config from :func:`create_boto3_config` is
    applied unless ``config`` is given.
    """
    existing = _clients.get(region)
    if existing is not None:
        return existing

    if config is None and is_lambda_environment():
        config = create_boto3_config()

    sess = session or boto3.session.Session(region_name=region)
    client = cast(Any, sess).client("dynamodb", region_name=region, config=config)
    _clients[region] = client
    return client


def _reset_clients_for_tests() -> None:
    _clients.clear()
