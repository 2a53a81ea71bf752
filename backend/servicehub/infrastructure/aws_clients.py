from __future__ import annotations

from functools import lru_cache
from typing import Any

import boto3
from botocore.config import Config

from ..settings import get_settings


@lru_cache(maxsize=1)
def botocore_config() -> Config:
    # Conservative timeouts; adaptive retries live inside botocore.
    return Config(
        retries={"max_attempts": 10, "mode": "adaptive"},
        connect_timeout=2,
        read_timeout=12,
    )


def _session_kwargs() -> dict[str, Any]:
    s = get_settings()
    kwargs: dict[str, Any] = {"region_name": s.aws_region}
    if s.has_static_credentials:
        kwargs["aws_access_key_id"] = s.aws_access_key_id
        kwargs["aws_secret_access_key"] = s.aws_secret_access_key
        if s.aws_session_token:
            kwargs["aws_session_token"] = s.aws_session_token
    return kwargs


@lru_cache(maxsize=1)
def s3_client():
    return boto3.client("s3", config=botocore_config(), **_session_kwargs())


@lru_cache(maxsize=1)
def sns_client():
    return boto3.client("sns", config=botocore_config(), **_session_kwargs())


@lru_cache(maxsize=1)
def dynamodb_resource():
    return boto3.resource("dynamodb", config=botocore_config(), **_session_kwargs())
