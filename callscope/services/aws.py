"""boto3 client construction for the recording bucket."""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from callscope.config.settings import S3Config, settings

_S3_CLIENT_CONFIG = Config(
    retries={"max_attempts": 3, "mode": "standard"},
    connect_timeout=5,
    read_timeout=60,
)


def create_s3_client(config: Optional[S3Config] = None) -> Any:
    """S3 client using explicit keys when both are configured, else the default chain."""

    s3 = config or settings.s3
    credentials: dict[str, str] = {}
    if s3.access_key and s3.secret_key:
        credentials = {
            "aws_access_key_id": s3.access_key,
            "aws_secret_access_key": s3.secret_key,
        }
    return boto3.client("s3", region_name=s3.region, config=_S3_CLIENT_CONFIG, **credentials)


__all__ = ["create_s3_client"]
