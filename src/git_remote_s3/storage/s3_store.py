"""S3-compatible remote store.

Objects are stored under their hex id and refs under their full name
(``refs/heads/main``), both below an optional key prefix. Works against
AWS S3, MinIO and other S3-compatible services.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from git_remote_s3.config.schema import S3StorageConfig
from git_remote_s3.errors import (
    RefUpdateConflict,
    RemoteNotFound,
    RemoteProtocolError,
    RemoteStoreError,
)
from git_remote_s3.storage.object_store import RemoteStore
from git_remote_s3.url import AddressingStyle, RemoteLocator, resolve_endpoint

NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}
PRECONDITION_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict"}


@dataclass
class S3Config:
    """Connection settings for one bucket."""

    bucket: str
    prefix: str = ""
    profile: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None  # For MinIO or other S3-compatible services
    addressing_style: AddressingStyle = AddressingStyle.PATH
    access_key: Optional[str] = None  # Falls back to AWS credentials chain
    secret_key: Optional[str] = None
    max_attempts: int = 3
    connect_timeout: float = 10
    read_timeout: float = 60

    @classmethod
    def from_locator(
        cls, locator: RemoteLocator, settings: Optional[S3StorageConfig] = None
    ) -> S3Config:
        """Build connection settings from a parsed locator and transport config."""
        settings = settings or S3StorageConfig()
        endpoint = resolve_endpoint(locator.endpoint, settings.endpoint_scheme)
        return cls(
            bucket=locator.bucket,
            prefix=settings.prefix,
            profile=locator.profile,
            region=endpoint.get("region_name"),
            endpoint_url=endpoint.get("endpoint_url"),
            addressing_style=locator.style,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            max_attempts=settings.max_attempts,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )


class S3Store(RemoteStore):
    """RemoteStore over an S3 bucket.

    Example:
        >>> config = S3Config(
        ...     bucket="my-repo",
        ...     endpoint_url="http://localhost:9000",  # For MinIO
        ... )
        >>> store = S3Store(config)
        >>> store.put("refs/heads/main", b"3f786850e387550fdab836ed7e6dc881de23001b")
        >>> store.get("refs/heads/main")
    """

    def __init__(
        self,
        config: S3Config,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the S3 store.

        Args:
            config: Connection settings
            client: Pre-built boto3 S3 client (default: built from config)
            logger: Logger to report through (default: module logger)
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self._client = client if client is not None else self._create_client()

    def _create_client(self):
        """Create S3 client with configuration."""
        client_config = Config(
            s3={"addressing_style": self.config.addressing_style.value},
            retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
        )

        kwargs: Dict[str, Any] = {"config": client_config}

        if self.config.region:
            kwargs["region_name"] = self.config.region

        if self.config.endpoint_url:
            kwargs["endpoint_url"] = self.config.endpoint_url

        if self.config.access_key and self.config.secret_key:
            kwargs["aws_access_key_id"] = self.config.access_key
            kwargs["aws_secret_access_key"] = self.config.secret_key

        try:
            session = boto3.session.Session(profile_name=self.config.profile)
            client = session.client("s3", **kwargs)
        except BotoCoreError as e:
            raise RemoteStoreError(
                self.config.bucket,
                f"Could not create S3 client for bucket '{self.config.bucket}' "
                f"(profile {self.config.profile or 'default'}): {e}",
            ) from e

        self.logger.info(
            f"Connected to bucket {self.config.bucket} "
            f"({self.config.endpoint_url or self.config.region or 'default endpoint'}, "
            f"{self.config.addressing_style.value}-style)"
        )
        return client

    def _full_key(self, key: str) -> str:
        """Get the bucket key for a store key."""
        return f"{self.config.prefix}{key}"

    def _store_key(self, full_key: str) -> str:
        """Strip the configured prefix from a bucket key."""
        if self.config.prefix and full_key.startswith(self.config.prefix):
            return full_key[len(self.config.prefix) :]
        return full_key

    @contextmanager
    def _translate_errors(self, key: str) -> Iterator[None]:
        """Turn botocore failures into remote store errors naming ``key``."""
        try:
            yield
        except ClientError as e:
            error = e.response.get("Error", {})
            code = str(error.get("Code", ""))
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if code in NOT_FOUND_CODES:
                raise RemoteNotFound(key) from e
            if code in PRECONDITION_CODES or status == 412:
                raise RefUpdateConflict(key) from e
            raise RemoteProtocolError(key, status, code or str(e)) from e
        except BotoCoreError as e:
            raise RemoteProtocolError(key, None, str(e)) from e

    def _check_status(self, key: str, response: Dict[str, Any]) -> None:
        """Reject any response whose HTTP status is not 200."""
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        self.logger.debug(f"Response for '{key}': {status}")
        if status is not None and status != 200:
            raise RemoteProtocolError(key, status)

    def exists(self, key: str) -> bool:
        """Check for a key with a one-item prefix listing.

        A key sorts before every longer key it prefixes, so if it exists it
        is the first listed.
        """
        full_key = self._full_key(key)
        with self._translate_errors(key):
            response = self._client.list_objects_v2(
                Bucket=self.config.bucket, Prefix=full_key, MaxKeys=1
            )
        self._check_status(key, response)
        found = any(obj.get("Key") == full_key for obj in response.get("Contents", []))
        self.logger.debug(f"Remote key {key} {'exists' if found else 'is absent'}")
        return found

    def get(self, key: str) -> bytes:
        with self._translate_errors(key):
            response = self._client.get_object(
                Bucket=self.config.bucket, Key=self._full_key(key)
            )
            self._check_status(key, response)
            data = response["Body"].read()
        self.logger.debug(f"Fetched '{key}' ({len(data)} bytes)")
        return data

    def put(self, key: str, data: bytes) -> None:
        with self._translate_errors(key):
            response = self._client.put_object(
                Bucket=self.config.bucket, Key=self._full_key(key), Body=data
            )
        self._check_status(key, response)
        self.logger.debug(f"Stored '{key}' ({len(data)} bytes)")

    def list(self, prefix: str) -> List[Tuple[str, bytes]]:
        keys = []
        with self._translate_errors(prefix):
            paginator = self._client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=self.config.bucket, Prefix=self._full_key(prefix)
            )
            for page in pages:
                self._check_status(prefix, page)
                for obj in page.get("Contents", []):
                    keys.append(self._store_key(obj["Key"]))
        self.logger.debug(f"Listed {len(keys)} keys under '{prefix}'")
        return [(key, self.get(key)) for key in keys]

    def get_versioned(self, key: str) -> Tuple[bytes, str]:
        with self._translate_errors(key):
            response = self._client.get_object(
                Bucket=self.config.bucket, Key=self._full_key(key)
            )
            self._check_status(key, response)
            data = response["Body"].read()
        return data, response.get("ETag", "")

    def put_if(self, key: str, data: bytes, expected_version: Optional[str]) -> None:
        kwargs: Dict[str, Any] = {
            "Bucket": self.config.bucket,
            "Key": self._full_key(key),
            "Body": data,
        }
        if expected_version is None:
            kwargs["IfNoneMatch"] = "*"
        else:
            kwargs["IfMatch"] = expected_version

        with self._translate_errors(key):
            response = self._client.put_object(**kwargs)
        self._check_status(key, response)
        self.logger.debug(f"Conditionally stored '{key}'")

    def close(self) -> None:
        """Close the S3 client."""
        close = getattr(self._client, "close", None)
        if close is not None:
            close()
