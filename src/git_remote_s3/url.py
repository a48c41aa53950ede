"""Remote locator parsing.

A locator names the bucket a remote lives in::

    s3://<profile>@<region>/<bucket>
    s3://<region>/<bucket>
    s3://example.com/s3/url/<bucket>
    s3://s3.example.com/<bucket>
    s3://<region>:<bucket>
    s3://s3.example.com:<bucket>

The last ``/`` or ``:`` separates the endpoint from the bucket and picks the
addressing style: ``/`` for path-style requests, ``:`` for virtual-host
style.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from git_remote_s3.errors import AmbiguousLocator, MalformedLocator

logger = logging.getLogger(__name__)

SCHEME = "s3://"

# us-east-1, eu-central-1, us-gov-west-1, ap-southeast-3 ...
_REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")


class AddressingStyle(str, Enum):
    """How the bucket is addressed; values are botocore's names."""

    PATH = "path"
    VIRTUAL_HOST = "virtual"


@dataclass(frozen=True)
class RemoteLocator:
    """Connection parameters parsed from a remote URL."""

    profile: Optional[str]
    endpoint: str
    bucket: str
    style: AddressingStyle

    def as_tuple(self) -> tuple[Optional[str], str, str, AddressingStyle]:
        return (self.profile, self.endpoint, self.bucket, self.style)


def parse_remote_url(remote_url: str) -> RemoteLocator:
    """Parse a remote URL into profile, endpoint, bucket and addressing style.

    Args:
        remote_url: Locator string, e.g. ``s3://work@eu-west-1/my-bucket``

    Returns:
        The parsed RemoteLocator

    Raises:
        MalformedLocator: If the string does not start with ``s3://``
        AmbiguousLocator: If no separator precedes the bucket name
    """
    logger.debug(f"Parsing remote url {remote_url}")

    if not remote_url.startswith(SCHEME):
        raise MalformedLocator(remote_url, f"does not start with {SCHEME}")
    remaining = remote_url[len(SCHEME) :]

    # Only the first @ separates the profile
    profile: Optional[str] = None
    if "@" in remaining:
        profile, remaining = remaining.split("@", 1)
        profile = profile or None

    index = max(remaining.rfind("/"), remaining.rfind(":"))
    if index < 0:
        raise AmbiguousLocator(remote_url, "no '/' or ':' before the bucket name")

    endpoint = remaining[:index]
    bucket = remaining[index + 1 :]
    if not endpoint:
        raise AmbiguousLocator(remote_url, "empty endpoint")
    if not bucket:
        raise AmbiguousLocator(remote_url, "empty bucket name")

    style = (
        AddressingStyle.PATH if remaining[index] == "/" else AddressingStyle.VIRTUAL_HOST
    )

    locator = RemoteLocator(
        profile=profile, endpoint=endpoint, bucket=bucket, style=style
    )
    logger.debug(
        f"Parsed profile={profile or 'default'} endpoint={endpoint} "
        f"bucket={bucket} style={style.value}"
    )
    return locator


def is_region_name(endpoint: str) -> bool:
    """Check whether an endpoint string is a bare AWS region name."""
    return bool(_REGION_PATTERN.match(endpoint))


def resolve_endpoint(endpoint: str, default_scheme: str = "https") -> dict[str, Any]:
    """Turn a locator endpoint into boto3 client keyword arguments.

    Region names become ``region_name``; full URLs are used verbatim as
    ``endpoint_url``; anything else (``localhost:9000``, ``example.com/s3``)
    gets ``default_scheme`` prepended.
    """
    if is_region_name(endpoint):
        return {"region_name": endpoint}
    if "://" in endpoint:
        return {"endpoint_url": endpoint}
    return {"endpoint_url": f"{default_scheme}://{endpoint}"}
