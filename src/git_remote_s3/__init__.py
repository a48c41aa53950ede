"""
git-remote-s3: git remote helper that stores repositories in S3-compatible buckets
"""

__version__ = "0.1.0"

from git_remote_s3.config import HelperConfig, load_config
from git_remote_s3.errors import (
    NonFastForward,
    RemoteHelperError,
    SyncError,
    format_error_chain,
)
from git_remote_s3.remotes import FetchEngine, PushEngine, RefLister, Remote
from git_remote_s3.storage import GitObjectStore, LocalStore, RemoteStore, S3Store
from git_remote_s3.url import RemoteLocator, parse_remote_url

__all__ = [
    # Config
    "HelperConfig",
    "load_config",
    # Errors
    "RemoteHelperError",
    "NonFastForward",
    "SyncError",
    "format_error_chain",
    # Storage
    "LocalStore",
    "RemoteStore",
    "GitObjectStore",
    "S3Store",
    # Remotes
    "Remote",
    "FetchEngine",
    "PushEngine",
    "RefLister",
    # URL
    "RemoteLocator",
    "parse_remote_url",
]
