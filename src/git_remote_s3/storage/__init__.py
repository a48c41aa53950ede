"""Object stores the helper moves data between"""

from git_remote_s3.storage.git_store import GitObjectStore
from git_remote_s3.storage.object_store import LocalStore, RemoteStore
from git_remote_s3.storage.s3_store import S3Config, S3Store

__all__ = ["LocalStore", "RemoteStore", "GitObjectStore", "S3Store", "S3Config"]
