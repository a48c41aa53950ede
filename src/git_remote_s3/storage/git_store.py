"""Local object database backed by dulwich.

Reads loose and packed objects, writes loose objects and resolves loose,
packed and symbolic refs of an on-disk repository (or a dulwich MemoryRepo).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from dulwich.errors import NotGitRepository, ObjectFormatException
from dulwich.objects import ShaFile
from dulwich.repo import BaseRepo, Repo

from git_remote_s3.errors import DecodeError, LocalRefNotFound, RemoteHelperError
from git_remote_s3.storage.object_store import LocalStore
from git_remote_s3.version_control.objects import (
    ObjectKind,
    ObjectRecord,
    is_object_id,
)


class GitObjectStore(LocalStore):
    """LocalStore over a dulwich repository.

    Example:
        >>> store = GitObjectStore.open(".git")
        >>> head = store.read_ref("HEAD")
        >>> record = store.find(head)
    """

    def __init__(self, repo: BaseRepo, logger: Optional[logging.Logger] = None):
        """Wrap an open dulwich repository.

        Args:
            repo: dulwich Repo or MemoryRepo
            logger: Logger to report through (default: module logger)
        """
        self.repo = repo
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def open(
        cls, git_dir: Union[str, os.PathLike], logger: Optional[logging.Logger] = None
    ) -> GitObjectStore:
        """Open the repository at ``git_dir`` (a ``.git`` or bare directory)."""
        path = Path(git_dir)
        try:
            repo = Repo(str(path))
        except NotGitRepository as e:
            raise RemoteHelperError(f"Not a git repository: {path}") from e
        return cls(repo, logger=logger)

    @property
    def object_store(self):
        return self.repo.object_store

    def find(self, object_id: str) -> Optional[ObjectRecord]:
        if not is_object_id(object_id):
            return None
        try:
            sha = object_id.lower().encode("ascii")
            type_num, data = self.object_store.get_raw(sha)
        except KeyError:
            return None
        return ObjectRecord(
            object_id=object_id,
            kind=ObjectKind.from_type_num(type_num),
            data=data,
        )

    def contains(self, object_id: str) -> bool:
        if not is_object_id(object_id):
            return False
        return object_id.lower().encode("ascii") in self.object_store

    def write(self, kind: ObjectKind, data: bytes) -> str:
        try:
            obj = ShaFile.from_raw_string(kind.type_num, data)
        except (ObjectFormatException, ValueError) as e:
            raise DecodeError("<new object>", kind.value, str(e)) from e

        object_id = obj.id.decode("ascii")
        if obj.id in self.object_store:
            self.logger.debug(f"{kind.value} {object_id} already present locally")
        else:
            self.object_store.add_object(obj)
            self.logger.debug(f"Wrote {kind.value} {object_id} ({len(data)} bytes)")
        return object_id

    def read_ref(self, name: str) -> str:
        try:
            sha = self.repo.refs[name.encode("utf-8")]
        except KeyError:
            raise LocalRefNotFound(name) from None
        return sha.decode("ascii")

    def close(self) -> None:
        close = getattr(self.repo, "close", None)
        if close is not None:
            close()
