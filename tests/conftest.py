"""Shared fixtures: an in-memory bucket and dulwich commit graph builders."""

from __future__ import annotations

import stat
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
from dulwich.objects import Blob, Commit, Tag, Tree
from dulwich.repo import MemoryRepo

from git_remote_s3.errors import RefUpdateConflict, RemoteNotFound
from git_remote_s3.storage.git_store import GitObjectStore
from git_remote_s3.storage.object_store import RemoteStore

FILE_MODE = 0o100644
DIR_MODE = stat.S_IFDIR
GITLINK_MODE = 0o160000


class InMemoryRemoteStore(RemoteStore):
    """RemoteStore backed by a dict that records every call.

    ``calls`` holds ``(operation, key)`` tuples in call order. ``list``
    returns keys in insertion order, not sorted.
    """

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.versions: Dict[str, int] = {key: 1 for key in self.objects}
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.closed = False

    def _record(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        failure = self.failures.get((operation, key))
        if failure is not None:
            raise failure

    def calls_to(self, operation: str) -> List[str]:
        return [key for op, key in self.calls if op == operation]

    def exists(self, key: str) -> bool:
        self._record("exists", key)
        return key in self.objects

    def get(self, key: str) -> bytes:
        self._record("get", key)
        if key not in self.objects:
            raise RemoteNotFound(key)
        return self.objects[key]

    def put(self, key: str, data: bytes) -> None:
        self._record("put", key)
        self._store(key, data)

    def list(self, prefix: str) -> List[Tuple[str, bytes]]:
        self._record("list", prefix)
        keys = [key for key in self.objects if key.startswith(prefix)]
        return [(key, self.get(key)) for key in keys]

    def get_versioned(self, key: str) -> Tuple[bytes, str]:
        data = self.get(key)
        return data, str(self.versions[key])

    def put_if(self, key: str, data: bytes, expected_version: Optional[str]) -> None:
        self._record("put_if", key)
        current = str(self.versions[key]) if key in self.objects else None
        if current != expected_version:
            raise RefUpdateConflict(key)
        self._store(key, data)

    def _store(self, key: str, data: bytes) -> None:
        self.objects[key] = data
        self.versions[key] = self.versions.get(key, 0) + 1

    def close(self) -> None:
        self.closed = True


class GraphBuilder:
    """Builds blobs, trees and commits inside a dulwich repository.

    Every method returns the hex id of the object it created.
    """

    def __init__(self, repo):
        self.repo = repo
        self._clock = 1700000000

    def _add(self, obj) -> str:
        self.repo.object_store.add_object(obj)
        return obj.id.decode("ascii")

    def blob(self, content: bytes) -> str:
        return self._add(Blob.from_string(content))

    def tree(self, entries: Dict[str, Tuple[int, str]]) -> str:
        """Build a tree from ``{name: (mode, object id)}``."""
        tree = Tree()
        for name, (mode, object_id) in entries.items():
            tree.add(name.encode("utf-8"), mode, object_id.encode("ascii"))
        return self._add(tree)

    def file_tree(self, files: Dict[str, bytes]) -> str:
        """Build a flat tree of regular files."""
        return self.tree(
            {name: (FILE_MODE, self.blob(content)) for name, content in files.items()}
        )

    def commit(
        self,
        tree: str,
        parents: Iterable[str] = (),
        message: str = "commit",
    ) -> str:
        self._clock += 60
        commit = Commit()
        commit.tree = tree.encode("ascii")
        commit.parents = [parent.encode("ascii") for parent in parents]
        commit.author = commit.committer = b"Test User <test@example.com>"
        commit.author_time = commit.commit_time = self._clock
        commit.author_timezone = commit.commit_timezone = 0
        commit.message = f"{message}\n".encode("utf-8")
        return self._add(commit)

    def linear_history(self, length: int) -> List[str]:
        """Build ``length`` commits, each changing one file; oldest first."""
        commits: List[str] = []
        for i in range(length):
            tree = self.file_tree({"README": f"revision {i}\n".encode("utf-8")})
            commits.append(
                self.commit(tree, parents=commits[-1:], message=f"revision {i}")
            )
        return commits

    def tag(self, target: str, name: str = "v1.0", target_type=Commit) -> str:
        """Build an annotated tag pointing at ``target``."""
        self._clock += 60
        tag = Tag()
        tag.name = name.encode("utf-8")
        tag.object = (target_type, target.encode("ascii"))
        tag.tagger = b"Test User <test@example.com>"
        tag.tag_time = self._clock
        tag.tag_timezone = 0
        tag.message = f"release {name}\n".encode("utf-8")
        return self._add(tag)

    def set_ref(self, name: str, object_id: str) -> None:
        self.repo.refs[name.encode("utf-8")] = object_id.encode("ascii")

    def object_ids(self) -> List[str]:
        return [sha.decode("ascii") for sha in self.repo.object_store]


def copy_objects(repo, remote: InMemoryRemoteStore) -> None:
    """Store every object of ``repo`` in ``remote`` under its id."""
    for sha in repo.object_store:
        _, data = repo.object_store.get_raw(sha)
        remote.objects[sha.decode("ascii")] = data
        remote.versions[sha.decode("ascii")] = 1


@pytest.fixture
def remote_store():
    """An empty in-memory bucket."""
    return InMemoryRemoteStore()


@pytest.fixture
def source_repo():
    """Repository whose objects play the role of the remote's contents."""
    return MemoryRepo()


@pytest.fixture
def source(source_repo):
    return GraphBuilder(source_repo)


@pytest.fixture
def local_repo():
    return MemoryRepo()


@pytest.fixture
def local(local_repo):
    """GraphBuilder for the local repository."""
    return GraphBuilder(local_repo)


@pytest.fixture
def local_store(local_repo):
    return GitObjectStore(local_repo)
