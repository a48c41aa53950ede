"""Fetch engine: copies a commit and everything it references into the local
object database.

The walk is an explicit depth-first worklist. An object already present
locally is never requested from the remote, and its dependencies are not
walked: a locally present object implies its dependencies are present too.
That same existence check is what stops the walk at history shared with
the local repository.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from git_remote_s3.errors import RemoteHelperError, SyncError
from git_remote_s3.remotes.transfer import ProgressCallback, TransferStats, WorkItem
from git_remote_s3.storage.object_store import LocalStore, RemoteStore
from git_remote_s3.version_control.objects import (
    ObjectKind,
    decode_commit,
    decode_tag,
    decode_tree,
    is_tag_body,
    parse_object,
)


class FetchEngine:
    """Pulls object graphs from a RemoteStore into a LocalStore.

    Example:
        >>> engine = FetchEngine(local_store, remote_store)
        >>> stats = engine.fetch("3f786850e387550fdab836ed7e6dc881de23001b")
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        logger: Optional[logging.Logger] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the engine.

        Args:
            local: Destination object database
            remote: Source key-value store
            logger: Logger to report through (default: module logger)
            progress_callback: Called after every object written locally
        """
        self.local = local
        self.remote = remote
        self.logger = logger or logging.getLogger(__name__)
        self.progress_callback = progress_callback

    def fetch(self, commit_id: str) -> TransferStats:
        """Ensure ``commit_id`` and its whole history exist locally.

        Args:
            commit_id: Hex id of the commit (or annotated tag) to fetch

        Returns:
            TransferStats for this fetch

        Raises:
            SyncError: Wrapping the first failure, naming the object and the
                chain of objects that required it
        """
        stats = TransferStats()
        stack: List[WorkItem] = [WorkItem(commit_id, ObjectKind.COMMIT)]

        while stack:
            item = stack.pop()
            try:
                dependencies = self._fetch_item(item, stats)
            except RemoteHelperError as e:
                raise SyncError(f"Failed to fetch {item.describe()}") from e
            # Reversed so the first dependency (a commit's tree) is handled first
            stack.extend(reversed(dependencies))

        self.logger.info(f"Fetched {commit_id}: {stats}")
        return stats

    def _fetch_item(self, item: WorkItem, stats: TransferStats) -> List[WorkItem]:
        """Copy one object if missing locally and return what it references."""
        if self.local.contains(item.object_id):
            self.logger.debug(f"{item.kind.value} {item.object_id} already local")
            stats.record_skip()
            return []

        data = self.remote.get(item.object_id)

        # The fetched ref may name an annotated tag instead of a commit
        kind = item.kind
        if item.required_by is None and is_tag_body(data):
            kind = ObjectKind.TAG

        # Decoding with verification checks the bytes hash to the requested
        # id before anything is written locally.
        dependencies: List[WorkItem] = []
        if kind == ObjectKind.TAG:
            tag = decode_tag(item.object_id, data, verify=True)
            dependencies.append(item.child(tag.target, tag.target_kind))
        elif kind == ObjectKind.COMMIT:
            commit = decode_commit(item.object_id, data, verify=True)
            dependencies.append(item.child(commit.tree, ObjectKind.TREE))
            dependencies.extend(
                item.child(parent, ObjectKind.COMMIT) for parent in commit.parents
            )
        elif kind == ObjectKind.TREE:
            tree = decode_tree(item.object_id, data, verify=True)
            for entry in tree.entries:
                if entry.is_submodule:
                    self.logger.debug(
                        f"Skipping submodule {entry.name} at {entry.object_id}"
                    )
                    continue
                entry_kind = ObjectKind.TREE if entry.is_tree else ObjectKind.BLOB
                dependencies.append(item.child(entry.object_id, entry_kind))
        else:
            parse_object(item.object_id, kind, data, verify=True)

        self.local.write(kind, data)
        stats.record_transfer(len(data))
        self.logger.debug(
            f"Fetched {kind.value} {item.object_id} ({len(data)} bytes)"
        )
        if self.progress_callback:
            self.progress_callback(stats, item.object_id, len(data))

        return dependencies
