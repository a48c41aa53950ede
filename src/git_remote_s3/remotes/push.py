"""Push engine: uploads a commit's object graph and moves a remote ref.

Objects are uploaded in post-order. An object's own key is written only
after every object it references is present in the remote store, so a
reader of the bucket never finds a commit or tree whose dependencies are
missing. An object already present remotely is assumed complete and its
dependencies are not walked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from git_remote_s3.errors import (
    DecodeError,
    NonFastForward,
    ObjectNotFoundLocally,
    RemoteHelperError,
    RemoteNotFound,
    SyncError,
)
from git_remote_s3.remotes.transfer import ProgressCallback, TransferStats, WorkItem
from git_remote_s3.storage.object_store import LocalStore, RemoteStore
from git_remote_s3.version_control.ancestry import AncestryOracle
from git_remote_s3.version_control.objects import (
    ObjectKind,
    ObjectRecord,
    decode_commit,
    decode_tag,
    decode_tree,
)
from git_remote_s3.version_control.refs import (
    decode_ref_value,
    encode_ref_value,
    resolve_source,
)


@dataclass
class _Frame:
    """Worklist entry; ``record`` is set once the item's dependencies are queued."""

    item: WorkItem
    record: Optional[ObjectRecord] = None


class PushEngine:
    """Pushes object graphs from a LocalStore to a RemoteStore.

    Example:
        >>> engine = PushEngine(local_store, remote_store, ObjectGraphAncestry(local_store))
        >>> engine.push("refs/heads/main", "refs/heads/main")
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        ancestry: AncestryOracle,
        compare_and_swap: bool = False,
        logger: Optional[logging.Logger] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the engine.

        Args:
            local: Source object database
            remote: Destination key-value store
            ancestry: Fast-forward check for ref updates
            compare_and_swap: Write refs with a conditional put so that a
                concurrent update fails instead of being overwritten
            logger: Logger to report through (default: module logger)
            progress_callback: Called after every object uploaded
        """
        self.local = local
        self.remote = remote
        self.ancestry = ancestry
        self.compare_and_swap = compare_and_swap
        self.logger = logger or logging.getLogger(__name__)
        self.progress_callback = progress_callback

    def push(self, src: str, dst: str, force: bool = False) -> TransferStats:
        """Upload the commit ``src`` resolves to and point remote ``dst`` at it.

        Args:
            src: Local ref name (or full commit id) to push
            dst: Remote ref name to update
            force: Update ``dst`` even if it is not a fast-forward

        Returns:
            TransferStats for this push

        Raises:
            LocalRefNotFound: If ``src`` does not resolve locally
            SyncError: Wrapping the first failure while uploading, naming the
                object and the chain of objects that required it
            NonFastForward: If ``dst`` would lose commits and ``force`` is off
            RefUpdateConflict: If compare-and-swap is on and ``dst`` changed
                concurrently
        """
        commit_id = resolve_source(self.local, src)
        self.logger.debug(f"Local ref {src} is at {commit_id}")

        stats = self.upload(commit_id)
        stats.ref_updated = self.update_ref(dst, commit_id, force)

        self.logger.info(f"Pushed {src} to {dst}: {stats}")
        return stats

    def upload(self, commit_id: str) -> TransferStats:
        """Upload ``commit_id`` and every object it depends on that is missing
        remotely."""
        stats = TransferStats()
        confirmed: Set[str] = set()
        stack: List[_Frame] = [_Frame(WorkItem(commit_id, self._root_kind(commit_id)))]

        while stack:
            frame = stack.pop()
            item = frame.item
            if item.object_id in confirmed:
                continue

            try:
                if frame.record is None:
                    dependencies = self._expand(frame, stats)
                    if frame.record is not None:
                        stack.append(frame)
                        stack.extend(_Frame(dep) for dep in reversed(dependencies))
                        continue
                else:
                    self._put_object(frame.record, stats)
            except RemoteHelperError as e:
                raise SyncError(f"Failed to push {item.describe()}") from e

            confirmed.add(item.object_id)

        return stats

    def _root_kind(self, object_id: str) -> ObjectKind:
        """Kind of the object a pushed ref points at: a commit or an annotated tag."""
        record = self.local.find(object_id)
        if record is not None and record.kind == ObjectKind.TAG:
            return ObjectKind.TAG
        return ObjectKind.COMMIT

    def _expand(self, frame: _Frame, stats: TransferStats) -> List[WorkItem]:
        """Check one object remotely; if missing, load it and list its
        dependencies.

        Leaves ``frame.record`` unset when the object is already remote.
        """
        item = frame.item
        if self.remote.exists(item.object_id):
            self.logger.debug(f"{item.kind.value} {item.object_id} already remote")
            stats.record_skip()
            return []

        record = self.local.find(item.object_id)
        if record is None:
            raise ObjectNotFoundLocally(item.object_id)
        if record.kind != item.kind:
            raise DecodeError(
                item.object_id, item.kind.value, f"found a {record.kind.value}"
            )

        dependencies: List[WorkItem] = []
        if item.kind == ObjectKind.TAG:
            tag = decode_tag(item.object_id, record.data)
            dependencies.append(item.child(tag.target, tag.target_kind))
        elif item.kind == ObjectKind.COMMIT:
            commit = decode_commit(item.object_id, record.data)
            dependencies.append(item.child(commit.tree, ObjectKind.TREE))
            dependencies.extend(
                item.child(parent, ObjectKind.COMMIT) for parent in commit.parents
            )
        elif item.kind == ObjectKind.TREE:
            tree = decode_tree(item.object_id, record.data)
            for entry in tree.entries:
                if entry.is_submodule:
                    continue
                kind = ObjectKind.TREE if entry.is_tree else ObjectKind.BLOB
                dependencies.append(item.child(entry.object_id, kind))

        frame.record = record
        return dependencies

    def _put_object(self, record: ObjectRecord, stats: TransferStats) -> None:
        self.remote.put(record.object_id, record.data)
        stats.record_transfer(record.size)
        self.logger.debug(
            f"Uploaded {record.kind.value} {record.object_id} ({record.size} bytes)"
        )
        if self.progress_callback:
            self.progress_callback(stats, record.object_id, record.size)

    def update_ref(self, ref: str, commit_id: str, force: bool = False) -> bool:
        """Point remote ``ref`` at ``commit_id`` under the fast-forward guard.

        Returns:
            True if the ref was written, False if it already had the value
        """
        version: Optional[str] = None
        try:
            if self.compare_and_swap:
                data, version = self.remote.get_versioned(ref)
            else:
                data = self.remote.get(ref)
        except RemoteNotFound:
            old = None
        else:
            old = decode_ref_value(ref, data)

        if old == commit_id:
            self.logger.info(f"Remote {ref} is already at {commit_id}")
            return False

        if old is not None and not self.ancestry.is_ancestor(old, commit_id):
            if not force:
                raise NonFastForward(ref, old, commit_id)
            self.logger.warning(f"Forcing non-fast-forward update of {ref}")

        value = encode_ref_value(commit_id)
        if self.compare_and_swap:
            self.remote.put_if(ref, value, version)
        else:
            self.remote.put(ref, value)

        self.logger.info(f"Updated {ref}: {old or '(new)'} -> {commit_id}")
        return True
