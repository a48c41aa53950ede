"""Ancestry queries over the local commit graph"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

from git_remote_s3.storage.object_store import LocalStore
from git_remote_s3.version_control.objects import ObjectKind, decode_commit


class AncestryOracle(ABC):
    """Answers whether one commit is reachable from another."""

    @abstractmethod
    def is_ancestor(self, old: str, new: str) -> bool:
        """
        Check whether ``old`` is ``new`` or reachable from it via parents.

        Args:
            old: Commit id currently held by the remote ref
            new: Commit id being pushed

        Returns:
            True if updating from ``old`` to ``new`` is a fast-forward
        """
        pass


class ObjectGraphAncestry(AncestryOracle):
    """Breadth-first walk of parent pointers read from a LocalStore.

    A commit that is missing locally ends its branch of the walk: if the
    remote ref names a commit this repository never had, it cannot be an
    ancestor of anything being pushed from here.
    """

    def __init__(self, store: LocalStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def is_ancestor(self, old: str, new: str) -> bool:
        if old == new:
            return True

        visited = {new}
        queue = deque([new])

        while queue:
            commit_id = queue.popleft()
            record = self.store.find(commit_id)
            if record is None:
                self.logger.debug(f"Commit {commit_id} not found locally")
                continue
            if record.kind != ObjectKind.COMMIT:
                self.logger.debug(f"{commit_id} is a {record.kind.value}, not a commit")
                continue

            commit = decode_commit(commit_id, record.data)
            for parent in commit.parents:
                if parent == old:
                    self.logger.debug(f"{old} is an ancestor of {new}")
                    return True
                if parent not in visited:
                    visited.add(parent)
                    queue.append(parent)

        self.logger.debug(
            f"{old} is not an ancestor of {new} ({len(visited)} commits walked)"
        )
        return False
