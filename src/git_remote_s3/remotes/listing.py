"""Ref listing for the ``list`` command"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from git_remote_s3.storage.object_store import RemoteStore
from git_remote_s3.version_control.refs import REFS_PREFIX, decode_ref_value


class RefLister:
    """Enumerates refs stored in a RemoteStore."""

    def __init__(self, remote: RemoteStore, logger: Optional[logging.Logger] = None):
        self.remote = remote
        self.logger = logger or logging.getLogger(__name__)

    def list_refs(self, prefix: str = REFS_PREFIX) -> List[Tuple[str, str]]:
        """List refs under ``prefix``.

        Returns:
            ``(object id, ref name)`` pairs in the order the store lists them
        """
        refs = [
            (decode_ref_value(key, value), key)
            for key, value in self.remote.list(prefix)
        ]
        self.logger.debug(f"Found {len(refs)} refs under {prefix}")
        return refs

    @staticmethod
    def format(refs: Iterable[Tuple[str, str]]) -> List[str]:
        """Render refs as ``<sha> <name>`` protocol lines."""
        return [f"{value} {name}" for value, name in refs]
