"""Remote session for one helper process.

Owns the local object database, the bucket connection and the engines that
move objects between them.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional

from tqdm import tqdm

from git_remote_s3.config.schema import HelperConfig
from git_remote_s3.remotes.fetch import FetchEngine
from git_remote_s3.remotes.listing import RefLister
from git_remote_s3.remotes.push import PushEngine
from git_remote_s3.remotes.transfer import ProgressCallback, TransferStats
from git_remote_s3.storage.git_store import GitObjectStore
from git_remote_s3.storage.object_store import LocalStore, RemoteStore
from git_remote_s3.storage.s3_store import S3Config, S3Store
from git_remote_s3.url import parse_remote_url
from git_remote_s3.version_control.ancestry import AncestryOracle, ObjectGraphAncestry
from git_remote_s3.version_control.refs import REFS_PREFIX, RefSpec

CAPABILITIES = ("fetch", "push")


def _format_bytes(size: float) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


class Remote:
    """A remote repository stored in a bucket.

    Example:
        >>> with Remote.from_url("s3://us-east-1/my-bucket", ".git") as remote:
        ...     for line in remote.list_refs():
        ...         print(line)
        ...     remote.push(parse_push_refspec("refs/heads/main:refs/heads/main"))
    """

    def __init__(
        self,
        local: LocalStore,
        store: RemoteStore,
        config: Optional[HelperConfig] = None,
        ancestry: Optional[AncestryOracle] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the session.

        Args:
            local: Local object database
            store: Remote key-value store
            config: Helper configuration (default: built-in defaults)
            ancestry: Fast-forward oracle (default: walk the local commit graph)
            logger: Logger handed to every component (default: module logger)
        """
        self.local = local
        self.store = store
        self.config = config or HelperConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.ancestry = ancestry or ObjectGraphAncestry(local, logger=logger)
        self.lister = RefLister(store, logger=logger)
        self.fetch_engine = FetchEngine(local, store, logger=logger)
        self.push_engine = PushEngine(
            local,
            store,
            self.ancestry,
            compare_and_swap=self.config.push.compare_and_swap,
            logger=logger,
        )

    @classmethod
    def from_url(
        cls,
        url: str,
        git_dir: os.PathLike | str,
        config: Optional[HelperConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Remote:
        """Open the local repository and connect to the bucket ``url`` names.

        Args:
            url: Remote locator (``s3://[profile@]endpoint{/|:}bucket``)
            git_dir: Local git directory
            config: Helper configuration (default: built-in defaults)
            logger: Logger handed to every component

        Raises:
            LocatorError: If ``url`` cannot be parsed
            RemoteStoreError: If the S3 client cannot be created
        """
        config = config or HelperConfig()
        locator = parse_remote_url(url)
        s3_config = S3Config.from_locator(locator, config.s3)

        local = GitObjectStore.open(git_dir, logger=logger)
        try:
            store = S3Store(s3_config, logger=logger)
        except Exception:
            local.close()
            raise
        return cls(local, store, config=config, logger=logger)

    def capabilities(self) -> List[str]:
        return list(CAPABILITIES)

    def list_refs(self, for_push: bool = False) -> List[str]:
        """List remote refs as protocol lines.

        ``for_push`` is accepted for protocol completeness; both forms list
        the same refs.
        """
        self.logger.debug(f"Listing refs{' for push' if for_push else ''}")
        return RefLister.format(self.lister.list_refs(REFS_PREFIX))

    def fetch(self, commit_id: str, name: str = "") -> TransferStats:
        """Fetch ``commit_id`` (advertised as ``name``) into the local repository."""
        self.logger.info(f"Fetching {name or commit_id} ({commit_id})")
        with self._progress("Fetching") as callback:
            self.fetch_engine.progress_callback = callback
            try:
                return self.fetch_engine.fetch(commit_id)
            finally:
                self.fetch_engine.progress_callback = None

    def push(self, refspec: RefSpec) -> TransferStats:
        """Push ``refspec.src`` to the remote ref ``refspec.dst``."""
        self.logger.info(
            f"Pushing {refspec.src} to {refspec.dst}"
            f"{' (forced)' if refspec.force else ''}"
        )
        with self._progress("Pushing") as callback:
            self.push_engine.progress_callback = callback
            try:
                return self.push_engine.push(refspec.src, refspec.dst, refspec.force)
            finally:
                self.push_engine.progress_callback = None

    @contextmanager
    def _progress(self, desc: str) -> Iterator[Optional[ProgressCallback]]:
        """Yield a callback that drives a tqdm bar on stderr, if enabled."""
        if not self.config.transfer.progress:
            yield None
            return

        pbar = tqdm(desc=desc, unit="objects", leave=False)

        def progress_callback(stats: TransferStats, object_id: str, size: int):
            pbar.update(1)
            pbar.set_postfix(
                {"bytes": _format_bytes(stats.bytes_transferred)}, refresh=False
            )

        try:
            yield progress_callback
        finally:
            pbar.close()

    def close(self) -> None:
        """Close the bucket connection and the local repository."""
        try:
            self.store.close()
        finally:
            self.local.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
