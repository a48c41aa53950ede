"""Remote synchronization for git-remote-s3.

This module provides the operations a remote helper performs:
- Fetch commits and their history from the bucket
- Push commits and move remote refs under a fast-forward guard
- List the refs stored in the bucket
"""

from git_remote_s3.remotes.fetch import FetchEngine
from git_remote_s3.remotes.listing import RefLister
from git_remote_s3.remotes.push import PushEngine
from git_remote_s3.remotes.remote import Remote
from git_remote_s3.remotes.transfer import TransferStats

__all__ = ["Remote", "FetchEngine", "PushEngine", "RefLister", "TransferStats"]
