"""Utility functions for git-remote-s3"""

from git_remote_s3.utils.logging import configure_logging, effective_level

__all__ = [
    "configure_logging",
    "effective_level",
]
