#!/usr/bin/env python3
"""
git-remote-s3 - git remote helper for S3-compatible buckets

git runs ``git-remote-s3 <remote-name> <url>`` for every remote whose URL
starts with ``s3://`` and talks to it over stdin/stdout.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO

from git_remote_s3 import __version__
from git_remote_s3.cli.protocol import ProtocolLoop
from git_remote_s3.config import ConfigValidationError, load_config
from git_remote_s3.errors import RemoteHelperError, format_error_chain
from git_remote_s3.remotes.remote import Remote
from git_remote_s3.utils.logging import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_GIT_DIR = ".git"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class RemoteHelperCLI:
    """Command-line entry point for the remote helper."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="git-remote-s3",
            description="git remote helper that stores a repository in an S3 bucket",
        )
        parser.add_argument("remote_name", help="Name of the remote (e.g. origin)")
        parser.add_argument(
            "url", help="Remote locator: s3://[profile@]endpoint{/|:}bucket"
        )
        parser.add_argument(
            "-c", "--config", type=Path, help="User configuration file (TOML)"
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Increase log verbosity (repeat for debug output)",
        )
        parser.add_argument(
            "--version", action="version", version=f"%(prog)s {__version__}"
        )
        return parser

    def run(
        self,
        args=None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Run one helper session.

        Returns:
            Process exit status
        """
        args = self.parser.parse_args(args)
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        stderr = stderr or sys.stderr
        environ = os.environ if environ is None else environ

        git_dir = Path(environ.get("GIT_DIR", DEFAULT_GIT_DIR))

        try:
            config = load_config(
                git_dir=git_dir, user_config_path=args.config, environ=environ
            )
        except ConfigValidationError as e:
            print(f"error: {e}", file=stderr)
            return EXIT_ERROR

        configure_logging(config.logging, verbosity=args.verbose, stream=stderr)
        logger.info(f"Starting session for {args.remote_name} ({args.url})")

        try:
            with Remote.from_url(args.url, git_dir, config=config) as remote:
                processed = ProtocolLoop(remote, stdin, stdout).run()
        except RemoteHelperError as e:
            logger.debug("Session failed", exc_info=True)
            print(format_error_chain(e), file=stderr)
            return EXIT_ERROR
        except KeyboardInterrupt:
            print("error: interrupted", file=stderr)
            return EXIT_INTERRUPTED

        logger.info(f"Session ended after {processed} commands")
        return EXIT_OK


def main():
    """Main entry point."""
    cli = RemoteHelperCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
