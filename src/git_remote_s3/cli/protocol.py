"""Remote-helper protocol loop.

git writes one command per line on the helper's stdin and reads replies
from its stdout. Supported commands::

    capabilities            -> "fetch", "push", blank line
    list [for-push]         -> "<sha> <ref>" per remote ref, blank line
    fetch <sha> <name>      -> blank line once the commit is local
    push [+]<src>:<dst>     -> blank line once the remote ref is updated

Any other line, including an empty one or end of input, ends the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from git_remote_s3.errors import MalformedCommand, RemoteHelperError, SyncError
from git_remote_s3.remotes.remote import Remote
from git_remote_s3.version_control.objects import is_object_id
from git_remote_s3.version_control.refs import parse_push_refspec


@dataclass(frozen=True)
class Command:
    """A tokenized protocol line."""

    name: str
    args: List[str] = field(default_factory=list)
    line: str = ""


def parse_command(line: str) -> Command:
    """Split a protocol line into a command name and its arguments."""
    tokens = line.split()
    if not tokens:
        return Command(name="", args=[], line=line.rstrip("\n"))
    return Command(name=tokens[0], args=tokens[1:], line=line.rstrip("\n"))


class ProtocolLoop:
    """Reads commands from git and dispatches them to a Remote.

    Example:
        >>> with Remote.from_url(url, git_dir) as remote:
        ...     ProtocolLoop(remote, sys.stdin, sys.stdout).run()
    """

    def __init__(
        self,
        remote: Remote,
        stdin: TextIO,
        stdout: TextIO,
        logger: Optional[logging.Logger] = None,
    ):
        self.remote = remote
        self.stdin = stdin
        self.stdout = stdout
        self.logger = logger or logging.getLogger(__name__)
        self._handlers = {
            "capabilities": self._capabilities,
            "list": self._list,
            "fetch": self._fetch,
            "push": self._push,
        }

    def run(self) -> int:
        """Process commands until an unknown command or end of input.

        Returns:
            Number of commands processed

        Raises:
            MalformedCommand: If a command has missing or invalid arguments
            SyncError: Wrapping the first failed operation
        """
        processed = 0
        while True:
            command = parse_command(self.stdin.readline())
            handler = self._handlers.get(command.name)
            if handler is None:
                self.logger.info(
                    f"No matching command for {command.line!r}, ending session"
                )
                return processed

            self.logger.info(f"Running {command.line!r}")
            handler(command)
            # Every completed command is acknowledged with one blank line
            self._write("")
            self.stdout.flush()
            processed += 1
            self.logger.debug(f"Ran {command.name} successfully")

    def _write(self, line: str) -> None:
        self.stdout.write(f"{line}\n")

    def _capabilities(self, command: Command) -> None:
        for capability in self.remote.capabilities():
            self._write(capability)

    def _list(self, command: Command) -> None:
        for_push = bool(command.args) and command.args[0] == "for-push"
        lines = self._run(command, lambda: self.remote.list_refs(for_push=for_push))
        for line in lines:
            self._write(line)

    def _fetch(self, command: Command) -> None:
        if len(command.args) < 2:
            raise MalformedCommand(command.line, "Fetch command needs <sha> <name>")
        sha, name = command.args[0], command.args[1]
        if not is_object_id(sha):
            raise MalformedCommand(command.line, f"Invalid object id {sha!r}")
        self._run(command, lambda: self.remote.fetch(sha.lower(), name))

    def _push(self, command: Command) -> None:
        if not command.args:
            raise MalformedCommand(command.line, "Push command needs <src>:<dst>")
        refspec = parse_push_refspec(command.args[0])
        self._run(command, lambda: self.remote.push(refspec))

    def _run(self, command: Command, operation):
        """Run an operation, naming the command line in any error."""
        try:
            return operation()
        except RemoteHelperError as e:
            self.logger.error(f"Error running {command.line!r}: {e}")
            raise SyncError(f"Command {command.line!r} failed") from e
