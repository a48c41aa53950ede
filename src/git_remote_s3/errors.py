"""Exception hierarchy for git-remote-s3.

Every failure the helper can report derives from RemoteHelperError. Errors
are chained with ``raise ... from`` as they unwind, so the final traceback
names the command, ref and object that were being processed when the
underlying failure happened.
"""

from __future__ import annotations

from typing import Optional


class RemoteHelperError(Exception):
    """Base class for all errors raised by the remote helper."""

    #: Whether the caller can reasonably retry (e.g. with ``force``)
    recoverable = False


# --- Locator errors ---------------------------------------------------------


class LocatorError(RemoteHelperError):
    """Raised when a remote locator string cannot be parsed."""

    def __init__(self, locator: str, reason: str) -> None:
        self.locator = locator
        self.reason = reason
        super().__init__(f"Invalid remote locator {locator!r}: {reason}")


class MalformedLocator(LocatorError):
    """The locator does not start with the expected scheme."""


class AmbiguousLocator(LocatorError):
    """No ``/`` or ``:`` separates the endpoint from the bucket name."""


# --- Remote store errors ----------------------------------------------------


class RemoteStoreError(RemoteHelperError):
    """Base class for failures reported by the remote key-value store."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class RemoteNotFound(RemoteStoreError):
    """The requested key does not exist in the remote store."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Remote key '{key}' not found")


class RemoteProtocolError(RemoteStoreError):
    """The remote store answered with a non-success status."""

    def __init__(self, key: str, status: Optional[int], detail: str = "") -> None:
        self.status = status
        self.detail = detail
        message = f"Non-okay response for '{key}': {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(key, message)


class RefUpdateConflict(RemoteStoreError):
    """A conditional ref write lost a race against another writer."""

    def __init__(self, key: str) -> None:
        super().__init__(
            key, f"Remote ref '{key}' changed while it was being updated"
        )


# --- Local object errors ----------------------------------------------------


class ObjectNotFoundLocally(RemoteHelperError):
    """An object required for a push is missing from the local database."""

    def __init__(self, object_id: str) -> None:
        self.object_id = object_id
        super().__init__(f"Object {object_id} not found in local database")


class DecodeError(RemoteHelperError):
    """Object bytes could not be decoded as the expected kind."""

    def __init__(self, object_id: str, kind: str, reason: str = "") -> None:
        self.object_id = object_id
        self.kind = kind
        self.reason = reason
        message = f"Unable to decode {object_id} as {kind}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ObjectIntegrityError(DecodeError):
    """Object bytes do not hash to the id they were stored under.

    Attributes:
        object_id: The id the bytes were requested as
        actual_id: The id computed from the bytes
    """

    def __init__(self, object_id: str, kind: str, actual_id: str) -> None:
        self.actual_id = actual_id
        super().__init__(
            object_id,
            kind,
            f"content hashes to {actual_id}. "
            f"This may indicate data corruption in the remote store.",
        )


# --- Ref errors -------------------------------------------------------------


class LocalRefNotFound(RemoteHelperError):
    """The local ref named in a push command does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unable to find local ref for {name}")


class NonFastForward(RemoteHelperError):
    """The remote ref's commit is not an ancestor of the pushed commit."""

    recoverable = True

    def __init__(self, ref: str, old: str, new: str) -> None:
        self.ref = ref
        self.old = old
        self.new = new
        super().__init__(
            f"Refusing non-fast-forward update of '{ref}' from {old} to {new} "
            f"(retry with '+' to force)"
        )


# --- Protocol errors --------------------------------------------------------


class MalformedCommand(RemoteHelperError):
    """A protocol command line is missing or has malformed arguments."""

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")


class SyncError(RemoteHelperError):
    """Context wrapper naming what was being processed when an error occurred.

    Always raised ``from`` the underlying error; ``recoverable`` follows the
    innermost error of the chain.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)

    @property
    def recoverable(self) -> bool:  # type: ignore[override]
        root = root_cause(self)
        return root is not self and getattr(root, "recoverable", False)


def root_cause(exc: BaseException) -> BaseException:
    """Follow ``__cause__`` links to the innermost exception."""
    seen = set()
    while exc.__cause__ is not None and id(exc) not in seen:
        seen.add(id(exc))
        exc = exc.__cause__
    return exc


def format_error_chain(exc: BaseException) -> str:
    """Render an exception and its causes, outermost first, one per line."""
    lines = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        prefix = "error: " if not lines else "caused by: "
        lines.append(f"{prefix}{current}")
        current = current.__cause__
    return "\n".join(lines)
