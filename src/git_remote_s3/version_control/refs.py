"""Ref names, push refspecs and ref values"""

from __future__ import annotations

from dataclasses import dataclass

from dulwich.refs import check_ref_format

from git_remote_s3.errors import DecodeError, LocalRefNotFound, MalformedCommand
from git_remote_s3.storage.object_store import LocalStore
from git_remote_s3.version_control.objects import is_object_id

REFS_PREFIX = "refs/"
FORCE_MARKER = "+"


@dataclass(frozen=True)
class RefSpec:
    """A parsed ``[+]<src>:<dst>`` push refspec."""

    src: str
    dst: str
    force: bool = False

    def __str__(self) -> str:
        return f"{FORCE_MARKER if self.force else ''}{self.src}:{self.dst}"


def parse_push_refspec(token: str) -> RefSpec:
    """Parse the argument of a ``push`` command.

    Args:
        token: Refspec such as ``refs/heads/main:refs/heads/main`` or
            ``+HEAD:refs/heads/topic``

    Returns:
        RefSpec with the force flag split off

    Raises:
        MalformedCommand: If the token has no ``:``, an empty side, or a
            destination that is not a valid ref name
    """
    force = token.startswith(FORCE_MARKER)
    body = token[1:] if force else token

    src, sep, dst = body.partition(":")
    if not sep:
        raise MalformedCommand(token, "Push refspec is missing ':'")
    if not src:
        # git sends ":<dst>" to delete a remote ref; deletion is never done
        raise MalformedCommand(token, "Deleting remote refs is not supported")
    if not dst:
        raise MalformedCommand(token, "Push refspec has no destination")
    if not is_valid_ref_name(dst):
        raise MalformedCommand(token, f"Invalid destination ref name {dst!r}")

    return RefSpec(src=src, dst=dst, force=force)


def is_valid_ref_name(name: str) -> bool:
    """Check a full ref name (``refs/...``) against git's naming rules."""
    if not name.startswith(REFS_PREFIX):
        return False
    try:
        encoded = name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return check_ref_format(encoded)


def decode_ref_value(key: str, data: bytes) -> str:
    """Decode a stored ref value into a hex object id.

    Surrounding whitespace (a trailing newline written by other tools) is
    ignored.

    Raises:
        DecodeError: If the value is not UTF-8 text
    """
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise DecodeError(key, "ref", str(e)) from e


def encode_ref_value(object_id: str) -> bytes:
    return object_id.encode("ascii")


def resolve_source(store: LocalStore, src: str) -> str:
    """Resolve the source side of a push refspec to a commit id.

    ``src`` is looked up as a ref first; a full hex object id present in
    the local database is accepted as-is.

    Raises:
        LocalRefNotFound: If ``src`` is neither a ref nor a local object id
    """
    try:
        return store.read_ref(src)
    except LocalRefNotFound:
        if is_object_id(src) and store.contains(src.lower()):
            return src.lower()
        raise
