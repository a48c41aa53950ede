"""Git object model used by the sync engines.

Objects travel between the stores as their raw body (the loose-object
content without the ``<type> <size>\\0`` header). Decoding is done with
dulwich; the engines only look at the ids a commit or tree points to.
"""

from __future__ import annotations

import re
import stat
from dataclasses import dataclass, field
from enum import Enum

from dulwich.errors import ObjectFormatException
from dulwich.objects import S_ISGITLINK, ShaFile

from git_remote_s3.errors import DecodeError, ObjectIntegrityError

HEX_LENGTH = 40
_OBJECT_ID_PATTERN = re.compile(rf"^[0-9a-fA-F]{{{HEX_LENGTH}}}\Z")


class ObjectKind(str, Enum):
    """Kinds of git objects, valued by their loose-object type name."""

    COMMIT = "commit"
    TREE = "tree"
    BLOB = "blob"
    TAG = "tag"

    @property
    def type_num(self) -> int:
        return _TYPE_NUMS[self]

    @classmethod
    def from_type_num(cls, type_num: int) -> ObjectKind:
        for kind, num in _TYPE_NUMS.items():
            if num == type_num:
                return kind
        raise ValueError(f"Unknown object type number {type_num}")


_TYPE_NUMS = {
    ObjectKind.COMMIT: 1,
    ObjectKind.TREE: 2,
    ObjectKind.BLOB: 3,
    ObjectKind.TAG: 4,
}


def is_object_id(value: str) -> bool:
    """Check whether a string is a full 40-character hex object id."""
    return bool(_OBJECT_ID_PATTERN.match(value))


@dataclass(frozen=True)
class ObjectRecord:
    """An object as held by a store: id, kind and raw body."""

    object_id: str
    kind: ObjectKind
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a tree."""

    object_id: str
    mode: int
    name: str

    @property
    def is_tree(self) -> bool:
        return stat.S_ISDIR(self.mode)

    @property
    def is_submodule(self) -> bool:
        """Gitlink entries name a commit in another repository."""
        return S_ISGITLINK(self.mode)


@dataclass(frozen=True)
class TreeInfo:
    """Decoded view of a tree."""

    object_id: str
    entries: list[TreeEntry] = field(default_factory=list)


@dataclass(frozen=True)
class CommitInfo:
    """Decoded view of a commit: the ids it depends on."""

    object_id: str
    tree: str
    parents: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TagInfo:
    """Decoded view of an annotated tag: the object it points to."""

    object_id: str
    target: str
    target_kind: ObjectKind


def is_tag_body(data: bytes) -> bool:
    """Check whether raw bytes look like an annotated tag body.

    Tag bodies start with an ``object`` header; commit bodies start with
    ``tree``.
    """
    return data.startswith(b"object ")


def parse_object(
    object_id: str, kind: ObjectKind, data: bytes, verify: bool = True
) -> ShaFile:
    """Parse raw object bytes into a dulwich object.

    Args:
        object_id: Id the bytes are expected to have
        kind: Kind the bytes are expected to be
        data: Raw object body
        verify: Check that the bytes hash to ``object_id``

    Raises:
        DecodeError: If dulwich cannot parse the bytes as ``kind``
        ObjectIntegrityError: If ``verify`` is set and the hash differs
    """
    try:
        obj = ShaFile.from_raw_string(kind.type_num, data)
    except (ObjectFormatException, ValueError) as e:
        raise DecodeError(object_id, kind.value, str(e)) from e

    if verify:
        actual = obj.id.decode("ascii")
        if actual != object_id:
            raise ObjectIntegrityError(object_id, kind.value, actual)
    return obj


def decode_commit(object_id: str, data: bytes, verify: bool = False) -> CommitInfo:
    """Decode raw commit bytes into a CommitInfo."""
    commit = parse_object(object_id, ObjectKind.COMMIT, data, verify=verify)
    if commit.tree is None:
        raise DecodeError(object_id, ObjectKind.COMMIT.value, "missing tree header")
    return CommitInfo(
        object_id=object_id,
        tree=commit.tree.decode("ascii"),
        parents=[parent.decode("ascii") for parent in commit.parents],
    )


def decode_tag(object_id: str, data: bytes, verify: bool = False) -> TagInfo:
    """Decode raw annotated tag bytes into a TagInfo."""
    tag = parse_object(object_id, ObjectKind.TAG, data, verify=verify)
    try:
        target_class, target = tag.object
    except ObjectFormatException as e:
        raise DecodeError(object_id, ObjectKind.TAG.value, str(e)) from e
    if target_class is None or target is None:
        raise DecodeError(object_id, ObjectKind.TAG.value, "missing object header")
    return TagInfo(
        object_id=object_id,
        target=target.decode("ascii"),
        target_kind=ObjectKind.from_type_num(target_class.type_num),
    )


def decode_tree(object_id: str, data: bytes, verify: bool = False) -> TreeInfo:
    """Decode raw tree bytes into a TreeInfo."""
    tree = parse_object(object_id, ObjectKind.TREE, data, verify=verify)
    entries = [
        TreeEntry(
            object_id=entry.sha.decode("ascii"),
            mode=entry.mode,
            name=entry.path.decode("utf-8", errors="surrogateescape"),
        )
        for entry in tree.items()
    ]
    return TreeInfo(object_id=object_id, entries=entries)
