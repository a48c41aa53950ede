"""Bookkeeping shared by the fetch and push engines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from git_remote_s3.version_control.objects import ObjectKind

# Called once per object transferred: (stats so far, object id, size in bytes)
ProgressCallback = Callable[["TransferStats", str, int], None]

# How many links of a dependency chain an error message names
MAX_CHAIN_DISPLAY = 8


@dataclass
class TransferStats:
    """Result of a fetch or push."""

    objects_transferred: int = 0
    bytes_transferred: int = 0
    objects_skipped: int = 0
    ref_updated: bool = False

    def record_transfer(self, size: int) -> None:
        self.objects_transferred += 1
        self.bytes_transferred += size

    def record_skip(self) -> None:
        self.objects_skipped += 1

    def __str__(self) -> str:
        return (
            f"{self.objects_transferred} objects "
            f"({self.bytes_transferred} bytes) transferred, "
            f"{self.objects_skipped} already present"
        )


@dataclass(frozen=True)
class WorkItem:
    """An object waiting to be transferred, linked to the object that needs it.

    The ``required_by`` links form the chain from the starting commit down
    to this object, used to name the path in error messages.
    """

    object_id: str
    kind: ObjectKind
    required_by: Optional[WorkItem] = None

    def child(self, object_id: str, kind: ObjectKind) -> WorkItem:
        return WorkItem(object_id, kind, self)

    def chain(self) -> List[str]:
        """Ids from the parent of this item up to the starting commit."""
        ids = []
        item = self.required_by
        while item is not None:
            ids.append(f"{item.kind.value} {item.object_id}")
            item = item.required_by
        return ids

    def describe(self) -> str:
        text = f"{self.kind.value} {self.object_id}"
        chain = self.chain()
        if chain:
            shown = chain[:MAX_CHAIN_DISPLAY]
            if len(chain) > MAX_CHAIN_DISPLAY:
                shown.append(f"... {len(chain) - MAX_CHAIN_DISPLAY} more")
            text = f"{text} (required by {' <- '.join(shown)})"
        return text
