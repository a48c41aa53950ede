"""Abstract interfaces for the two object stores the helper moves data between"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from git_remote_s3.version_control.objects import ObjectKind, ObjectRecord


class LocalStore(ABC):
    """
    The local content-addressable object database.

    Implementations should provide:
    - Lookup of objects by id, returning kind and raw body
    - Idempotent content-addressed inserts
    - Resolution of local ref names to object ids
    """

    @abstractmethod
    def find(self, object_id: str) -> Optional[ObjectRecord]:
        """
        Look up an object.

        Args:
            object_id: Hex id of the object

        Returns:
            ObjectRecord if present, None otherwise
        """
        pass

    @abstractmethod
    def write(self, kind: ObjectKind, data: bytes) -> str:
        """
        Insert an object.

        Writing bytes that are already present is a no-op.

        Args:
            kind: Kind of the object
            data: Raw object body

        Returns:
            Hex id computed from the bytes
        """
        pass

    @abstractmethod
    def read_ref(self, name: str) -> str:
        """
        Resolve a local ref (``refs/heads/main``, ``HEAD``) to an object id.

        Raises:
            LocalRefNotFound: If the ref does not exist
        """
        pass

    def contains(self, object_id: str) -> bool:
        """Check if an object exists."""
        return self.find(object_id) is not None

    def close(self) -> None:
        """Release any resources held by the store."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RemoteStore(ABC):
    """
    A remote key-value object store.

    Keys are object ids and ref names; values are raw object bodies and
    hex ids. Every call blocks until the store answers. Any non-success
    answer is raised as RemoteProtocolError.
    """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether a key exists."""
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Fetch the value stored under a key.

        Raises:
            RemoteNotFound: If the key does not exist
        """
        pass

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store a value under a key, replacing any previous value."""
        pass

    @abstractmethod
    def list(self, prefix: str) -> List[Tuple[str, bytes]]:
        """
        Enumerate the keys under a prefix together with their values.

        Pairs are returned in the order the store lists them.
        """
        pass

    def get_versioned(self, key: str) -> Tuple[bytes, str]:
        """
        Fetch a value together with an opaque version token.

        Raises:
            RemoteNotFound: If the key does not exist
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support versioned reads"
        )

    def put_if(self, key: str, data: bytes, expected_version: Optional[str]) -> None:
        """
        Store a value only if the key still has ``expected_version``.

        An ``expected_version`` of None means the key must not exist yet.

        Raises:
            RefUpdateConflict: If the key changed since it was read
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support conditional writes"
        )

    def close(self) -> None:
        """Release any resources held by the store."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
