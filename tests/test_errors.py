"""Tests for the error hierarchy and error chain rendering."""

from git_remote_s3.errors import (
    AmbiguousLocator,
    LocatorError,
    MalformedCommand,
    MalformedLocator,
    NonFastForward,
    RemoteHelperError,
    RemoteNotFound,
    RemoteProtocolError,
    RemoteStoreError,
    SyncError,
    format_error_chain,
    root_cause,
)


def chained(outer, inner):
    try:
        try:
            raise inner
        except RemoteHelperError as e:
            raise outer from e
    except RemoteHelperError as e:
        return e


class TestHierarchy:
    def test_locator_errors(self):
        assert issubclass(MalformedLocator, LocatorError)
        assert issubclass(AmbiguousLocator, LocatorError)

    def test_remote_store_errors(self):
        assert issubclass(RemoteNotFound, RemoteStoreError)
        assert issubclass(RemoteProtocolError, RemoteStoreError)

    def test_all_derive_from_base(self):
        for cls in (LocatorError, RemoteStoreError, MalformedCommand, SyncError):
            assert issubclass(cls, RemoteHelperError)

    def test_protocol_error_fields(self):
        error = RemoteProtocolError("refs/heads/main", 503)
        assert error.key == "refs/heads/main"
        assert error.status == 503
        assert str(error) == "Non-okay response for 'refs/heads/main': 503"


class TestRecoverable:
    def test_only_non_fast_forward_is_recoverable(self):
        assert NonFastForward("refs/heads/main", "a", "b").recoverable
        assert not RemoteNotFound("x").recoverable
        assert not MalformedCommand("push", "bad").recoverable

    def test_sync_error_follows_cause(self):
        error = chained(
            SyncError("Command 'push' failed"),
            NonFastForward("refs/heads/main", "a", "b"),
        )
        assert error.recoverable

        error = chained(SyncError("Failed to fetch"), RemoteNotFound("x"))
        assert not error.recoverable

    def test_bare_sync_error(self):
        assert not SyncError("nothing underneath").recoverable


class TestFormatErrorChain:
    def test_single(self):
        assert format_error_chain(RemoteNotFound("k")) == "error: Remote key 'k' not found"

    def test_chain_outermost_first(self):
        error = chained(SyncError("Failed to fetch blob abc"), RemoteNotFound("abc"))

        assert format_error_chain(error).splitlines() == [
            "error: Failed to fetch blob abc",
            "caused by: Remote key 'abc' not found",
        ]
        assert isinstance(root_cause(error), RemoteNotFound)
