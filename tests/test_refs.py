"""Tests for push refspecs and ref values."""

import pytest

from git_remote_s3.errors import DecodeError, LocalRefNotFound, MalformedCommand
from git_remote_s3.version_control.refs import (
    RefSpec,
    decode_ref_value,
    encode_ref_value,
    is_valid_ref_name,
    parse_push_refspec,
    resolve_source,
)


class TestParsePushRefspec:
    def test_plain(self):
        spec = parse_push_refspec("refs/heads/main:refs/heads/main")
        assert spec == RefSpec("refs/heads/main", "refs/heads/main", force=False)

    def test_forced(self):
        spec = parse_push_refspec("+HEAD:refs/heads/topic")
        assert spec.src == "HEAD"
        assert spec.dst == "refs/heads/topic"
        assert spec.force

    def test_str(self):
        assert str(RefSpec("a", "refs/heads/b", force=True)) == "+a:refs/heads/b"

    @pytest.mark.parametrize(
        "token",
        [
            "refs/heads/main",
            "+refs/heads/main",
            ":refs/heads/main",
            "+:refs/heads/main",
            "refs/heads/main:",
            "refs/heads/main:main",
            "refs/heads/main:refs/heads/bad..name",
        ],
    )
    def test_malformed(self, token):
        with pytest.raises(MalformedCommand) as exc_info:
            parse_push_refspec(token)
        assert exc_info.value.line == token

    def test_deletion_is_rejected(self):
        with pytest.raises(MalformedCommand, match="not supported"):
            parse_push_refspec(":refs/heads/old")


class TestRefNames:
    @pytest.mark.parametrize(
        "name", ["refs/heads/main", "refs/tags/v1.0", "refs/heads/feature/x"]
    )
    def test_valid(self, name):
        assert is_valid_ref_name(name)

    @pytest.mark.parametrize(
        "name", ["HEAD", "main", "refs/heads/a..b", "refs/heads/x.lock", "refs/heads/a b"]
    )
    def test_invalid(self, name):
        assert not is_valid_ref_name(name)


class TestRefValues:
    def test_decode_strips_whitespace(self):
        assert decode_ref_value("refs/heads/main", b" abc\n") == "abc"

    def test_decode_invalid_utf8(self):
        with pytest.raises(DecodeError):
            decode_ref_value("refs/heads/main", b"\xff")

    def test_encode(self):
        assert encode_ref_value("f" * 40) == b"f" * 40


class TestResolveSource:
    def test_ref(self, local, local_store):
        (head,) = local.linear_history(1)
        local.set_ref("refs/heads/main", head)

        assert resolve_source(local_store, "refs/heads/main") == head

    def test_object_id_fallback(self, local, local_store):
        (head,) = local.linear_history(1)

        assert resolve_source(local_store, head.upper()) == head

    def test_unknown_object_id(self, local_store):
        with pytest.raises(LocalRefNotFound):
            resolve_source(local_store, "a" * 40)
