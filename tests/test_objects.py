"""Tests for the object model and dulwich decoding."""

import pytest
from dulwich.objects import Tree

from conftest import DIR_MODE, FILE_MODE, GITLINK_MODE
from git_remote_s3.errors import DecodeError, ObjectIntegrityError
from git_remote_s3.version_control.objects import (
    ObjectKind,
    ObjectRecord,
    decode_commit,
    decode_tag,
    decode_tree,
    is_object_id,
    is_tag_body,
    parse_object,
)


def raw(repo, object_id):
    return repo.object_store.get_raw(object_id.encode("ascii"))[1]


class TestObjectKind:
    def test_type_numbers(self):
        assert ObjectKind.COMMIT.type_num == 1
        assert ObjectKind.TREE.type_num == 2
        assert ObjectKind.BLOB.type_num == 3
        assert ObjectKind.TAG.type_num == 4

    def test_from_type_num(self):
        for kind in ObjectKind:
            assert ObjectKind.from_type_num(kind.type_num) is kind

    def test_unknown_type_num(self):
        with pytest.raises(ValueError):
            ObjectKind.from_type_num(7)


class TestIsObjectId:
    @pytest.mark.parametrize(
        "value", ["a" * 40, "0123456789abcdef0123456789abcdef01234567", "A" * 40]
    )
    def test_valid(self, value):
        assert is_object_id(value)

    @pytest.mark.parametrize(
        "value", ["", "a" * 39, "a" * 41, "g" * 40, "refs/heads/main", "+" + "a" * 39]
    )
    def test_invalid(self, value):
        assert not is_object_id(value)


class TestObjectRecord:
    def test_size(self):
        record = ObjectRecord("a" * 40, ObjectKind.BLOB, b"hello")
        assert record.size == 5


class TestDecodeCommit:
    def test_root_commit(self, source, source_repo):
        tree = source.file_tree({"a.txt": b"a"})
        commit_id = source.commit(tree)

        info = decode_commit(commit_id, raw(source_repo, commit_id), verify=True)

        assert info.object_id == commit_id
        assert info.tree == tree
        assert info.parents == []

    def test_merge_commit(self, source, source_repo):
        tree = source.file_tree({"a.txt": b"a"})
        left = source.commit(tree, message="left")
        right = source.commit(tree, message="right")
        merge = source.commit(tree, parents=[left, right], message="merge")

        info = decode_commit(merge, raw(source_repo, merge))

        assert info.parents == [left, right]

    def test_garbage_is_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_commit("a" * 40, b"this is not a commit")
        assert exc_info.value.object_id == "a" * 40
        assert exc_info.value.kind == "commit"


class TestDecodeTree:
    def test_entries(self, source, source_repo):
        blob = source.blob(b"content")
        sub = source.tree({"inner.txt": (FILE_MODE, blob)})
        tree = source.tree(
            {
                "file.txt": (FILE_MODE, blob),
                "dir": (DIR_MODE, sub),
                "module": (GITLINK_MODE, "b" * 40),
            }
        )

        info = decode_tree(tree, raw(source_repo, tree), verify=True)
        entries = {entry.name: entry for entry in info.entries}

        assert entries["file.txt"].object_id == blob
        assert not entries["file.txt"].is_tree
        assert entries["dir"].is_tree
        assert entries["dir"].object_id == sub
        assert entries["module"].is_submodule
        assert not entries["module"].is_tree


class TestParseObject:
    def test_verify_detects_mislabeled_bytes(self, source, source_repo):
        blob = source.blob(b"real content")
        with pytest.raises(ObjectIntegrityError) as exc_info:
            parse_object("c" * 40, ObjectKind.BLOB, raw(source_repo, blob))
        assert exc_info.value.actual_id == blob
        assert isinstance(exc_info.value, DecodeError)

    def test_without_verify(self, source, source_repo):
        blob = source.blob(b"real content")
        obj = parse_object(
            "c" * 40, ObjectKind.BLOB, raw(source_repo, blob), verify=False
        )
        assert obj.id.decode("ascii") == blob


class TestDecodeTag:
    def test_commit_target(self, source, source_repo):
        (head,) = source.linear_history(1)
        tag_id = source.tag(head)

        info = decode_tag(tag_id, raw(source_repo, tag_id), verify=True)

        assert info.target == head
        assert info.target_kind is ObjectKind.COMMIT

    def test_tree_target(self, source, source_repo):
        tree = source.file_tree({"a.txt": b"a"})
        tag_id = source.tag(tree, target_type=Tree)

        info = decode_tag(tag_id, raw(source_repo, tag_id))

        assert info.target_kind is ObjectKind.TREE

    def test_tag_and_commit_bodies(self, source, source_repo):
        (head,) = source.linear_history(1)
        tag_id = source.tag(head)

        assert is_tag_body(raw(source_repo, tag_id))
        assert not is_tag_body(raw(source_repo, head))

    def test_garbage_is_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tag("a" * 40, b"not a tag")
        assert exc_info.value.kind == "tag"
