"""Tests for virtual path helpers."""

from __future__ import annotations

import pytest

from bucket_index._errors import InvalidPath
from bucket_index._path import (
    ancestors,
    folder_of,
    is_folder_path,
    join_path,
    normalize_dirname,
    path_depth,
    relative_to,
    split_path,
    validate_name,
)


class TestValidateName:
    @pytest.mark.parametrize("name", ["a", "report.pdf", "with space", ".hidden"])
    def test_accepts(self, name: str) -> None:
        assert validate_name(name) == name

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "nul\0"])
    def test_rejects(self, name: str) -> None:
        with pytest.raises(InvalidPath):
            validate_name(name)


class TestNormalizeDirname:
    def test_root(self) -> None:
        assert normalize_dirname("") == ""
        assert normalize_dirname(None) == ""
        assert normalize_dirname("/") == ""

    def test_strip_slashes_and_dots(self) -> None:
        assert normalize_dirname("/a/./b/") == "a/b"

    def test_backslash_to_forward_slash(self) -> None:
        assert normalize_dirname("a\\b") == "a/b"

    def test_double_dot_rejected(self) -> None:
        with pytest.raises(InvalidPath):
            normalize_dirname("a/../b")

    def test_null_byte_rejected(self) -> None:
        with pytest.raises(InvalidPath):
            normalize_dirname("a\0")


class TestJoinAndSplit:
    def test_join_root(self) -> None:
        assert join_path("", "b", folder=True) == "b/"
        assert join_path("", "a.txt") == "a.txt"

    def test_join_nested(self) -> None:
        assert join_path("a/b", "c", folder=True) == "a/b/c/"
        assert join_path("a/b", "c.txt") == "a/b/c.txt"

    def test_split_folder(self) -> None:
        assert split_path("a/b/") == ("a", "b")
        assert split_path("b/") == ("", "b")

    def test_split_file(self) -> None:
        assert split_path("a/b/c.txt") == ("a/b", "c.txt")
        assert split_path("c.txt") == ("", "c.txt")

    def test_is_folder_path(self) -> None:
        assert is_folder_path("a/")
        assert not is_folder_path("a")

    def test_folder_of(self) -> None:
        assert folder_of("a/b") == "a/b/"


class TestHierarchy:
    def test_depth_orders_deeper_first(self) -> None:
        paths = ["a/", "a/b/c/", "a/b/"]
        assert sorted(paths, key=path_depth, reverse=True) == ["a/b/c/", "a/b/", "a/"]

    def test_ancestors(self) -> None:
        assert ancestors("a/b/c.txt") == ["a/", "a/b/"]
        assert ancestors("a/b/") == ["a/"]
        assert ancestors("top.txt") == []

    def test_relative_to(self) -> None:
        assert relative_to("a/b/c.txt", "a") == "b/c.txt"
        assert relative_to("a/b/c.txt", "") == "a/b/c.txt"

    def test_relative_to_requires_whole_segment(self) -> None:
        assert relative_to("ab/c.txt", "a") == "ab/c.txt"
