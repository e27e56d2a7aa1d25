"""Tests for ObjectIndex."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from bucket_index._errors import BucketIndexError, DuplicatePath, NotFound
from bucket_index._filters import eq, starts_with
from bucket_index._index import LISTING_ORDER, ObjectIndex
from bucket_index._models import NewObject, ObjectType, StorageClass

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _folder(path: str) -> NewObject:
    return NewObject(type=ObjectType.FOLDER, path=path)


def _file(path: str, size: int | None = None) -> NewObject:
    return NewObject(type=ObjectType.FILE, path=path, size=size, storage_class=StorageClass.STANDARD)


class TestInsert:
    def test_derives_dirname_and_basename(self, index: ObjectIndex) -> None:
        record = index.insert(_folder("a/b/"))
        assert record.dirname == "a"
        assert record.basename == "b"
        assert record.type is ObjectType.FOLDER
        assert record.created_at is not None
        assert record.updated_at == record.created_at

    def test_ids_increase(self, index: ObjectIndex) -> None:
        first = index.insert(_file("a.txt"))
        second = index.insert(_file("b.txt"))
        assert second.id > first.id

    def test_duplicate_path(self, index: ObjectIndex) -> None:
        index.insert(_folder("a/"))
        with pytest.raises(DuplicatePath) as exc_info:
            index.insert(_folder("a/"))
        assert exc_info.value.path == "a/"
        assert index.count() == 1

    def test_ids_not_reused_after_delete(self, index: ObjectIndex) -> None:
        first = index.insert(_file("a.txt"))
        index.destroy_many([first.id])
        assert index.insert(_file("a.txt")).id > first.id


class TestFind:
    def test_find_one_missing(self, index: ObjectIndex) -> None:
        assert index.find_one(eq("path", "nope")) is None

    def test_listing_order(self, index: ObjectIndex) -> None:
        index.insert(_file("b.txt"))
        index.insert(_folder("z/"))
        index.insert(_file("B.txt"))
        index.insert(_folder("a/"))
        paths = [r.path for r in index.find_all(eq("dirname", ""), order=LISTING_ORDER)]
        # Folders first, then byte order (uppercase before lowercase).
        assert paths == ["a/", "z/", "B.txt", "b.txt"]

    def test_same_basename_ordered_by_id(self, index: ObjectIndex) -> None:
        index.insert(_folder("x/"))
        index.insert(_folder("y/"))
        first = index.insert(_file("x/same.txt"))
        second = index.insert(_file("y/same.txt"))
        rows = index.find_all(eq("basename", "same.txt"))
        assert [r.id for r in rows] == [first.id, second.id]

    def test_limit(self, index: ObjectIndex) -> None:
        for name in "abc":
            index.insert(_file(f"{name}.txt"))
        assert len(index.find_all(limit=2)) == 2

    def test_starts_with_is_case_sensitive(self, index: ObjectIndex) -> None:
        index.insert(_folder("A/"))
        index.insert(_folder("a/"))
        index.insert(_file("a/x.txt"))
        assert [r.path for r in index.find_all(starts_with("path", "a/"))] == ["a/", "a/x.txt"]

    def test_starts_with_treats_wildcards_literally(self, index: ObjectIndex) -> None:
        index.insert(_folder("a_/"))
        index.insert(_folder("ab/"))
        assert [r.path for r in index.find_all(starts_with("path", "a_/"))] == ["a_/"]

    def test_get_many_keeps_request_order(self, index: ObjectIndex) -> None:
        a = index.insert(_file("a.txt"))
        b = index.insert(_file("b.txt"))
        assert [r.id for r in index.get_many([b.id, 999, a.id])] == [b.id, a.id]


class TestUpdate:
    def test_sets_content_metadata(self, index: ObjectIndex) -> None:
        record = index.insert(_file("a.txt"))
        updated = index.update(record.id, size=10, last_modified=NOW)
        assert updated.size == 10
        assert updated.last_modified == NOW
        assert updated.id == record.id

    def test_missing(self, index: ObjectIndex) -> None:
        with pytest.raises(NotFound) as exc_info:
            index.update(42, size=1)
        assert exc_info.value.ids == (42,)

    def test_path_not_updatable(self, index: ObjectIndex) -> None:
        record = index.insert(_file("a.txt"))
        with pytest.raises(ValueError):
            index.update(record.id, path="b.txt")


class TestUpsertAndReconcile:
    def test_upsert_keeps_id(self, index: ObjectIndex) -> None:
        record = index.insert(_file("a.txt"))
        refreshed = index.upsert(_file("a.txt", size=5))
        assert refreshed.id == record.id
        assert refreshed.size == 5

    def test_upsert_inserts(self, index: ObjectIndex) -> None:
        assert index.upsert(_file("new.txt")).path == "new.txt"

    def test_vanished_after_write_raises(self, index: ObjectIndex, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(index, "find_one", lambda where: None)
        with pytest.raises(BucketIndexError, match="disappeared"):
            index.upsert(_file("a.txt"))

    def test_reconcile(self, index: ObjectIndex) -> None:
        kept = index.insert(_folder("keep/"))
        index.insert(_file("gone.txt"))
        upserted, removed = index.reconcile([_folder("keep/"), _file("keep/new.txt", size=3)])
        assert (upserted, removed) == (2, 1)
        assert index.get(kept.id) is not None
        assert sorted(r.path for r in index.find_all()) == ["keep/", "keep/new.txt"]

    def test_reconcile_empty_clears(self, index: ObjectIndex) -> None:
        index.insert(_file("a.txt"))
        assert index.reconcile([]) == (0, 1)
        assert index.count() == 0


class TestDestroy:
    def test_destroy_many(self, index: ObjectIndex) -> None:
        a = index.insert(_file("a.txt"))
        b = index.insert(_file("b.txt"))
        index.insert(_file("c.txt"))
        assert index.destroy_many([a.id, b.id]) == 2
        assert index.count() == 1

    def test_destroy_nothing(self, index: ObjectIndex) -> None:
        assert index.destroy_many([]) == 0
