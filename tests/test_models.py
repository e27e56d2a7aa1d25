"""Tests for the data model."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone

import pytest

from bucket_index._models import (
    NewObject,
    ObjectDetail,
    ObjectHeaders,
    ObjectPage,
    ObjectRecord,
    ObjectType,
    Progress,
    Settings,
    StorageClass,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _record(id: int = 1, path: str = "a/b.txt") -> ObjectRecord:
    return ObjectRecord(id=id, type=ObjectType.FILE, path=path, dirname="a", basename="b.txt")


class TestObjectType:
    def test_folders_sort_first(self) -> None:
        assert ObjectType.FOLDER < ObjectType.FILE
        assert sorted([ObjectType.FILE, ObjectType.FOLDER]) == [ObjectType.FOLDER, ObjectType.FILE]


class TestStorageClass:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("GLACIER", StorageClass.GLACIER),
            ("STANDARD_IA", StorageClass.STANDARD_IA),
            ("EXPRESS_ONEZONE", StorageClass.EXPRESS_ONEZONE),
            ("OUTPOSTS", StorageClass.OUTPOSTS),
            (None, StorageClass.STANDARD),
            ("", StorageClass.STANDARD),
            ("SOMETHING_NEW", StorageClass.STANDARD),
        ],
    )
    def test_parse(self, value: str | None, expected: StorageClass) -> None:
        assert StorageClass.parse(value) is expected

    def test_unknown_value_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="bucket_index._models"):
            assert StorageClass.parse("SOMETHING_NEW") is StorageClass.STANDARD
        assert "SOMETHING_NEW" in caplog.text


class TestObjectRecord:
    def test_frozen(self) -> None:
        record = _record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.size = 3  # type: ignore[misc]

    def test_is_folder(self) -> None:
        assert not _record().is_folder
        folder = ObjectRecord(id=2, type=ObjectType.FOLDER, path="a/", dirname="", basename="a")
        assert folder.is_folder

    def test_to_dict(self) -> None:
        record = dataclasses.replace(_record(), size=3, storage_class=StorageClass.GLACIER, last_modified=NOW)
        data = record.to_dict()
        assert data["type"] == "FILE"
        assert data["storage_class"] == "GLACIER"
        assert data["last_modified"] == NOW.isoformat()
        assert data["created_at"] is None


class TestNewObject:
    @pytest.mark.parametrize(
        ("path", "dirname", "basename"),
        [
            ("a.txt", "", "a.txt"),
            ("a/b/c.txt", "a/b", "c.txt"),
            ("a/", "", "a"),
            ("a/b/", "a", "b"),
        ],
    )
    def test_derived_parts(self, path: str, dirname: str, basename: str) -> None:
        obj = NewObject(type=ObjectType.FILE, path=path)
        assert (obj.dirname, obj.basename) == (dirname, basename)


class TestObjectPage:
    def test_cursor_is_last_id(self) -> None:
        page = ObjectPage(items=[_record(1), _record(7, "a/c.txt")], has_next_page=True)
        assert page.cursor == 7

    def test_empty_page(self) -> None:
        assert ObjectPage(items=[], has_next_page=False).cursor is None


class TestObjectDetail:
    def test_to_dict_includes_headers(self) -> None:
        headers = ObjectHeaders(content_type="image/png", content_length=3, last_modified=NOW, etag='"x"')
        data = ObjectDetail(record=_record(), headers=headers, url="https://example.test/a").to_dict()
        assert data["url"] == "https://example.test/a"
        assert data["object_headers"]["content_type"] == "image/png"
        assert data["object_headers"]["etag"] == '"x"'

    def test_no_url_key_without_url(self) -> None:
        headers = ObjectHeaders(content_type=None, content_length=0, last_modified=NOW)
        assert "url" not in ObjectDetail(record=_record(), headers=headers).to_dict()


class TestProgress:
    @pytest.mark.parametrize(
        ("current", "total", "ratio"),
        [(0, 10, 0.0), (5, 10, 0.5), (10, 10, 1.0), (12, 10, 1.0), (0, 0, 1.0)],
    )
    def test_ratio(self, current: float, total: float, ratio: float) -> None:
        assert Progress(current=current, total=total).ratio == ratio


class TestSettings:
    def test_secret_hidden(self) -> None:
        settings = Settings(access_key_id="AKIA", secret_access_key="shh", bucket="b")
        assert "shh" not in repr(settings)
        assert "secret_access_key" not in settings.to_dict()

    def test_is_configured(self) -> None:
        assert Settings(bucket="b").is_configured
        assert not Settings(access_key_id="AKIA").is_configured
