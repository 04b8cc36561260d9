"""Tests for trindade.files: upload storage and file helpers."""

from pathlib import Path

import pytest

from trindade.files import FileStorage
from trindade.http.forms import UploadFile


@pytest.fixture
def storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path / "uploads")


class TestUpload:
    def test_stores_under_unique_name(self, storage: FileStorage) -> None:
        upload = UploadFile(filename="Photo.PNG", content_type="image/png", content=b"\x89PNG")
        info = storage.upload(upload, "avatars")
        assert info is not None
        assert info["name"] == "Photo.PNG"
        assert info["extension"] == "png"
        assert info["size"] == 4
        assert info["type"] == "image/png"
        assert info["relative"].startswith("avatars/")
        assert info["relative"].endswith(".png")
        assert Path(info["path"]).read_bytes() == b"\x89PNG"

    def test_two_uploads_do_not_collide(self, storage: FileStorage) -> None:
        upload = UploadFile(filename="a.txt", content_type="text/plain", content=b"x")
        first = storage.upload(upload)
        second = storage.upload(upload)
        assert first is not None and second is not None
        assert first["path"] != second["path"]

    def test_nothing_sent(self, storage: FileStorage) -> None:
        assert storage.upload(None) is None
        assert storage.upload(UploadFile(filename="", content_type="", content=b"")) is None


class TestHelpers:
    def test_write_read_append(self, storage: FileStorage) -> None:
        assert storage.write("notes/a.txt", "one")
        storage.append("notes/a.txt", " two")
        assert storage.read("notes/a.txt") == "one two"
        assert storage.read("notes/missing.txt") is None
        assert storage.exists("notes/a.txt")
        assert storage.size("notes/a.txt") == 7
        assert storage.size("notes/missing.txt") == 0

    def test_copy_move_delete(self, storage: FileStorage) -> None:
        storage.write("a.txt", "x")
        storage.copy("a.txt", "backup/a.txt")
        storage.move("a.txt", "moved/b.txt")
        assert not storage.exists("a.txt")
        assert storage.read("backup/a.txt") == "x"
        assert storage.delete("moved/b.txt")
        assert not storage.delete("moved/b.txt")

    def test_absolute_paths_used_as_given(self, storage: FileStorage, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        storage.write(outside, "abs")
        assert outside.read_text() == "abs"

    def test_extension_and_mime(self, storage: FileStorage) -> None:
        assert storage.extension("a/b.tar.gz") == "gz"
        assert storage.mime_type("x.json") == "application/json"
        assert storage.mime_type("x.unknownext") == "application/octet-stream"


class TestDownload:
    def test_attachment(self, storage: FileStorage) -> None:
        storage.write("report.csv", "a,b")
        response = storage.download("report.csv", "data.csv")
        assert response.status == 200
        assert response.body == b"a,b"
        assert response.content_type == "text/csv"
        assert response.header("content-disposition") == 'attachment; filename="data.csv"'

    def test_missing(self, storage: FileStorage) -> None:
        response = storage.download("nope.pdf")
        assert response.status == 404
        assert response.text == "File not found"
