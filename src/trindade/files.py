"""File storage under the uploads directory.

Relative paths resolve against the storage root; absolute paths are
used as given.
"""

import logging
import mimetypes
import shutil
import uuid
from pathlib import Path
from typing import Any

from trindade.http.forms import UploadFile
from trindade.http.response import Response, text_response

logger = logging.getLogger("trindade.files")


class FileStorage:
    __slots__ = ("_root",)

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path(self, path: str | Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self._root / path

    def upload(self, file: UploadFile | None, directory: str = "") -> dict[str, Any] | None:
        """Store *file* under a unique name; ``None`` when nothing was sent."""
        if file is None or not file.filename:
            return None
        target_dir = self._root / directory.strip("/")
        target_dir.mkdir(parents=True, exist_ok=True)
        extension = file.extension
        name = uuid.uuid4().hex + (f".{extension}" if extension else "")
        target = file.save(target_dir / name)
        logger.info("Stored upload %s as %s", file.filename, target)
        return {
            "name": file.filename,
            "path": str(target),
            "relative": str(target.relative_to(self._root)),
            "size": file.size,
            "type": file.content_type,
            "extension": extension,
        }

    def download(self, path: str | Path, filename: str | None = None) -> Response:
        """Attachment response for *path*; 404 text when it does not exist."""
        target = self.path(path)
        if not target.is_file():
            return text_response("File not found", status=404)
        name = filename or target.name
        return Response(body=target.read_bytes(), content_type=self.mime_type(target)).with_header(
            "Content-Disposition", f'attachment; filename="{name}"'
        )

    def delete(self, path: str | Path) -> bool:
        target = self.path(path)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def exists(self, path: str | Path) -> bool:
        return self.path(path).is_file()

    def size(self, path: str | Path) -> int:
        target = self.path(path)
        return target.stat().st_size if target.is_file() else 0

    def extension(self, path: str | Path) -> str:
        return Path(path).suffix.lstrip(".")

    def mime_type(self, path: str | Path) -> str:
        return mimetypes.guess_type(str(path))[0] or "application/octet-stream"

    def move(self, source: str | Path, destination: str | Path) -> bool:
        target = self.path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(self.path(source), target)
        return True

    def copy(self, source: str | Path, destination: str | Path) -> bool:
        target = self.path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.path(source), target)
        return True

    def read(self, path: str | Path) -> str | None:
        target = self.path(path)
        return target.read_text(encoding="utf-8") if target.is_file() else None

    def write(self, path: str | Path, content: str) -> bool:
        target = self.path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return True

    def append(self, path: str | Path, content: str) -> bool:
        target = self.path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(content)
        return True
