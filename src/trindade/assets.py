"""Versioned static asset URLs.

The first time an asset is requested, a copy named after the first
eight hex digits of its md5 is written next to it and recorded in
``manifest.json``; later calls answer from the manifest::

    assets = Assets("public")
    assets.css("css/app.css")  # "/css/app.3f2a9c1d.css"
"""

import hashlib
import json
import logging
import re
import shutil
from pathlib import Path

logger = logging.getLogger("trindade.assets")

_VERSIONABLE = re.compile(r"\.(js|css|jpg|jpeg|png|gif|svg|webp)$", re.IGNORECASE)

MANIFEST = "manifest.json"


class Assets:
    __slots__ = ("_manifest", "_public", "versioning")

    def __init__(self, public_dir: str | Path, versioning: bool = True) -> None:
        self._public = Path(public_dir)
        self.versioning = versioning
        self._manifest: dict[str, str] | None = None

    @property
    def manifest_path(self) -> Path:
        return self._public / MANIFEST

    def css(self, path: str) -> str:
        return self.url(path)

    def js(self, path: str) -> str:
        return self.url(path)

    def img(self, path: str) -> str:
        return self.url(path)

    def url(self, path: str) -> str:
        """Public URL for *path*, versioned when the file exists."""
        path = path.lstrip("/")
        if not self.versioning:
            return "/" + path

        manifest = self._load()
        if path in manifest:
            return manifest[path]

        source = self._public / path
        if not source.is_file() or not _VERSIONABLE.search(path):
            return "/" + path

        digest = hashlib.md5(source.read_bytes()).hexdigest()[:8]  # noqa: S324
        versioned = _VERSIONABLE.sub(lambda m: f".{digest}.{m.group(1)}", path)
        shutil.copyfile(source, self._public / versioned)
        manifest[path] = "/" + versioned
        self._save()
        logger.debug("Versioned asset %s -> %s", path, versioned)
        return manifest[path]

    def _load(self) -> dict[str, str]:
        if self._manifest is None:
            try:
                self._manifest = json.loads(self.manifest_path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                self._manifest = {}
            except ValueError:
                logger.warning("Ignoring unreadable asset manifest %s", self.manifest_path)
                self._manifest = {}
        return self._manifest

    def _save(self) -> None:
        self.manifest_path.write_text(json.dumps(self._manifest, indent=4), encoding="utf-8")
