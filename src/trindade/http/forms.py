"""Form body parsing: URL-encoded via the stdlib, multipart via python-multipart."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file received in a ``multipart/form-data`` body, held in memory."""

    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lstrip(".").lower()

    def save(self, path: str | Path) -> Path:
        """Write the content to *path*, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.content)
        return path


class FormData(Mapping[str, str]):
    """Parsed form fields plus uploaded files.

    ``form[name]`` returns the first value of a text field;
    ``get_list`` returns every value (checkbox groups, multi-selects);
    ``files`` maps field names to ``UploadFile``.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        self._data = data or {}
        self._files = files or {}

    @property
    def files(self) -> Mapping[str, UploadFile]:
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData({dict(self.items())!r}, files={list(self._files)!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))


def parse_form(body: bytes, content_type: str | None) -> FormData:
    """Parse a request body according to its ``Content-Type``.

    Bodies that are neither URL-encoded nor multipart give an empty
    ``FormData``; multipart bodies without a boundary raise ``ValueError``.
    """
    if not body or not content_type:
        return FormData()

    kind = content_type.split(";", 1)[0].strip().lower()
    if kind == "application/x-www-form-urlencoded":
        return FormData(parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    if kind == "multipart/form-data":
        return _parse_multipart(body, content_type)
    return FormData()


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "multipart/form-data body without a boundary"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}

    headers: dict[str, str] = {}
    header_name = bytearray()
    header_value = bytearray()
    content = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        content.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_name.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_name.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_name.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        content.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(headers.get("content-disposition", ""))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is None:
            data.setdefault(field_name, []).append(content.decode("utf-8", errors="replace"))
            return
        if not filename:
            # Empty file input
            return
        files[field_name] = UploadFile(
            filename=Path(filename.decode("utf-8")).name,
            content_type=headers.get("content-type", "application/octet-stream"),
            content=bytes(content),
        )

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
        },
    )
    parser.write(body)
    parser.finalize()
    return FormData(data, files)
