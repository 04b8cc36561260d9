"""Case-insensitive, read-only request headers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only header mapping with case-insensitive names.

    Keys are stored lowercased. Repeated headers keep every value;
    ``headers[name]`` returns the first, ``get_all`` returns them all.
    """

    __slots__ = ("_values",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in pairs:
            values.setdefault(name.lower(), []).append(value)
        self._values = values

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        """Build from the ``headers`` list of an ASGI HTTP scope."""
        return cls((k.decode("latin-1"), v.decode("latin-1")) for k, v in raw)

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get_all(self, key: str) -> list[str]:
        return list(self._values.get(key.lower(), ()))
