"""Query string and URL-encoded body parameters."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Parsed ``a=1&b=2`` parameters.

    ``params[key]`` returns the first value; ``get_list`` returns all
    of them. Blank values are kept so ``?flag=`` is still present.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: str | bytes = "") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        self._raw = query_string
        self._data: dict[str, list[str]] = parse_qs(query_string, keep_blank_values=True)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    def __str__(self) -> str:
        return self._raw

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Value of *key* as an int, *default* when missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default
