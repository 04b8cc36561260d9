"""Row-to-dataclass mapping.

SQLite hands back loosely typed values; fields annotated ``int``,
``float``, ``bool`` or ``str`` are coerced, everything else passes
through. Columns without a matching field are ignored.
"""

import dataclasses
import types
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

T = TypeVar("T")

_COERCE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: v.lower() in ("1", "true", "yes", "on") if isinstance(v, str) else bool(v),
    str: str,
}


def _targets(cls: type) -> dict[str, type | None]:
    hints = get_type_hints(cls)
    targets: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        hint = hints.get(f.name)
        if get_origin(hint) is types.UnionType:
            args = [a for a in get_args(hint) if a is not type(None)]
            hint = args[0] if len(args) == 1 else None
        targets[f.name] = hint if hint in _COERCE else None
    return targets


def _convert(value: Any, target: type | None) -> Any:
    if target is None or value is None or type(value) is target:
        return value
    return _COERCE[target](value)


def map_rows(cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    """Build one *cls* instance per row."""
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass"
        raise TypeError(msg)
    targets = _targets(cls)
    return [
        cls(**{k: _convert(v, targets[k]) for k, v in row.items() if k in targets})
        for row in rows
    ]


def map_row(cls: type[T], row: dict[str, Any]) -> T:
    return map_rows(cls, [row])[0]
