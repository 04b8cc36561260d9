"""``trindade make:controller`` and ``trindade make:model`` generators."""

import argparse
import re
import sys
from pathlib import Path

from trindade.cli._templates import CONTROLLER_PY, MODEL_PY, RESOURCE_CONTROLLER_PY

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def _words(name: str) -> list[str]:
    return [w.lower() for w in _WORD_BOUNDARY.sub("_", name).split("_") if w]


def class_name(name: str) -> str:
    """``blog_post`` or ``blogPost`` -> ``BlogPost``."""
    return "".join(w.capitalize() for w in _words(name))


def snake_name(name: str) -> str:
    return "_".join(_words(name))


def kebab_name(name: str) -> str:
    return "-".join(_words(name))


def table_name(name: str) -> str:
    """Plural snake-case table name: ``BlogPost`` -> ``blog_posts``."""
    snake = snake_name(name)
    if snake.endswith("y") and not snake.endswith(("ay", "ey", "oy", "uy")):
        return snake[:-1] + "ies"
    if snake.endswith(("s", "x", "ch", "sh")):
        return snake + "es"
    return snake + "s"


def _write(path: Path, content: str, *, force: bool, kind: str) -> int:
    if path.exists() and not force:
        print(f"Error: {kind} already exists: {path}. Use --force to overwrite.", file=sys.stderr)
        return 1
    path.parent.mkdir(parents=True, exist_ok=True)
    init = path.parent / "__init__.py"
    if not init.exists():
        init.touch()
    path.write_text(content, encoding="utf-8")
    print(f"Created {kind} {path}")
    return 0


def _valid(name: str) -> bool:
    if not _NAME.match(name):
        print(f"Error: invalid name {name!r}", file=sys.stderr)
        return False
    return True


def make_controller(args: argparse.Namespace, root: Path | None = None) -> int:
    if not _valid(args.name):
        return 1
    base = re.sub(r"_?[Cc]ontroller$", "", args.name) or args.name
    template = RESOURCE_CONTROLLER_PY if args.resource else CONTROLLER_PY
    content = template.format(title=class_name(base), view=kebab_name(base))
    path = (root or Path.cwd()) / "app" / "controllers" / f"{snake_name(base)}.py"
    return _write(path, content, force=args.force, kind="controller")


def make_model(args: argparse.Namespace, root: Path | None = None) -> int:
    if not _valid(args.name):
        return 1
    name = class_name(args.name)
    content = MODEL_PY.format(name=name, table=table_name(args.name))
    path = (root or Path.cwd()) / "app" / "models" / f"{snake_name(args.name)}.py"
    return _write(path, content, force=args.force, kind="model")
