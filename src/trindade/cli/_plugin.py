"""``trindade plugin {create,enable,disable,remove} NAME``.

Project plugins live in ``paths.plugins`` (``plugins/`` by default), one
directory each, holding ``__init__.py``, ``plugin.toml`` and a README.
Enable state is the ``enabled`` key of ``plugin.toml``.
"""

import argparse
import re
import shutil
import sys
from pathlib import Path

from trindade.cli._make import class_name, snake_name
from trindade.cli._templates import PLUGIN_PY, PLUGIN_README, PLUGIN_TOML
from trindade.config import AppConfig, load_config
from trindade.errors import ConfigurationError

_ENABLED_LINE = re.compile(r"^enabled\s*=.*$", re.MULTILINE)


def project_config(path: str | Path) -> AppConfig:
    """The project's config, or the defaults when *path* does not exist."""
    path = Path(path)
    if not path.exists():
        return AppConfig()
    return load_config(path)


def plugin_command(args: argparse.Namespace) -> int:
    try:
        config = project_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    name = snake_name(args.name)
    if not name:
        print(f"Error: invalid plugin name {args.name!r}", file=sys.stderr)
        return 1
    directory = config.path("plugins") / name

    if args.action == "create":
        return create_plugin(directory, name, force=args.force)
    if args.action == "remove":
        return remove_plugin(directory, name, force=args.force)
    return set_enabled(directory, name, enabled=args.action == "enable")


def create_plugin(directory: Path, name: str, *, force: bool = False) -> int:
    if directory.exists() and not force:
        print(f"Error: plugin {name!r} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1
    directory.mkdir(parents=True, exist_ok=True)
    values = {"name": name, "title": class_name(name), "cls": f"{class_name(name)}Plugin"}
    (directory / "__init__.py").write_text(PLUGIN_PY.format(**values), encoding="utf-8")
    (directory / "plugin.toml").write_text(PLUGIN_TOML.format(**values), encoding="utf-8")
    (directory / "README.md").write_text(PLUGIN_README.format(**values), encoding="utf-8")
    print(f"Plugin {name} created in {directory}")
    return 0


def set_enabled(directory: Path, name: str, *, enabled: bool) -> int:
    """Rewrite the ``enabled`` line of the plugin manifest, keeping the rest."""
    if not directory.is_dir():
        print(f"Error: plugin not found: {name}", file=sys.stderr)
        return 1
    manifest = directory / "plugin.toml"
    if not manifest.is_file():
        print(f"Error: plugin manifest not found: {manifest}", file=sys.stderr)
        return 1

    line = f"enabled = {'true' if enabled else 'false'}"
    text = manifest.read_text(encoding="utf-8")
    if _ENABLED_LINE.search(text):
        text = _ENABLED_LINE.sub(line, text, count=1)
    else:
        text = text.rstrip("\n") + "\n" + line + "\n"
    manifest.write_text(text, encoding="utf-8")
    print(f"Plugin {name} {'enabled' if enabled else 'disabled'}")
    return 0


def remove_plugin(directory: Path, name: str, *, force: bool = False) -> int:
    if not directory.is_dir():
        print(f"Error: plugin not found: {name}", file=sys.stderr)
        return 1
    if not force:
        print("This will remove the plugin and all its files.")
        answer = input("Are you sure? (y/n) [n]: ").strip().lower()
        if not answer.startswith("y"):
            print("Operation cancelled")
            return 1
    shutil.rmtree(directory)
    print(f"Plugin {name} removed")
    return 0
