"""``trindade init``: write ``trindade.toml`` and create the project directories."""

import argparse
import secrets
import sys
from datetime import datetime
from pathlib import Path

from trindade.cli._templates import CONFIG_TOML

CONFIG_FILE = "trindade.toml"
MARKER_FILE = ".initialized"

DIRECTORIES = (
    "storage/cache",
    "storage/logs",
    "storage/uploads",
    "app/controllers",
    "app/models",
    "views",
    "lang",
    "public",
    "plugins",
)


def init_project(args: argparse.Namespace, root: Path | None = None) -> int:
    """Initialize the project in *root* (the working directory by default)."""
    root = root or Path.cwd()
    config_path = root / CONFIG_FILE

    if config_path.exists() and not args.force:
        print(f"Error: {CONFIG_FILE} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1

    config_path.write_text(CONFIG_TOML.format(secret_key=secrets.token_hex(32)), encoding="utf-8")
    print(f"Wrote {CONFIG_FILE}")

    for name in DIRECTORIES:
        directory = root / name
        if not directory.exists():
            directory.mkdir(parents=True)
            (directory / ".gitkeep").touch()
            print(f"Created {name}/")

    (root / MARKER_FILE).write_text(datetime.now().strftime("%Y-%m-%d %H:%M:%S"), encoding="utf-8")
    print()
    print("Project initialized. Next steps:")
    print("  trindade install admin    # optional admin panel")
    print("  trindade run main:app")
    return 0
