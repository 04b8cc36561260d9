"""``trindade install {admin,blog}``: create a built-in plugin's tables.

Installing the admin panel also creates the first admin user; missing
details are prompted for. The plugin is then enabled in the config file.
"""

import argparse
import getpass
import sys
from pathlib import Path

from trindade.app import App
from trindade.cli._plugin import project_config
from trindade.data import DataError
from trindade.errors import ConfigurationError
from trindade.plugins import load_builtin
from trindade.utils import is_valid_email


def _ask(prompt: str, default: str | None = None, *, secret: bool = False) -> str:
    if default:
        return default
    reader = getpass.getpass if secret else input
    return reader(f"{prompt}: ").strip()


def install_plugin(args: argparse.Namespace) -> int:
    try:
        config = project_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    app = App(config)
    plugin = load_builtin(args.plugin)()
    try:
        plugin.install(app.db)
        if args.plugin == "admin":
            if not _create_admin(app, args):
                return 1
    except DataError as exc:
        print(f"Error installing {args.plugin}: {exc}", file=sys.stderr)
        return 1
    finally:
        app.db.close()

    _enable_in_config(Path(args.config), args.plugin)
    print(f"Plugin {args.plugin} installed")
    return 0


def _create_admin(app: App, args: argparse.Namespace) -> bool:
    from trindade.plugins.admin import create_user
    from trindade.plugins.admin.plugin import USERS_TABLE

    name = _ask("Admin name", args.name)
    email = _ask("Admin email", args.email)
    password = _ask("Admin password", args.password, secret=True)

    if not name or not is_valid_email(email) or len(password) < 8:
        print("Error: a name, a valid email and a password of 8+ characters are required", file=sys.stderr)
        return False
    if app.db.has(USERS_TABLE, {"email": email}):
        print(f"Admin user {email} already exists")
        return True
    create_user(app.db, name, email, password)
    print(f"Admin user {email} created")
    return True


def _enable_in_config(path: Path, name: str) -> None:
    if not path.exists():
        return
    text = path.read_text(encoding="utf-8")
    if f"[plugins.{name}]" in text:
        return
    path.write_text(text.rstrip("\n") + f"\n\n[plugins.{name}]\nenabled = true\n", encoding="utf-8")
