"""``trindade run``: resolve an app import string and serve it."""

import argparse
import importlib
import os
import sys

from trindade.app import App
from trindade.errors import ConfigurationError
from trindade.plugins import load_plugins


def resolve_app(import_string: str) -> App:
    """Resolve ``"module:attribute"`` to an App.

    The attribute defaults to ``app``. A callable that is not an App is
    treated as a factory and called with no arguments.
    """
    module_path, _, attr_name = import_string.partition(":")
    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or "app")

    if callable(obj) and not isinstance(obj, App):
        obj = obj()
    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a trindade App"
        raise TypeError(msg)
    return obj


def run_app(args: argparse.Namespace) -> int:
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        app = resolve_app(args.app)
        load_plugins(app)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    app.run(args.host, args.port)
    return 0
