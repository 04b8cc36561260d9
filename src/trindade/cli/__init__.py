"""Trindade CLI: project setup, code generators, plugins and the dev server.

Entry point registered as ``trindade`` in ``pyproject.toml``::

    [project.scripts]
    trindade = "trindade.cli:main"

Every command returns an exit code: 0 on success, 1 on failure.
"""

import argparse


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trindade",
        description="Trindade: a small web framework with routing, plugins and services.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- trindade init ----------------------------------------------------
    init_parser = subparsers.add_parser("init", help="Create config and project directories")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration")

    # -- trindade make:controller -----------------------------------------
    controller_parser = subparsers.add_parser("make:controller", help="Create a controller module")
    controller_parser.add_argument("name", help="Controller name (e.g. Post or PostController)")
    controller_parser.add_argument("--resource", action="store_true", help="Add the CRUD actions")
    controller_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    # -- trindade make:model ----------------------------------------------
    model_parser = subparsers.add_parser("make:model", help="Create a model module")
    model_parser.add_argument("name", help="Model name (e.g. Post)")
    model_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    # -- trindade plugin --------------------------------------------------
    plugin_parser = subparsers.add_parser("plugin", help="Manage project plugins")
    plugin_parser.add_argument("action", choices=("create", "enable", "disable", "remove"))
    plugin_parser.add_argument("name", help="Plugin name")
    plugin_parser.add_argument("--force", action="store_true", help="Overwrite or remove without asking")
    plugin_parser.add_argument("--config", default="trindade.toml", help="Config file")

    # -- trindade install -------------------------------------------------
    install_parser = subparsers.add_parser("install", help="Install a built-in plugin")
    install_parser.add_argument("plugin", choices=("admin", "blog"))
    install_parser.add_argument("--config", default="trindade.toml", help="Config file")
    install_parser.add_argument("--name", default=None, help="Admin user name")
    install_parser.add_argument("--email", default=None, help="Admin user email")
    install_parser.add_argument("--password", default=None, help="Admin user password")

    # -- trindade run -----------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the development server")
    run_parser.add_argument("app", help="Import string (e.g. main:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the ``trindade`` command."""
    parser = _parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "init":
        from trindade.cli._init import init_project

        return init_project(args)
    if args.command == "make:controller":
        from trindade.cli._make import make_controller

        return make_controller(args)
    if args.command == "make:model":
        from trindade.cli._make import make_model

        return make_model(args)
    if args.command == "plugin":
        from trindade.cli._plugin import plugin_command

        return plugin_command(args)
    if args.command == "install":
        from trindade.cli._install import install_plugin

        return install_plugin(args)

    from trindade.cli._run import run_app

    return run_app(args)
