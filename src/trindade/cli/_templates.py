"""Scaffolding templates: plain Python strings for ``trindade init`` and ``make:*``.

Simple ``str.format()`` substitution; literal braces are doubled.
"""

# ---------------------------------------------------------------------------
# trindade init
# ---------------------------------------------------------------------------

CONFIG_TOML = """\
# Trindade application configuration.

host = "127.0.0.1"
port = 8000
debug = true
secret_key = "{secret_key}"
timezone = "Europe/Lisbon"
locale = "pt"
log_level = "debug"

[paths]
public = "public"
storage = "storage"
logs = "storage/logs"
uploads = "storage/uploads"
views = "views"
lang = "lang"
plugins = "plugins"

[session]
name = "trindade_session"
lifetime = 7200

[cache]
driver = "file"
path = "storage/cache"
ttl = 3600

[database]
url = "sqlite:///storage/database.sqlite"

[mail]
host = "localhost"
port = 587
encryption = "tls"
from_address = "noreply@example.com"
from_name = "Trindade"
"""

# ---------------------------------------------------------------------------
# trindade make:controller
# ---------------------------------------------------------------------------

CONTROLLER_PY = """\
\"\"\"{title} controller.\"\"\"

from trindade import Context, Router


def index(ctx: Context):
    return ctx.view("{view}/index")


def register(router: Router) -> None:
    router.on("GET /{view}", index)
"""

RESOURCE_CONTROLLER_PY = """\
\"\"\"{title} controller with the seven resource actions.\"\"\"

from trindade import Context, Router


def index(ctx: Context):
    return ctx.view("{view}/index")


def create(ctx: Context):
    return ctx.view("{view}/create")


def store(ctx: Context):
    return ctx.redirect("/{view}")


def show(ctx: Context, item_id: str):
    return ctx.view("{view}/show", {{"id": item_id}})


def edit(ctx: Context, item_id: str):
    return ctx.view("{view}/edit", {{"id": item_id}})


def update(ctx: Context, item_id: str):
    return ctx.redirect("/{view}")


def destroy(ctx: Context, item_id: str):
    return ctx.redirect("/{view}")


def register(router: Router) -> None:
    def routes(r: Router) -> None:
        r.on("GET /", index)
        r.on("GET /create", create)
        r.on("POST /", store)
        r.on("GET /:id", show)
        r.on("GET /:id/edit", edit)
        r.on("PUT /:id", update)
        r.on("DELETE /:id", destroy)

    router.group("/{view}", routes)
"""

# ---------------------------------------------------------------------------
# trindade make:model
# ---------------------------------------------------------------------------

MODEL_PY = """\
\"\"\"{name} model, stored in the ``{table}`` table.\"\"\"

from dataclasses import dataclass

from trindade.data import Database

TABLE = "{table}"

COLUMNS = {{
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "created_at": "TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP",
    "updated_at": "TEXT",
}}


@dataclass(frozen=True, slots=True)
class {name}:
    id: int
    created_at: str
    updated_at: str | None = None


def create_table(db: Database) -> None:
    db.create(TABLE, COLUMNS)


def find(db: Database, item_id: int) -> {name} | None:
    return db.fetch_one({name}, f"SELECT * FROM {{TABLE}} WHERE id = ?", item_id)


def find_all(db: Database) -> list[{name}]:
    return db.fetch({name}, f"SELECT * FROM {{TABLE}} ORDER BY id")
"""

# ---------------------------------------------------------------------------
# trindade plugin create
# ---------------------------------------------------------------------------

PLUGIN_PY = """\
\"\"\"{title} plugin.\"\"\"

from trindade import Context, Router
from trindade.plugins import Plugin


class {cls}(Plugin):
    name = "{name}"
    description = "Description of the {title} plugin"
    version = "1.0.0"
    default_prefix = "/{name}"

    def register(self, router: Router) -> None:
        router.group(self.prefix, self.routes)

    def routes(self, router: Router) -> None:
        router.on("GET /", self.index)

    def index(self, ctx: Context):
        return ctx.text("{title} plugin")
"""

PLUGIN_TOML = """\
name = "{name}"
description = "Description of the {title} plugin"
version = "1.0.0"
enabled = true
"""

PLUGIN_README = """\
# {title} Plugin

Description of the {title} plugin.

## Enable / disable

```bash
trindade plugin enable {name}
trindade plugin disable {name}
```

Settings live in `plugins/{name}/plugin.toml`.
"""
