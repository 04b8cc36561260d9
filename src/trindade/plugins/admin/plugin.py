"""Administration panel mounted under ``/admin``.

Every page except login requires an ``admin_user`` in the session;
without one the request is redirected to the login form. State-changing
requests must carry the session CSRF token, either as the ``_token``
form field or the ``X-CSRF-Token`` header.
"""

from __future__ import annotations

import functools
import logging
import platform
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from trindade.errors import HTTPError, NotFound
from trindade.plugins import Plugin
from trindade.security import hash_password, needs_rehash, verify_password
from trindade.utils import format_file_size, is_valid_email

if TYPE_CHECKING:
    from trindade.context import Context
    from trindade.data import Database
    from trindade.http import Response
    from trindade.routing import Router

logger = logging.getLogger("trindade.plugins.admin")

USERS_TABLE = "admin_users"
SETTINGS_TABLE = "admin_settings"

ROLES = ("admin", "editor", "viewer")

DEFAULT_MENU: dict[str, dict[str, str]] = {
    "dashboard": {"icon": "home", "title": "Dashboard", "path": "/"},
    "users": {"icon": "users", "title": "Utilizadores", "path": "/users"},
    "settings": {"icon": "settings", "title": "Configurações", "path": "/settings"},
}

_USER_COLUMNS = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "name": "TEXT NOT NULL",
    "email": "TEXT NOT NULL UNIQUE",
    "password": "TEXT NOT NULL",
    "role": "TEXT NOT NULL DEFAULT 'admin'",
    "active": "INTEGER NOT NULL DEFAULT 1",
    "last_login": "TEXT",
    "created_at": "TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP",
    "updated_at": "TEXT",
}

_SETTINGS_COLUMNS = {
    "name": "TEXT PRIMARY KEY",
    "value": "TEXT",
    "updated_at": "TEXT",
}

# Columns safe to hand to templates and JSON.
_PUBLIC_COLUMNS = ("id", "name", "email", "role", "active", "last_login", "created_at", "updated_at")


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def create_user(db: Database, name: str, email: str, password: str, role: str = "admin") -> int:
    """Insert an admin user with a hashed password. Returns its id."""
    return db.insert(
        USERS_TABLE,
        {"name": name, "email": email, "password": hash_password(password), "role": role},
    )


class AdminPlugin(Plugin):
    """Login, dashboard, user management and settings pages.

    Options: ``title`` (page title suffix) and ``menu`` (mapping of
    ``key -> {icon, title, path}`` shown in the sidebar).
    """

    name: ClassVar[str] = "admin"
    description: ClassVar[str] = "Administration panel"
    default_prefix: ClassVar[str] = "/admin"
    package: ClassVar[str] = "trindade.plugins.admin"

    @property
    def title(self) -> str:
        return self.options.get("title", "Painel Admin")

    @property
    def menu(self) -> dict[str, dict[str, str]]:
        return self.options.get("menu", DEFAULT_MENU)

    def url(self, path: str = "") -> str:
        return (self.prefix + path) or "/"

    # -- Plugin hooks --

    def boot(self, app: Any) -> None:
        super().boot(app)
        app.on_startup(lambda: self.install(app.db))

    def install(self, db: Database) -> None:
        db.create(USERS_TABLE, _USER_COLUMNS)
        db.create(SETTINGS_TABLE, _SETTINGS_COLUMNS)

    def register(self, router: Router) -> None:
        router.group(self.prefix, self._routes, not_found=self.not_found)

    def _routes(self, router: Router) -> None:
        guard = self._guard
        router.on("GET /login", self.show_login)
        router.on("POST /login", self.login)
        router.on("GET /logout", self.logout)

        router.on("GET /", guard(self.dashboard))

        router.on("GET /users", guard(self.list_users))
        router.on("GET /users/create", guard(self.create_user_form))
        router.on("POST /users", guard(self.store_user))
        router.on("GET /users/:id", guard(self.edit_user_form))
        router.on("POST /users/:id", guard(self.update_user))
        router.on("DELETE /users/:id", guard(self.delete_user))

        router.on("GET /settings", guard(self.show_settings))
        router.on("POST /settings", guard(self.update_settings))

        router.on("GET /api/stats", guard(self.api_stats))

    def _guard(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(handler)
        def guarded(ctx: Context, *args: str) -> Any:
            if not ctx.session.get("admin_user"):
                return ctx.redirect(self.url("/login"))
            return handler(ctx, *args)

        return guarded

    def _check_csrf(self, ctx: Context) -> None:
        token = ctx.post("_token") or ctx.header("x-csrf-token")
        if not ctx.session.validate_csrf_token(token):
            raise HTTPError(status=403, detail="Invalid CSRF token")

    def _page(self, ctx: Context, view: str, title: str, data: dict[str, Any] | None = None) -> Response:
        return ctx.view(
            view,
            {
                "title": f"{title} - {self.title}",
                "menu": self.menu,
                "prefix": self.prefix,
                "admin_user": ctx.session.get("admin_user"),
                "flash": ctx.session.get_all_flash(),
                **(data or {}),
            },
        )

    # -- Authentication --

    def show_login(self, ctx: Context) -> Response:
        if ctx.session.get("admin_user"):
            return ctx.redirect(self.url())
        return ctx.view(
            "admin/login",
            {"title": f"Login - {self.title}", "prefix": self.prefix, "error": ctx.session.get_flash("error")},
        )

    def login(self, ctx: Context) -> Response:
        self._check_csrf(ctx)
        email = (ctx.post("email") or "").strip()
        password = ctx.post("password") or ""

        user = ctx.db.get(USERS_TABLE, {"email": email, "active": 1}) if email else None
        if user is None or not verify_password(password, user["password"]):
            logger.info("Failed admin login", extra={"context": {"email": email}})
            ctx.session.flash("error", "Credenciais inválidas")
            return ctx.redirect(self.url("/login"))

        ctx.session.regenerate()
        ctx.session.set("admin_user", {k: user[k] for k in ("id", "name", "email", "role")})
        values = {"last_login": _now()}
        if needs_rehash(user["password"]):
            values["password"] = hash_password(password)
        ctx.db.update(USERS_TABLE, values, {"id": user["id"]})
        logger.info("Admin login", extra={"context": {"user_id": user["id"]}})
        return ctx.redirect(self.url())

    def logout(self, ctx: Context) -> Response:
        ctx.session.remove("admin_user")
        ctx.session.regenerate()
        return ctx.redirect(self.url("/login"))

    # -- Dashboard --

    def stats(self, ctx: Context) -> dict[str, Any]:
        return {
            "users": ctx.db.count(USERS_TABLE),
            "disk_usage": self._disk_usage(ctx.config.path("storage")),
            "python_version": platform.python_version(),
            "server": f"trindade ({platform.system()})",
        }

    @staticmethod
    def _disk_usage(path: Path) -> dict[str, Any]:
        while not path.exists() and path != path.parent:
            path = path.parent
        usage = shutil.disk_usage(path)
        return {
            "total": format_file_size(usage.total),
            "used": format_file_size(usage.used),
            "free": format_file_size(usage.free),
            "percent": round(usage.used / usage.total * 100) if usage.total else 0,
        }

    def dashboard(self, ctx: Context) -> Response:
        return self._page(ctx, "admin/dashboard", "Dashboard", {"stats": self.stats(ctx)})

    def api_stats(self, ctx: Context) -> Response:
        return ctx.json(self.stats(ctx))

    # -- Users --

    def _find_user(self, ctx: Context, user_id: str) -> dict[str, Any]:
        user = ctx.db.get(USERS_TABLE, {"id": int(user_id)}, _PUBLIC_COLUMNS) if user_id.isdigit() else None
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def list_users(self, ctx: Context) -> Response:
        users = ctx.db.select(USERS_TABLE, columns=_PUBLIC_COLUMNS, order="id")
        return self._page(ctx, "admin/users/index", "Utilizadores", {"users": users})

    def create_user_form(self, ctx: Context) -> Response:
        return self._page(ctx, "admin/users/form", "Novo utilizador", {"user": None, "roles": ROLES})

    def _validate(self, ctx: Context, *, password_required: bool, user_id: int | None = None) -> list[str]:
        errors: list[str] = []
        name = (ctx.post("name") or "").strip()
        email = (ctx.post("email") or "").strip()
        password = ctx.post("password") or ""
        if not name:
            errors.append("O nome é obrigatório")
        if not is_valid_email(email):
            errors.append("Email inválido")
        else:
            other = ctx.db.get(USERS_TABLE, {"email": email}, ("id",))
            if other is not None and other["id"] != user_id:
                errors.append("Email já registado")
        if password_required and not password:
            errors.append("A palavra-passe é obrigatória")
        if password and len(password) < 8:
            errors.append("A palavra-passe deve ter pelo menos 8 caracteres")
        if (ctx.post("role") or "admin") not in ROLES:
            errors.append("Perfil inválido")
        return errors

    def store_user(self, ctx: Context) -> Response:
        self._check_csrf(ctx)
        errors = self._validate(ctx, password_required=True)
        if errors:
            ctx.session.flash("error", "; ".join(errors))
            return ctx.redirect(self.url("/users/create"))
        user_id = create_user(
            ctx.db,
            ctx.post("name").strip(),
            ctx.post("email").strip(),
            ctx.post("password"),
            ctx.post("role") or "admin",
        )
        logger.info("Admin user created", extra={"context": {"user_id": user_id}})
        ctx.session.flash("success", "Utilizador criado")
        return ctx.redirect(self.url("/users"))

    def edit_user_form(self, ctx: Context, user_id: str) -> Response:
        user = self._find_user(ctx, user_id)
        return self._page(ctx, "admin/users/form", "Editar utilizador", {"user": user, "roles": ROLES})

    def update_user(self, ctx: Context, user_id: str) -> Response:
        self._check_csrf(ctx)
        user = self._find_user(ctx, user_id)
        errors = self._validate(ctx, password_required=False, user_id=user["id"])
        if errors:
            ctx.session.flash("error", "; ".join(errors))
            return ctx.redirect(self.url(f"/users/{user['id']}"))

        values: dict[str, Any] = {
            "name": ctx.post("name").strip(),
            "email": ctx.post("email").strip(),
            "role": ctx.post("role") or user["role"],
            "active": 1 if ctx.post("active") else 0,
            "updated_at": _now(),
        }
        if ctx.post("password"):
            values["password"] = hash_password(ctx.post("password"))
        ctx.db.update(USERS_TABLE, values, {"id": user["id"]})
        ctx.session.flash("success", "Utilizador atualizado")
        return ctx.redirect(self.url("/users"))

    def delete_user(self, ctx: Context, user_id: str) -> Response:
        self._check_csrf(ctx)
        user = self._find_user(ctx, user_id)
        if user["id"] == ctx.session.get("admin_user", {}).get("id"):
            return ctx.json({"error": "Não pode remover a sua própria conta"}, 400)
        ctx.db.delete(USERS_TABLE, {"id": user["id"]})
        logger.info("Admin user deleted", extra={"context": {"user_id": user["id"]}})
        return ctx.json({"deleted": user["id"]})

    # -- Settings --

    def settings(self, ctx: Context) -> dict[str, str]:
        return {row["name"]: row["value"] for row in ctx.db.select(SETTINGS_TABLE, order="name")}

    def show_settings(self, ctx: Context) -> Response:
        return self._page(ctx, "admin/settings", "Configurações", {"settings": self.settings(ctx)})

    def update_settings(self, ctx: Context) -> Response:
        self._check_csrf(ctx)
        now = _now()
        with ctx.db.transaction():
            for name, value in ctx.request.form.items():
                if name.startswith("_"):
                    continue
                ctx.db.execute(
                    f"INSERT INTO {SETTINGS_TABLE} (name, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(name) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                    name,
                    value,
                    now,
                )
        ctx.session.flash("success", "Configurações guardadas")
        return ctx.redirect(self.url("/settings"))

    # -- Fallback --

    def not_found(self, ctx: Context) -> Response:
        return ctx.view(
            "admin/404",
            {"title": f"Página não encontrada - {self.title}", "prefix": self.prefix},
            status=404,
        )
