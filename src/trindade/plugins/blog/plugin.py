"""Blog mounted under ``/blog``: post index, categories, posts and comments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from trindade.errors import HTTPError, NotFound
from trindade.plugins import Plugin
from trindade.utils import is_valid_email, slug

if TYPE_CHECKING:
    from trindade.context import Context
    from trindade.data import Database
    from trindade.http import Response
    from trindade.routing import Router

logger = logging.getLogger("trindade.plugins.blog")

CATEGORIES_TABLE = "blog_categories"
POSTS_TABLE = "blog_posts"
COMMENTS_TABLE = "blog_comments"

_CATEGORY_COLUMNS = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "name": "TEXT NOT NULL",
    "slug": "TEXT NOT NULL UNIQUE",
    "created_at": "TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP",
}

_POST_COLUMNS = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "category_id": "INTEGER REFERENCES blog_categories(id) ON DELETE SET NULL",
    "title": "TEXT NOT NULL",
    "slug": "TEXT NOT NULL UNIQUE",
    "excerpt": "TEXT",
    "content": "TEXT NOT NULL",
    "featured_image": "TEXT",
    "status": "TEXT NOT NULL DEFAULT 'draft'",
    "published_at": "TEXT",
    "created_at": "TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP",
    "updated_at": "TEXT",
}

_COMMENT_COLUMNS = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "post_id": "INTEGER NOT NULL REFERENCES blog_posts(id) ON DELETE CASCADE",
    "author_name": "TEXT NOT NULL",
    "author_email": "TEXT NOT NULL",
    "content": "TEXT NOT NULL",
    "approved": "INTEGER NOT NULL DEFAULT 0",
    "created_at": "TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP",
}

_POST_QUERY = f"""
    SELECT p.*, c.name AS category_name, c.slug AS category_slug
    FROM {POSTS_TABLE} p
    LEFT JOIN {CATEGORIES_TABLE} c ON c.id = p.category_id
    WHERE p.status = 'published'
"""


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def create_category(db: Database, name: str, category_slug: str | None = None) -> int:
    return db.insert(CATEGORIES_TABLE, {"name": name, "slug": category_slug or slug(name)})


def create_post(
    db: Database,
    title: str,
    content: str,
    *,
    category_id: int | None = None,
    excerpt: str = "",
    featured_image: str | None = None,
    status: str = "published",
    post_slug: str | None = None,
) -> int:
    """Insert a post. Published posts get ``published_at`` set to now."""
    return db.insert(
        POSTS_TABLE,
        {
            "category_id": category_id,
            "title": title,
            "slug": post_slug or slug(title),
            "excerpt": excerpt,
            "content": content,
            "featured_image": featured_image,
            "status": status,
            "published_at": _now() if status == "published" else None,
        },
    )


def published_posts(db: Database, category_id: int | None = None) -> list[dict[str, Any]]:
    """Published posts, newest first, with their category name and slug."""
    if category_id is None:
        return db.fetch_all(_POST_QUERY + " ORDER BY p.published_at DESC, p.id DESC")
    return db.fetch_all(
        _POST_QUERY + " AND p.category_id = ? ORDER BY p.published_at DESC, p.id DESC",
        category_id,
    )


class BlogPlugin(Plugin):
    """Public blog pages.

    Comments are stored unapproved; only approved comments are shown.
    """

    name: ClassVar[str] = "blog"
    description: ClassVar[str] = "Blog with categories and comments"
    default_prefix: ClassVar[str] = "/blog"
    package: ClassVar[str] = "trindade.plugins.blog"

    @property
    def title(self) -> str:
        return self.options.get("title", "Blog")

    # -- Plugin hooks --

    def boot(self, app: Any) -> None:
        super().boot(app)
        app.on_startup(lambda: self.install(app.db))

    def install(self, db: Database) -> None:
        db.create(CATEGORIES_TABLE, _CATEGORY_COLUMNS)
        db.create(POSTS_TABLE, _POST_COLUMNS)
        db.create(COMMENTS_TABLE, _COMMENT_COLUMNS)

    def register(self, router: Router) -> None:
        router.group(self.prefix, self._routes, not_found=self.not_found)

    def _routes(self, router: Router) -> None:
        router.on("GET /", self.index)
        router.on("GET /category/:slug", self.category)
        router.on("POST /comment/:id", self.comment)
        router.on("GET /:slug", self.post)

    def _data(self, **data: Any) -> dict[str, Any]:
        return {"blog_title": self.title, "prefix": self.prefix, **data}

    # -- Pages --

    def index(self, ctx: Context) -> Response:
        posts = published_posts(ctx.db)
        categories = ctx.db.select(CATEGORIES_TABLE, order="name")
        return ctx.view("blog/index", self._data(title=self.title, posts=posts, categories=categories))

    def category(self, ctx: Context, category_slug: str) -> Response:
        category = ctx.db.get(CATEGORIES_TABLE, {"slug": category_slug})
        if category is None:
            return self.not_found(ctx)
        posts = published_posts(ctx.db, category["id"])
        categories = ctx.db.select(CATEGORIES_TABLE, order="name")
        return ctx.view(
            "blog/index",
            self._data(title=category["name"], posts=posts, categories=categories, category=category),
        )

    def post(self, ctx: Context, post_slug: str) -> Response:
        post = ctx.db.fetch_row(_POST_QUERY + " AND p.slug = ?", post_slug)
        if post is None:
            return self.not_found(ctx)
        comments = ctx.db.select(COMMENTS_TABLE, {"post_id": post["id"], "approved": 1}, order="created_at")
        return ctx.view("blog/post", self._data(title=post["title"], post=post, comments=comments))

    def comment(self, ctx: Context, post_id: str) -> Response:
        if not ctx.session.validate_csrf_token(ctx.post("_token") or ctx.header("x-csrf-token")):
            raise HTTPError(status=403, detail="Invalid CSRF token")
        post = ctx.db.get(POSTS_TABLE, {"id": int(post_id), "status": "published"}) if post_id.isdigit() else None
        if post is None:
            raise NotFound(f"Post {post_id} not found")

        name = (ctx.post("author_name") or "").strip()
        email = (ctx.post("author_email") or "").strip()
        content = (ctx.post("content") or "").strip()
        if not name or not content or not is_valid_email(email):
            return ctx.json({"success": False, "error": "Dados inválidos"}, 422)

        comment_id = ctx.db.insert(
            COMMENTS_TABLE,
            {"post_id": post["id"], "author_name": name, "author_email": email, "content": content},
        )
        logger.info("Comment received", extra={"context": {"post_id": post["id"], "comment_id": comment_id}})
        return ctx.json({"success": True, "id": comment_id}, 201)

    def not_found(self, ctx: Context) -> Response:
        return ctx.view("blog/404", self._data(title="Página não encontrada"), status=404)
