"""Tests for trindade.templating: view names, lookup order and error views."""

from pathlib import Path

import pytest

from trindade.config import AppConfig, PathsConfig
from trindade.templating import Templates
from trindade.templating.integration import template_name


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    views = tmp_path / "views"
    (views / "errors").mkdir(parents=True)
    (views / "home.html").write_text("<h1>{{ title }}</h1>")
    return AppConfig(secret_key="x", paths=PathsConfig(base=str(tmp_path)))


class TestTemplateName:
    @pytest.mark.parametrize(
        ("view", "expected"),
        [
            ("home", "home.html"),
            ("blog/index", "blog/index.html"),
            ("blog.index", "blog/index.html"),
            ("/admin/users/form", "admin/users/form.html"),
            ("page.html", "page.html"),
        ],
    )
    def test_names(self, view: str, expected: str) -> None:
        assert template_name(view) == expected


class TestTemplates:
    def test_render_project_view(self, config: AppConfig) -> None:
        assert Templates(config).render("home", {"title": "Olá"}) == "<h1>Olá</h1>"

    def test_exists(self, config: AppConfig) -> None:
        templates = Templates(config)
        assert templates.exists("home")
        assert not templates.exists("nowhere")

    def test_builtin_error_views(self, config: AppConfig) -> None:
        templates = Templates(config)
        assert templates.exists("errors/404")
        assert "Gone missing" in templates.render("errors/404", {"status": 404, "message": "Gone missing"})

    def test_project_view_overrides_builtin(self, config: AppConfig, tmp_path: Path) -> None:
        (tmp_path / "views" / "errors" / "404.html").write_text("custom {{ message }}")
        assert Templates(config).render("errors/404", {"message": "x"}) == "custom x"

    def test_plugin_package(self, config: AppConfig) -> None:
        templates = Templates(config)
        templates.add_package("trindade.plugins.blog")
        assert templates.exists("blog/404")

    def test_globals(self, config: AppConfig, tmp_path: Path) -> None:
        (tmp_path / "views" / "g.html").write_text("{{ site }}")
        templates = Templates(config)
        templates.add_global("site", "Trindade")
        assert templates.render("g") == "Trindade"
