"""End-to-end tests for the admin panel plugin."""

import re

import pytest

from trindade import App
from trindade.plugins.admin import AdminPlugin, create_user
from trindade.plugins.admin.plugin import SETTINGS_TABLE, USERS_TABLE
from trindade.security import hash_password, verify_password
from trindade.testing import TestClient

_TOKEN_RE = re.compile(r'name="_token" value="([0-9a-f]+)"')


@pytest.fixture
def admin_app(app: App) -> App:
    app.plugin(AdminPlugin())

    @app.on_startup
    def seed() -> None:
        create_user(app.db, "Ana Admin", "ana@example.com", "correct-horse")

    return app


async def _token(client: TestClient, path: str = "/admin/login") -> str:
    response = await client.get(path)
    match = _TOKEN_RE.search(response.text)
    assert match is not None, response.text
    return match.group(1)


async def _login(client: TestClient, password: str = "correct-horse") -> str:
    token = await _token(client)
    await client.post(
        "/admin/login",
        data={"_token": token, "email": "ana@example.com", "password": password},
    )
    return token


class TestInstall:
    async def test_tables_created_on_startup(self, admin_app: App) -> None:
        async with TestClient(admin_app):
            assert admin_app.db.table_exists(USERS_TABLE)
            assert admin_app.db.table_exists(SETTINGS_TABLE)

    def test_install_is_idempotent(self, app: App) -> None:
        plugin = AdminPlugin()
        plugin.install(app.db)
        plugin.install(app.db)
        assert app.db.table_exists(USERS_TABLE)

    def test_create_user_hashes_password(self, app: App) -> None:
        AdminPlugin().install(app.db)
        user_id = create_user(app.db, "Rui", "rui@example.com", "password123", "editor")
        row = app.db.get(USERS_TABLE, {"id": user_id})
        assert row is not None
        assert row["password"] != "password123"
        assert verify_password("password123", row["password"])
        assert row["role"] == "editor"


class TestAuthentication:
    async def test_guard_redirects_to_login(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            for path in ("/admin", "/admin/users", "/admin/settings", "/admin/api/stats"):
                response = await client.get(path)
                assert response.status == 302, path
                assert response.header("location") == "/admin/login"

    async def test_login_page(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            response = await client.get("/admin/login")
        assert response.status == 200
        assert "Login - Painel Admin" in response.text
        assert _TOKEN_RE.search(response.text)

    async def test_successful_login(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _token(client)
            response = await client.post(
                "/admin/login",
                data={"_token": token, "email": "ana@example.com", "password": "correct-horse"},
            )
            assert response.status == 302
            assert response.header("location") == "/admin"
            dashboard = await client.get("/admin")
        assert dashboard.status == 200
        assert "Ana Admin" in dashboard.text
        assert admin_app.db.get(USERS_TABLE, {"email": "ana@example.com"})["last_login"] is not None

    async def test_login_upgrades_legacy_hash(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            legacy = hash_password("correct-horse", algo="scrypt")
            admin_app.db.update(USERS_TABLE, {"password": legacy}, {"email": "ana@example.com"})
            await _login(client)
            assert (await client.get("/admin")).status == 200
        stored = admin_app.db.get(USERS_TABLE, {"email": "ana@example.com"})["password"]
        assert stored.startswith("$argon2id$")
        assert verify_password("correct-horse", stored)

    async def test_wrong_password(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client, password="wrong-password")
            page = await client.get("/admin/login")
            assert "Credenciais inválidas" in page.text
            assert (await client.get("/admin")).status == 302

    async def test_inactive_user_cannot_login(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            admin_app.db.update(USERS_TABLE, {"active": 0}, {"email": "ana@example.com"})
            await _login(client)
            assert (await client.get("/admin")).status == 302

    async def test_login_without_csrf_token(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            response = await client.post(
                "/admin/login",
                data={"email": "ana@example.com", "password": "correct-horse"},
            )
        assert response.status == 403

    async def test_login_page_redirects_when_logged_in(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            response = await client.get("/admin/login")
        assert response.status == 302
        assert response.header("location") == "/admin"

    async def test_logout(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            response = await client.get("/admin/logout")
            assert response.header("location") == "/admin/login"
            assert (await client.get("/admin")).status == 302


class TestDashboard:
    async def test_stats_page(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            response = await client.get("/admin/")
        assert '<p id="stat-users">1</p>' in response.text

    async def test_api_stats(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            stats = (await client.get("/admin/api/stats")).json()
        assert stats["users"] == 1
        assert set(stats["disk_usage"]) == {"total", "used", "free", "percent"}
        assert stats["server"].startswith("trindade")


class TestUsers:
    async def test_list(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            response = await client.get("/admin/users")
        assert response.status == 200
        assert "ana@example.com" in response.text
        assert "$argon2" not in response.text

    async def test_create(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            response = await client.post(
                "/admin/users",
                data={
                    "_token": token,
                    "name": "Rui",
                    "email": "rui@example.com",
                    "password": "password123",
                    "role": "editor",
                },
            )
            assert response.header("location") == "/admin/users"
            listing = await client.get("/admin/users")
        assert "Utilizador criado" in listing.text
        user = admin_app.db.get(USERS_TABLE, {"email": "rui@example.com"})
        assert user is not None
        assert user["role"] == "editor"

    async def test_create_validation(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            response = await client.post(
                "/admin/users",
                data={"_token": token, "name": "", "email": "ana@example.com", "password": "short"},
            )
            assert response.header("location") == "/admin/users/create"
            form = await client.get("/admin/users/create")
        assert "O nome é obrigatório" in form.text
        assert "Email já registado" in form.text
        assert "pelo menos 8 caracteres" in form.text
        assert admin_app.db.count(USERS_TABLE) == 1

    async def test_create_requires_csrf(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            response = await client.post(
                "/admin/users",
                data={"name": "Rui", "email": "rui@example.com", "password": "password123"},
            )
        assert response.status == 403

    async def test_edit_and_update(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            user_id = create_user(admin_app.db, "Rui", "rui@example.com", "password123", "viewer")
            form = await client.get(f"/admin/users/{user_id}")
            assert "rui@example.com" in form.text
            response = await client.post(
                f"/admin/users/{user_id}",
                data={
                    "_token": token,
                    "name": "Rui Costa",
                    "email": "rui@example.com",
                    "role": "editor",
                    "active": "1",
                    "password": "new-password",
                },
            )
            assert response.header("location") == "/admin/users"
        user = admin_app.db.get(USERS_TABLE, {"id": user_id})
        assert user["name"] == "Rui Costa"
        assert user["role"] == "editor"
        assert user["updated_at"] is not None
        assert verify_password("new-password", user["password"])

    async def test_unknown_user(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            await _login(client)
            assert (await client.get("/admin/users/999")).status == 404
            assert (await client.get("/admin/users/abc")).status == 404

    async def test_delete(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            user_id = create_user(admin_app.db, "Rui", "rui@example.com", "password123")
            response = await client.delete(f"/admin/users/{user_id}", headers={"X-CSRF-Token": token})
        assert response.json() == {"deleted": user_id}
        assert not admin_app.db.has(USERS_TABLE, {"id": user_id})

    async def test_cannot_delete_self(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            response = await client.delete("/admin/users/1", headers={"X-CSRF-Token": token})
        assert response.status == 400
        assert "error" in response.json()
        assert admin_app.db.count(USERS_TABLE) == 1


class TestSettings:
    async def test_save_and_show(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            token = await _login(client)
            await client.post("/admin/settings", data={"_token": token, "site_name": "Trindade"})
            await client.post("/admin/settings", data={"_token": token, "site_name": "Trindade 2"})
            page = await client.get("/admin/settings")
        assert "Trindade 2" in page.text
        assert "Configurações guardadas" in page.text
        rows = admin_app.db.select(SETTINGS_TABLE)
        assert [(r["name"], r["value"]) for r in rows] == [("site_name", "Trindade 2")]


class TestNotFound:
    async def test_admin_404_page(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            response = await client.get("/admin/does/not/exist")
        assert response.status == 404
        assert "não existe no painel de administração" in response.text

    async def test_outside_prefix_uses_default(self, admin_app: App) -> None:
        async with TestClient(admin_app) as client:
            response = await client.get("/elsewhere")
        assert response.status == 404
        assert "Page not found" in response.text

    async def test_custom_prefix(self, app: App) -> None:
        app.plugin(AdminPlugin(prefix="/painel"))
        async with TestClient(app) as client:
            response = await client.get("/painel/users")
        assert response.header("location") == "/painel/login"
