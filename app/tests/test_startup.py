import pytest
import uvicorn
from httpx import ASGITransport, AsyncClient

import app.main as main_module
from app.config import get_settings
from app.exceptions import SchemaInitError
from app.main import create_app, lifespan, run


class FakeEngineOwner:
    instances = []

    def __init__(self):
        self.engine = object()
        self.disposed = False
        FakeEngineOwner.instances.append(self)

    @classmethod
    def from_settings(cls, settings):
        return cls()

    async def dispose(self):
        self.disposed = True


@pytest.fixture
def fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


async def test_schema_failure_aborts_startup_and_releases_pool(settings, monkeypatch):
    async def failing_init(engine):
        raise SchemaInitError("create_trigger", RuntimeError("permission denied"))

    FakeEngineOwner.instances.clear()
    monkeypatch.setattr(main_module, "Database", FakeEngineOwner)
    monkeypatch.setattr(main_module, "init_database", failing_init)
    app = create_app(settings)

    with pytest.raises(SchemaInitError):
        async with lifespan(app):
            pytest.fail("application must not start serving")

    assert len(FakeEngineOwner.instances) == 1
    assert FakeEngineOwner.instances[0].disposed
    assert not hasattr(app.state, "database")


async def test_successful_startup_disposes_pool_on_shutdown(settings, monkeypatch):
    async def init_ok(engine):
        return None

    FakeEngineOwner.instances.clear()
    monkeypatch.setattr(main_module, "Database", FakeEngineOwner)
    monkeypatch.setattr(main_module, "init_database", init_ok)
    app = create_app(settings)

    async with lifespan(app):
        assert app.state.database is FakeEngineOwner.instances[0]
        assert not app.state.database.disposed

    assert FakeEngineOwner.instances[0].disposed


def test_run_exits_without_database_url(monkeypatch, fresh_settings_cache):
    def server_must_not_start(*args, **kwargs):
        raise AssertionError("uvicorn must not be started")

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(uvicorn, "run", server_must_not_start)

    with pytest.raises(SystemExit) as exc_info:
        run()

    assert exc_info.value.code == 1


async def test_default_app_uses_configured_cors_origins(monkeypatch, fresh_settings_cache):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/shop")
    monkeypatch.setenv("CORS_ORIGINS", '["https://shop.example"]')
    app = create_app()
    preflight_headers = {"Access-Control-Request-Method": "GET"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        allowed = await client.options(
            "/api/products", headers={"Origin": "https://shop.example", **preflight_headers}
        )
        denied = await client.options(
            "/api/products", headers={"Origin": "https://other.example", **preflight_headers}
        )

    assert allowed.headers.get("access-control-allow-origin") == "https://shop.example"
    assert "access-control-allow-origin" not in denied.headers


def test_default_app_without_configuration_still_builds(monkeypatch, fresh_settings_cache):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    app = create_app()

    assert app.state.settings is None
