from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.app_setup import lifespan as lifespan_mod


def _make_app():
    app = FastAPI(lifespan=lifespan_mod.lifespan)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    return app


def test_limiter_enabled_and_closed_on_shutdown(monkeypatch):
    calls = []

    async def fake_init(redis):
        calls.append(("init", redis))

    async def fake_close():
        calls.append(("close", None))

    monkeypatch.delenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", raising=False)
    monkeypatch.setattr(lifespan_mod, "_checkout_limiter_redis", lambda: "redis-conn")
    monkeypatch.setattr(lifespan_mod.FastAPILimiter, "init", fake_init)
    monkeypatch.setattr(lifespan_mod.FastAPILimiter, "close", fake_close)

    app = _make_app()
    with TestClient(app) as client:
        assert app.state.rate_limit_enabled is True
        assert client.get("/ping").status_code == 200
    assert calls == [("init", "redis-conn"), ("close", None)]


def test_redis_unavailable_keeps_checkout_served(monkeypatch):
    def _unreachable():
        raise ConnectionError("redis down")

    monkeypatch.delenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", raising=False)
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    monkeypatch.setattr(lifespan_mod, "_checkout_limiter_redis", _unreachable)

    app = _make_app()
    with TestClient(app) as client:
        assert app.state.rate_limit_enabled is False
        assert client.get("/ping").status_code == 200


def test_disabled_for_tests(monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    app = _make_app()
    with TestClient(app):
        assert app.state.rate_limit_enabled is False
