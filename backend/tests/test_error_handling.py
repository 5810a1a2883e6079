# ruff: noqa: INP001
"""Error payloads and request-id propagation across the board routes."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient
from fastapi_pagination import add_pagination
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from trellone.api.boards import router as boards_router
from trellone.core import error_handling
from trellone.core.error_handling import REQUEST_ID_HEADER, _json_safe, install_error_handling
from trellone.core.security import create_access_token
from trellone.db.session import get_session
from trellone.main import app as trellone_app
from trellone.models.users import User


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession] | None) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(boards_router)
    app.include_router(api_v1)
    add_pagination(app)

    async def _override_get_session() -> AsyncSession:
        if session_maker is None:
            raise RuntimeError("database unavailable")
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


async def _create_user(session_maker: async_sessionmaker[AsyncSession]) -> User:
    suffix = uuid4().hex[:8]
    user = User(
        email=f"owner-{suffix}@example.com",
        username=f"owner{suffix}",
        display_name="Owner",
        password="hashed-password",
        email_verify_token="verify-token",
        forgot_password_token="forgot-token",
    )
    async with session_maker() as session:
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user


def _auth(user: User, *, expires_in: timedelta = timedelta(minutes=15)) -> dict[str, str]:
    token = create_access_token(user.id, expires_in=expires_in)
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_missing_board_returns_404_with_request_id() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    try:
        owner = await _create_user(session_maker)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get(f"/api/v1/boards/{uuid4()}", headers=_auth(owner))

            assert resp.status_code == 404
            body = resp.json()
            assert body["detail"] == "Board not found"
            assert "error_code" not in body
            assert body["request_id"]
            assert resp.headers[REQUEST_ID_HEADER] == body["request_id"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_auth_failures_return_401_and_flag_expired_tokens() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    try:
        owner = await _create_user(session_maker)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            anonymous = await client.get("/api/v1/boards")
            assert anonymous.status_code == 401
            assert anonymous.json()["detail"] == "Access token is required"
            assert "error_code" not in anonymous.json()

            expired = await client.get(
                "/api/v1/boards",
                headers=_auth(owner, expires_in=timedelta(seconds=-30)),
            )
            assert expired.status_code == 401
            assert expired.json()["detail"] == "Token has expired"
            assert expired.json()["error_code"] == "TOKEN_EXPIRED"

            garbage = await client.get(
                "/api/v1/boards",
                headers={"Authorization": "Bearer not-a-jwt"},
            )
            assert garbage.status_code == 401
            assert garbage.json()["detail"] == "Token is invalid"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_column_reorder_errors_carry_field_errors_and_conflicts() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    try:
        owner = await _create_user(session_maker)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            created = await client.post(
                "/api/v1/boards",
                json={"title": "Roadmap"},
                headers=_auth(owner),
            )
            assert created.status_code == 200
            board_id = created.json()["id"]

            invalid = await client.put(
                f"/api/v1/boards/{board_id}/column-order",
                json={"column_order_ids": ["not-an-id"]},
                headers=_auth(owner),
            )
            assert invalid.status_code == 422
            assert invalid.json()["detail"] == "Invalid column id"
            assert invalid.json()["errors"] == {"column_order_ids": "invalid ids: not-an-id"}

            foreign = await client.put(
                f"/api/v1/boards/{board_id}/column-order",
                json={"column_order_ids": [str(uuid4())]},
                headers=_auth(owner),
            )
            assert foreign.status_code == 409
            assert foreign.json()["detail"] == (
                "You can only reorder columns, not add or remove them"
            )
            assert "errors" not in foreign.json()
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_malformed_board_payloads_return_422_detail_list() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    try:
        owner = await _create_user(session_maker)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            bad_visibility = await client.post(
                "/api/v1/boards",
                json={"title": "Roadmap", "visibility": "secret"},
                headers=_auth(owner),
            )
            assert bad_visibility.status_code == 422
            detail = bad_visibility.json()["detail"]
            assert isinstance(detail, list)
            assert detail[0]["loc"][-1] == "visibility"

            plain_text = await client.post(
                "/api/v1/boards",
                content=b"\xffRoadmap",
                headers={**_auth(owner), "content-type": "text/plain"},
            )
            assert plain_text.status_code == 422
            assert isinstance(plain_text.json()["detail"], list)
            assert plain_text.headers[REQUEST_ID_HEADER] == plain_text.json()["request_id"]

            bad_id = await client.get("/api/v1/boards/not-a-uuid", headers=_auth(owner))
            assert bad_id.status_code == 422
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_session_failure_returns_500_without_leaking_error() -> None:
    app = _build_test_app(None)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get(
            "/api/v1/boards",
            headers={"Authorization": "Bearer anything", REQUEST_ID_HEADER: "trace-42"},
        )

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal Server Error", "request_id": "trace-42"}
    assert resp.headers[REQUEST_ID_HEADER] == "trace-42"


@pytest.mark.parametrize(
    ("sent", "kept"),
    [
        ("  board-sync-7  ", True),
        ("", False),
        ("r" * 129, False),
    ],
)
def test_client_request_id_is_reused_only_when_usable(sent: str, kept: bool) -> None:
    resp = TestClient(trellone_app).get("/health", headers={REQUEST_ID_HEADER: sent})

    assert resp.status_code == 200
    echoed = resp.headers[REQUEST_ID_HEADER]
    if kept:
        assert echoed == sent.strip()
    else:
        assert echoed not in {"", sent}


def test_slow_request_logs_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _record_warning(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    ticks = iter((10.0, 12.5))
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", True)
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 2000)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _record_warning)

    resp = TestClient(trellone_app).get("/health")

    assert resp.status_code == 200
    assert warnings == [
        (
            "http.request.slow",
            {
                "method": "GET",
                "path": "/health",
                "status_code": 200,
                "duration_ms": 2500.0,
                "slow_threshold_ms": 2000,
            },
        ),
    ]


@pytest.mark.parametrize(("include_health", "logged"), [(False, False), (True, True)])
def test_health_request_logging_follows_setting(
    monkeypatch: pytest.MonkeyPatch,
    include_health: bool,
    logged: bool,
) -> None:
    completed: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", include_health)
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 0)
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: completed.append(message),
    )

    resp = TestClient(trellone_app).get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers[REQUEST_ID_HEADER]
    assert ("http.request.complete" in completed) is logged


def test_json_safe_flattens_validation_inputs() -> None:
    nested = {"card_order_ids": ("a", b"\xff"), 7: {"ids": frozenset({"x"})}}

    assert _json_safe(nested) == {"card_order_ids": ["a", "\ufffd"], "7": {"ids": ["x"]}}
    assert _json_safe(memoryview(b"cover")) == "cover"
    assert _json_safe(timedelta(seconds=5)) == "0:00:05"
