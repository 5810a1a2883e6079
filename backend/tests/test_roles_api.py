# ruff: noqa: INP001
"""Role registry seeding and the read-only roles endpoint."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from trellone.api.roles import router as roles_router
from trellone.core.error_handling import install_error_handling
from trellone.core.security import create_access_token
from trellone.db.session import get_session
from trellone.models.roles import Role
from trellone.models.users import User
from trellone.services.roles import seed_roles


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(roles_router)
    app.include_router(api_v1)

    async def _override_get_session() -> AsyncSession:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest.mark.asyncio
async def test_seed_roles_is_idempotent_and_repairs_drift() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_maker() as session:
            assert await seed_roles(session) == (5, 0)
        async with session_maker() as session:
            assert await seed_roles(session) == (0, 0)

        async with session_maker() as session:
            observer = await Role.objects.filter_by(name="Observer", level="Board").first(session)
            assert observer is not None
            observer.permissions = ["BOARD__DELETE"]
            session.add(observer)
            await session.commit()

        async with session_maker() as session:
            assert await seed_roles(session) == (0, 1)
            repaired = await Role.objects.filter_by(name="Observer", level="Board").first(session)
            assert repaired is not None
            assert repaired.permissions == ["BOARD__VIEW"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_roles_endpoint_filters_by_level_and_requires_auth() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    user = User(email=f"reader-{uuid4().hex[:8]}@example.com", username="reader")
    async with session_maker() as session:
        session.add(user)
        await session.commit()
        await session.refresh(user)
        await seed_roles(session)

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as client:
            anonymous = await client.get("/api/v1/roles")
            assert anonymous.status_code == 401

            headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}
            everything = await client.get("/api/v1/roles", headers=headers)
            assert everything.status_code == 200
            assert len(everything.json()) == 5

            board_roles = await client.get("/api/v1/roles?level=Board", headers=headers)
            assert board_roles.status_code == 200
            assert sorted(role["name"] for role in board_roles.json()) == [
                "Admin",
                "Member",
                "Observer",
            ]
            assert {role["level"] for role in board_roles.json()} == {"Board"}

            bad_level = await client.get("/api/v1/roles?level=Galaxy", headers=headers)
            assert bad_level.status_code == 422
    finally:
        await engine.dispose()
