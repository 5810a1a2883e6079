# ruff: noqa: INP001
"""Integration tests for board invitations and invite tokens."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from fastapi import APIRouter, FastAPI
from fastapi_pagination import add_pagination
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, col
from sqlmodel.ext.asyncio.session import AsyncSession

from trellone.api.boards import router as boards_router
from trellone.api.invitations import router as invitations_router
from trellone.api.workspaces import router as workspaces_router
from trellone.core.error_handling import install_error_handling
from trellone.core.errors import ConflictError
from trellone.core.security import create_access_token
from trellone.db.session import get_session
from trellone.models.board_members import BoardMember
from trellone.models.invitations import BoardInvitationStatus
from trellone.models.users import User
from trellone.models.workspace_members import WorkspaceMember
from trellone.services.invitations import respond_to_board_invitation


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(workspaces_router)
    api_v1.include_router(boards_router)
    api_v1.include_router(invitations_router)
    app.include_router(api_v1)
    add_pagination(app)

    async def _override_get_session() -> AsyncSession:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


async def _create_user(session_maker: async_sessionmaker[AsyncSession], name: str) -> User:
    suffix = uuid4().hex[:8]
    user = User(
        email=f"{name}-{suffix}@example.com",
        username=f"{name}{suffix}",
        password="hashed-password",
        forgot_password_token="forgot-token",
    )
    async with session_maker() as session:
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user


def _auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def _board_members(
    session_maker: async_sessionmaker[AsyncSession],
    board_id: str,
) -> list[BoardMember]:
    async with session_maker() as session:
        return await BoardMember.objects.filter(
            col(BoardMember.board_id) == UUID(board_id),
        ).all(session)


@pytest.mark.asyncio
async def test_invitation_flow_accepts_once_and_adds_member() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    owner = await _create_user(session_maker, "owner")
    invitee = await _create_user(session_maker, "invitee")

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as client:
            board = await client.post(
                "/api/v1/boards",
                json={"title": "Roadmap"},
                headers=_auth(owner),
            )
            board_id = board.json()["id"]

            created = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": invitee.email.upper(), "board_id": board_id},
                headers=_auth(owner),
            )
            assert created.status_code == 200
            invitation = created.json()
            assert invitation["board_invitation"] == {"board_id": board_id, "status": "PENDING"}
            assert invitation["invite_token"]

            duplicate = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": invitee.email, "board_id": board_id},
                headers=_auth(owner),
            )
            assert duplicate.status_code == 409

            listing = await client.get("/api/v1/invitations", headers=_auth(invitee))
            assert listing.status_code == 200
            items = listing.json()["items"]
            assert [item["id"] for item in items] == [invitation["id"]]
            assert items[0]["inviter"]["id"] == str(owner.id)
            assert items[0]["board"]["title"] == "Roadmap"
            assert "password" not in items[0]["inviter"]
            assert "hashed-password" not in listing.text

            verified = await client.post(
                "/api/v1/invitations/verify",
                json={"invite_token": invitation["invite_token"]},
                headers=_auth(invitee),
            )
            assert verified.status_code == 200
            assert verified.json()["id"] == invitation["id"]

            not_invitee = await client.patch(
                f"/api/v1/invitations/board/{invitation['id']}",
                json={"status": "ACCEPTED"},
                headers=_auth(owner),
            )
            assert not_invitee.status_code == 403

            accepted = await client.patch(
                f"/api/v1/invitations/board/{invitation['id']}",
                json={"status": "ACCEPTED"},
                headers=_auth(invitee),
            )
            assert accepted.status_code == 200
            assert accepted.json()["board_invitation"]["status"] == "ACCEPTED"

            again = await client.patch(
                f"/api/v1/invitations/board/{invitation['id']}",
                json={"status": "ACCEPTED"},
                headers=_auth(invitee),
            )
            assert again.status_code == 409

            members = await _board_members(session_maker, board_id)
            assert sorted(str(m.user_id) for m in members) == sorted([str(owner.id), str(invitee.id)])
            assert {m.user_id: m.role for m in members}[invitee.id] == "Member"

            used_token = await client.post(
                "/api/v1/invitations/verify",
                json={"invite_token": invitation["invite_token"]},
                headers=_auth(invitee),
            )
            assert used_token.status_code == 401
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_invitation_rejects_unknown_invitee_and_non_member_inviter() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    owner = await _create_user(session_maker, "owner")
    outsider = await _create_user(session_maker, "outsider")

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as client:
            board = await client.post(
                "/api/v1/boards",
                json={"title": "Roadmap"},
                headers=_auth(owner),
            )
            board_id = board.json()["id"]

            unknown = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": "nobody@example.com", "board_id": board_id},
                headers=_auth(owner),
            )
            assert unknown.status_code == 422
            assert unknown.json()["errors"] == {"invitee_email": "not registered"}

            self_invite = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": owner.email, "board_id": board_id},
                headers=_auth(owner),
            )
            assert self_invite.status_code == 422

            not_member = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": owner.email, "board_id": board_id},
                headers=_auth(outsider),
            )
            assert not_member.status_code == 403
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_accepting_workspace_board_invitation_adds_workspace_guest() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    owner = await _create_user(session_maker, "owner")
    invitee = await _create_user(session_maker, "invitee")

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as client:
            workspace = await client.post(
                "/api/v1/workspaces",
                json={"title": "Product team"},
                headers=_auth(owner),
            )
            workspace_id = workspace.json()["id"]
            board = await client.post(
                "/api/v1/boards",
                json={"title": "Launch plan", "workspace_id": workspace_id},
                headers=_auth(owner),
            )
            created = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": invitee.email, "board_id": board.json()["id"]},
                headers=_auth(owner),
            )

            accepted = await client.patch(
                f"/api/v1/invitations/board/{created.json()['id']}",
                json={"status": "ACCEPTED"},
                headers=_auth(invitee),
            )
            assert accepted.status_code == 200

            async with session_maker() as session:
                row = await WorkspaceMember.objects.filter_by(
                    workspace_id=UUID(workspace_id),
                    user_id=invitee.id,
                ).first(session)
            assert row is not None
            assert row.is_guest

            listing = await client.get("/api/v1/workspaces", headers=_auth(invitee))
            assert [item["id"] for item in listing.json()["items"]] == [workspace_id]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_service_rejects_second_response_after_rejection() -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    owner = await _create_user(session_maker, "owner")
    invitee = await _create_user(session_maker, "invitee")

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as client:
            board = await client.post(
                "/api/v1/boards",
                json={"title": "Roadmap"},
                headers=_auth(owner),
            )
            created = await client.post(
                "/api/v1/invitations/board",
                json={"invitee_email": invitee.email, "board_id": board.json()["id"]},
                headers=_auth(owner),
            )
            invitation_id = UUID(created.json()["id"])

        async with session_maker() as session:
            rejected = await respond_to_board_invitation(
                session,
                invitation_id=invitation_id,
                user_id=invitee.id,
                status=BoardInvitationStatus.REJECTED,
            )
            assert rejected.status == "REJECTED"
            assert rejected.invite_token == ""

        async with session_maker() as session:
            with pytest.raises(ConflictError):
                await respond_to_board_invitation(
                    session,
                    invitation_id=invitation_id,
                    user_id=invitee.id,
                    status=BoardInvitationStatus.ACCEPTED,
                )

        members = await _board_members(session_maker, board.json()["id"])
        assert [m.user_id for m in members] == [owner.id]
    finally:
        await engine.dispose()
