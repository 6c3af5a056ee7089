"""Fixtures backed by a throwaway SQLite database per test."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from chat_rbac.db import Database, DatabaseConfig, create_schema
from chat_rbac.features.roles import RoleService
from chat_rbac.models import Category, Channel, Member, Server
from chat_rbac.settings import Settings


@dataclass
class SeededServer:
    server: Server
    owner: Member
    moderator: Member
    regular: Member
    category: Category
    channel: Channel
    other_server: Server
    outsider: Member
    foreign_channel: Channel


@pytest_asyncio.fixture()
async def database(tmp_path: Path) -> AsyncIterator[Database]:
    """File-backed SQLite database with the schema created."""

    database = Database()
    database.init(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'rbac.sqlite'}"))
    await create_schema(database.engine)
    try:
        yield database
    finally:
        await database.dispose()


@pytest_asyncio.fixture()
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture()
def settings() -> Settings:
    return Settings(audit_enabled=True, baseline_seed_defaults=False)


@pytest.fixture()
def roles(session: AsyncSession, settings: Settings) -> RoleService:
    return RoleService(session=session, settings=settings)


@pytest_asyncio.fixture()
async def seed(session: AsyncSession) -> SeededServer:
    """One server with an owner, two ordinary members and a channel tree."""

    owner_profile = uuid4()
    server = Server(name="Guild", owner_profile_id=owner_profile)
    other_server = Server(name="Elsewhere", owner_profile_id=uuid4())
    session.add_all([server, other_server])
    await session.flush()

    owner = Member(server_id=server.id, profile_id=owner_profile)
    moderator = Member(server_id=server.id, profile_id=uuid4())
    regular = Member(server_id=server.id, profile_id=uuid4())
    outsider = Member(server_id=other_server.id, profile_id=uuid4())
    category = Category(server_id=server.id, name="Text Channels")
    session.add_all([owner, moderator, regular, outsider, category])
    await session.flush()

    channel = Channel(server_id=server.id, category_id=category.id, name="general")
    foreign_channel = Channel(server_id=other_server.id, name="lobby")
    session.add_all([channel, foreign_channel])
    await session.commit()

    return SeededServer(
        server=server,
        owner=owner,
        moderator=moderator,
        regular=regular,
        category=category,
        channel=channel,
        other_server=other_server,
        outsider=outsider,
        foreign_channel=foreign_channel,
    )
