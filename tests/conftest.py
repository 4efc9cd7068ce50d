from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import pytest
from fakeredis import FakeRedis
from fakeredis.aioredis import FakeRedis as AsyncFakeRedis
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from rq import Queue
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.cache import ProjectCache
from taskflow.core.config import Settings, get_settings
from taskflow.core.jobs import Notifier
from taskflow.core.security import create_access_token
from taskflow.db.base import metadata
from taskflow.deps import get_db_session
from taskflow.main import create_app
from taskflow.models import GlobalRole, User
from taskflow.policy import Requester

UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db_session:
        yield db_session


@pytest.fixture()
def make_user(session: AsyncSession) -> UserFactory:
    async def _make(name: str, role: GlobalRole = GlobalRole.MEMBER) -> User:
        account = User(
            name=name,
            email=f"{name.lower()}@example.com",
            hashed_password="hashed",
            role=role,
        )
        session.add(account)
        await session.commit()
        await session.refresh(account)
        return account

    return _make


def as_requester(user: User) -> Requester:
    assert user.id is not None
    return Requester(user_id=user.id, role=user.role)


@pytest.fixture()
def requester_for() -> Callable[[User], Requester]:
    return as_requester


@pytest.fixture()
async def cache() -> AsyncIterator[ProjectCache]:
    client = AsyncFakeRedis(decode_responses=True)
    try:
        yield ProjectCache(client, default_ttl=60)
    finally:
        await client.aclose()


@pytest.fixture()
def job_queue() -> Queue:
    return Queue("taskflow-test-notifications", connection=FakeRedis(decode_responses=False))


@pytest.fixture()
def notifier(job_queue: Queue) -> Notifier:
    return Notifier(job_queue)


@dataclass
class Account:
    id: int
    headers: dict[str, str]


@pytest.fixture()
def api_settings() -> Settings:
    return Settings(environment="test", api_prefix="/api", jwt_secret_key="test-secret")


@pytest.fixture()
def app(engine: AsyncEngine, api_settings: Settings) -> FastAPI:
    application = create_app(api_settings)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _session_override() -> AsyncIterator[AsyncSession]:
        async with factory() as db_session:
            yield db_session

    application.dependency_overrides[get_db_session] = _session_override
    application.dependency_overrides[get_settings] = lambda: api_settings
    return application


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture()
def register(engine: AsyncEngine, api_settings: Settings):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _register(name: str, role: GlobalRole = GlobalRole.MEMBER) -> Account:
        async with factory() as db_session:
            user = User(name=name, email=f"{name.lower()}@example.com", hashed_password="hashed", role=role)
            db_session.add(user)
            await db_session.commit()
            await db_session.refresh(user)
        assert user.id is not None
        token = create_access_token(subject=user.id, roles=[role.value], settings=api_settings).token
        return Account(id=user.id, headers={"Authorization": f"Bearer {token}"})

    return _register


