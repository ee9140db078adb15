"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- relation_repo / short_id_repo: репозитории связей (обычный и с short ID)
- test_client: HTTP клиент для тестирования API endpoints
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tagrel.api.dependencies import get_db
from tagrel.core.config import settings
from tagrel.core.context import RequestContext
from tagrel.main import app
from tagrel.models import Base, ContentObject, ContentObjectStatus, TagRelation
from tagrel.repositories import TagRelationRepository

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Canonical object ids: 1 + type code 001 + 13-digit serial
OBJ_A = "10010000000000001"
OBJ_B = "10010000000000002"
OBJ_C = "10010000000000003"
OBJ_D = "10010000000000004"


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine для тестовой БД (SQLite in-memory).

    StaticPool - одно соединение на весь тест, иначе in-memory БД теряется.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """Async session для работы с тестовой БД; откатывается после теста."""
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def relation_repo(test_db):
    """Репозиторий связей без short ID."""
    return TagRelationRepository(test_db, context=RequestContext(short_id_enabled=False))


@pytest.fixture
def short_id_repo(test_db):
    """Репозиторий связей, отдающий object_id в коротком виде."""
    return TagRelationRepository(test_db, context=RequestContext(short_id_enabled=True))


@pytest.fixture
def make_relations():
    """
    Фабрика связей.

    Пример:
        await repo.add_relations(make_relations(("python", OBJ_A, TagRelationStatus.HIDDEN)))
    """

    def _make(*items):
        return [
            TagRelation(tag_id=tag_id, object_id=object_id, status=status)
            for tag_id, object_id, status in items
        ]

    return _make


@pytest_asyncio.fixture
async def content_objects(test_db):
    """Объекты контента: видимый (A), скрытый (B), удалённый (C), закрытый (D)."""
    test_db.add_all(
        [
            ContentObject(id=OBJ_A),
            ContentObject(id=OBJ_B, is_hidden=True),
            ContentObject(id=OBJ_C, status=ContentObjectStatus.DELETED),
            ContentObject(id=OBJ_D, status=ContentObjectStatus.CLOSED),
        ]
    )
    await test_db.commit()


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP клиент для тестирования API endpoints.

    Использует тестовую БД вместо production БД и передаёт X-API-Key.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()

