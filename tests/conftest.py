"""
File: tests/conftest.py
Description: Pytest 全局 Fixtures 配置 (Async + 独立测试库)

1. 导入应用前写入测试环境变量 (SQLite + 本地媒体目录)
2. 每个测试使用独立的 SQLite 文件库 (aiosqlite)，用例之间互不污染
3. Redis 与图片存储通过 dependency_overrides 替换为内存实现

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-13
"""

import asyncio
import io
import os
import sys
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import timedelta
from typing import Any

# ------------------------------------------------------------------------------
# Windows 平台特定修复 (必须在任何 async 操作之前)
# ------------------------------------------------------------------------------
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# ------------------------------------------------------------------------------
# 1. 环境配置 (必须先于 rishta 的任何导入)
# ------------------------------------------------------------------------------
os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only-0123456789"
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite+aiosqlite:///:memory:"
os.environ["IMAGE_STORE_BACKEND"] = "local"
os.environ["MEDIA_DIR"] = os.path.join(tempfile.gettempdir(), "rishta-test-media")
os.environ["ENVIRONMENT"] = "local"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rishta.api.deps import get_db
from rishta.core.config import settings
from rishta.core.redis import get_redis
from rishta.core.security import create_access_token, get_password_hash
from rishta.core.storage import (
    ImageStore,
    ImageStoreError,
    PreparedImage,
    StoredImage,
    get_image_store,
)
from rishta.db.models import Base, User
from rishta.main import app

API = settings.API_V1_STR
DEFAULT_PASSWORD = "secret123"


# ------------------------------------------------------------------------------
# 2. 内存替身 (Redis / Image Store)
# ------------------------------------------------------------------------------


class FakeRedis:
    """只实现 AuthService 用到的命令"""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: timedelta | int, value: str) -> bool:
        self.store[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)


class MemoryImageStore(ImageStore):
    """
    内存图片存储。
    fail_after: 成功上传 N 张后开始失败 (模拟存储故障)
    """

    def __init__(self, fail_after: int | None = None, fail_deletes: bool = False):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_after = fail_after
        self.fail_deletes = fail_deletes
        self.upload_calls = 0

    async def upload(self, image: PreparedImage, folder: str) -> StoredImage:
        if self.fail_after is not None and self.upload_calls >= self.fail_after:
            raise ImageStoreError("simulated outage")
        self.upload_calls += 1
        key = self.new_key(folder, image.extension)
        self.files[key] = image.data
        return StoredImage(url=f"https://cdn.test/{key}", key=key)

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise ImageStoreError("simulated outage")
        self.files.pop(key, None)
        self.deleted.append(key)


def make_image_bytes(image_format: str = "PNG", size: tuple[int, int] = (40, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 120, 80)).save(buffer, format=image_format)
    return buffer.getvalue()


def profile_payload(**overrides: Any) -> dict[str, Any]:
    """一份合法的资料内容"""
    payload: dict[str, Any] = {
        "name": "Ayesha Khan",
        "age": 27,
        "gender": "female",
        "date_of_birth": "1998-04-12",
        "height_cm": 162,
        "marital_status": "never-married",
        "city": "Lahore",
        "education": {"level": "master", "field": "Computer Science"},
        "occupation": {"profession": "Software Engineer", "income": "100k-200k"},
        "family_info": {"family_type": "nuclear", "siblings": 2},
        "religious_info": {"sect": "sunni", "religiousness": "moderately-religious"},
        "preferences": {"age_range": {"min": 26, "max": 34}, "locations": ["Lahore"]},
        "contact_info": {"guardian_name": "Imran Khan", "guardian_phone": "03001234567"},
        "about": "Family oriented and loves reading.",
    }
    payload.update(overrides)
    return payload


# ------------------------------------------------------------------------------
# 3. 数据库 Fixtures
# ------------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    每个测试一个独立的 SQLite 文件库。
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async_session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_factory() as session:
        yield session


@pytest.fixture
def image_store() -> MemoryImageStore:
    return MemoryImageStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


# ------------------------------------------------------------------------------
# 4. 数据工厂
# ------------------------------------------------------------------------------

UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> UserFactory:
    """
    直接写库创建用户。
    用法: user = await make_user(email="a@example.com", is_paid=True)
    """
    counter = 0

    async def _make_user(
        *,
        email: str | None = None,
        name: str = "Test User",
        role: str = "user",
        is_paid: bool = False,
        is_active: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        nonlocal counter
        counter += 1
        user = User(
            email=email or f"user{counter}@example.com",
            name=name,
            phone=f"0300{counter:07d}",
            hashed_password=get_password_hash(password),
            role=role,
            is_paid=is_paid,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    return make_image_bytes


@pytest.fixture
def profile_data() -> Callable[..., dict[str, Any]]:
    return profile_payload


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers


# ------------------------------------------------------------------------------
# 5. HTTP Client
# ------------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    image_store: MemoryImageStore,
    fake_redis: FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """
    获取异步 HTTP 客户端 (数据库 / Redis / 图片存储均已替换)。
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_redis() -> AsyncGenerator[FakeRedis, None]:
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_image_store] = lambda: image_store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"  # type: ignore
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
