import os
import tempfile

import bcrypt

ADMIN_PASSWORD = "harbour-pilot-42"

os.environ.setdefault("SVR_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SVR_JWT_SECRET", "test-secret-for-admin-tokens-0123456789")
os.environ.setdefault("SVR_ADMIN_USERNAME", "admin")
os.environ.setdefault(
    "SVR_ADMIN_PASSWORD_HASH",
    bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8"),
)
os.environ.setdefault("SVR_UPLOAD_DIR", tempfile.mkdtemp(prefix="svr-uploads-"))
os.environ.setdefault("SVR_S3_BUCKET", "")

from typing import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.core.auth import create_admin_token
from app.core.errors import NotFoundError, StorageError
from app.main import app
from app.models import Base
from app.services.object_storage import StoredObject


class FakeObjectStorage:
    """In-memory stand-in for the S3 gateway; records every call."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.presigned: list[tuple[str, str]] = []
        self.fail_deletes = False

    async def presign_put(self, key: str, content_type: str) -> str:
        self.presigned.append((key, content_type))
        return f"https://survey-docs.s3.amazonaws.com/{key}?X-Amz-Signature=put"

    async def presign_get(self, key: str) -> str:
        return f"https://survey-docs.s3.amazonaws.com/{key}?X-Amz-Signature=get"

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise StorageError("Storage delete failed")
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def open(self, key: str) -> StoredObject:
        if key not in self.objects:
            raise NotFoundError("File not found")
        data, content_type = self.objects[key]

        async def body() -> AsyncIterator[bytes]:
            yield data

        return StoredObject(body_iter=body(), content_type=content_type, content_length=len(data))


@pytest.fixture()
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def fake_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture()
async def client(async_engine, fake_storage):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False)

    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[deps.get_db_session] = override_get_db_session
    app.dependency_overrides[deps.get_storage] = lambda: fake_storage
    app.dependency_overrides[deps.get_optional_storage] = lambda: fake_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_token() -> str:
    return create_admin_token("admin")


@pytest.fixture()
def admin_headers(admin_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}
