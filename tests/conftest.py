"""
测试公共夹具：每个测试使用独立的SQLite数据库和内存Blob存储
"""
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from typing import Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from main import app
from dataroom import models  # noqa: F401
from dataroom.db.database import Base, get_db
from dataroom.services.storage import BlobStorage, StoredBlob, get_blob_storage
from dataroom.utils.auth import create_access_token


class InMemoryBlobStorage(BlobStorage):
    """测试用Blob存储"""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    async def put(self, pathname: str, data: bytes, content_type: str) -> StoredBlob:
        self.blobs[pathname] = data
        self.content_types[pathname] = content_type
        return StoredBlob(url=f"https://blobs.test/{pathname}", pathname=pathname, size=len(data))

    async def delete(self, url_or_pathname: str) -> None:
        self.blobs.pop(url_or_pathname.replace("https://blobs.test/", ""), None)

    async def list(self, prefix: str = "") -> List[StoredBlob]:
        return [
            StoredBlob(url=f"https://blobs.test/{p}", pathname=p, size=len(d))
            for p, d in sorted(self.blobs.items())
            if p.startswith(prefix)
        ]


@pytest.fixture
def blob_storage():
    return InMemoryBlobStorage()


@pytest.fixture
def client(tmp_path, blob_storage):
    db_file = tmp_path / "dataroom.db"

    # 用同步引擎建表，请求中使用异步引擎（NullPool避免跨事件循环复用连接）
    sync_engine = create_engine(f"sqlite:///{db_file}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)
    session_factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """注册用户，返回 (user, headers)"""
    counter = {"n": 0}

    def _signup(name: str = None, email: str = None, password: str = "Secret123", age: int = 30):
        counter["n"] += 1
        name = name or f"Tester {counter['n']}"
        email = email or f"tester{counter['n']}@example.com"
        r = client.post("/auth/signup", json={
            "name": name,
            "email": email,
            "password": password,
            "age": age,
        })
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _signup


@pytest.fixture
def role_headers():
    """为已有用户伪造指定角色的token"""
    def _headers(user_id: str, role: str):
        return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

    return _headers
