"""
Blob存储后端测试
"""
import asyncio
import json

import httpx
import pytest

from dataroom.core.config import settings
from dataroom.services.storage import (
    BlobStorageError, LocalBlobStorage, VercelBlobStorage, get_blob_storage
)


def test_local_storage_put_list_delete(tmp_path):
    storage = LocalBlobStorage(str(tmp_path / "blobs"), "http://testserver/blobs/")

    blob = asyncio.run(storage.put("u1/123-abc.txt", b"hello", "text/plain"))
    assert blob.url == "http://testserver/blobs/u1/123-abc.txt"
    assert blob.size == 5
    assert (tmp_path / "blobs" / "u1" / "123-abc.txt").read_bytes() == b"hello"

    asyncio.run(storage.put("u2/456-def.pdf", b"pdf", "application/pdf"))
    listed = asyncio.run(storage.list("u1/"))
    assert [b.pathname for b in listed] == ["u1/123-abc.txt"]

    asyncio.run(storage.delete(blob.url))
    assert not (tmp_path / "blobs" / "u1" / "123-abc.txt").exists()
    # 重复删除不报错
    asyncio.run(storage.delete("u1/123-abc.txt"))


def test_local_storage_rejects_path_traversal(tmp_path):
    storage = LocalBlobStorage(str(tmp_path / "blobs"), "http://testserver/blobs")
    with pytest.raises(BlobStorageError):
        asyncio.run(storage.put("../escape.txt", b"x", "text/plain"))


def test_vercel_storage_requests():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "PUT":
            return httpx.Response(200, json={
                "url": "https://store.blob.test/u1/a.txt",
                "pathname": "u1/a.txt",
            })
        if request.method == "POST":
            return httpx.Response(200, json={})
        if request.url.params.get("cursor") == "next":
            return httpx.Response(200, json={
                "blobs": [{"url": "https://store.blob.test/u1/b.txt", "pathname": "u1/b.txt", "size": 2}],
                "hasMore": False,
            })
        return httpx.Response(200, json={
            "blobs": [{"url": "https://store.blob.test/u1/a.txt", "pathname": "u1/a.txt", "size": 1}],
            "hasMore": True,
            "cursor": "next",
        })

    storage = VercelBlobStorage("token-123", "https://blob.test", transport=httpx.MockTransport(handler))

    blob = asyncio.run(storage.put("u1/a.txt", b"a", "text/plain"))
    assert blob.url == "https://store.blob.test/u1/a.txt"
    put_request = seen[0]
    assert put_request.url == "https://blob.test/u1/a.txt"
    assert put_request.headers["authorization"] == "Bearer token-123"
    assert put_request.headers["x-content-type"] == "text/plain"
    assert put_request.content == b"a"

    asyncio.run(storage.delete(blob.url))
    assert json.loads(seen[1].content) == {"urls": ["https://store.blob.test/u1/a.txt"]}

    listed = asyncio.run(storage.list("u1/"))
    assert [b.pathname for b in listed] == ["u1/a.txt", "u1/b.txt"]


def test_vercel_storage_wraps_http_errors():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    storage = VercelBlobStorage("token", "https://blob.test", transport=transport)
    with pytest.raises(BlobStorageError):
        asyncio.run(storage.put("u1/a.txt", b"a", "text/plain"))


def test_get_blob_storage_requires_token_for_vercel(monkeypatch):
    monkeypatch.setattr(settings, "BLOB_BACKEND", "vercel")
    monkeypatch.setattr(settings, "BLOB_READ_WRITE_TOKEN", None)
    get_blob_storage.cache_clear()
    try:
        with pytest.raises(BlobStorageError):
            get_blob_storage()
    finally:
        get_blob_storage.cache_clear()


def test_get_blob_storage_local(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "BLOB_BACKEND", "local")
    monkeypatch.setattr(settings, "BLOB_STORAGE_DIR", str(tmp_path))
    get_blob_storage.cache_clear()
    try:
        assert isinstance(get_blob_storage(), LocalBlobStorage)
    finally:
        get_blob_storage.cache_clear()
