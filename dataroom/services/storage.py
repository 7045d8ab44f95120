"""
Blob存储服务

文件内容保存在Blob存储中，数据库只保存元数据和访问URL。
支持两种后端：
- local: 保存到本地目录，通过 /blobs 静态路由访问（开发环境）
- vercel: Vercel Blob REST API
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import logging

import httpx

from dataroom.core.config import settings

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Blob存储操作失败"""


@dataclass
class StoredBlob:
    url: str
    pathname: str
    size: Optional[int] = None


class BlobStorage(ABC):
    """Blob存储接口：按key写入、删除、列举"""

    @abstractmethod
    async def put(self, pathname: str, data: bytes, content_type: str) -> StoredBlob:
        ...

    @abstractmethod
    async def delete(self, url_or_pathname: str) -> None:
        ...

    @abstractmethod
    async def list(self, prefix: str = "") -> List[StoredBlob]:
        ...


class LocalBlobStorage(BlobStorage):
    """本地磁盘存储"""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, pathname: str) -> Path:
        target = (self.root / pathname.lstrip("/")).resolve()
        if self.root not in target.parents:
            raise BlobStorageError(f"Invalid blob pathname: {pathname}")
        return target

    def _pathname_from(self, url_or_pathname: str) -> str:
        if url_or_pathname.startswith(self.base_url + "/"):
            return url_or_pathname[len(self.base_url) + 1:]
        return url_or_pathname

    async def put(self, pathname: str, data: bytes, content_type: str) -> StoredBlob:
        target = self._resolve(pathname)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise BlobStorageError(f"Failed to write blob {pathname}: {e}") from e
        return StoredBlob(url=f"{self.base_url}/{pathname}", pathname=pathname, size=len(data))

    async def delete(self, url_or_pathname: str) -> None:
        target = self._resolve(self._pathname_from(url_or_pathname))
        target.unlink(missing_ok=True)

    async def list(self, prefix: str = "") -> List[StoredBlob]:
        blobs = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            pathname = path.relative_to(self.root).as_posix()
            if pathname.startswith(prefix):
                blobs.append(StoredBlob(
                    url=f"{self.base_url}/{pathname}",
                    pathname=pathname,
                    size=path.stat().st_size,
                ))
        return blobs


class VercelBlobStorage(BlobStorage):
    """Vercel Blob REST API"""

    API_VERSION = "7"

    def __init__(
        self,
        token: str,
        api_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _headers(self, **extra: str) -> dict:
        headers = {
            "authorization": f"Bearer {self.token}",
            "x-api-version": self.API_VERSION,
        }
        headers.update(extra)
        return headers

    async def put(self, pathname: str, data: bytes, content_type: str) -> StoredBlob:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.put(
                    f"{self.api_url}/{pathname}",
                    content=data,
                    headers=self._headers(**{
                        "x-content-type": content_type,
                        "x-add-random-suffix": "0",
                    }),
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            raise BlobStorageError(f"Failed to upload blob {pathname}: {e}") from e

        return StoredBlob(url=result["url"], pathname=result.get("pathname", pathname), size=len(data))

    async def delete(self, url_or_pathname: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/delete",
                    json={"urls": [url_or_pathname]},
                    headers=self._headers(),
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlobStorageError(f"Failed to delete blob {url_or_pathname}: {e}") from e

    async def list(self, prefix: str = "") -> List[StoredBlob]:
        blobs = []
        cursor = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                while True:
                    params = {"prefix": prefix} if prefix else {}
                    if cursor:
                        params["cursor"] = cursor
                    response = await client.get(self.api_url, params=params, headers=self._headers())
                    response.raise_for_status()
                    data = response.json()
                    for item in data.get("blobs", []):
                        blobs.append(StoredBlob(url=item["url"], pathname=item["pathname"], size=item.get("size")))
                    if not data.get("hasMore"):
                        break
                    cursor = data.get("cursor")
        except httpx.HTTPError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}") from e
        return blobs


@lru_cache()
def get_blob_storage() -> BlobStorage:
    """
    根据配置创建Blob存储（FastAPI依赖，进程内单例）
    """
    if settings.BLOB_BACKEND == "vercel":
        if not settings.BLOB_READ_WRITE_TOKEN:
            raise BlobStorageError("BLOB_READ_WRITE_TOKEN is required for the vercel blob backend")
        return VercelBlobStorage(settings.BLOB_READ_WRITE_TOKEN, settings.BLOB_API_URL)
    if settings.BLOB_BACKEND != "local":
        raise BlobStorageError(f"Unknown blob backend: {settings.BLOB_BACKEND}")
    logger.info(f"Using local blob storage at {settings.BLOB_STORAGE_DIR}")
    return LocalBlobStorage(settings.BLOB_STORAGE_DIR, settings.BLOB_BASE_URL)
