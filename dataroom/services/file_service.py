"""
文件服务：上传校验、Blob写入与元数据管理
"""
import secrets
import time
from datetime import datetime
from typing import Optional, List, Dict, Any
import logging

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from dataroom.core.config import settings
from dataroom.core.constants import ALLOWED_MIME_TYPES
from dataroom.models.file import File
from dataroom.services.storage import BlobStorage
from dataroom.utils.file import encode_tags, get_file_extension

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class FileValidationError(ValueError):
    """上传文件不符合大小或类型限制"""


class FileService:
    """文件服务类"""

    @staticmethod
    def is_valid_mime_type(mime_type: Optional[str]) -> bool:
        return mime_type in ALLOWED_MIME_TYPES

    @staticmethod
    async def read_upload(upload: UploadFile, max_bytes: Optional[int] = None) -> bytes:
        """
        分块读取上传内容，超过大小限制时立即中止

        Raises:
            FileValidationError: 文件超过大小限制
        """
        limit = max_bytes or settings.MAX_FILE_SIZE
        chunks = []
        size = 0
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                raise FileValidationError(f"File size exceeds limit of {limit // (1024 * 1024)}MB")
            chunks.append(chunk)
        await upload.close()
        return b"".join(chunks)

    @staticmethod
    def generate_blob_pathname(user_id: str, original_name: str) -> str:
        """生成唯一的Blob路径：<userId>/<毫秒时间戳>-<随机串>.<扩展名>，没有扩展名时不带点"""
        timestamp = int(time.time() * 1000)
        random_id = secrets.token_hex(6)
        extension = get_file_extension(original_name)
        name = f"{timestamp}-{random_id}.{extension}" if extension else f"{timestamp}-{random_id}"
        return f"{user_id}/{name}"

    @classmethod
    async def upload_file(
        cls,
        db: AsyncSession,
        storage: BlobStorage,
        user_id: str,
        original_name: str,
        mime_type: Optional[str],
        data: bytes,
        is_public: bool = False,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        folder_id: Optional[str] = None,
    ) -> File:
        """
        校验并上传文件，写入Blob后保存元数据

        Raises:
            FileValidationError: 大小或类型不合法
            BlobStorageError: Blob写入失败
        """
        if len(data) > settings.MAX_FILE_SIZE:
            raise FileValidationError(f"File size exceeds limit of {settings.MAX_FILE_SIZE_MB}MB")

        if not cls.is_valid_mime_type(mime_type):
            raise FileValidationError(f"File type {mime_type} is not allowed")

        pathname = cls.generate_blob_pathname(user_id, original_name)
        blob = await storage.put(pathname, data, mime_type)

        new_file = File(
            user_id=user_id,
            folder_id=folder_id,
            filename=pathname,
            original_name=original_name,
            mime_type=mime_type,
            size=len(data),
            blob_url=blob.url,
            blob_pathname=blob.pathname,
            is_public=1 if is_public else 0,
            description=description or None,
            tags=encode_tags(tags),
        )
        db.add(new_file)
        try:
            await db.commit()
        except Exception:
            # 元数据写入失败时清理已上传的Blob
            await db.rollback()
            await storage.delete(blob.url)
            raise
        await db.refresh(new_file)

        logger.info(f"User {user_id} uploaded {original_name} ({len(data)} bytes) as {pathname}")
        return new_file

    @staticmethod
    async def get_user_files(db: AsyncSession, user_id: str) -> List[File]:
        result = await db.execute(
            select(File).where(File.user_id == user_id).order_by(File.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_file_by_id(db: AsyncSession, file_id: str, user_id: Optional[str] = None) -> Optional[File]:
        """
        获取文件；指定 user_id 时，私有文件只对所有者可见
        """
        result = await db.execute(select(File).where(File.id == file_id))
        file = result.scalar_one_or_none()
        if file is None:
            return None

        if not file.is_public and user_id and file.user_id != user_id:
            return None

        return file

    @staticmethod
    async def get_owned_file(db: AsyncSession, file_id: str, user_id: str) -> Optional[File]:
        result = await db.execute(
            select(File).where(File.id == file_id, File.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @classmethod
    async def delete_file(cls, db: AsyncSession, storage: BlobStorage, file_id: str, user_id: str) -> bool:
        """
        删除文件（先删Blob再删记录），文件不存在或不属于该用户时返回False
        """
        file = await cls.get_owned_file(db, file_id, user_id)
        if file is None:
            return False

        await storage.delete(file.blob_url)
        await db.delete(file)
        await db.commit()

        logger.info(f"User {user_id} deleted file {file_id}")
        return True

    @classmethod
    async def update_file_metadata(
        cls,
        db: AsyncSession,
        file_id: str,
        user_id: str,
        updates: Dict[str, Any],
    ) -> Optional[File]:
        """
        更新文件描述、标签和公开状态，只修改 updates 中出现的字段
        """
        file = await cls.get_owned_file(db, file_id, user_id)
        if file is None:
            return None

        if "description" in updates:
            file.description = updates["description"]
        if "tags" in updates:
            file.tags = encode_tags(updates["tags"])
        if "isPublic" in updates and updates["isPublic"] is not None:
            file.is_public = 1 if updates["isPublic"] else 0
        file.updated_at = datetime.now()

        await db.commit()
        await db.refresh(file)
        return file

