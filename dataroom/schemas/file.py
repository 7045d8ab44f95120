"""
文件Schema模型
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from dataroom.utils.file import decode_tags, format_file_size


class FileUpdate(BaseModel):
    """更新文件元数据请求模型（未提供的字段保持不变）"""
    description: Optional[str] = Field(None, max_length=500, description="文件描述")
    tags: Optional[List[str]] = Field(None, description="标签数组")
    isPublic: Optional[bool] = Field(None, description="是否公开")


class FileMove(BaseModel):
    """移动文件请求模型"""
    folderId: Optional[str] = Field(None, description="目标文件夹ID，为null表示移动到根目录")


class FileResponse(BaseModel):
    """文件响应模型"""
    id: str
    userId: str
    folderId: Optional[str] = None
    filename: str
    originalName: str
    mimeType: str
    size: int
    formattedSize: str
    blobUrl: str
    blobPathname: str
    isPublic: bool
    description: Optional[str] = None
    tags: List[str] = []
    createdAt: datetime
    updatedAt: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, file) -> "FileResponse":
        return cls(
            id=file.id,
            userId=file.user_id,
            folderId=file.folder_id,
            filename=file.filename,
            originalName=file.original_name,
            mimeType=file.mime_type,
            size=file.size,
            formattedSize=format_file_size(file.size),
            blobUrl=file.blob_url,
            blobPathname=file.blob_pathname,
            isPublic=file.is_public == 1,
            description=file.description,
            tags=decode_tags(file.tags),
            createdAt=file.created_at,
            updatedAt=file.updated_at,
        )


class FileEnvelope(BaseModel):
    message: str
    file: FileResponse


class FileListResponse(BaseModel):
    message: str
    files: List[FileResponse]
    count: int
