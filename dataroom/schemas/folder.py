"""
文件夹Schema模型
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from dataroom.schemas.file import FileResponse


class FolderCreate(BaseModel):
    """创建文件夹请求模型"""
    name: Optional[str] = Field(None, max_length=255, description="文件夹名称")
    parentId: Optional[str] = Field(None, description="父文件夹ID，为null表示根目录")


class FolderRename(BaseModel):
    """重命名文件夹请求模型"""
    name: Optional[str] = Field(None, max_length=255, description="新文件夹名称")


class FolderMove(BaseModel):
    """移动文件夹请求模型"""
    parentId: Optional[str] = Field(None, description="新父文件夹ID，为null表示移动到根目录")


class FolderResponse(BaseModel):
    """文件夹响应模型"""
    id: str
    name: str
    parentId: Optional[str] = None
    userId: str
    createdAt: datetime
    updatedAt: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, folder) -> "FolderResponse":
        return cls(
            id=folder.id,
            name=folder.name,
            parentId=folder.parent_id,
            userId=folder.user_id,
            createdAt=folder.created_at,
            updatedAt=folder.updated_at,
        )


class FolderWithCount(FolderResponse):
    """带文件数量的文件夹"""
    fileCount: int = 0


class Breadcrumb(BaseModel):
    """面包屑导航节点"""
    id: str
    name: str
    path: str


class FolderEnvelope(BaseModel):
    message: str
    folder: FolderResponse


class FolderListResponse(BaseModel):
    message: str
    folders: List[FolderResponse]


class FolderContentsResponse(BaseModel):
    """文件夹内容（子文件夹 + 文件 + 面包屑）"""
    message: str
    currentFolder: Optional[FolderResponse] = None
    folders: List[FolderWithCount]
    files: List[FileResponse]
    breadcrumbs: List[Breadcrumb]
