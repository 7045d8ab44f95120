"""
文件夹管理API
"""
import logging
from datetime import datetime
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func

from dataroom.db.database import get_db
from dataroom.models.folder import Folder
from dataroom.models.file import File
from dataroom.schemas.common import MessageResponse
from dataroom.schemas.file import FileResponse
from dataroom.schemas.folder import (
    FolderCreate, FolderRename, FolderMove, FolderResponse, FolderWithCount,
    FolderEnvelope, FolderListResponse, FolderContentsResponse
)
from dataroom.services.folder_service import (
    get_owned_folder, sibling_name_exists, is_descendant_of, build_breadcrumbs
)
from dataroom.utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/folders", tags=["文件夹管理"])

NAME_CONFLICT = "A folder with this name already exists in this location"


def _clean_name(name: Optional[str]) -> str:
    """校验并去除文件夹名称首尾空白"""
    if not name or not name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Folder name is required"
        )
    return name.strip()


async def _list_subfolders(db: AsyncSession, user_id: str, parent_id: Optional[str]) -> List[FolderWithCount]:
    """
    查询某一层级的子文件夹（附带直接包含的文件数量）
    """
    file_count = (
        select(func.count(File.id))
        .where(and_(File.folder_id == Folder.id, File.user_id == user_id))
        .correlate(Folder)
        .scalar_subquery()
    )
    parent_clause = Folder.parent_id.is_(None) if parent_id is None else Folder.parent_id == parent_id
    result = await db.execute(
        select(Folder, file_count.label("file_count"))
        .where(and_(Folder.user_id == user_id, parent_clause))
        .order_by(Folder.name)
    )
    return [
        FolderWithCount(**FolderResponse.from_model(folder).model_dump(), fileCount=count or 0)
        for folder, count in result.all()
    ]


async def _list_files(db: AsyncSession, user_id: str, folder_id: Optional[str]) -> List[FileResponse]:
    folder_clause = File.folder_id.is_(None) if folder_id is None else File.folder_id == folder_id
    result = await db.execute(
        select(File)
        .where(and_(File.user_id == user_id, folder_clause))
        .order_by(File.original_name)
    )
    return [FileResponse.from_model(f) for f in result.scalars().all()]


@router.get("", response_model=FolderListResponse)
async def list_folders(
    parentId: Optional[str] = Query(None, description="父文件夹ID，不传表示根目录"),
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取某一层级的文件夹列表（默认根目录）
    """
    parent_clause = Folder.parent_id == parentId if parentId else Folder.parent_id.is_(None)
    result = await db.execute(
        select(Folder)
        .where(and_(Folder.user_id == current_user_id, parent_clause))
        .order_by(Folder.name)
    )
    folders = [FolderResponse.from_model(f) for f in result.scalars().all()]
    return FolderListResponse(message="Folders retrieved successfully", folders=folders)


@router.get("/root/contents", response_model=FolderContentsResponse)
async def get_root_contents(
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取根目录内容（不属于任何文件夹的文件夹和文件）
    """
    return FolderContentsResponse(
        message="Root contents retrieved successfully",
        currentFolder=None,
        folders=await _list_subfolders(db, current_user_id, None),
        files=await _list_files(db, current_user_id, None),
        breadcrumbs=[]
    )


@router.patch("/{folder_id}/move", response_model=FolderEnvelope)
async def move_folder(
    folder_id: str,
    move_data: FolderMove,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    移动文件夹到新的父文件夹（parentId为null表示移动到根目录）
    """
    folder = await get_owned_folder(db, folder_id, current_user_id)
    if not folder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Folder not found or access denied"
        )

    new_parent_id = move_data.parentId or None
    if new_parent_id:
        parent_folder = await get_owned_folder(db, new_parent_id, current_user_id)
        if not parent_folder:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Target parent folder not found or access denied"
            )

        # 不能移动到自己或自己的子孙文件夹下
        if await is_descendant_of(db, new_parent_id, folder_id, current_user_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot move folder into itself or its descendant"
            )

    if await sibling_name_exists(db, current_user_id, new_parent_id, folder.name, exclude_id=folder.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=NAME_CONFLICT
        )

    folder.parent_id = new_parent_id
    folder.updated_at = datetime.now()
    await db.commit()
    await db.refresh(folder)

    logger.info(f"User {current_user_id} moved folder {folder_id} to {new_parent_id or 'root'}")

    return FolderEnvelope(message="Folder moved successfully", folder=FolderResponse.from_model(folder))


@router.get("/{folder_id}/contents", response_model=FolderContentsResponse)
async def get_folder_contents(
    folder_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取文件夹内容（子文件夹、文件和面包屑导航）
    """
    if folder_id == "root":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use /folders/root/contents for root folder"
        )

    folder = await get_owned_folder(db, folder_id, current_user_id)
    if not folder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Folder not found"
        )

    return FolderContentsResponse(
        message="Folder contents retrieved successfully",
        currentFolder=FolderResponse.from_model(folder),
        folders=await _list_subfolders(db, current_user_id, folder_id),
        files=await _list_files(db, current_user_id, folder_id),
        breadcrumbs=await build_breadcrumbs(db, folder_id, current_user_id)
    )


@router.post("", response_model=FolderEnvelope, status_code=status.HTTP_201_CREATED)
async def create_folder(
    folder_data: FolderCreate,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    创建文件夹
    """
    name = _clean_name(folder_data.name)
    parent_id = folder_data.parentId or None

    # 如果有父文件夹，验证父文件夹是否存在且属于当前用户
    if parent_id and not await get_owned_folder(db, parent_id, current_user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parent folder not found"
        )

    if await sibling_name_exists(db, current_user_id, parent_id, name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=NAME_CONFLICT
        )

    new_folder = Folder(
        name=name,
        parent_id=parent_id,
        user_id=current_user_id
    )
    db.add(new_folder)
    await db.commit()
    await db.refresh(new_folder)

    return FolderEnvelope(message="Folder created successfully", folder=FolderResponse.from_model(new_folder))


@router.put("/{folder_id}", response_model=FolderEnvelope)
async def rename_folder(
    folder_id: str,
    rename_data: FolderRename,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    重命名文件夹
    """
    name = _clean_name(rename_data.name)

    folder = await get_owned_folder(db, folder_id, current_user_id)
    if not folder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Folder not found"
        )

    if await sibling_name_exists(db, current_user_id, folder.parent_id, name, exclude_id=folder.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=NAME_CONFLICT
        )

    folder.name = name
    folder.updated_at = datetime.now()
    await db.commit()
    await db.refresh(folder)

    return FolderEnvelope(message="Folder updated successfully", folder=FolderResponse.from_model(folder))


@router.delete("/{folder_id}", response_model=MessageResponse)
async def delete_folder(
    folder_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    删除文件夹（只能删除空文件夹）
    """
    folder = await get_owned_folder(db, folder_id, current_user_id)
    if not folder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Folder not found"
        )

    # 检查是否有子文件夹或文件
    child_result = await db.execute(select(Folder.id).where(Folder.parent_id == folder_id).limit(1))
    file_result = await db.execute(select(File.id).where(File.folder_id == folder_id).limit(1))

    if child_result.first() is not None or file_result.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete folder with contents. Please move or delete all contents first."
        )

    await db.delete(folder)
    await db.commit()

    logger.info(f"User {current_user_id} deleted folder {folder_id}")

    return MessageResponse(message="Folder deleted successfully")
