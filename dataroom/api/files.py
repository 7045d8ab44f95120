"""
文件管理API
"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, File as Upload, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.db.database import get_db
from dataroom.schemas.common import MessageResponse
from dataroom.schemas.file import FileUpdate, FileMove, FileResponse, FileEnvelope, FileListResponse
from dataroom.services.file_service import FileService, FileValidationError
from dataroom.services.folder_service import get_owned_folder
from dataroom.services.storage import BlobStorage, BlobStorageError, get_blob_storage
from dataroom.utils.auth import get_current_user_id
from dataroom.utils.file import parse_tag_string, sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["文件管理"])

NOT_FOUND = "File not found or access denied"


@router.post("/upload", response_model=FileEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = Upload(None),
    isPublic: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    folderId: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    上传文件（multipart/form-data）
    """
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided"
        )

    if folderId and not await get_owned_folder(db, folderId, current_user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Target folder not found or access denied"
        )

    try:
        data = await FileService.read_upload(file)
        new_file = await FileService.upload_file(
            db,
            storage,
            user_id=current_user_id,
            original_name=sanitize_filename(file.filename),
            mime_type=file.content_type,
            data=data,
            is_public=isPublic == "true",
            description=description,
            tags=parse_tag_string(tags),
            folder_id=folderId or None
        )
    except FileValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except BlobStorageError as e:
        logger.error(f"Upload error: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to upload file"
        )

    return FileEnvelope(message="File uploaded successfully", file=FileResponse.from_model(new_file))


@router.get("/my-files", response_model=FileListResponse)
async def get_my_files(
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取当前用户的所有文件
    """
    files = [FileResponse.from_model(f) for f in await FileService.get_user_files(db, current_user_id)]
    return FileListResponse(
        message="Files retrieved successfully",
        files=files,
        count=len(files)
    )


@router.get("/file/{file_id}", response_model=FileEnvelope)
async def get_file(
    file_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取文件详情（自己的文件或公开文件）
    """
    file = await FileService.get_file_by_id(db, file_id, current_user_id)
    if not file:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    return FileEnvelope(message="File retrieved successfully", file=FileResponse.from_model(file))


@router.put("/file/{file_id}", response_model=FileEnvelope)
async def update_file(
    file_id: str,
    update_data: FileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    更新文件描述、标签或公开状态
    """
    file = await FileService.update_file_metadata(
        db, file_id, current_user_id, update_data.model_dump(exclude_unset=True)
    )
    if not file:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    return FileEnvelope(message="File updated successfully", file=FileResponse.from_model(file))


@router.delete("/file/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    删除文件（同时删除Blob）
    """
    try:
        deleted = await FileService.delete_file(db, storage, file_id, current_user_id)
    except BlobStorageError as e:
        logger.error(f"File deletion error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete file"
        )

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    return MessageResponse(message="File deleted successfully")


@router.get("/public/{file_id}")
async def get_public_file(file_id: str, db: AsyncSession = Depends(get_db)):
    """
    公开文件访问（无需登录），重定向到Blob地址
    """
    file = await FileService.get_file_by_id(db, file_id)
    if not file or not file.is_public:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found or not public"
        )

    return RedirectResponse(url=file.blob_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.patch("/{file_id}/move", response_model=FileEnvelope)
async def move_file(
    file_id: str,
    move_data: FileMove,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    移动文件到其他文件夹（folderId为null表示移动到根目录）
    """
    file = await FileService.get_owned_file(db, file_id, current_user_id)
    if not file:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    target_folder_id = move_data.folderId or None
    if target_folder_id and not await get_owned_folder(db, target_folder_id, current_user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Target folder not found or access denied"
        )

    file.folder_id = target_folder_id
    file.updated_at = datetime.now()
    await db.commit()
    await db.refresh(file)

    logger.info(f"User {current_user_id} moved file {file_id} to {target_folder_id or 'root'}")

    return FileEnvelope(message="File moved successfully", file=FileResponse.from_model(file))
