"""
用户资料API
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from dataroom.db.database import get_db
from dataroom.models.user import User
from dataroom.schemas.user import ProfileUpdate, UserResponse, UserEnvelope, UserListResponse
from dataroom.utils.auth import get_current_user_id

router = APIRouter(prefix="/users", tags=["用户"])


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    获取当前用户资料
    """
    user = await _get_user_or_404(db, current_user_id)
    return UserEnvelope(
        message="Profile retrieved successfully",
        user=UserResponse.from_model(user)
    )


@router.put("/profile", response_model=UserEnvelope)
@router.put("/update", response_model=UserEnvelope, include_in_schema=False)
async def update_profile(
    update_data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    更新当前用户的姓名和年龄
    """
    if not update_data.name and update_data.age is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field (name or age) is required"
        )

    user = await _get_user_or_404(db, current_user_id)

    if update_data.name:
        user.name = update_data.name.strip()
    if update_data.age is not None:
        user.age = update_data.age
    user.updated_at = datetime.now()

    await db.commit()
    await db.refresh(user)

    return UserEnvelope(
        message="Profile updated successfully",
        user=UserResponse.from_model(user)
    )


@router.get("", response_model=UserListResponse)
async def list_users(db: AsyncSession = Depends(get_db)):
    """
    获取所有用户（公开接口，不返回密码）
    """
    result = await db.execute(select(User).order_by(User.created_at))
    users = [UserResponse.from_model(u) for u in result.scalars().all()]
    return UserListResponse(
        message="Users retrieved successfully",
        users=users,
        count=len(users)
    )


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """
    根据ID获取用户
    """
    user = await _get_user_or_404(db, user_id)
    return UserEnvelope(
        message="User retrieved successfully",
        user=UserResponse.from_model(user)
    )
