"""
管理后台API（基于角色的访问控制）
"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from dataroom.core.constants import MODERATION_ACTIONS
from dataroom.db.database import get_db
from dataroom.models.user import User, UserRole
from dataroom.schemas.user import RoleUpdate, UserResponse, UserEnvelope, UserListResponse
from dataroom.utils.auth import TokenUser, require_admin, require_moderator, require_minimum_role

logger = logging.getLogger(__name__)

router = APIRouter(tags=["管理"])


@router.get("/admin/users", response_model=UserListResponse)
async def admin_list_users(
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(require_admin)
):
    """
    获取所有用户详情（仅管理员）
    """
    result = await db.execute(select(User).order_by(User.created_at))
    users = [UserResponse.from_model(u) for u in result.scalars().all()]
    return UserListResponse(
        message="All users retrieved (admin access)",
        users=users,
        count=len(users)
    )


@router.put("/admin/users/{user_id}/role", response_model=UserEnvelope)
async def update_user_role(
    user_id: str,
    role_data: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(require_admin)
):
    """
    修改用户角色（仅管理员）
    """
    valid_roles = [r.value for r in UserRole]
    if not role_data.role or role_data.role not in valid_roles:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid role", "validRoles": valid_roles}
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    user.role = role_data.role
    user.updated_at = datetime.now()
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {current_user.user_id} changed role of {user_id} to {role_data.role}")

    return UserEnvelope(
        message="User role updated successfully",
        user=UserResponse.from_model(user)
    )


@router.get("/moderation/dashboard")
async def moderation_dashboard(current_user: TokenUser = Depends(require_moderator)):
    """
    审核面板（版主及以上）
    """
    return {
        "message": "Moderation dashboard access granted",
        "userRole": current_user.role,
        "availableActions": MODERATION_ACTIONS,
    }


@router.get("/management/stats")
async def management_stats(
    db: AsyncSession = Depends(get_db),
    current_user: TokenUser = Depends(require_minimum_role(UserRole.MODERATOR.value))
):
    """
    用户统计（最低版主等级）
    """
    result = await db.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    )
    role_distribution = {role: count for role, count in result.all()}

    return {
        "message": "Management statistics",
        "userRole": current_user.role,
        "statistics": {
            "totalUsers": sum(role_distribution.values()),
            "roleDistribution": role_distribution,
        },
    }
