"""
认证工具函数：密码哈希、JWT签发/校验以及基于角色的访问控制依赖
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import logging

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, Header, HTTPException, status

from dataroom.core.config import settings
from dataroom.core.constants import ROLE_HIERARCHY

logger = logging.getLogger(__name__)


@dataclass
class TokenUser:
    """从JWT中解析出的当前用户"""
    user_id: str
    role: str


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """使用bcrypt对密码进行哈希"""
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码与哈希是否匹配"""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 存储的哈希格式不合法
        return False


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT访问token

    Args:
        user_id: 用户ID
        role: 用户角色
        expires_delta: token过期时间增量，默认使用配置中的时间

    Returns:
        str: JWT token字符串
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"userId": user_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    验证JWT token，无效或过期时返回None
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("userId"):
        return None
    return payload


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """从Authorization请求头中提取token"""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


async def get_current_user(authorization: Optional[str] = Header(None)) -> TokenUser:
    """
    从请求头获取当前用户（通过JWT token）

    Raises:
        HTTPException: 未提供token或token无效
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Unauthorized",
                "message": "Authorization header with Bearer token is required",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid token",
                "message": "The provided token is invalid or expired",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenUser(user_id=str(payload["userId"]), role=payload.get("role") or "")


async def get_current_user_id(current_user: TokenUser = Depends(get_current_user)) -> str:
    return current_user.user_id


def _forbidden(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": "Forbidden", "message": message},
    )


def require_roles(*allowed_roles: str):
    """
    生成只允许指定角色访问的依赖
    """
    async def dependency(current_user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if not current_user.role:
            raise _forbidden("User role not found in token")
        if current_user.role not in allowed_roles:
            logger.warning(f"Role {current_user.role} denied, requires one of {allowed_roles}")
            raise _forbidden(
                f"Access denied. Required role(s): {', '.join(allowed_roles)}. Your role: {current_user.role}"
            )
        return current_user

    return dependency


def require_minimum_role(minimum_role: str):
    """
    生成按角色等级判断的依赖，未知角色视为最低等级
    """
    required_level = ROLE_HIERARCHY.get(minimum_role, 999)

    async def dependency(current_user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if not current_user.role:
            raise _forbidden("User role not found in token")
        if ROLE_HIERARCHY.get(current_user.role, -1) < required_level:
            raise _forbidden(
                f"Access denied. Minimum required role: {minimum_role}. Your role: {current_user.role}"
            )
        return current_user

    return dependency


require_admin = require_roles("admin", "super_admin")
require_super_admin = require_roles("super_admin")
require_moderator = require_roles("moderator", "admin", "super_admin")
