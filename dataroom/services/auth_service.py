"""
认证服务
"""
import re
from typing import Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from dataroom.core.constants import EMAIL_PATTERN
from dataroom.models.user import User, UserRole
from dataroom.utils.auth import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """认证失败（凭证错误）"""


class DuplicateEmailError(Exception):
    """邮箱已被注册"""


class AuthService:
    """认证服务类"""

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def is_valid_email(email: str) -> bool:
        return re.match(EMAIL_PATTERN, email) is not None

    @classmethod
    async def get_user_by_email(cls, db: AsyncSession, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == cls.normalize_email(email))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def signup(
        cls,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        age: Optional[int] = None
    ) -> Tuple[User, str]:
        """
        注册新用户并签发token

        Raises:
            DuplicateEmailError: 邮箱已存在
        """
        if await cls.get_user_by_email(db, email):
            raise DuplicateEmailError(email)

        user = User(
            name=name.strip(),
            email=cls.normalize_email(email),
            password=hash_password(password),
            age=age or 0,
            role=UserRole.USER.value,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"New user signed up: {user.id} ({user.email})")
        return user, create_access_token(user.id, user.role)

    @classmethod
    async def authenticate(cls, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        """
        校验邮箱和密码，成功后签发token

        Raises:
            AuthError: 用户不存在或密码错误
        """
        user = await cls.get_user_by_email(db, email)
        if user is None or not verify_password(password, user.password):
            raise AuthError("Invalid credentials")

        return user, create_access_token(user.id, user.role)
