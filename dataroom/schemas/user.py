"""
用户Schema模型
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class SignupRequest(BaseModel):
    """注册请求模型（必填项在服务层校验，以返回统一的错误信息）"""
    name: Optional[str] = Field(None, max_length=100, description="用户名")
    email: Optional[str] = Field(None, max_length=255, description="邮箱")
    password: Optional[str] = Field(None, description="密码")
    age: Optional[int] = Field(None, ge=0, le=150, description="年龄")


class LoginRequest(BaseModel):
    """登录请求模型"""
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    """更新个人资料请求模型"""
    name: Optional[str] = Field(None, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)


class RoleUpdate(BaseModel):
    """修改角色请求模型"""
    role: Optional[str] = None


class UserResponse(BaseModel):
    """用户响应模型（不含密码）"""
    id: str
    name: str
    email: str
    age: int
    role: str
    createdAt: datetime
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            role=user.role,
            createdAt=user.created_at,
            updatedAt=user.updated_at,
        )


class AuthResponse(BaseModel):
    """注册/登录响应"""
    message: str
    user: UserResponse
    token: str


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    message: str
    users: List[UserResponse]
    count: int
