"""
通用Schema模型
"""
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """仅包含提示信息的响应"""
    message: str
