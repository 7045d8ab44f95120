"""
文件模型
"""
import uuid
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, func
from dataroom.db.database import Base


class File(Base):
    __tablename__ = "files"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # 文件夹被删除时文件回到根目录
    folder_id = Column(String(36), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True)
    filename = Column(Text, nullable=False)
    original_name = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False)
    size = Column(Integer, nullable=False)
    blob_url = Column(Text, nullable=False)
    blob_pathname = Column(Text, nullable=False)
    is_public = Column(Integer, nullable=False, default=0, server_default="0")  # 0=私有, 1=公开
    description = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)  # JSON数组字符串
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
