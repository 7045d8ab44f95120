"""
应用配置文件
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """应用配置"""

    # 应用基本配置
    APP_NAME: str = "DataRoom"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "dataroom"
    DB_URL: Optional[str] = None

    # JWT配置
    JWT_SECRET_KEY: str = "default-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    BCRYPT_ROUNDS: int = 12

    # CORS配置
    CORS_ORIGINS: list = ["*"]

    # 文件上传配置
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    # Blob存储配置: local | vercel
    BLOB_BACKEND: str = "local"
    BLOB_STORAGE_DIR: str = "storage/blobs"
    BLOB_BASE_URL: str = "http://localhost:8000/blobs"
    BLOB_API_URL: str = "https://blob.vercel-storage.com"
    BLOB_READ_WRITE_TOKEN: Optional[str] = None

    # 种子数据
    SEED_USERS: int = 20
    SEED_FILES: int = 50

    @property
    def DATABASE_URL(self) -> str:
        """获取数据库连接URL"""
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USERNAME}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def MAX_FILE_SIZE_MB(self) -> int:
        return self.MAX_FILE_SIZE // (1024 * 1024)

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
