"""
数据库连接和会话管理
"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from dataroom.core.config import settings

engine_options = {
    "echo": settings.DEBUG,
    "pool_pre_ping": True,
}
# SQLite（开发/测试）不支持连接池大小参数
if not settings.DATABASE_URL.startswith("sqlite"):
    engine_options.update(pool_size=10, max_overflow=20)

# 创建异步引擎
engine = create_async_engine(settings.DATABASE_URL, **engine_options)

# 创建会话工厂
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# 创建Base类
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    获取数据库会话依赖
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """
    创建所有数据表（已存在的表会被跳过）
    """
    # 导入模型以注册到 Base.metadata
    from dataroom import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
