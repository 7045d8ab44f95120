"""
填充开发环境示例数据（用户和文件元数据）

用法:
    python seed.py           # 追加示例数据
    python seed.py --reset   # 先清空文件、文件夹和用户表
"""
import argparse
import asyncio
import json
import random

from sqlalchemy import delete

from dataroom.core.config import settings
from dataroom.db.database import AsyncSessionLocal, init_db
from dataroom.models import User, Folder, File
from dataroom.utils.auth import hash_password

SEED_ROLES = ("user", "admin")
SEED_PASSWORD = "password123"
SEED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "application/pdf",
    "text/plain",
    "application/json",
    "text/csv",
)


def generate_sample_users(count: int, password_hash: str) -> list:
    """生成示例用户"""
    return [
        User(
            name=f"User {i + 1}",
            email=f"user{i + 1}@example.com",
            age=random.randint(18, 79),
            role=random.choice(SEED_ROLES),
            password=password_hash,
        )
        for i in range(count)
    ]


def generate_sample_files(count: int, user_ids: list) -> list:
    """生成示例文件记录（Blob地址为占位符）"""
    return [
        File(
            user_id=random.choice(user_ids),
            filename=f"file-{i + 1}.txt",
            original_name=f"Original File {i + 1}",
            mime_type=random.choice(SEED_MIME_TYPES),
            size=random.randint(1024, 10 * 1024 * 1024),
            blob_url=f"https://example.com/file-{i + 1}",
            blob_pathname=f"/uploads/file-{i + 1}",
            is_public=1 if random.random() > 0.5 else 0,
            description=f"Description for file {i + 1}",
            tags=json.dumps(["tag1", "tag2"]),
        )
        for i in range(count)
    ]


async def seed_database(user_count: int, file_count: int, reset: bool = False):
    """写入示例数据"""
    await init_db()

    async with AsyncSessionLocal() as session:
        if reset:
            print("清空已有数据...")
            # 按照依赖关系的顺序删除
            for model in (File, Folder, User):
                await session.execute(delete(model))
            await session.commit()

        # 所有示例用户共用同一个密码，只需哈希一次
        password_hash = hash_password(SEED_PASSWORD)
        users = generate_sample_users(user_count, password_hash)
        session.add_all(users)
        await session.flush()
        print(f"✅ 创建了 {len(users)} 个用户（密码: {SEED_PASSWORD}）")

        files = generate_sample_files(file_count, [u.id for u in users]) if users else []
        session.add_all(files)
        await session.commit()
        print(f"✅ 创建了 {len(files)} 条文件记录")


def main():
    parser = argparse.ArgumentParser(description="填充DataRoom示例数据")
    parser.add_argument("--users", type=int, default=settings.SEED_USERS, help="用户数量")
    parser.add_argument("--files", type=int, default=settings.SEED_FILES, help="文件数量")
    parser.add_argument("--reset", action="store_true", help="写入前清空文件、文件夹和用户表")
    args = parser.parse_args()

    asyncio.run(seed_database(args.users, args.files, reset=args.reset))


if __name__ == "__main__":
    main()
