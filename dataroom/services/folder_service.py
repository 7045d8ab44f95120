"""
文件夹树相关服务
"""
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from dataroom.models.folder import Folder
from dataroom.schemas.folder import Breadcrumb


async def get_owned_folder(db: AsyncSession, folder_id: str, user_id: str) -> Optional[Folder]:
    """查询属于指定用户的文件夹，不存在或不属于该用户时返回None"""
    result = await db.execute(
        select(Folder).where(
            and_(
                Folder.id == folder_id,
                Folder.user_id == user_id
            )
        )
    )
    return result.scalar_one_or_none()


async def sibling_name_exists(
    db: AsyncSession,
    user_id: str,
    parent_id: Optional[str],
    name: str,
    exclude_id: Optional[str] = None
) -> bool:
    """
    检查同一父目录下是否已有同名文件夹
    """
    parent_clause = Folder.parent_id.is_(None) if parent_id is None else Folder.parent_id == parent_id
    conditions = [
        Folder.user_id == user_id,
        parent_clause,
        Folder.name == name,
    ]
    if exclude_id is not None:
        conditions.append(Folder.id != exclude_id)

    result = await db.execute(select(Folder.id).where(and_(*conditions)).limit(1))
    return result.first() is not None


async def is_descendant_of(db: AsyncSession, target_id: str, source_id: str, user_id: str) -> bool:
    """
    判断 target_id 是否为 source_id 本身或其子孙文件夹

    从 source 开始逐层向下遍历（每层一次查询），用于移动文件夹前的循环检测。
    """
    if target_id == source_id:
        return True

    result = await db.execute(
        select(Folder.id).where(
            and_(
                Folder.parent_id == source_id,
                Folder.user_id == user_id
            )
        )
    )
    for child_id in result.scalars().all():
        if await is_descendant_of(db, target_id, child_id, user_id):
            return True

    return False


async def build_breadcrumbs(db: AsyncSession, folder_id: str, user_id: str) -> List[Breadcrumb]:
    """
    构建面包屑导航：沿 parent_id 向上查找直到根目录，返回从根到当前文件夹的列表
    """
    breadcrumbs: List[Breadcrumb] = []
    visited = set()
    current_id: Optional[str] = folder_id

    while current_id and current_id not in visited:
        visited.add(current_id)
        folder = await get_owned_folder(db, current_id, user_id)
        if folder is None:
            break
        breadcrumbs.append(Breadcrumb(id=folder.id, name=folder.name, path=f"/{folder.name}"))
        current_id = folder.parent_id

    breadcrumbs.reverse()
    return breadcrumbs
