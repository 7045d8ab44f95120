"""
文件相关工具函数
"""
import json
import re
from typing import List, Optional

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """
    格式化文件大小，例如 1536 -> "1.5 KB"
    """
    if not size or size <= 0:
        return "0 Bytes"
    value = float(size)
    i = 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    formatted = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return f"{formatted} {_SIZE_UNITS[i]}"


def get_file_extension(filename: str) -> str:
    """获取小写扩展名（不含点），没有扩展名时返回空字符串"""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def sanitize_filename(filename: str) -> str:
    """替换文件名中的非法字符"""
    return _INVALID_FILENAME_CHARS.sub("_", filename).strip()


def parse_tag_string(raw: Optional[str]) -> Optional[List[str]]:
    """
    解析表单中逗号分隔的标签，空字符串返回None
    """
    if not raw:
        return None
    tags = [t.strip() for t in raw.split(",")]
    return [t for t in tags if t] or None


def encode_tags(tags: Optional[List[str]]) -> Optional[str]:
    if tags is None:
        return None
    return json.dumps(tags)


def decode_tags(raw: Optional[str]) -> List[str]:
    """
    数据库中的标签为JSON字符串，解析失败时按无标签处理
    """
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except ValueError:
        return []
    return [str(t) for t in tags] if isinstance(tags, list) else []
