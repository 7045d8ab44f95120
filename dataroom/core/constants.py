"""
常量定义
"""

# 允许上传的MIME类型
ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

# 角色等级，数值越大权限越高
ROLE_HIERARCHY = {
    "user": 0,
    "moderator": 1,
    "admin": 2,
    "super_admin": 3,
}

MODERATION_ACTIONS = [
    "View reports",
    "Moderate content",
    "Manage user warnings",
]

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
