from .user import User, UserRole
from .folder import Folder
from .file import File

__all__ = [
    "User",
    "UserRole",
    "Folder",
    "File",
]
