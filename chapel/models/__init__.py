from .base import Base
from .user import User
from .post import Post
from .comment import Comment
from .audit_log import AuditLog

__all__ = [
    "Base",
    "User",
    "Post",
    "Comment",
    "AuditLog",
]
