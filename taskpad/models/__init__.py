from .task import Task
from .user import IdentitySource, User
from .session import SessionRecord

# Export all models for easy importing
__all__ = ["Task", "User", "IdentitySource", "SessionRecord"]
