from .identity import IdentityStore, normalize_email
from .sessions import SessionManager
from .tasks import TaskStore

__all__ = ["IdentityStore", "SessionManager", "TaskStore", "normalize_email"]
