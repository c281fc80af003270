from tasknest.db.repositories.common import RepositoryConflictError, commit_or_raise
from tasknest.db.repositories.folder_repository import FolderRepository
from tasknest.db.repositories.task_repository import TaskRepository
from tasknest.db.repositories.user_repository import UserRepository

__all__ = [
    "FolderRepository",
    "RepositoryConflictError",
    "TaskRepository",
    "UserRepository",
    "commit_or_raise",
]
