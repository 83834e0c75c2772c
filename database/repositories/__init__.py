"""
Repository pattern for entity persistence
"""

from typing import Dict, Optional

from shared.constants import (
    PERSISTENCE_LOCAL,
    PERSISTENCE_REMOTE,
    COLLECTION_TRANSACTIONS,
    COLLECTION_CATEGORIES,
    COLLECTION_REMINDERS,
    COLLECTION_GOALS,
)
from .base import EntityRepository
from .user_repo import UserRepository
from .transaction_repo import TransactionRepository
from .category_repo import CategoryRepository
from .reminder_repo import ReminderRepository
from .goal_repo import GoalRepository

REPOSITORY_CLASSES = {
    COLLECTION_TRANSACTIONS: TransactionRepository,
    COLLECTION_CATEGORIES: CategoryRepository,
    COLLECTION_REMINDERS: ReminderRepository,
    COLLECTION_GOALS: GoalRepository,
}


def build_repositories(user_id: Optional[str], remote=None) -> Dict[str, EntityRepository]:
    """
    Build the four entity repositories for a session

    Args:
        user_id: Authenticated user ID, or None for anonymous mode
        remote: RemoteStore, or None when no remote store is configured

    Returns:
        Collection name -> repository, all sharing one persistence mode
    """
    if user_id and remote is not None:
        return {
            name: cls(PERSISTENCE_REMOTE, user_id, remote.collection(name))
            for name, cls in REPOSITORY_CLASSES.items()
        }

    return {
        name: cls(PERSISTENCE_LOCAL, user_id)
        for name, cls in REPOSITORY_CLASSES.items()
    }


__all__ = [
    "EntityRepository",
    "UserRepository",
    "TransactionRepository",
    "CategoryRepository",
    "ReminderRepository",
    "GoalRepository",
    "REPOSITORY_CLASSES",
    "build_repositories"
]
