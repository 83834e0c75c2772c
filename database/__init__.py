"""
Database Module
Local blob storage and the PostgreSQL-backed remote collections
"""

from .connection import get_db_connection, init_database, close_database, run_migrations
from .models import Transaction, Category, Reminder, Goal, Filters, DashboardFilters, AppState
from .local_store import LocalStore
from .repositories import (
    EntityRepository,
    UserRepository,
    TransactionRepository,
    CategoryRepository,
    ReminderRepository,
    GoalRepository,
    build_repositories
)
from .collections import RemoteCollection, RemoteStore

__version__ = "1.0.0"

__all__ = [
    "get_db_connection",
    "init_database",
    "close_database",
    "run_migrations",
    "Transaction",
    "Category",
    "Reminder",
    "Goal",
    "Filters",
    "DashboardFilters",
    "AppState",
    "LocalStore",
    "EntityRepository",
    "UserRepository",
    "TransactionRepository",
    "CategoryRepository",
    "ReminderRepository",
    "GoalRepository",
    "build_repositories",
    "RemoteCollection",
    "RemoteStore"
]
