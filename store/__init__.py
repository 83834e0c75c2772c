"""
Store Module
Session state containers and local-to-remote migration
"""

from .app_store import AppStore
from .migration import MigrationCoordinator, MigrationState
from .registry import StoreRegistry

__all__ = [
    "AppStore",
    "MigrationCoordinator",
    "MigrationState",
    "StoreRegistry"
]
