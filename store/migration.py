"""
One-time migration of local data into the remote store

States:
    NOT_STARTED -> CHECKING -> MIGRATING -> MARKING_DONE -> COMPLETE
    NOT_STARTED -> CHECKING -> ALREADY_DONE
    NOT_STARTED -> CHECKING -> FAILED   (flag unreadable, retried next load)

The per-user flag, not the emptiness of the remote collections, decides
whether a user is new. A migrated user who deleted everything keeps an empty
category list instead of getting the seed defaults back.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from database.local_store import LocalStore
from database.models import seed_categories
from database.repositories import EntityRepository, UserRepository
from shared.config import settings
from shared.constants import COLLECTIONS, COLLECTION_CATEGORIES

logger = logging.getLogger(__name__)


class MigrationState(Enum):
    NOT_STARTED = "not_started"
    CHECKING = "checking"
    MIGRATING = "migrating"
    MARKING_DONE = "marking_done"
    COMPLETE = "complete"
    ALREADY_DONE = "already_done"
    FAILED = "failed"


class MigrationCoordinator:
    """Copies local data for an identity into the remote store exactly once"""

    def __init__(self, local_store: LocalStore, users: UserRepository, strict: Optional[bool] = None):
        self.local_store = local_store
        self.users = users
        self.strict = settings.MIGRATION_STRICT if strict is None else strict
        self.state = MigrationState.NOT_STARTED

    def _transition(self, state: MigrationState, user_id: str) -> None:
        logger.info(f"Migration {self.state.value} -> {state.value}: user_id={user_id}")
        self.state = state

    async def run(self, user_id: str, repositories: Dict[str, EntityRepository]) -> MigrationState:
        """
        Migrate local data for a user if that has not happened yet

        Args:
            user_id: Authenticated user ID
            repositories: Remote-mode repositories of the session

        Returns:
            Final state (COMPLETE, ALREADY_DONE or FAILED)
        """
        self.state = MigrationState.NOT_STARTED
        self._transition(MigrationState.CHECKING, user_id)

        flag = await self.users.get_migration_flag(user_id)

        if flag is None:
            logger.warning(f"Migration flag unavailable, skipping migration: user_id={user_id}")
            self._transition(MigrationState.FAILED, user_id)
            return self.state

        if flag:
            self._transition(MigrationState.ALREADY_DONE, user_id)
            return self.state

        self._transition(MigrationState.MIGRATING, user_id)
        succeeded = await self._migrate(user_id, repositories)

        if not succeeded:
            if self.strict:
                logger.error(f"Migration incomplete, flag left unset: user_id={user_id}")
                self._transition(MigrationState.FAILED, user_id)
                return self.state

            logger.warning(f"Migration incomplete, marking done anyway: user_id={user_id}")

        self._transition(MigrationState.MARKING_DONE, user_id)
        if not await self.users.mark_migrated(user_id):
            self._transition(MigrationState.FAILED, user_id)
            return self.state

        self._transition(MigrationState.COMPLETE, user_id)
        return self.state

    async def _migrate(self, user_id: str, repositories: Dict[str, EntityRepository]) -> bool:
        """
        Import the local snapshot, or seed default categories if there is none

        Returns:
            True if every import succeeded
        """
        try:
            snapshot = self.local_store.load_snapshot(user_id)

            if snapshot is None or not snapshot.has_data():
                logger.info(f"No local data, seeding default categories: user_id={user_id}")
                return await repositories[COLLECTION_CATEGORIES].import_entities(seed_categories())

            results = []
            for name in COLLECTIONS:
                items = getattr(snapshot, name)
                logger.info(f"Migrating {len(items)} {name}: user_id={user_id}")
                results.append(await repositories[name].import_entities(items))

            return all(results)

        except Exception as e:
            logger.error(f"Migration error for user_id={user_id}: {e}", exc_info=True)
            return False
