"""
User settings repository: the per-user migration flag
"""

import logging
from typing import Callable, Optional

from database.connection import get_db_connection

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for per-user settings rows"""

    def __init__(self, connection_factory: Callable = get_db_connection):
        self._connection = connection_factory

    async def get_migration_flag(self, user_id: str) -> Optional[bool]:
        """
        Read whether local data was already migrated for a user

        Args:
            user_id: User ID

        Returns:
            True/False (False when no row exists), or None if the read failed
        """
        try:
            async with self._connection() as conn:
                value = await conn.fetchval(
                    "SELECT has_migrated FROM user_settings WHERE user_id = $1",
                    user_id
                )

            return bool(value)

        except Exception as e:
            logger.error(f"Error reading migration flag: {e}", exc_info=True)
            return None

    async def mark_migrated(self, user_id: str) -> bool:
        """
        Set the migration flag (create-if-absent)

        Args:
            user_id: User ID

        Returns:
            True if the flag was written
        """
        try:
            async with self._connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO user_settings (user_id, has_migrated)
                    VALUES ($1, TRUE)
                    ON CONFLICT (user_id)
                    DO UPDATE SET has_migrated = TRUE, updated_at = NOW()
                    """,
                    user_id
                )

            logger.info(f"User marked as migrated: user_id={user_id}")
            return True

        except Exception as e:
            logger.error(f"Error marking user as migrated: {e}", exc_info=True)
            return False

