"""
Per-identity state containers

A server handles several identities at once. Each identity gets its own
AppStore so concurrent requests never switch another request's session.
"""

import asyncio
import logging
from typing import Dict, Optional

from database.local_store import LocalStore
from store.app_store import AppStore

logger = logging.getLogger(__name__)


class StoreRegistry:
    """Lazily created AppStore per identity (None = anonymous)"""

    def __init__(self, local_store: LocalStore, remote=None, strict_migration: Optional[bool] = None):
        """
        Args:
            local_store: Local persistent store shared by every container
            remote: RemoteStore, or None to keep every identity local
            strict_migration: Override settings.MIGRATION_STRICT
        """
        self.local_store = local_store
        self.remote = remote
        self.strict_migration = strict_migration

        self._stores: Dict[Optional[str], AppStore] = {}
        self._locks: Dict[Optional[str], asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, user_id: Optional[str]) -> bool:
        return (user_id or None) in self._stores

    async def get(self, user_id: Optional[str]) -> AppStore:
        """
        Container of an identity, loading its session on first use

        Concurrent first requests for the same identity share one load.

        Args:
            user_id: Authenticated user ID, or None for anonymous mode

        Returns:
            AppStore whose session belongs to user_id
        """
        key = user_id or None
        lock = self._locks.setdefault(key, asyncio.Lock())

        async with lock:
            store = self._stores.get(key)
            if store is None:
                store = AppStore(self.local_store, self.remote, strict_migration=self.strict_migration)
                await store.set_identity(key)
                self._stores[key] = store
                logger.info(f"Session container created: user_id={key or 'anonymous'}, total={len(self._stores)}")

        return store

    def discard(self, user_id: Optional[str]) -> None:
        """Forget an identity's container; the next request reloads it"""
        key = user_id or None
        if self._stores.pop(key, None) is not None:
            logger.info(f"Session container discarded: user_id={key or 'anonymous'}")
