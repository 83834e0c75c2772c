"""
Session-scoped state container

Owns the single live AppState of the current identity and is its only
writer. Every public method absorbs failures (logged, state left untouched)
so presentation code can call them fire-and-forget.

All mutations run on one asyncio loop. A mutation captures the session it was
issued in; if the identity changes before its continuation runs, the result
is dropped instead of being applied to the new session's state.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from database.local_store import LocalStore
from database.models import AppState, Category, Goal, Reminder, Transaction, seed_categories
from database.repositories import EntityRepository, build_repositories
from shared.constants import (
    COLLECTION_TRANSACTIONS,
    COLLECTION_CATEGORIES,
    COLLECTION_REMINDERS,
    COLLECTION_GOALS,
    USER_PLANS,
)
from store.migration import MigrationCoordinator

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


class AppStore:
    """State container for one identity session at a time"""

    def __init__(self, local_store: LocalStore, remote=None, strict_migration: Optional[bool] = None):
        """
        Args:
            local_store: Local persistent store
            remote: RemoteStore, or None to keep every identity local
            strict_migration: Override settings.MIGRATION_STRICT
        """
        self.local_store = local_store
        self.remote = remote
        self.migration = (
            MigrationCoordinator(local_store, remote.users, strict=strict_migration)
            if remote is not None else None
        )

        self.user_id: Optional[str] = None
        self.state = AppState.default()
        self.is_loading = False

        self._session = 0
        self._repositories: Dict[str, EntityRepository] = build_repositories(None)
        self._listeners: List[Listener] = []
        self._ready = asyncio.Event()
        self._ready.set()

    @property
    def is_remote(self) -> bool:
        return self._repositories[COLLECTION_TRANSACTIONS].is_remote

    @property
    def has_session(self) -> bool:
        """Whether set_identity was called at least once"""
        return self._session > 0

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener

        Args:
            listener: Called with the live AppState after every change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)

    def _commit(self) -> None:
        """Persistence tick (local mode) and change notification"""
        if not self.is_remote:
            self.local_store.save_state(self.user_id, self.state)
        self._notify()

    # ==================== SESSION ====================

    def _is_current(self, session: int) -> bool:
        return session == self._session

    async def _wait_ready(self, session: int) -> bool:
        """Block mutations until the session's initial load finished"""
        await self._ready.wait()
        if not self._is_current(session):
            logger.info("Dropping mutation issued for a previous session")
            return False
        return True

    async def set_identity(self, user_id: Optional[str]) -> None:
        """
        Start a new session for an identity (login, logout, reload)

        The previous AppState is discarded, never patched.

        Args:
            user_id: Authenticated user ID, or None for anonymous mode
        """
        self._session += 1
        session = self._session

        self.user_id = user_id or None
        self._repositories = build_repositories(self.user_id, self.remote)
        self.state = AppState.default(with_seed_categories=not self.is_remote)
        self.is_loading = True
        self._ready.clear()

        logger.info(
            f"Session started: user_id={self.user_id or 'anonymous'}, "
            f"persistence={'remote' if self.is_remote else 'local'}"
        )
        self._notify()

        try:
            await self._load(session)

        except Exception as e:
            logger.error(f"Initial load failed: {e}", exc_info=True)

        finally:
            if self._is_current(session):
                self.is_loading = False
                self._ready.set()
                self._notify()

    async def reload(self) -> None:
        """Restart the current session from its backing store"""
        await self.set_identity(self.user_id)

    async def _load(self, session: int) -> None:
        if not self.is_remote:
            self.state = self.local_store.load_state(self.user_id)
            return

        await self.migration.run(self.user_id, self._repositories)

        if self._is_current(session):
            await self._fetch_remote(session)

    async def _fetch_remote(self, session: int) -> bool:
        """
        Populate the entity collections from the remote store

        Returns:
            True if the results were applied
        """
        names = list(self._repositories)
        results = await asyncio.gather(*(self._repositories[name].fetch_all() for name in names))

        if not self._is_current(session):
            logger.info("Discarding remote fetch for a previous session")
            return False

        for name, items in zip(names, results):
            if items is None:
                logger.warning(f"Remote {name} unavailable, keeping current list")
                continue
            setattr(self.state, name, items)

        return True

    # ==================== GENERIC CRUD ====================

    def _find(self, name: str, entity_id: str):
        for item in getattr(self.state, name):
            if item.id == entity_id:
                return item
        return None

    async def _add(self, name: str, entity):
        session = self._session

        try:
            entity.validate()
        except ValueError as e:
            logger.warning(f"Rejected new {name} entry: {e}")
            return None

        if not await self._wait_ready(session):
            return None

        created = await self._repositories[name].add(entity)
        if created is None or not self._is_current(session):
            return None

        items = getattr(self.state, name)
        if name == COLLECTION_TRANSACTIONS:
            setattr(self.state, name, [created] + items)
        else:
            setattr(self.state, name, items + [created])

        self._commit()
        return created

    async def _update(self, name: str, entity_id: str, changes: Dict[str, Any]) -> bool:
        session = self._session

        if not await self._wait_ready(session):
            return False

        current = self._find(name, entity_id)
        if current is None:
            logger.warning(f"Cannot update {name}: id={entity_id} not found")
            return False

        changes = {key: value for key, value in changes.items() if key != 'id'}
        try:
            current.apply(changes).validate()
        except (TypeError, ValueError) as e:
            logger.warning(f"Rejected update of {name} id={entity_id}: {e}")
            return False

        if not await self._repositories[name].update(entity_id, changes):
            return False

        if not self._is_current(session):
            return False

        setattr(self.state, name, [
            item.apply(changes) if item.id == entity_id else item
            for item in getattr(self.state, name)
        ])

        self._commit()
        return True

    async def _delete(self, name: str, entity_id: str) -> bool:
        session = self._session

        if not await self._wait_ready(session):
            return False

        if self._find(name, entity_id) is None:
            logger.warning(f"Cannot delete {name}: id={entity_id} not found")
            return False

        if not await self._repositories[name].delete(entity_id):
            return False

        if not self._is_current(session):
            return False

        setattr(self.state, name, [item for item in getattr(self.state, name) if item.id != entity_id])

        self._commit()
        return True

    # ==================== TRANSACTIONS ====================

    async def add_transaction(self, transaction: Transaction) -> Optional[Transaction]:
        return await self._add(COLLECTION_TRANSACTIONS, transaction)

    async def update_transaction(self, transaction_id: str, changes: Dict[str, Any]) -> bool:
        return await self._update(COLLECTION_TRANSACTIONS, transaction_id, changes)

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self._delete(COLLECTION_TRANSACTIONS, transaction_id)

    # ==================== CATEGORIES ====================

    async def add_category(self, category: Category) -> Optional[Category]:
        return await self._add(COLLECTION_CATEGORIES, category)

    async def update_category(self, category_id: str, changes: Dict[str, Any]) -> bool:
        return await self._update(COLLECTION_CATEGORIES, category_id, changes)

    async def delete_category(self, category_id: str) -> bool:
        """Delete a category; transactions keep their (now orphaned) category_id"""
        return await self._delete(COLLECTION_CATEGORIES, category_id)

    # ==================== REMINDERS ====================

    async def add_reminder(self, reminder: Reminder) -> Optional[Reminder]:
        return await self._add(COLLECTION_REMINDERS, reminder)

    async def update_reminder(self, reminder_id: str, changes: Dict[str, Any]) -> bool:
        return await self._update(COLLECTION_REMINDERS, reminder_id, changes)

    async def delete_reminder(self, reminder_id: str) -> bool:
        return await self._delete(COLLECTION_REMINDERS, reminder_id)

    # ==================== GOALS ====================

    async def add_goal(self, goal: Goal) -> Optional[Goal]:
        return await self._add(COLLECTION_GOALS, goal)

    async def update_goal(self, goal_id: str, changes: Dict[str, Any]) -> bool:
        return await self._update(COLLECTION_GOALS, goal_id, changes)

    async def delete_goal(self, goal_id: str) -> bool:
        return await self._delete(COLLECTION_GOALS, goal_id)

    # ==================== PLAN & FILTERS ====================

    def set_plan(self, plan: str) -> bool:
        if plan not in USER_PLANS:
            logger.warning(f"Ignoring unknown plan: {plan!r}")
            return False

        self.state.user_plan = plan
        self._commit()
        return True

    def update_filters(self, changes: Dict[str, Any]) -> None:
        """Merge camelCase filter changes into the records filters"""
        self.state.filters = self.state.filters.merge(changes)
        self._commit()

    def update_dashboard_filters(self, changes: Dict[str, Any]) -> None:
        """Merge camelCase filter changes into the dashboard filters"""
        self.state.dashboard_filters = self.state.dashboard_filters.merge(changes)
        self._commit()

    def reset_filters(self) -> None:
        self.state.filters = type(self.state.filters)()
        self._commit()

    def reset_dashboard_filters(self) -> None:
        self.state.dashboard_filters = type(self.state.dashboard_filters)()
        self._commit()

    # ==================== RESET / ACCOUNT ====================

    async def reset_data(self) -> None:
        """
        Delete all data of the current identity and start over

        Remote mode deletes every row and re-seeds the default categories;
        local mode drops the stored blob. Both then reload the session.
        """
        session = self._session
        if not await self._wait_ready(session):
            return

        if self.is_remote:
            results = await asyncio.gather(*(repo.delete_all() for repo in self._repositories.values()))
            if not all(results):
                logger.warning(f"Reset left some remote rows behind: user_id={self.user_id}")

            await self._repositories[COLLECTION_CATEGORIES].import_entities(seed_categories())
        else:
            self.local_store.clear(self.user_id)

        if self._is_current(session):
            await self.reload()

    async def delete_account(self) -> None:
        """
        Clear the local cache and fall back to an anonymous session

        Remote rows of the identity are not deleted.
        """
        self.local_store.clear(self.user_id)
        if self.user_id:
            self.local_store.clear(None)

        await self.set_identity(None)
