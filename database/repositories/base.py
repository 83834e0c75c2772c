"""
Base entity repository

One repository per entity type. The persistence mode is chosen once per
session: in local mode every write succeeds immediately (ids are generated on
the client and the caller persists the whole state blob); in remote mode the
write goes to the remote collection first and only a confirmed write is
reported as successful.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from shared.constants import PERSISTENCE_LOCAL, PERSISTENCE_REMOTE
from shared.utils import generate_id

logger = logging.getLogger(__name__)


class EntityRepository:
    """Repository for one entity collection"""

    model = None
    collection_name = ''
    id_prefix = ''

    # attribute -> remote column, every model field listed
    REMOTE_COLUMNS: Dict[str, str] = {}

    def __init__(self, persistence: str, user_id: Optional[str] = None, collection=None):
        if persistence not in (PERSISTENCE_LOCAL, PERSISTENCE_REMOTE):
            raise ValueError(f"Unknown persistence mode: {persistence!r}")

        if persistence == PERSISTENCE_REMOTE and (collection is None or not user_id):
            raise ValueError("Remote persistence needs a collection and a user ID")

        self.persistence = persistence
        self.user_id = user_id
        self.collection = collection

    @property
    def is_remote(self) -> bool:
        return self.persistence == PERSISTENCE_REMOTE

    # ==================== TRANSLATION ====================

    def to_row(self, entity, include_id: bool = False) -> Dict[str, Any]:
        """
        Translate an entity into a remote row tagged with the owner

        Args:
            entity: Model instance
            include_id: Keep the entity's id (upserts); inserts let the store generate it

        Returns:
            Row dictionary keyed by remote column names
        """
        row = {'user_id': self.user_id}
        for attr, column in self.REMOTE_COLUMNS.items():
            if attr == 'id' and not include_id:
                continue
            row[column] = getattr(entity, attr)
        return row

    def from_row(self, row: Dict[str, Any]):
        """
        Translate a remote row into an entity

        Raises:
            ValueError: If the row holds malformed values
        """
        kwargs = {}
        for attr, column in self.REMOTE_COLUMNS.items():
            value = row.get(column)
            if attr == 'id':
                kwargs[attr] = str(value) if value is not None else None
            else:
                kwargs[attr] = self.model._parse_field(attr, value)
        return self.model(**kwargs)

    def changes_to_row(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Translate attribute changes into remote column changes"""
        return {
            self.REMOTE_COLUMNS[attr]: value
            for attr, value in changes.items()
            if attr != 'id'
        }

    # ==================== OPERATIONS ====================

    async def fetch_all(self) -> Optional[List]:
        """
        Load every entity of the current user from the remote collection

        Returns:
            List of entities, or None if the fetch failed or the mode is local
        """
        if not self.is_remote:
            return None

        try:
            rows = await self.collection.select(self.user_id)

        except Exception as e:
            logger.error(f"Error fetching {self.collection_name}: {e}", exc_info=True)
            return None

        entities = []
        for row in rows:
            try:
                entities.append(self.from_row(row))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable {self.collection_name} row id={row.get('id')}: {e}")

        return entities

    async def add(self, entity):
        """
        Create an entity

        Args:
            entity: Model instance without id

        Returns:
            Entity with its id, or None if the remote insert failed
        """
        if not self.is_remote:
            return replace(entity, id=generate_id(self.id_prefix))

        try:
            rows = await self.collection.insert([self.to_row(entity)])
            created = self.from_row(rows[0])

            logger.info(f"{self.model.__name__} created: id={created.id}, user_id={self.user_id}")
            return created

        except Exception as e:
            logger.error(f"Error creating {self.model.__name__}: {e}", exc_info=True)
            return None

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> bool:
        """
        Update some fields of an entity

        Args:
            entity_id: Entity ID
            changes: Attribute name -> new value

        Returns:
            True if the caller may apply the change in memory
        """
        if not self.is_remote:
            return True

        try:
            updated = await self.collection.update(entity_id, self.changes_to_row(changes), self.user_id)

            if updated:
                logger.info(f"{self.model.__name__} updated: id={entity_id}")
            else:
                logger.warning(f"{self.model.__name__} not found for update: id={entity_id}")

            return updated

        except Exception as e:
            logger.error(f"Error updating {self.model.__name__}: {e}", exc_info=True)
            return False

    async def delete(self, entity_id: str) -> bool:
        """
        Delete an entity

        Args:
            entity_id: Entity ID

        Returns:
            True if the caller may remove the entity from memory
        """
        if not self.is_remote:
            return True

        try:
            deleted = await self.collection.delete(entity_id, self.user_id)

            if deleted:
                logger.info(f"{self.model.__name__} deleted: id={entity_id}")
            else:
                logger.warning(f"{self.model.__name__} not found for delete: id={entity_id}")

            return deleted

        except Exception as e:
            logger.error(f"Error deleting {self.model.__name__}: {e}", exc_info=True)
            return False

    async def delete_all(self) -> bool:
        """
        Delete every entity of the current user

        Returns:
            True if successful (always True in local mode)
        """
        if not self.is_remote:
            return True

        try:
            count = await self.collection.delete_all(self.user_id)
            logger.info(f"Deleted {count} {self.collection_name} for user_id={self.user_id}")
            return True

        except Exception as e:
            logger.error(f"Error deleting all {self.collection_name}: {e}", exc_info=True)
            return False

    async def import_entities(self, entities: List) -> bool:
        """
        Copy entities into the remote collection under new ids

        Args:
            entities: Entities read from the local store

        Returns:
            True if every entity was written
        """
        if not entities:
            return True

        try:
            await self.collection.insert([self.to_row(entity) for entity in entities])
            logger.info(f"Imported {len(entities)} {self.collection_name} for user_id={self.user_id}")
            return True

        except Exception as e:
            logger.error(f"Error importing {self.collection_name}: {e}", exc_info=True)
            return False
