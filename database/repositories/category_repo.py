"""
Category repository
"""

import logging
from typing import List

from database.models import Category
from database.repositories.base import EntityRepository
from shared.constants import COLLECTION_CATEGORIES

logger = logging.getLogger(__name__)


class CategoryRepository(EntityRepository):
    """Repository for Category operations"""

    model = Category
    collection_name = COLLECTION_CATEGORIES
    id_prefix = 'cat_'

    REMOTE_COLUMNS = {
        'id': 'id',
        'name': 'name',
        'kind': 'kind',
        'color': 'color',
    }

    async def import_entities(self, entities: List[Category]) -> bool:
        """
        Copy categories keeping their ids

        Transactions reference categories by id and the local ids may be the
        seeded defaults, so this is an upsert rather than an insert.

        Args:
            entities: Categories read from the local store (or the seed list)

        Returns:
            True if every category was written
        """
        if not entities:
            return True

        try:
            await self.collection.upsert([self.to_row(entity, include_id=True) for entity in entities])
            logger.info(f"Upserted {len(entities)} categories for user_id={self.user_id}")
            return True

        except Exception as e:
            logger.error(f"Error upserting categories: {e}", exc_info=True)
            return False
