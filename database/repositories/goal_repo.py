"""
Goal repository
"""

from database.models import Goal
from database.repositories.base import EntityRepository
from shared.constants import COLLECTION_GOALS


class GoalRepository(EntityRepository):
    """Repository for savings goals"""

    model = Goal
    collection_name = COLLECTION_GOALS
    id_prefix = 'goal_'

    REMOTE_COLUMNS = {
        'id': 'id',
        'title': 'title',
        'target_amount': 'target_amount',
        'current_amount': 'current_amount',
        'deadline': 'deadline',
    }
