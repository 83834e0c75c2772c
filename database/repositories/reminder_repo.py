"""
Reminder repository
"""

from database.models import Reminder
from database.repositories.base import EntityRepository
from shared.constants import COLLECTION_REMINDERS


class ReminderRepository(EntityRepository):
    """Repository for bill reminders"""

    model = Reminder
    collection_name = COLLECTION_REMINDERS
    id_prefix = 'rem_'

    REMOTE_COLUMNS = {
        'id': 'id',
        'title': 'title',
        'due_date': 'due_date',
        'amount': 'amount',
        'status': 'status',
    }
