"""
Transaction repository
"""

from database.models import Transaction
from database.repositories.base import EntityRepository
from shared.constants import COLLECTION_TRANSACTIONS


class TransactionRepository(EntityRepository):
    """Repository for Transaction operations"""

    model = Transaction
    collection_name = COLLECTION_TRANSACTIONS
    id_prefix = 'txn_'

    REMOTE_COLUMNS = {
        'id': 'id',
        'type': 'type',
        'transaction_date': 'date',
        'description': 'description',
        'category_id': 'category_id',
        'amount': 'amount',
    }
