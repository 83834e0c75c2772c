"""
Application constants
"""

from decimal import Decimal

# Transaction / category kinds
TRANSACTION_TYPE_INCOME = 'income'
TRANSACTION_TYPE_EXPENSE = 'expense'
TRANSACTION_TYPES = (TRANSACTION_TYPE_INCOME, TRANSACTION_TYPE_EXPENSE)

# Reminder statuses
REMINDER_STATUS_PENDING = 'pending'
REMINDER_STATUS_PAID = 'paid'
REMINDER_STATUSES = (REMINDER_STATUS_PENDING, REMINDER_STATUS_PAID)

# Plans
PLAN_BASIC = 'basic'
PLAN_PRO = 'pro'
USER_PLANS = (PLAN_BASIC, PLAN_PRO)

# Filter periods
PERIOD_7D = '7d'
PERIOD_30D = '30d'
PERIOD_ALL = 'all'
PERIOD_CUSTOM = 'custom'
PERIODS = (PERIOD_7D, PERIOD_30D, PERIOD_ALL, PERIOD_CUSTOM)
PERIOD_DAYS = {PERIOD_7D: 7, PERIOD_30D: 30}

# "No filter" marker for category / type filters
FILTER_ALL = 'all'

# Values written by older versions of the app
LEGACY_VALUE_ALIASES = {
    'entrada': TRANSACTION_TYPE_INCOME,
    'despesa': TRANSACTION_TYPE_EXPENSE,
    'pendente': REMINDER_STATUS_PENDING,
    'pago': REMINDER_STATUS_PAID,
}

# Persistence modes
PERSISTENCE_LOCAL = 'local'
PERSISTENCE_REMOTE = 'remote'

# Collections
COLLECTION_TRANSACTIONS = 'transactions'
COLLECTION_CATEGORIES = 'categories'
COLLECTION_REMINDERS = 'reminders'
COLLECTION_GOALS = 'goals'
COLLECTIONS = (
    COLLECTION_TRANSACTIONS,
    COLLECTION_CATEGORIES,
    COLLECTION_REMINDERS,
    COLLECTION_GOALS,
)

# Display fallbacks
CATEGORY_NOT_FOUND_LABEL = 'Category not found'

# Records page
RECORDS_PER_PAGE = 20
UPCOMING_REMINDERS_LIMIT = 4

# Default categories for new users
SEED_CATEGORIES = [
    {'id': 'cat_food', 'name': 'Food', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_transport', 'name': 'Transport', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_housing', 'name': 'Housing', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_leisure', 'name': 'Leisure', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_health', 'name': 'Health', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_education', 'name': 'Education', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_subscriptions', 'name': 'Subscriptions', 'kind': TRANSACTION_TYPE_EXPENSE},
    {'id': 'cat_salary', 'name': 'Salary', 'kind': TRANSACTION_TYPE_INCOME},
    {'id': 'cat_freelance', 'name': 'Freelance', 'kind': TRANSACTION_TYPE_INCOME},
]

# Date format
DATE_FORMAT = '%Y-%m-%d'

# Money amounts are kept in cents (NUMERIC(14, 2) remotely)
AMOUNT_QUANTUM = Decimal('0.01')
