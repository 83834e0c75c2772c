"""
Shared Module
Common utilities, configuration, and constants
"""

from .config import settings
from .constants import SEED_CATEGORIES, TRANSACTION_TYPES, REMINDER_STATUSES, PERIODS
from .logger import setup_logging
from .utils import generate_id, to_decimal, parse_date, format_date, safe_divide

__version__ = "1.0.0"

__all__ = [
    "settings",
    "SEED_CATEGORIES",
    "TRANSACTION_TYPES",
    "REMINDER_STATUSES",
    "PERIODS",
    "setup_logging",
    "generate_id",
    "to_decimal",
    "parse_date",
    "format_date",
    "safe_divide"
]
