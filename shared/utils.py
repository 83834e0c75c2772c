"""
Utility functions
"""

import uuid
from typing import Optional, Union
from datetime import datetime, date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from shared.constants import AMOUNT_QUANTUM, DATE_FORMAT, LEGACY_VALUE_ALIASES


def generate_id(prefix: str = '') -> str:
    """
    Generate a client-side identifier for an entity

    Args:
        prefix: Optional prefix (e.g., "cat_")

    Returns:
        Random UUID4-based identifier
    """
    return f"{prefix}{uuid.uuid4().hex}"


def to_decimal(value: Union[str, int, float, Decimal, None]) -> Decimal:
    """
    Convert a JSON/database number to Decimal

    Args:
        value: Number or numeric string

    Returns:
        Decimal value

    Raises:
        ValueError: If value is not numeric
    """
    if isinstance(value, Decimal):
        return value

    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")

    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")

    return result


def round_amount(value: Decimal) -> Decimal:
    """
    Round a money amount to cents, half away from zero (as PostgreSQL does)

    Args:
        value: Amount

    Returns:
        Amount with exactly two decimal places

    Raises:
        ValueError: If the amount has too many digits to keep cents
    """
    try:
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse an ISO calendar date

    Args:
        value: "YYYY-MM-DD" string, date, datetime, or empty

    Returns:
        date object, or None for empty input

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    # Tolerate timestamps written by older clients ("2024-01-10T00:00:00")
    return datetime.strptime(str(value)[:10], DATE_FORMAT).date()


def format_date(value: Optional[date]) -> str:
    """Format date as ISO string, empty string for None"""
    return value.strftime(DATE_FORMAT) if value else ''


def normalize_choice(value: str) -> str:
    """
    Map legacy enumeration values to their current spelling

    Args:
        value: Stored value (e.g., "despesa")

    Returns:
        Current value (e.g., "expense")
    """
    if value is None:
        return value
    value = str(value).strip().lower()
    return LEGACY_VALUE_ALIASES.get(value, value)


def calculate_percentage_change(old_value: Decimal, new_value: Decimal) -> float:
    """
    Calculate percentage change

    Args:
        old_value: Old value
        new_value: New value

    Returns:
        Percentage change (e.g., 15.5 for 15.5% increase).
        From zero: 100 when the new value is positive, otherwise 0.
    """
    if old_value == 0:
        return 100.0 if new_value > 0 else 0.0

    change = ((new_value - old_value) / old_value) * 100
    return round(float(change), 2)


def safe_divide(numerator: Decimal, denominator: Decimal, default: Decimal = Decimal('0')) -> Decimal:
    """
    Safely divide two numbers

    Args:
        numerator: Numerator
        denominator: Denominator
        default: Default value if division by zero

    Returns:
        Result or default
    """
    try:
        if denominator == 0:
            return default
        return numerator / denominator
    except (TypeError, ZeroDivisionError, InvalidOperation):
        return default
