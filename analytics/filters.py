"""
Transaction filtering for the records page and the dashboard
"""

from datetime import date
from typing import List, Optional

from database.models import DashboardFilters, Filters, Transaction
from shared.constants import FILTER_ALL, PERIOD_DAYS, RECORDS_PER_PAGE


def filter_transactions(
    transactions: List[Transaction],
    filters: Filters,
    today: Optional[date] = None
) -> List[Transaction]:
    """
    Select the transactions matching a set of filters

    An explicit start/end date takes precedence over the period bucket: when
    either is set, the 7d/30d window is not applied at all.

    Args:
        transactions: Transactions to filter
        filters: Records filters
        today: Reference date for the period window (defaults to today)

    Returns:
        Matching transactions, in input order
    """
    if today is None:
        today = date.today()

    window = None if filters.has_date_range else PERIOD_DAYS.get(filters.period)
    search = filters.search.lower() if filters.search else ''

    result = []
    for t in transactions:
        if filters.start_date and t.transaction_date < filters.start_date:
            continue
        if filters.end_date and t.transaction_date > filters.end_date:
            continue

        if window is not None:
            days_ago = (today - t.transaction_date).days
            if days_ago > window or days_ago < 0:
                continue

        if filters.category_id != FILTER_ALL and t.category_id != filters.category_id:
            continue

        if search and search not in t.description.lower():
            continue

        if filters.type != FILTER_ALL and t.type != filters.type:
            continue

        result.append(t)

    return result


def dashboard_transactions(
    transactions: List[Transaction],
    dashboard_filters: DashboardFilters,
    today: Optional[date] = None
) -> List[Transaction]:
    """
    Transactions shown on the dashboard (search, category and type ignored)
    """
    return filter_transactions(transactions, dashboard_filters.to_filters(), today)


def sort_by_date_desc(transactions: List[Transaction]) -> List[Transaction]:
    """Newest first; stable for transactions on the same day"""
    return sorted(transactions, key=lambda t: t.transaction_date, reverse=True)


def paginate(items: list, page: int = 1, per_page: int = RECORDS_PER_PAGE) -> list:
    """
    Slice one page out of a list

    Args:
        items: Full list
        page: 1-based page number (values below 1 are treated as 1)
        per_page: Page size

    Returns:
        Items of the requested page
    """
    page = max(page, 1)
    start = (page - 1) * per_page
    return items[start:start + per_page]


def page_count(total: int, per_page: int = RECORDS_PER_PAGE) -> int:
    return (total + per_page - 1) // per_page
