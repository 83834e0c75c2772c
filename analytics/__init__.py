"""
Analytics Module
Pure filtering and aggregation over the application state
"""

from .filters import filter_transactions, dashboard_transactions, sort_by_date_desc, paginate, page_count
from .calculations import (
    KPISummary,
    average_daily_days,
    calculate_kpis,
    filtered_summary,
    daily_chart_data,
    category_chart_data,
    category_name,
    monthly_comparison,
    is_overdue,
    reminder_stats,
    sort_reminders,
    upcoming_reminders,
    goal_progress,
    is_goal_reached
)

__all__ = [
    "filter_transactions",
    "dashboard_transactions",
    "sort_by_date_desc",
    "paginate",
    "page_count",
    "KPISummary",
    "average_daily_days",
    "calculate_kpis",
    "filtered_summary",
    "daily_chart_data",
    "category_chart_data",
    "category_name",
    "monthly_comparison",
    "is_overdue",
    "reminder_stats",
    "sort_reminders",
    "upcoming_reminders",
    "goal_progress",
    "is_goal_reached"
]
