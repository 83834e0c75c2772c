"""
Derived views: KPIs, chart series, month comparison, reminder and goal status

All functions are pure; empty inputs and zero denominators resolve to 0.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from database.models import Category, Goal, Reminder, Transaction
from shared.constants import (
    CATEGORY_NOT_FOUND_LABEL,
    PERIOD_DAYS,
    REMINDER_STATUS_PENDING,
    TRANSACTION_TYPE_EXPENSE,
    TRANSACTION_TYPE_INCOME,
    UPCOMING_REMINDERS_LIMIT,
)
from shared.utils import calculate_percentage_change, format_date, safe_divide

ZERO = Decimal('0')


@dataclass
class KPISummary:
    """Dashboard key figures"""
    total_income: Decimal
    total_expense: Decimal
    avg_daily: Decimal
    top_category_id: Optional[str]
    top_category_value: Decimal

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalIncome': float(self.total_income),
            'totalExpense': float(self.total_expense),
            'balance': float(self.balance),
            'avgDaily': round(float(self.avg_daily), 2),
            'topCategoryId': self.top_category_id,
            'topCategoryValue': float(self.top_category_value),
        }


def _sum(transactions: List[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def _by_type(transactions: List[Transaction], transaction_type: str) -> List[Transaction]:
    return [t for t in transactions if t.type == transaction_type]


def category_name(category_id: Optional[str], categories: List[Category]) -> str:
    """
    Display name of a category, tolerating deleted ones

    Returns:
        Category name, or CATEGORY_NOT_FOUND_LABEL for an orphaned reference
    """
    for category in categories:
        if category.id == category_id:
            return category.name
    return CATEGORY_NOT_FOUND_LABEL


def average_daily_days(transactions: List[Transaction], period: str) -> int:
    """
    Denominator of the average daily spend

    7 or 30 for the fixed periods; otherwise the inclusive day span between
    the earliest and latest transaction, at least 1.
    """
    if period in PERIOD_DAYS:
        return PERIOD_DAYS[period]

    if not transactions:
        return 1

    dates = [t.transaction_date for t in transactions]
    return max((max(dates) - min(dates)).days + 1, 1)


def calculate_kpis(transactions: List[Transaction], period: str) -> KPISummary:
    """
    Compute the dashboard KPIs of an already filtered transaction list

    The top category is the first one (in order of first appearance) whose
    cumulative expense reaches the maximum.

    Args:
        transactions: Filtered transactions
        period: Period the list was filtered with

    Returns:
        KPISummary
    """
    expenses = _by_type(transactions, TRANSACTION_TYPE_EXPENSE)
    total_income = _sum(_by_type(transactions, TRANSACTION_TYPE_INCOME))
    total_expense = _sum(expenses)

    days = average_daily_days(transactions, period)
    avg_daily = safe_divide(total_expense, Decimal(days))

    totals: Dict[str, Decimal] = {}
    for t in expenses:
        totals[t.category_id] = totals.get(t.category_id, ZERO) + t.amount

    top_category_id = None
    top_category_value = ZERO
    for category_id, total in totals.items():
        if total > top_category_value:
            top_category_id = category_id
            top_category_value = total

    return KPISummary(
        total_income=total_income,
        total_expense=total_expense,
        avg_daily=avg_daily,
        top_category_id=top_category_id,
        top_category_value=top_category_value,
    )


def filtered_summary(transactions: List[Transaction]) -> Dict[str, Decimal]:
    """Income, expense and balance of a records list"""
    income = _sum(_by_type(transactions, TRANSACTION_TYPE_INCOME))
    expense = _sum(_by_type(transactions, TRANSACTION_TYPE_EXPENSE))
    return {'income': income, 'expense': expense, 'balance': income - expense}


def daily_chart_data(
    transactions: List[Transaction],
    period: str,
    today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Expense total per day

    For 7d/30d every day of the window is present (zero-filled) and
    transactions outside it are ignored; other periods list only the days
    that have expenses.

    Returns:
        [{'date': date, 'amount': Decimal}] sorted by date
    """
    if today is None:
        today = date.today()

    daily: Dict[date, Decimal] = {}
    window = PERIOD_DAYS.get(period)
    if window:
        for offset in range(window):
            daily[today - timedelta(days=offset)] = ZERO

    for t in _by_type(transactions, TRANSACTION_TYPE_EXPENSE):
        if window is None or t.transaction_date in daily:
            daily[t.transaction_date] = daily.get(t.transaction_date, ZERO) + t.amount

    return [{'date': day, 'amount': daily[day]} for day in sorted(daily)]


def category_chart_data(transactions: List[Transaction], categories: List[Category]) -> List[Dict[str, Any]]:
    """
    Expense total per category, largest first

    Returns:
        [{'categoryId': str, 'name': str, 'value': Decimal}]
    """
    totals: Dict[str, Decimal] = {}
    for t in _by_type(transactions, TRANSACTION_TYPE_EXPENSE):
        totals[t.category_id] = totals.get(t.category_id, ZERO) + t.amount

    data = [
        {'categoryId': category_id, 'name': category_name(category_id, categories), 'value': total}
        for category_id, total in totals.items()
    ]
    return sorted(data, key=lambda item: item['value'], reverse=True)


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _previous_month_start(day: date) -> date:
    return (_month_start(day) - timedelta(days=1)).replace(day=1)


def monthly_comparison(
    transactions: List[Transaction],
    categories: List[Category],
    today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Compare the current calendar month with the previous one

    Args:
        transactions: All transactions
        categories: All categories (expense categories get a row each)
        today: Reference date

    Returns:
        Dictionary with totals, variations and per-category rows
    """
    if today is None:
        today = date.today()

    current_start = _month_start(today)
    previous_start = _previous_month_start(today)

    current = [t for t in transactions if _month_start(t.transaction_date) == current_start]
    previous = [t for t in transactions if _month_start(t.transaction_date) == previous_start]

    current_expenses = _sum(_by_type(current, TRANSACTION_TYPE_EXPENSE))
    previous_expenses = _sum(_by_type(previous, TRANSACTION_TYPE_EXPENSE))
    current_incomes = _sum(_by_type(current, TRANSACTION_TYPE_INCOME))
    previous_incomes = _sum(_by_type(previous, TRANSACTION_TYPE_INCOME))

    rows = []
    for category in categories:
        if category.kind != TRANSACTION_TYPE_EXPENSE:
            continue

        current_amount = _sum([t for t in current if t.is_expense and t.category_id == category.id])
        previous_amount = _sum([t for t in previous if t.is_expense and t.category_id == category.id])

        if current_amount > 0 or previous_amount > 0:
            rows.append({
                'categoryId': category.id,
                'name': category.name,
                'current': current_amount,
                'previous': previous_amount,
                'variation': calculate_percentage_change(previous_amount, current_amount),
            })

    return {
        'currentMonth': format_date(current_start),
        'previousMonth': format_date(previous_start),
        'currentExpenses': current_expenses,
        'previousExpenses': previous_expenses,
        'currentIncomes': current_incomes,
        'previousIncomes': previous_incomes,
        'expenseVariation': calculate_percentage_change(previous_expenses, current_expenses),
        'incomeVariation': calculate_percentage_change(previous_incomes, current_incomes),
        'categories': rows,
    }


# ==================== REMINDERS ====================

def is_overdue(reminder: Reminder, today: Optional[date] = None) -> bool:
    """Pending and due before today; paid reminders are never overdue"""
    if today is None:
        today = date.today()
    return reminder.status == REMINDER_STATUS_PENDING and reminder.due_date < today


def reminder_stats(reminders: List[Reminder], today: Optional[date] = None) -> Dict[str, int]:
    return {
        'pending': sum(1 for r in reminders if r.status == REMINDER_STATUS_PENDING),
        'overdue': sum(1 for r in reminders if is_overdue(r, today)),
    }


def sort_reminders(reminders: List[Reminder]) -> List[Reminder]:
    """Pending first, then by due date"""
    return sorted(reminders, key=lambda r: (r.status != REMINDER_STATUS_PENDING, r.due_date))


def upcoming_reminders(reminders: List[Reminder], limit: int = UPCOMING_REMINDERS_LIMIT) -> List[Reminder]:
    pending = [r for r in reminders if r.status == REMINDER_STATUS_PENDING]
    return sorted(pending, key=lambda r: r.due_date)[:limit]


# ==================== GOALS ====================

def goal_progress(goal: Goal) -> int:
    """
    Progress percentage of a goal, capped at 100

    A goal with a zero (or negative) target reports 0.
    """
    if not goal.target_amount or goal.target_amount <= 0:
        return 0

    percent = (goal.current_amount / goal.target_amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return min(int(percent), 100)


def is_goal_reached(goal: Goal) -> bool:
    return goal_progress(goal) >= 100
