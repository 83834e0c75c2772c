"""
Data models (dataclasses) for the in-memory application state

Every model serializes to the camelCase JSON shape used by the local store
blob and the web app (``to_dict`` / ``from_dict``). Remote column names are
handled by the repositories.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from shared.constants import (
    TRANSACTION_TYPES,
    TRANSACTION_TYPE_EXPENSE,
    REMINDER_STATUSES,
    REMINDER_STATUS_PENDING,
    USER_PLANS,
    PLAN_BASIC,
    PERIODS,
    PERIOD_30D,
    FILTER_ALL,
    SEED_CATEGORIES,
    COLLECTIONS,
)
from shared.utils import to_decimal, round_amount, parse_date, format_date, normalize_choice

logger = logging.getLogger(__name__)


class EntityMixin:
    """
    Shared (de)serialization for entity dataclasses

    Subclasses declare ``JSON_FIELDS`` (attribute -> camelCase key, listing
    every field) and ``OPTIONAL_FIELDS``.
    ``AMOUNT_FIELDS`` are rounded to cents whenever an instance is built,
    so in-memory values match what the remote columns store.
    """

    JSON_FIELDS: ClassVar[Dict[str, str]] = {}
    OPTIONAL_FIELDS: ClassVar[Tuple[str, ...]] = ()
    AMOUNT_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        for attr in self.AMOUNT_FIELDS:
            value = getattr(self, attr)
            if isinstance(value, Decimal):
                setattr(self, attr, round_amount(value))

    @classmethod
    def _parse_field(cls, name: str, value: Any) -> Any:
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """
        Build entity from its JSON representation

        Args:
            data: camelCase dictionary (snake_case keys are accepted too)

        Returns:
            Entity instance

        Raises:
            ValueError: If a required field is missing or malformed
        """
        kwargs = {}
        for attr, key in cls.JSON_FIELDS.items():
            if key in data:
                raw = data[key]
            elif attr in data:
                raw = data[attr]
            elif attr == 'id' or attr in cls.OPTIONAL_FIELDS:
                raw = None
            else:
                raise ValueError(f"{cls.__name__} is missing field '{key}'")
            kwargs[attr] = cls._parse_field(attr, raw)
        return cls(**kwargs)

    @classmethod
    def parse_changes(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Parse a partial update into attribute-keyed values

        Args:
            data: camelCase dictionary with the changed fields

        Returns:
            Dictionary of attribute name -> parsed value (``id`` is never changed)
        """
        changes = {}
        for attr, key in cls.JSON_FIELDS.items():
            if attr == 'id':
                continue
            if key in data:
                changes[attr] = cls._parse_field(attr, data[key])
            elif attr in data:
                changes[attr] = cls._parse_field(attr, data[attr])
        return changes

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON shape"""
        result = {}
        for attr, key in self.JSON_FIELDS.items():
            value = getattr(self, attr)
            if isinstance(value, date):
                value = format_date(value)
            elif isinstance(value, Decimal):
                value = float(value)
            result[key] = value
        return result

    def apply(self, changes: Dict[str, Any]):
        """Return a copy with the given attribute changes merged in"""
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise ValueError if the entity breaks a field rule"""


@dataclass
class Transaction(EntityMixin):
    """Transaction model"""
    id: Optional[str]
    type: str  # 'income' or 'expense'
    transaction_date: date
    description: str
    category_id: str
    amount: Decimal

    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        'id': 'id',
        'type': 'type',
        'transaction_date': 'date',
        'description': 'description',
        'category_id': 'categoryId',
        'amount': 'amount',
    }
    AMOUNT_FIELDS: ClassVar[Tuple[str, ...]] = ('amount',)

    @classmethod
    def _parse_field(cls, name, value):
        if name == 'type':
            return normalize_choice(value)
        if name == 'transaction_date':
            return parse_date(value)
        if name == 'amount':
            return to_decimal(value)
        if name in ('description', 'category_id') and value is not None:
            return str(value)
        return value

    def validate(self) -> None:
        if self.type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {self.type!r}")
        if self.transaction_date is None:
            raise ValueError("Transaction date is required")
        if not self.description or not self.description.strip():
            raise ValueError("Transaction description must not be empty")
        if self.amount is None or self.amount <= 0:
            raise ValueError(f"Transaction amount must be positive: {self.amount}")

    @property
    def is_expense(self) -> bool:
        return self.type == TRANSACTION_TYPE_EXPENSE


@dataclass
class Category(EntityMixin):
    """Category model"""
    id: Optional[str]
    name: str
    kind: str  # transaction type this category applies to
    color: Optional[str] = None

    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        'id': 'id',
        'name': 'name',
        'kind': 'kind',
        'color': 'color',
    }
    OPTIONAL_FIELDS: ClassVar[Tuple[str, ...]] = ('color',)

    @classmethod
    def _parse_field(cls, name, value):
        if name == 'kind':
            return normalize_choice(value)
        if name == 'color':
            return value or None
        return value

    def validate(self) -> None:
        if not self.name or not str(self.name).strip():
            raise ValueError("Category name must not be empty")
        if self.kind not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid category kind: {self.kind!r}")


@dataclass
class Reminder(EntityMixin):
    """Bill reminder model"""
    id: Optional[str]
    title: str
    due_date: date
    amount: Decimal
    status: str = REMINDER_STATUS_PENDING

    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        'id': 'id',
        'title': 'title',
        'due_date': 'dueDate',
        'amount': 'amount',
        'status': 'status',
    }
    OPTIONAL_FIELDS: ClassVar[Tuple[str, ...]] = ('status',)
    AMOUNT_FIELDS: ClassVar[Tuple[str, ...]] = ('amount',)

    @classmethod
    def _parse_field(cls, name, value):
        if name == 'due_date':
            return parse_date(value)
        if name == 'amount':
            return to_decimal(value)
        if name == 'status':
            return normalize_choice(value) if value else REMINDER_STATUS_PENDING
        return value

    def validate(self) -> None:
        if not self.title or not str(self.title).strip():
            raise ValueError("Reminder title must not be empty")
        if self.due_date is None:
            raise ValueError("Reminder due date is required")
        if self.amount is None or self.amount <= 0:
            raise ValueError(f"Reminder amount must be positive: {self.amount}")
        if self.status not in REMINDER_STATUSES:
            raise ValueError(f"Invalid reminder status: {self.status!r}")


@dataclass
class Goal(EntityMixin):
    """Savings goal model"""
    id: Optional[str]
    title: str
    target_amount: Decimal
    current_amount: Decimal = Decimal('0')
    deadline: Optional[date] = None

    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        'id': 'id',
        'title': 'title',
        'target_amount': 'targetAmount',
        'current_amount': 'currentAmount',
        'deadline': 'deadline',
    }
    OPTIONAL_FIELDS: ClassVar[Tuple[str, ...]] = ('current_amount', 'deadline')
    AMOUNT_FIELDS: ClassVar[Tuple[str, ...]] = ('target_amount', 'current_amount')

    @classmethod
    def _parse_field(cls, name, value):
        if name == 'target_amount':
            return to_decimal(value)
        if name == 'current_amount':
            return to_decimal(value) if value is not None else Decimal('0')
        if name == 'deadline':
            return parse_date(value)
        return value

    def validate(self) -> None:
        if not self.title or not str(self.title).strip():
            raise ValueError("Goal title must not be empty")
        if self.target_amount is None or self.target_amount < 0:
            raise ValueError(f"Goal target must not be negative: {self.target_amount}")
        if self.current_amount is None or self.current_amount < 0:
            raise ValueError(f"Goal current amount must not be negative: {self.current_amount}")


ENTITY_MODELS = {
    'transactions': Transaction,
    'categories': Category,
    'reminders': Reminder,
    'goals': Goal,
}


def seed_categories() -> List[Category]:
    """Fresh copies of the default categories"""
    return [Category.from_dict(item) for item in SEED_CATEGORIES]


def _choice(value: Any, allowed: Tuple[str, ...], default: str) -> str:
    value = normalize_choice(value) if value else value
    return value if value in allowed else default


def _optional_date(value: Any) -> Optional[date]:
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Filters:
    """Records page filters (session only, never stored remotely)"""
    period: str = PERIOD_30D
    category_id: str = FILTER_ALL
    search: str = ''
    type: str = FILTER_ALL
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    JSON_FIELDS: ClassVar[Dict[str, str]] = {
        'period': 'period',
        'category_id': 'categoryId',
        'search': 'search',
        'type': 'type',
        'start_date': 'startDate',
        'end_date': 'endDate',
    }

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Filters':
        """Tolerant parse: unknown or missing values fall back to defaults"""
        return cls().merge(data if isinstance(data, dict) else {})

    def merge(self, data: Dict[str, Any]) -> 'Filters':
        """
        Merge a partial camelCase update

        Args:
            data: Changed filter fields

        Returns:
            New Filters instance
        """
        changes = {}
        for attr, key in self.JSON_FIELDS.items():
            if key not in data and attr not in data:
                continue
            value = data[key] if key in data else data[attr]
            if attr == 'period':
                changes[attr] = _choice(value, PERIODS, PERIOD_30D)
            elif attr == 'type':
                changes[attr] = _choice(value, TRANSACTION_TYPES + (FILTER_ALL,), FILTER_ALL)
            elif attr in ('start_date', 'end_date'):
                changes[attr] = _optional_date(value)
            else:
                default = FILTER_ALL if attr == 'category_id' else ''
                changes[attr] = str(value) if value else default
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for attr, key in self.JSON_FIELDS.items():
            value = getattr(self, attr)
            result[key] = format_date(value) if attr in ('start_date', 'end_date') else value
        return result


@dataclass
class DashboardFilters:
    """Dashboard summary filters, independent from the records filters"""
    period: str = PERIOD_30D
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DashboardFilters':
        return cls().merge(data if isinstance(data, dict) else {})

    def merge(self, data: Dict[str, Any]) -> 'DashboardFilters':
        changes = {}
        if 'period' in data:
            changes['period'] = _choice(data['period'], PERIODS, PERIOD_30D)
        if 'startDate' in data:
            changes['start_date'] = _optional_date(data['startDate'])
        if 'endDate' in data:
            changes['end_date'] = _optional_date(data['endDate'])
        return replace(self, **changes)

    def to_filters(self) -> Filters:
        """Records-style filters with search, category and type cleared"""
        return Filters(
            period=self.period,
            start_date=self.start_date,
            end_date=self.end_date,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'startDate': format_date(self.start_date),
            'endDate': format_date(self.end_date),
        }


@dataclass
class AppState:
    """Aggregate root for one identity session"""
    transactions: List[Transaction] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    reminders: List[Reminder] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    filters: Filters = field(default_factory=Filters)
    dashboard_filters: DashboardFilters = field(default_factory=DashboardFilters)
    user_plan: str = PLAN_BASIC

    @classmethod
    def default(cls, with_seed_categories: bool = True) -> 'AppState':
        """
        Fresh state for a new session

        Args:
            with_seed_categories: Start with the default categories

        Returns:
            AppState instance
        """
        return cls(categories=seed_categories() if with_seed_categories else [])

    def has_data(self) -> bool:
        """Whether any entity collection is non-empty"""
        return any(getattr(self, name) for name in COLLECTIONS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transactions': [t.to_dict() for t in self.transactions],
            'categories': [c.to_dict() for c in self.categories],
            'reminders': [r.to_dict() for r in self.reminders],
            'goals': [g.to_dict() for g in self.goals],
            'filters': self.filters.to_dict(),
            'dashboardFilters': self.dashboard_filters.to_dict(),
            'userPlan': self.user_plan,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppState':
        """
        Build state from a stored blob, upgrading older shapes

        Missing fields get their defaults one by one; an empty category list
        is replaced by the seed categories. Entities that cannot be parsed are
        dropped with a warning.

        Args:
            data: Decoded JSON blob

        Returns:
            Fully populated AppState

        Raises:
            ValueError: If data is not a JSON object
        """
        if not isinstance(data, dict):
            raise ValueError(f"State blob must be an object, got {type(data).__name__}")

        collections = {}
        for name, model in ENTITY_MODELS.items():
            items = data.get(name) or []
            if not isinstance(items, list):
                logger.warning(f"Ignoring malformed '{name}' collection in stored state")
                items = []

            parsed = []
            for item in items:
                try:
                    parsed.append(model.from_dict(item))
                except (TypeError, ValueError, AttributeError) as e:
                    logger.warning(f"Dropping unreadable {name} entry {item!r}: {e}")
            collections[name] = parsed

        if not collections['categories']:
            collections['categories'] = seed_categories()

        return cls(
            filters=Filters.from_dict(data.get('filters')),
            dashboard_filters=DashboardFilters.from_dict(data.get('dashboardFilters')),
            user_plan=_choice(data.get('userPlan'), USER_PLANS, PLAN_BASIC),
            **collections
        )
