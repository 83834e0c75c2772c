"""Tests for model (de)serialization and field rules."""

from datetime import date
from decimal import Decimal

import pytest

from database.models import (
    AppState,
    Category,
    DashboardFilters,
    Filters,
    Goal,
    Reminder,
    Transaction,
    seed_categories,
)
from shared.constants import SEED_CATEGORIES


class TestEntitySerialization:
    """Test camelCase JSON shape of the entities."""

    def test_transaction_to_dict_uses_camel_case(self, lunch):
        """Transaction should serialize with categoryId and ISO date."""
        data = lunch.to_dict()
        assert data == {
            "id": None,
            "type": "expense",
            "date": "2024-01-10",
            "description": "Lunch",
            "categoryId": "cat_food",
            "amount": 42.5,
        }

    def test_transaction_from_dict(self):
        """Transaction should parse amounts into Decimal and dates into date."""
        t = Transaction.from_dict({
            "id": "abc", "type": "income", "date": "2024-03-01",
            "description": "Salary", "categoryId": "cat_salary", "amount": "8000.10",
        })
        assert t.transaction_date == date(2024, 3, 1)
        assert t.amount == Decimal("8000.10")
        assert t.category_id == "cat_salary"

    def test_legacy_values_are_normalized(self):
        """Old Portuguese enumeration values should map to current ones."""
        t = Transaction.from_dict({
            "type": "despesa", "date": "2024-01-01", "description": "x",
            "categoryId": "c", "amount": 1,
        })
        r = Reminder.from_dict({"title": "Bill", "dueDate": "2024-01-01", "amount": 10, "status": "pago"})
        c = Category.from_dict({"id": "c", "name": "Job", "kind": "entrada"})
        assert t.type == "expense"
        assert r.status == "paid"
        assert c.kind == "income"

    def test_missing_required_field_raises(self):
        """A transaction without amount is not readable."""
        with pytest.raises(ValueError):
            Transaction.from_dict({"type": "expense", "date": "2024-01-01", "description": "x", "categoryId": "c"})

    def test_goal_optional_fields_default(self):
        """Goal should default current amount to zero and deadline to None."""
        g = Goal.from_dict({"title": "Trip", "targetAmount": 5000})
        assert g.current_amount == Decimal("0")
        assert g.deadline is None

    def test_reminder_round_trip(self, sample_reminder):
        """Reminder should survive to_dict/from_dict unchanged."""
        assert Reminder.from_dict(sample_reminder.to_dict()) == sample_reminder

    @pytest.mark.parametrize("raw, expected", [
        ("10.005", Decimal("10.01")),
        ("10.004", Decimal("10.00")),
        (12.3, Decimal("12.30")),
    ])
    def test_amounts_are_kept_in_cents(self, raw, expected):
        t = Transaction.from_dict({
            "type": "expense", "date": "2024-01-01", "description": "x",
            "categoryId": "c", "amount": raw,
        })
        assert t.amount == expected
        assert t.amount.as_tuple().exponent == -2

    def test_apply_rounds_amounts(self, sample_goal):
        goal = sample_goal.apply({"current_amount": Decimal("0.125"), "target_amount": Decimal("99.999")})
        assert goal.current_amount == Decimal("0.13")
        assert goal.target_amount == Decimal("100.00")

    def test_amount_too_large_for_cents(self):
        with pytest.raises(ValueError):
            Reminder.from_dict({"title": "Bill", "dueDate": "2024-01-01", "amount": "1e40"})

    def test_parse_changes_ignores_id_and_unknown_keys(self):
        """Partial updates map camelCase keys and never touch the id."""
        changes = Goal.parse_changes({"id": "other", "currentAmount": "10.5", "foo": 1})
        assert changes == {"current_amount": Decimal("10.5")}


class TestValidation:
    """Test entity field rules."""

    def test_valid_transaction(self, lunch):
        lunch.validate()

    @pytest.mark.parametrize("changes", [
        {"description": "   "},
        {"amount": Decimal("0")},
        {"amount": Decimal("-3")},
        {"amount": Decimal("0.004")},
        {"type": "transfer"},
    ])
    def test_invalid_transaction(self, lunch, changes):
        """Empty description, non-positive amount or unknown type are rejected."""
        with pytest.raises(ValueError):
            lunch.apply(changes).validate()

    def test_category_needs_name(self):
        with pytest.raises(ValueError):
            Category(id=None, name="", kind="expense").validate()

    def test_goal_with_zero_target_is_valid(self):
        """Zero targets are tolerated (progress resolves to 0)."""
        Goal(id=None, title="Someday", target_amount=Decimal("0")).validate()

    def test_invalid_amount_string(self):
        with pytest.raises(ValueError):
            Transaction.parse_changes({"amount": "NaN"})


class TestFilters:
    """Test filter parsing and merging."""

    def test_defaults(self):
        f = Filters()
        assert f.period == "30d"
        assert f.category_id == "all"
        assert f.type == "all"
        assert not f.has_date_range

    def test_merge_dates(self):
        """Explicit dates should be parsed; empty strings clear them."""
        f = Filters().merge({"startDate": "2024-01-01", "endDate": "2024-01-31"})
        assert f.start_date == date(2024, 1, 1)
        assert f.has_date_range

        cleared = f.merge({"startDate": "", "endDate": ""})
        assert not cleared.has_date_range

    def test_unknown_period_falls_back(self):
        assert Filters().merge({"period": "90d"}).period == "30d"

    def test_to_dict_uses_empty_strings(self):
        assert Filters().to_dict()["startDate"] == ""

    def test_dashboard_filters_to_filters(self):
        """Dashboard filters never carry search, category or type."""
        df = DashboardFilters(period="7d", start_date=date(2024, 1, 1))
        f = df.to_filters()
        assert f.period == "7d"
        assert f.start_date == date(2024, 1, 1)
        assert f.search == ""
        assert f.category_id == "all"


class TestAppState:
    """Test the aggregate defaults."""

    def test_default_has_seed_categories(self):
        state = AppState.default()
        assert [c.id for c in state.categories] == [c["id"] for c in SEED_CATEGORIES]
        assert state.user_plan == "basic"
        assert state.dashboard_filters.period == "30d"

    def test_default_without_seed(self):
        assert AppState.default(with_seed_categories=False).categories == []

    def test_seed_categories_are_fresh_copies(self):
        first = seed_categories()
        first[0].name = "Changed"
        assert seed_categories()[0].name != "Changed"

    def test_has_data(self, lunch):
        assert not AppState().has_data()
        assert AppState(transactions=[lunch]).has_data()

    def test_from_dict_drops_unreadable_entries(self):
        """One broken entry should not discard the rest of the blob."""
        state = AppState.from_dict({
            "transactions": [
                {"id": "ok", "type": "expense", "date": "2024-01-01", "description": "x",
                 "categoryId": "c", "amount": 5},
                {"id": "bad", "type": "expense", "date": "not-a-date", "description": "y",
                 "categoryId": "c", "amount": 5},
            ]
        })
        assert [t.id for t in state.transactions] == ["ok"]

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            AppState.from_dict(["not", "a", "state"])
