"""Tests for configuration, logging and utility helpers."""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from shared.config import Settings
from shared.logger import setup_logging
from shared.utils import (
    calculate_percentage_change,
    format_date,
    generate_id,
    normalize_choice,
    parse_date,
    safe_divide,
    to_decimal,
)


class TestSettings:
    """Test settings validation."""

    def test_defaults_are_valid(self, tmp_path):
        s = Settings(LOCAL_STORAGE_DIR=str(tmp_path / "store"), DATABASE_URL="")
        assert s.validate() is True
        assert not s.remote_enabled
        assert (tmp_path / "store").is_dir()

    def test_remote_enabled(self, tmp_path):
        s = Settings(LOCAL_STORAGE_DIR=str(tmp_path), DATABASE_URL="postgresql://localhost/db")
        assert s.remote_enabled

    @pytest.mark.parametrize("overrides", [
        {"API_PORT": 0},
        {"DB_POOL_MIN_SIZE": 5, "DB_POOL_MAX_SIZE": 2},
        {"STORAGE_NAMESPACE": ""},
    ])
    def test_invalid(self, tmp_path, overrides):
        s = Settings(LOCAL_STORAGE_DIR=str(tmp_path), **overrides)
        assert s.validate() is False


class TestLogging:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_setup_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging("warning", str(log_file))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 2
        assert logging.getLogger("asyncpg").level == logging.WARNING
        assert log_file.parent.is_dir()

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty", "")
        assert logging.getLogger().level == logging.INFO


class TestUtils:
    """Test parsing and formatting helpers."""

    def test_generate_id(self):
        assert generate_id("rem_").startswith("rem_")
        assert generate_id() != generate_id()

    @pytest.mark.parametrize("value, expected", [
        ("42.50", Decimal("42.50")),
        (10, Decimal("10")),
        (0.1, Decimal("0.1")),
        (" 7 ", Decimal("7")),
    ])
    def test_to_decimal(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "Infinity", ""])
    def test_to_decimal_rejects(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_parse_date(self):
        assert parse_date("2024-01-10") == date(2024, 1, 10)
        assert parse_date("2024-01-10T15:30:00Z") == date(2024, 1, 10)
        assert parse_date(datetime(2024, 1, 10, 8)) == date(2024, 1, 10)
        assert parse_date("") is None
        with pytest.raises(ValueError):
            parse_date("10/01/2024")

    def test_format_date(self):
        assert format_date(date(2024, 1, 10)) == "2024-01-10"
        assert format_date(None) == ""

    def test_normalize_choice(self):
        assert normalize_choice(" Despesa ") == "expense"
        assert normalize_choice("pendente") == "pending"
        assert normalize_choice("income") == "income"

    def test_percentage_change(self):
        assert calculate_percentage_change(Decimal("200"), Decimal("250")) == 25.0
        assert calculate_percentage_change(Decimal("0"), Decimal("5")) == 100.0
        assert calculate_percentage_change(Decimal("0"), Decimal("0")) == 0.0

    def test_safe_divide(self):
        assert safe_divide(Decimal("10"), Decimal("4")) == Decimal("2.5")
        assert safe_divide(Decimal("10"), Decimal("0")) == Decimal("0")
