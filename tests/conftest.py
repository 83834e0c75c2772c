"""Shared test fixtures."""

import asyncio
import json
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from database.collections import RemoteStore
from database.local_store import LocalStore
from database.models import Category, Goal, Reminder, Transaction
from store import AppStore, StoreRegistry


class FakeCollection:
    """In-memory stand-in for RemoteCollection with failure injection."""

    def __init__(self, table, conflict_target=("id",)):
        self.table = table
        self.conflict_target = tuple(conflict_target)
        self.rows = []
        self.failing = set()
        self.insert_calls = 0
        self.upsert_calls = 0
        self.insert_gate: Optional[asyncio.Event] = None
        self.select_gate: Optional[asyncio.Event] = None
        self.insert_started = asyncio.Event()

    def _check(self, method):
        if method in self.failing:
            raise ConnectionError(f"{self.table}.{method} unavailable")

    def rows_for(self, user_id):
        return [row for row in self.rows if row["user_id"] == user_id]

    async def select(self, user_id):
        if self.select_gate is not None:
            await self.select_gate.wait()
        self._check("select")
        return [dict(row) for row in self.rows_for(user_id)]

    async def insert(self, rows):
        self.insert_started.set()
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        self._check("insert")
        self.insert_calls += 1
        inserted = []
        for row in rows:
            stored = dict(row)
            if not stored.get("id"):
                stored["id"] = str(uuid.uuid4())
            self.rows.append(stored)
            inserted.append(dict(stored))
        return inserted

    async def update(self, row_id, fields, user_id):
        self._check("update")
        for row in self.rows:
            if row["id"] == row_id and row["user_id"] == user_id:
                row.update(fields)
                return True
        return False

    async def delete(self, row_id, user_id):
        self._check("delete")
        before = len(self.rows)
        self.rows = [r for r in self.rows if not (r["id"] == row_id and r["user_id"] == user_id)]
        return len(self.rows) < before

    async def delete_all(self, user_id):
        self._check("delete_all")
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["user_id"] != user_id]
        return before - len(self.rows)

    async def upsert(self, rows):
        self._check("upsert")
        self.upsert_calls += 1
        for row in rows:
            key = tuple(row[name] for name in self.conflict_target)
            for existing in self.rows:
                if tuple(existing.get(name) for name in self.conflict_target) == key:
                    existing.update(row)
                    break
            else:
                self.rows.append(dict(row))
        return len(rows)


class FakeUserRepository:
    """In-memory migration flags, absorbing failures like UserRepository."""

    def __init__(self):
        self.flags = {}
        self.fail_read = False
        self.fail_write = False
        self.mark_calls = 0

    async def get_migration_flag(self, user_id):
        if self.fail_read:
            return None
        return self.flags.get(user_id, False)

    async def mark_migrated(self, user_id):
        self.mark_calls += 1
        if self.fail_write:
            return False
        self.flags[user_id] = True
        return True


@pytest.fixture
def local_store(tmp_path):
    """Local store writing into a per-test directory."""
    return LocalStore(
        directory=str(tmp_path / "local"),
        namespace="securitycash_data",
        anonymous_key="securitycash_data_v2",
    )


@pytest.fixture
def remote():
    """Remote store backed by in-memory collections."""
    return RemoteStore(
        transactions=FakeCollection("transactions"),
        categories=FakeCollection("categories", conflict_target=("user_id", "id")),
        reminders=FakeCollection("reminders"),
        goals=FakeCollection("goals"),
        users=FakeUserRepository(),
    )


@pytest.fixture
def local_app_store(local_store):
    """State container without a remote store."""
    return AppStore(local_store)


@pytest.fixture
def remote_app_store(local_store, remote):
    """State container with the fake remote store, best-effort migration."""
    return AppStore(local_store, remote, strict_migration=False)


@pytest.fixture
def local_registry(local_store):
    """Per-identity containers without a remote store."""
    return StoreRegistry(local_store)


@pytest.fixture
def remote_registry(local_store, remote):
    """Per-identity containers with the fake remote store."""
    return StoreRegistry(local_store, remote, strict_migration=False)


@pytest.fixture
def write_blob(local_store):
    """Write a raw state blob for an identity."""
    def _write(user_id, data):
        blob = data if isinstance(data, str) else json.dumps(data)
        local_store.set(local_store.key_for(user_id), blob)
    return _write


@pytest.fixture
def lunch():
    """The expense from the anonymous-mode scenario."""
    return Transaction(
        id=None,
        type="expense",
        transaction_date=date(2024, 1, 10),
        description="Lunch",
        category_id="cat_food",
        amount=Decimal("42.50"),
    )


@pytest.fixture
def sample_category():
    return Category(id=None, name="Pets", kind="expense", color="#22c55e")


@pytest.fixture
def sample_reminder():
    return Reminder(
        id=None,
        title="Rent",
        due_date=date(2024, 2, 5),
        amount=Decimal("2500.00"),
        status="pending",
    )


@pytest.fixture
def sample_goal():
    return Goal(
        id=None,
        title="Emergency fund",
        target_amount=Decimal("15000"),
        current_amount=Decimal("4500"),
        deadline=date(2024, 12, 31),
    )


@pytest.fixture
def legacy_blob():
    """State blob as written by an older client, with three transactions."""
    return {
        "transactions": [
            {"id": "t1", "type": "entrada", "date": "2024-01-02", "description": "Salary",
             "categoryId": "cat_salary", "amount": 8000},
            {"id": "t2", "type": "despesa", "date": "2024-01-05", "description": "Groceries",
             "categoryId": "cat_market", "amount": 320.5},
            {"id": "t3", "type": "despesa", "date": "2024-01-06", "description": "Bus",
             "categoryId": "cat_transport", "amount": 12},
        ],
        "categories": [
            {"id": "cat_salary", "name": "Salary", "kind": "entrada"},
            {"id": "cat_market", "name": "Market", "kind": "despesa", "color": "#ff0000"},
            {"id": "cat_transport", "name": "Transport", "kind": "despesa"},
        ],
        "filters": {"period": "30d", "categoryId": "all", "search": "", "type": "all"},
    }
