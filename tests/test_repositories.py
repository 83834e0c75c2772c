"""Tests for the entity repositories."""

from datetime import date
from decimal import Decimal

import pytest

from database.models import Transaction
from database.repositories import (
    CategoryRepository,
    GoalRepository,
    ReminderRepository,
    TransactionRepository,
    build_repositories,
)


@pytest.fixture
def txn_repo(remote):
    return TransactionRepository("remote", "u1", remote.transactions)


class TestConstruction:
    """Test persistence mode selection."""

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            TransactionRepository("cloud")

    def test_remote_needs_collection_and_user(self, remote):
        with pytest.raises(ValueError):
            TransactionRepository("remote", "u1")
        with pytest.raises(ValueError):
            TransactionRepository("remote", None, remote.transactions)

    def test_build_local_without_user(self, remote):
        repos = build_repositories(None, remote)
        assert set(repos) == {"transactions", "categories", "reminders", "goals"}
        assert not any(repo.is_remote for repo in repos.values())

    def test_build_local_without_remote(self):
        assert not build_repositories("u1").get("goals").is_remote

    def test_build_remote(self, remote):
        repos = build_repositories("u1", remote)
        assert all(repo.is_remote for repo in repos.values())
        assert repos["categories"].collection is remote.categories


class TestTranslation:
    """Test entity <-> row translation."""

    def test_transaction_row_columns(self, txn_repo, lunch):
        """Rows are tagged with the owner and use the remote column names."""
        row = txn_repo.to_row(lunch)
        assert row == {
            "user_id": "u1",
            "type": "expense",
            "date": date(2024, 1, 10),
            "description": "Lunch",
            "category_id": "cat_food",
            "amount": Decimal("42.50"),
        }

    def test_include_id(self, txn_repo, lunch):
        assert txn_repo.to_row(lunch.apply({"id": "x"}), include_id=True)["id"] == "x"

    @pytest.mark.parametrize("repo_cls, fixture_name", [
        (TransactionRepository, "lunch"),
        (CategoryRepository, "sample_category"),
        (ReminderRepository, "sample_reminder"),
        (GoalRepository, "sample_goal"),
    ])
    def test_translation_is_lossless(self, request, remote, repo_cls, fixture_name):
        """Every field survives entity -> row -> entity."""
        repo = repo_cls("remote", "u1", remote.collection(repo_cls.collection_name))
        entity = request.getfixturevalue(fixture_name).apply({"id": "id-1"})
        assert repo.from_row(repo.to_row(entity, include_id=True)) == entity

    def test_row_ids_become_strings(self, txn_repo, lunch):
        row = txn_repo.to_row(lunch)
        row["id"] = 17
        assert txn_repo.from_row(row).id == "17"

    def test_changes_to_row(self, txn_repo):
        changes = {"id": "ignored", "transaction_date": date(2024, 2, 1), "amount": Decimal("1")}
        assert txn_repo.changes_to_row(changes) == {"date": date(2024, 2, 1), "amount": Decimal("1")}


class TestLocalMode:
    """Local repositories never touch a remote store."""

    async def test_add_generates_prefixed_id(self, lunch):
        repo = TransactionRepository("local")
        created = await repo.add(lunch)
        assert created.id.startswith("txn_")
        assert created.amount == lunch.amount
        assert lunch.id is None

    async def test_ids_are_unique(self, lunch):
        repo = TransactionRepository("local")
        ids = {(await repo.add(lunch)).id for _ in range(50)}
        assert len(ids) == 50

    async def test_writes_always_succeed(self):
        repo = GoalRepository("local", "u1")
        assert await repo.update("g1", {"title": "x"}) is True
        assert await repo.delete("g1") is True
        assert await repo.delete_all() is True
        assert await repo.fetch_all() is None


class TestRemoteMode:
    """Remote repositories report only confirmed writes."""

    async def test_add_adopts_server_id(self, txn_repo, remote, lunch):
        created = await txn_repo.add(lunch)
        assert created.id == remote.transactions.rows[0]["id"]
        assert remote.transactions.rows[0]["user_id"] == "u1"

    async def test_add_failure_returns_none(self, txn_repo, remote, lunch):
        remote.transactions.failing.add("insert")
        assert await txn_repo.add(lunch) is None

    async def test_fetch_is_scoped_to_user(self, remote, lunch):
        mine = TransactionRepository("remote", "u1", remote.transactions)
        theirs = TransactionRepository("remote", "u2", remote.transactions)
        await mine.add(lunch)
        await theirs.add(lunch)

        fetched = await mine.fetch_all()
        assert len(fetched) == 1
        assert isinstance(fetched[0], Transaction)

    async def test_fetch_failure_returns_none(self, txn_repo, remote):
        remote.transactions.failing.add("select")
        assert await txn_repo.fetch_all() is None

    async def test_fetch_skips_unreadable_rows(self, txn_repo, remote, lunch):
        await txn_repo.add(lunch)
        remote.transactions.rows.append({"id": "bad", "user_id": "u1", "type": "expense", "amount": None})
        assert len(await txn_repo.fetch_all()) == 1

    async def test_update(self, txn_repo, remote, lunch):
        created = await txn_repo.add(lunch)
        assert await txn_repo.update(created.id, {"amount": Decimal("10")}) is True
        assert remote.transactions.rows[0]["amount"] == Decimal("10")

    async def test_update_missing_or_failing(self, txn_repo, remote, lunch):
        assert await txn_repo.update("nope", {"amount": Decimal("10")}) is False
        created = await txn_repo.add(lunch)
        remote.transactions.failing.add("update")
        assert await txn_repo.update(created.id, {"amount": Decimal("10")}) is False

    async def test_delete(self, txn_repo, remote, lunch):
        created = await txn_repo.add(lunch)
        remote.transactions.failing.add("delete")
        assert await txn_repo.delete(created.id) is False
        remote.transactions.failing.clear()
        assert await txn_repo.delete(created.id) is True
        assert remote.transactions.rows == []

    async def test_delete_all(self, txn_repo, remote, lunch):
        await txn_repo.add(lunch)
        assert await txn_repo.delete_all() is True
        remote.transactions.failing.add("delete_all")
        assert await txn_repo.delete_all() is False

    async def test_import_drops_local_ids(self, txn_repo, remote, lunch):
        """Imported transactions get ids from the remote store."""
        assert await txn_repo.import_entities([lunch.apply({"id": "txn_local"})]) is True
        assert remote.transactions.rows[0]["id"] != "txn_local"

    async def test_category_import_keeps_ids(self, remote, sample_category):
        """Categories are upserted so transactions keep pointing at them."""
        repo = CategoryRepository("remote", "u1", remote.categories)
        category = sample_category.apply({"id": "cat_pets"})

        assert await repo.import_entities([category]) is True
        assert await repo.import_entities([category.apply({"name": "Pets & Vet"})]) is True

        assert remote.categories.insert_calls == 0
        assert len(remote.categories.rows) == 1
        assert remote.categories.rows[0]["id"] == "cat_pets"
        assert remote.categories.rows[0]["name"] == "Pets & Vet"

    async def test_import_nothing(self, txn_repo, remote):
        assert await txn_repo.import_entities([]) is True
        assert remote.transactions.insert_calls == 0
