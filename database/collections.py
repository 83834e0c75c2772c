"""
Remote collection store

Four per-user tables (transactions, categories, reminders, goals) accessed
through one generic collection class. Rows use the remote column names;
translation to the in-memory models happens in the repositories.

Methods raise on database errors; callers decide how to absorb them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Sequence

from database.connection import get_db_connection
from database.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class RemoteCollection:
    """Per-user table supporting select / insert / update / delete / upsert"""

    def __init__(
        self,
        table: str,
        columns: Sequence[str],
        order_by: str = "created_at DESC",
        conflict_target: Sequence[str] = ("id",),
        connection_factory: Callable = get_db_connection
    ):
        self.table = table
        self.columns = tuple(columns)
        self.order_by = order_by
        self.conflict_target = tuple(conflict_target)
        self._connection = connection_factory

    def _check_columns(self, names: Iterable[str]) -> List[str]:
        names = list(names)
        unknown = [name for name in names if name not in self.columns]
        if unknown:
            raise ValueError(f"Unknown columns for {self.table}: {', '.join(unknown)}")
        return names

    async def select(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Select all rows owned by a user

        Args:
            user_id: Owner identity

        Returns:
            Ordered list of row dictionaries
        """
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"SELECT * FROM {self.table} WHERE user_id = $1 ORDER BY {self.order_by}",
                user_id
            )
        return [dict(row) for row in rows]

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert rows, letting the database generate missing ids

        Args:
            rows: Row dictionaries (each must carry user_id)

        Returns:
            Inserted rows as stored, in input order
        """
        inserted = []
        async with self._connection() as conn:
            async with conn.transaction():
                for row in rows:
                    names = self._check_columns(row.keys())
                    placeholders = ", ".join(f"${i}" for i in range(1, len(names) + 1))
                    record = await conn.fetchrow(
                        f"""
                        INSERT INTO {self.table} ({", ".join(names)})
                        VALUES ({placeholders})
                        RETURNING *
                        """,
                        *[row[name] for name in names]
                    )
                    inserted.append(dict(record))

        logger.debug(f"Inserted {len(inserted)} rows into {self.table}")
        return inserted

    async def update(self, row_id: str, fields: Dict[str, Any], user_id: str) -> bool:
        """
        Update some columns of one row

        Args:
            row_id: Row ID
            fields: Changed columns
            user_id: Owner identity

        Returns:
            True if a row was updated
        """
        names = [name for name in self._check_columns(fields.keys()) if name not in ("id", "user_id")]
        if not names:
            return True

        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(names, start=3))

        async with self._connection() as conn:
            result = await conn.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = $1 AND user_id = $2",
                row_id, user_id, *[fields[name] for name in names]
            )

        return result.split()[-1] != "0"

    async def delete(self, row_id: str, user_id: str) -> bool:
        """
        Delete one row

        Returns:
            True if a row was deleted
        """
        async with self._connection() as conn:
            result = await conn.execute(
                f"DELETE FROM {self.table} WHERE id = $1 AND user_id = $2",
                row_id, user_id
            )

        return result.split()[-1] != "0"

    async def delete_all(self, user_id: str) -> int:
        """
        Delete every row owned by a user

        Returns:
            Number of deleted rows
        """
        async with self._connection() as conn:
            result = await conn.execute(
                f"DELETE FROM {self.table} WHERE user_id = $1",
                user_id
            )

        return int(result.split()[-1])

    async def upsert(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert rows keyed by their existing ids, updating on conflict

        Args:
            rows: Row dictionaries including id and user_id

        Returns:
            Number of rows written
        """
        written = 0
        async with self._connection() as conn:
            async with conn.transaction():
                for row in rows:
                    names = self._check_columns(row.keys())
                    placeholders = ", ".join(f"${i}" for i in range(1, len(names) + 1))
                    updates = [name for name in names if name not in self.conflict_target]
                    if updates:
                        conflict_action = "DO UPDATE SET " + ", ".join(
                            f"{name} = EXCLUDED.{name}" for name in updates
                        )
                    else:
                        conflict_action = "DO NOTHING"

                    await conn.execute(
                        f"""
                        INSERT INTO {self.table} ({", ".join(names)})
                        VALUES ({placeholders})
                        ON CONFLICT ({", ".join(self.conflict_target)}) {conflict_action}
                        """,
                        *[row[name] for name in names]
                    )
                    written += 1

        logger.debug(f"Upserted {written} rows into {self.table}")
        return written


@dataclass
class RemoteStore:
    """The four remote collections plus the per-user settings table"""
    transactions: RemoteCollection
    categories: RemoteCollection
    reminders: RemoteCollection
    goals: RemoteCollection
    users: UserRepository

    def collection(self, name: str) -> RemoteCollection:
        return getattr(self, name)

    @classmethod
    def from_pool(cls, connection_factory: Callable = get_db_connection) -> "RemoteStore":
        """
        Build the store on top of the asyncpg pool

        Args:
            connection_factory: Async context manager yielding a connection

        Returns:
            RemoteStore instance
        """
        return cls(
            transactions=RemoteCollection(
                "transactions",
                ("id", "user_id", "type", "date", "description", "category_id", "amount"),
                order_by="date DESC, created_at DESC",
                connection_factory=connection_factory
            ),
            categories=RemoteCollection(
                "categories",
                ("id", "user_id", "name", "kind", "color"),
                order_by="created_at, name",
                conflict_target=("user_id", "id"),
                connection_factory=connection_factory
            ),
            reminders=RemoteCollection(
                "reminders",
                ("id", "user_id", "title", "due_date", "amount", "status"),
                order_by="due_date, created_at",
                connection_factory=connection_factory
            ),
            goals=RemoteCollection(
                "goals",
                ("id", "user_id", "title", "target_amount", "current_amount", "deadline"),
                order_by="created_at",
                connection_factory=connection_factory
            ),
            users=UserRepository(connection_factory=connection_factory)
        )
