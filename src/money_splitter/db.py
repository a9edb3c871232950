"""SQLite database operations for Money Splitter."""

import sqlite3
from datetime import date
from pathlib import Path

from .models import Expense, ExpenseCategory, Group, Payment, Person


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # People
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                is_app_user INTEGER NOT NULL DEFAULT 0,
                phone_number TEXT,
                email TEXT,
                added_by TEXT
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS friends (
                user_id TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE
            )
        """
        )

        # Groups
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_groups (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS group_members (
                group_id TEXT NOT NULL REFERENCES expense_groups(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                PRIMARY KEY (group_id, user_id)
            )
        """
        )

        # Expenses
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                description TEXT NOT NULL,
                amount REAL NOT NULL,
                date DATE NOT NULL,
                category TEXT NOT NULL DEFAULT 'other',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_payers (
                expense_id TEXT NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                paid_amount REAL NOT NULL,
                PRIMARY KEY (expense_id, user_id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_participants (
                expense_id TEXT NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                share REAL NOT NULL,
                PRIMARY KEY (expense_id, user_id)
            )
        """
        )

        # Settlement plan cache
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS payments (
                id TEXT PRIMARY KEY,
                from_user_id TEXT NOT NULL,
                to_user_id TEXT NOT NULL,
                amount REAL NOT NULL,
                date DATE NOT NULL,
                is_settled INTEGER NOT NULL DEFAULT 0
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # User operations
    # ========================================================================

    def insert_user(self, user: Person):
        """Insert or update a person."""
        self._upsert_user(user)
        self.conn.commit()

    def _upsert_user(self, user: Person):
        self.conn.execute(
            """
            INSERT INTO users (id, name, is_app_user, phone_number, email, added_by)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                is_app_user = excluded.is_app_user,
                phone_number = excluded.phone_number,
                email = excluded.email,
                added_by = excluded.added_by
            """,
            (
                user.id,
                user.name,
                1 if user.is_app_user else 0,
                user.phone_number,
                user.email,
                user.added_by,
            ),
        )

    def get_all_users(self) -> list[Person]:
        """Get all people, ordered by name."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM users ORDER BY name")
        return [_row_to_person(row) for row in cursor.fetchall()]

    def get_user_by_id(self, user_id: str) -> Person | None:
        """Get a person by id."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        return _row_to_person(row) if row else None

    # ========================================================================
    # Friend operations
    # ========================================================================

    def add_friend(self, user: Person):
        """Save a person and add them to the friend list."""
        self._upsert_user(user)
        self.conn.execute(
            "INSERT OR IGNORE INTO friends (user_id) VALUES (?)", (user.id,)
        )
        self.conn.commit()

    def get_all_friends(self) -> list[Person]:
        """Get all friends, ordered by name."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT users.* FROM users
            JOIN friends ON friends.user_id = users.id
            ORDER BY users.name
            """
        )
        return [_row_to_person(row) for row in cursor.fetchall()]

    def delete_friend(self, user_id: str):
        """Remove a person from the friend list (the person record is kept)."""
        self.conn.execute("DELETE FROM friends WHERE user_id = ?", (user_id,))
        self.conn.commit()

    # ========================================================================
    # Expense operations
    # ========================================================================

    def insert_expense(self, expense: Expense):
        """Insert or replace an expense with its payers and participants."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO expenses (id, description, amount, date, category)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    description = excluded.description,
                    amount = excluded.amount,
                    date = excluded.date,
                    category = excluded.category
                """,
                (
                    expense.id,
                    expense.description,
                    expense.amount,
                    expense.date.isoformat(),
                    expense.category.value,
                ),
            )

            self.conn.execute(
                "DELETE FROM expense_payers WHERE expense_id = ?", (expense.id,)
            )
            self.conn.executemany(
                """
                INSERT INTO expense_payers (expense_id, user_id, paid_amount)
                VALUES (?, ?, ?)
                """,
                [(expense.id, uid, paid) for uid, paid in expense.paid_by.items()],
            )

            self.conn.execute(
                "DELETE FROM expense_participants WHERE expense_id = ?", (expense.id,)
            )
            self.conn.executemany(
                """
                INSERT INTO expense_participants (expense_id, user_id, share)
                VALUES (?, ?, ?)
                """,
                [(expense.id, uid, share) for uid, share in expense.participants.items()],
            )

    def get_all_expenses(self) -> list[Expense]:
        """Get all expenses, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, description, amount, date, category
            FROM expenses
            ORDER BY date, created_at, id
            """
        )
        rows = cursor.fetchall()

        return [
            Expense(
                id=row["id"],
                description=row["description"],
                amount=row["amount"],
                date=date.fromisoformat(row["date"]),
                category=ExpenseCategory.parse(row["category"]),
                paid_by=self._get_expense_payers(row["id"]),
                participants=self._get_expense_participants(row["id"]),
            )
            for row in rows
        ]

    def _get_expense_payers(self, expense_id: str) -> dict[str, float]:
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT user_id, paid_amount FROM expense_payers WHERE expense_id = ?",
            (expense_id,),
        )
        return {row["user_id"]: row["paid_amount"] for row in cursor.fetchall()}

    def _get_expense_participants(self, expense_id: str) -> dict[str, float]:
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT user_id, share FROM expense_participants WHERE expense_id = ?",
            (expense_id,),
        )
        return {row["user_id"]: row["share"] for row in cursor.fetchall()}

    def delete_expense(self, expense_id: str):
        """Delete an expense with its payers and participants."""
        with self.conn:
            self.conn.execute(
                "DELETE FROM expense_payers WHERE expense_id = ?", (expense_id,)
            )
            self.conn.execute(
                "DELETE FROM expense_participants WHERE expense_id = ?", (expense_id,)
            )
            self.conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))

    # ========================================================================
    # Group operations
    # ========================================================================

    def insert_group(self, group: Group):
        """Insert or replace a group and its member list."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO expense_groups (id, name) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name
                """,
                (group.id, group.name),
            )
            self.conn.execute(
                "DELETE FROM group_members WHERE group_id = ?", (group.id,)
            )
            self.conn.executemany(
                """
                INSERT INTO group_members (group_id, user_id, position)
                VALUES (?, ?, ?)
                """,
                [
                    (group.id, member_id, position)
                    for position, member_id in enumerate(group.member_ids)
                ],
            )

    def get_all_groups(self) -> list[Group]:
        """Get all groups with their members in order."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name FROM expense_groups ORDER BY name")
        groups = []
        for row in cursor.fetchall():
            members = self.conn.execute(
                """
                SELECT user_id FROM group_members
                WHERE group_id = ?
                ORDER BY position
                """,
                (row["id"],),
            ).fetchall()
            groups.append(
                Group(
                    id=row["id"],
                    name=row["name"],
                    member_ids=[member["user_id"] for member in members],
                )
            )
        return groups

    def delete_group(self, group_id: str):
        """Delete a group and its member list."""
        with self.conn:
            self.conn.execute(
                "DELETE FROM group_members WHERE group_id = ?", (group_id,)
            )
            self.conn.execute("DELETE FROM expense_groups WHERE id = ?", (group_id,))

    # ========================================================================
    # Payment operations
    # ========================================================================

    def insert_payment(self, payment: Payment):
        """Insert or replace a payment."""
        self._upsert_payment(payment)
        self.conn.commit()

    def _upsert_payment(self, payment: Payment):
        self.conn.execute(
            """
            INSERT INTO payments (id, from_user_id, to_user_id, amount, date, is_settled)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                from_user_id = excluded.from_user_id,
                to_user_id = excluded.to_user_id,
                amount = excluded.amount,
                date = excluded.date,
                is_settled = excluded.is_settled
            """,
            (
                payment.id,
                payment.from_id,
                payment.to_id,
                payment.amount,
                payment.date.isoformat(),
                1 if payment.is_settled else 0,
            ),
        )

    def get_all_payments(self) -> list[Payment]:
        """Get all payments."""
        return self._select_payments("SELECT * FROM payments ORDER BY rowid")

    def get_pending_payments(self) -> list[Payment]:
        """Get payments that have not been settled."""
        return self._select_payments(
            "SELECT * FROM payments WHERE is_settled = 0 ORDER BY rowid"
        )

    def get_settled_payments(self) -> list[Payment]:
        """Get payments that have been settled."""
        return self._select_payments(
            "SELECT * FROM payments WHERE is_settled = 1 ORDER BY rowid"
        )

    def _select_payments(self, query: str) -> list[Payment]:
        cursor = self.conn.cursor()
        cursor.execute(query)
        return [
            Payment(
                id=row["id"],
                from_id=row["from_user_id"],
                to_id=row["to_user_id"],
                amount=row["amount"],
                date=date.fromisoformat(row["date"]),
                is_settled=bool(row["is_settled"]),
            )
            for row in cursor.fetchall()
        ]

    def settle_payment(self, payment_id: str):
        """Mark a payment as settled."""
        self.conn.execute(
            "UPDATE payments SET is_settled = 1 WHERE id = ?", (payment_id,)
        )
        self.conn.commit()

    def delete_all_payments(self):
        """Delete every payment."""
        self.conn.execute("DELETE FROM payments")
        self.conn.commit()

    def replace_payments(self, payments: list[Payment]):
        """Replace the whole payment table in a single transaction."""
        with self.conn:
            self.conn.execute("DELETE FROM payments")
            for payment in payments:
                self._upsert_payment(payment)


def _row_to_person(row: sqlite3.Row) -> Person:
    return Person(
        id=row["id"],
        name=row["name"],
        is_app_user=bool(row["is_app_user"]),
        phone_number=row["phone_number"],
        email=row["email"],
        added_by=row["added_by"],
    )
