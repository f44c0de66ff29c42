"""
Database module for persistent storage.
Uses SQLite for account balances and the append-only game history.
Amounts are stored as integer cents.
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import orjson

from casino.config import settings
from casino.core.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    PersistenceError,
    StateIntegrityError,
    ValidationError,
)
from casino.core.logger import get_logger
from casino.core.models import Account, GameSummary, HistoryEntry
from casino.core.money import from_cents, to_cents

logger = get_logger("database")


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Cannot store {type(value).__name__} in history")


class Database:
    """Thread-safe SQLite account store with an explicit atomic unit."""

    BUSY_TIMEOUT = 5.0

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path) if db_path else settings.paths.get_db_path()
        self._local = threading.local()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initializing database at {self.db_path}")
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        if getattr(self._local, "connection", None) is None:
            # Autocommit mode: transactions are opened explicitly in transaction()
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.BUSY_TIMEOUT,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            self._local.connection = conn
        return self._local.connection

    def close(self):
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None

    def _init_db(self):
        conn = self._get_connection()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS accounts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                balance_cents INTEGER NOT NULL DEFAULT 0 CHECK (balance_cents >= 0),
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS game_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id INTEGER NOT NULL,
                game TEXT NOT NULL,
                round_id TEXT UNIQUE,
                stake_cents INTEGER NOT NULL,
                payout_cents INTEGER NOT NULL,
                balance_after_cents INTEGER NOT NULL,
                outcome TEXT NOT NULL,
                played_at TEXT NOT NULL,
                FOREIGN KEY (account_id) REFERENCES accounts(id)
            );

            CREATE INDEX IF NOT EXISTS idx_history_account
                ON game_history (account_id, id DESC);
            """
        )

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        The atomic unit. BEGIN IMMEDIATE takes the write lock up front, so two
        rounds on the same account serialize their read-check-write. Any
        exception rolls everything back; sqlite errors surface as
        PersistenceError.
        """
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            logger.error(f"Could not open transaction: {e}")
            raise PersistenceError("Account store unavailable") from e

        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            if isinstance(e, sqlite3.Error):
                logger.error(f"Transaction rolled back: {e}")
                raise PersistenceError("Account store failed; nothing was changed") from e
            raise

    # ==================== Accounts ====================

    @staticmethod
    def _to_account(row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            username=row["username"],
            balance=from_cents(row["balance_cents"]),
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
        )

    def create_account(self, username: str, starting_balance: Decimal = None) -> Account:
        """Create an account. Used by the registration flow and operator scripts."""
        if starting_balance is None:
            starting_balance = settings.economy.starting_balance
        if starting_balance < 0:
            raise ValidationError("Starting balance cannot be negative")

        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM accounts WHERE username = ?", (username,)
            ).fetchone()
            if existing:
                raise ValidationError("Username already taken")

            cursor = conn.execute(
                "INSERT INTO accounts (username, balance_cents, created_at) VALUES (?, ?, ?)",
                (username, to_cents(starting_balance), datetime.now().isoformat()),
            )
            account_id = cursor.lastrowid

        logger.info(f"Created account {account_id} ({username})")
        return self.get_account(account_id)

    def get_account(self, account_id: int) -> Account:
        row = self._get_connection().execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        if not row:
            raise AccountNotFoundError(account_id)
        return self._to_account(row)

    def get_account_by_username(self, username: str) -> Optional[Account]:
        row = self._get_connection().execute(
            "SELECT * FROM accounts WHERE username = ?", (username,)
        ).fetchone()
        return self._to_account(row) if row else None

    def read_balance(self, account_id: int) -> Decimal:
        try:
            return self.get_account(account_id).balance
        except sqlite3.Error as e:
            logger.error(f"Balance read failed for account {account_id}: {e}")
            raise PersistenceError("Account store unavailable") from e

    # ==================== Rounds ====================

    def _insert_history(self, conn: sqlite3.Connection, entry: HistoryEntry, balance_after: int):
        conn.execute(
            """
            INSERT INTO game_history
                (account_id, game, round_id, stake_cents, payout_cents,
                 balance_after_cents, outcome, played_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.account_id,
                entry.game,
                entry.round_id,
                to_cents(entry.stake),
                to_cents(entry.payout),
                balance_after,
                orjson.dumps(entry.outcome, default=_json_default).decode("utf-8"),
                datetime.now().isoformat(),
            ),
        )

    def atomically(self, account_id: int, delta: Decimal, entry: HistoryEntry) -> Decimal:
        """
        Apply `delta` to the balance and append `entry` as one atomic unit.

        The balance is re-read inside the transaction, the stake is checked
        against it there, and the returned balance is read back before commit.

        Raises:
            AccountNotFoundError, InsufficientFundsError, StateIntegrityError
            (round already settled), PersistenceError
        """
        if entry.account_id != account_id:
            raise ValidationError("History entry belongs to another account")

        with self.transaction() as conn:
            row = conn.execute(
                "SELECT balance_cents FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
            if not row:
                raise AccountNotFoundError(account_id)

            balance = row["balance_cents"]
            if balance < to_cents(entry.stake):
                raise InsufficientFundsError(entry.stake, from_cents(balance))

            if entry.round_id is not None:
                settled = conn.execute(
                    "SELECT 1 FROM game_history WHERE round_id = ?", (entry.round_id,)
                ).fetchone()
                if settled:
                    raise StateIntegrityError("Round has already been settled")

            new_balance = balance + to_cents(delta)
            if new_balance < 0:
                raise InsufficientFundsError(entry.stake, from_cents(balance))

            conn.execute(
                "UPDATE accounts SET balance_cents = ? WHERE id = ?",
                (new_balance, account_id),
            )
            self._insert_history(conn, entry, new_balance)

            committed = conn.execute(
                "SELECT balance_cents FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()["balance_cents"]

        return from_cents(committed)

    def is_round_settled(self, round_id: str) -> bool:
        row = self._get_connection().execute(
            "SELECT 1 FROM game_history WHERE round_id = ?", (round_id,)
        ).fetchone()
        return row is not None

    # ==================== History ====================

    @staticmethod
    def _to_entry(row: sqlite3.Row) -> HistoryEntry:
        return HistoryEntry(
            id=row["id"],
            account_id=row["account_id"],
            game=row["game"],
            stake=from_cents(row["stake_cents"]),
            payout=from_cents(row["payout_cents"]),
            outcome=orjson.loads(row["outcome"]),
            round_id=row["round_id"],
            balance_after=from_cents(row["balance_after_cents"]),
            played_at=datetime.fromisoformat(row["played_at"]),
        )

    def list_history(self, account_id: int, limit: int = 50) -> List[HistoryEntry]:
        """Most recent first."""
        rows = self._get_connection().execute(
            """
            SELECT * FROM game_history WHERE account_id = ?
            ORDER BY id DESC LIMIT ?
            """,
            (account_id, limit),
        ).fetchall()
        return [self._to_entry(row) for row in rows]

    def game_summary(self, account_id: int) -> List[GameSummary]:
        """Per-game totals derived from the history."""
        rows = self._get_connection().execute(
            """
            SELECT game,
                   COUNT(*) AS plays,
                   SUM(stake_cents) AS wagered,
                   SUM(payout_cents) AS paid,
                   MAX(payout_cents - stake_cents) AS best
            FROM game_history WHERE account_id = ?
            GROUP BY game ORDER BY plays DESC, game
            """,
            (account_id,),
        ).fetchall()
        return [
            GameSummary(
                game=row["game"],
                plays=row["plays"],
                total_wagered=from_cents(row["wagered"]),
                total_paid=from_cents(row["paid"]),
                biggest_win=from_cents(max(row["best"], 0)),
            )
            for row in rows
        ]

    def count_history(self, account_id: int) -> int:
        row = self._get_connection().execute(
            "SELECT COUNT(*) AS n FROM game_history WHERE account_id = ?", (account_id,)
        ).fetchone()
        return row["n"]
