"""SQLite-backed persistence for users."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from .errors import DuplicateEmailError
from .models import User


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


class SQLiteUserRepository:
    """Simple wrapper around SQLite implementing the user repository."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and is always closed."""

        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------
    def find_by_id(self, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            return None
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def save(self, user: User) -> User:
        """Insert ``user`` when it has no id, otherwise insert or update it."""

        params = (user.name, user.email, _serialize_datetime(user.created_at))
        with self._connect() as conn:
            try:
                if user.id is None:
                    cursor = conn.execute(
                        "INSERT INTO users (name, email, created_at) VALUES (?, ?, ?)",
                        params,
                    )
                    user_id = int(cursor.lastrowid)
                else:
                    conn.execute(
                        """
                        INSERT INTO users (id, name, email, created_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE
                           SET name = excluded.name, email = excluded.email
                        """,
                        (user.id, *params),
                    )
                    user_id = user.id
            except sqlite3.IntegrityError as exc:
                if "users.email" not in str(exc):
                    raise
                raise DuplicateEmailError(user.email) from exc

        saved = self.find_by_id(user_id)
        if saved is None:
            raise RuntimeError("Failed to load user after saving")
        return saved

    def find_all(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def find_by_email(self, email: str) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM users WHERE email = ? ORDER BY id",
                (email,),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def delete_by_id(self, user_id: Optional[int]) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["SQLiteUserRepository", "resolve_database_path"]
