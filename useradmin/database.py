"""SQLite-backed user directory."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional

from passlib.context import CryptContext

from .models import Role, UserRecord, UserUpdate


class DuplicateUserError(ValueError):
    """Raised when inserting a user whose ID is already registered."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "useradmin.sqlite3").resolve(strict=False)


_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


class Database:
    """Simple wrapper around SQLite for persisting user accounts."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    password TEXT NOT NULL,
                    user_name TEXT NOT NULL,
                    darkmode INTEGER NOT NULL DEFAULT 0,
                    role TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_all(self) -> List[UserRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY user_id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def find_one(self, user_id: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_password_hash(self, user_id: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT password FROM users WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return row["password"]

    def verify_user_password(self, user_id: str, password: str) -> bool:
        """Return ``True`` if the supplied password matches the stored hash."""

        stored_hash = self.get_password_hash(user_id)
        if not stored_hash:
            return False
        return _verify_password(password, stored_hash)

    def authenticate_user(self, user_id: str, password: str) -> Optional[UserRecord]:
        if not self.verify_user_password(user_id.strip(), password):
            return None
        return self.find_one(user_id.strip())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def insert(
        self,
        user_id: str,
        password: str,
        user_name: str,
        role: Role | str,
        *,
        darkmode: bool = False,
    ) -> int:
        """Insert a new account, hashing ``password``, and return the row count."""

        if not password:
            raise ValueError("Password must not be empty")

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (user_id, password, user_name, darkmode, role)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        _hash_password(password),
                        user_name,
                        int(darkmode),
                        Role(role).value,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateUserError(f"A user with ID '{user_id}' already exists") from exc
        return cursor.rowcount

    def update_profile(self, update: UserUpdate) -> bool:
        """Update name and role; the stored password and dark mode are untouched."""

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET user_name = ?, role = ? WHERE user_id = ?",
                (update.user_name, Role(update.role).value, update.user_id),
            )
        return cursor.rowcount == 1

    def update_profile_and_password(self, update: UserUpdate) -> bool:
        """Update name, role and password; dark mode is untouched."""

        if not update.password:
            raise ValueError("Password must not be empty")

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET user_name = ?, role = ?, password = ? WHERE user_id = ?",
                (
                    update.user_name,
                    Role(update.role).value,
                    _hash_password(update.password),
                    update.user_id,
                ),
            )
        return cursor.rowcount == 1

    def delete(self, user_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
        return cursor.rowcount

    def _row_to_user(self, row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            user_id=row["user_id"],
            user_name=row["user_name"],
            role=Role(row["role"]),
            darkmode=bool(row["darkmode"]),
        )


__all__ = ["Database", "DuplicateUserError", "resolve_database_path"]
