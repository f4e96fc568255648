from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from useradmin.database import Database  # noqa: E402
from useradmin.models import Principal  # noqa: E402


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "useradmin.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def principal() -> Principal:
    return Principal(user_id="admin@example.com", name="Administrator")
