from __future__ import annotations

from pathlib import Path

import pytest

from useradmin.config import apply_seed_users, load_seed_users, load_settings
from useradmin.database import Database
from useradmin.models import Role
from useradmin.service import create_app

SEED_YAML = """
users:
  - user_id: admin@example.com
    user_name: Administrator
    password: change-me
    role: ROLE_ADMIN
  - user_id: user@example.com
    user_name: General User
    password: change-me-too
    darkmode: true
"""


def _write_seed(tmp_path: Path, content: str = SEED_YAML) -> Path:
    path = tmp_path / "users.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_seed_users_applies_defaults(tmp_path: Path) -> None:
    seeds = load_seed_users(_write_seed(tmp_path))

    assert [seed.user_id for seed in seeds] == ["admin@example.com", "user@example.com"]
    assert seeds[0].role is Role.ADMIN
    assert seeds[1].role is Role.GENERAL
    assert seeds[1].darkmode is True
    assert "change-me" not in repr(seeds[0])


def test_load_seed_users_requires_fields(tmp_path: Path) -> None:
    path = _write_seed(tmp_path, "users:\n  - user_id: lonely\n")

    with pytest.raises(ValueError, match="password, user_name"):
        load_seed_users(path)


def test_load_seed_users_rejects_unknown_role(tmp_path: Path) -> None:
    path = _write_seed(
        tmp_path,
        "users:\n  - {user_id: a, user_name: A, password: p, role: ROLE_ROOT}\n",
    )

    with pytest.raises(ValueError, match="Unknown role"):
        load_seed_users(path)


def test_load_seed_users_rejects_ids_the_edit_screen_cannot_save(tmp_path: Path) -> None:
    path = _write_seed(
        tmp_path,
        'users:\n  - {user_id: "john doe", user_name: John, password: secret}\n',
    )

    with pytest.raises(ValueError, match="Invalid seed user 'john doe'"):
        load_seed_users(path)


def test_load_seed_users_rejects_blank_password(tmp_path: Path) -> None:
    path = _write_seed(
        tmp_path,
        'users:\n  - {user_id: john, user_name: John, password: "   "}\n',
    )

    with pytest.raises(ValueError, match="Password must be between"):
        load_seed_users(path)


def test_empty_seed_file_has_no_users(tmp_path: Path) -> None:
    assert load_seed_users(_write_seed(tmp_path, "")) == []


def test_apply_seed_users_is_idempotent(tmp_path: Path, database: Database) -> None:
    seeds = load_seed_users(_write_seed(tmp_path))

    assert apply_seed_users(database, seeds) == 2
    assert apply_seed_users(database, seeds) == 0
    assert database.verify_user_password("admin@example.com", "change-me")
    assert database.find_one("user@example.com").darkmode is True


def test_load_settings_from_environment(tmp_path: Path) -> None:
    settings = load_settings(
        {
            "USERADMIN_DB_PATH": str(tmp_path / "custom.sqlite3"),
            "USERADMIN_SESSION_SECRET": "secret",
            "USERADMIN_SESSION_SECURE": "yes",
            "USERADMIN_SEED_PATH": str(tmp_path / "seed.yaml"),
            "USERADMIN_TRUSTED_PROXIES": "10.0.0.1, 10.0.0.2",
        }
    )

    assert settings.database_path == (tmp_path / "custom.sqlite3").resolve()
    assert settings.session_secret == "secret"
    assert settings.secure_cookies is True
    assert settings.seed_path == (tmp_path / "seed.yaml").resolve()
    assert settings.trusted_proxies == ["10.0.0.1", "10.0.0.2"]


def test_load_settings_defaults() -> None:
    settings = load_settings({})

    assert settings.database_path.name == "useradmin.sqlite3"
    assert settings.session_secret is None
    assert settings.secure_cookies is False
    assert settings.trusted_proxies == "*"


def test_create_app_requires_session_secret(database: Database) -> None:
    with pytest.raises(RuntimeError):
        create_app(database=database, settings=load_settings({}))


def test_create_app_applies_seed_file(tmp_path: Path, database: Database) -> None:
    app = create_app(
        database=database,
        session_secret="tests-secret-key",
        seed_path=_write_seed(tmp_path),
        settings=load_settings({}),
    )

    assert app.state.database is database
    assert {user.user_id for user in database.find_all()} == {
        "admin@example.com",
        "user@example.com",
    }
