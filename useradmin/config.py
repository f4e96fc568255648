"""Configuration management for the user administration service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from .database import Database, resolve_database_path
from .forms import UserCreateForm, validate_create_form
from .models import Role

logger = logging.getLogger("useradmin.config")


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    database_path: Path
    session_secret: Optional[str]
    secure_cookies: bool
    seed_path: Optional[Path]
    trusted_proxies: List[str] | str


@dataclass(frozen=True)
class SeedUser:
    """An account created on start-up when it does not already exist."""

    user_id: str
    user_name: str
    password: str
    role: Role = Role.GENERAL
    darkmode: bool = False

    def __repr__(self) -> str:
        return f"SeedUser(user_id={self.user_id!r}, role={self.role.value!r})"

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "SeedUser":
        """Create a :class:`SeedUser` from raw dictionary data."""
        required_fields = {"user_id", "user_name", "password"}
        missing = required_fields - data.keys()
        if missing:
            raise ValueError(f"Missing required seed user fields: {', '.join(sorted(missing))}")

        raw_role = data.get("role") or Role.GENERAL.value
        try:
            role = Role(str(raw_role))
        except ValueError as exc:
            raise ValueError(f"Unknown role '{raw_role}' for seed user '{data['user_id']}'") from exc

        form = UserCreateForm(
            user_id=str(data["user_id"]),
            password=str(data["password"]),
            user_name=str(data["user_name"]),
            role=role.value,
        )
        errors = validate_create_form(form)
        if errors:
            raise ValueError(
                f"Invalid seed user '{form.user_id}': {'; '.join(errors.values())}"
            )

        return SeedUser(
            user_id=form.user_id.strip(),
            user_name=form.user_name.strip(),
            password=form.password,
            role=role,
            darkmode=bool(data.get("darkmode", False)),
        )


def resolve_seed_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the seed file path; the default location is used only if it exists."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    candidate = (Path(__file__).resolve().parent.parent / "config" / "users.yaml").resolve(strict=False)
    return candidate if candidate.exists() else None


def _trusted_proxy_hosts(raw: Optional[str]) -> List[str] | str:
    if not raw:
        return "*"
    hosts = [item.strip() for item in raw.split(",") if item.strip()]
    return hosts or "*"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        database_path=resolve_database_path(env.get("USERADMIN_DB_PATH")),
        session_secret=env.get("USERADMIN_SESSION_SECRET") or None,
        secure_cookies=_env_flag(env.get("USERADMIN_SESSION_SECURE"), False),
        seed_path=resolve_seed_path(env.get("USERADMIN_SEED_PATH")),
        trusted_proxies=_trusted_proxy_hosts(env.get("USERADMIN_TRUSTED_PROXIES")),
    )


def load_seed_users(path: Path) -> List[SeedUser]:
    """Load seed accounts from a YAML file."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    users_raw = raw.get("users") or []
    if not isinstance(users_raw, list):
        raise ValueError("Seed file must define a list of accounts under the 'users' key")
    return [SeedUser.from_dict(item) for item in users_raw]


def apply_seed_users(database: Database, seeds: List[SeedUser]) -> int:
    """Insert seed accounts that are missing and return how many were created."""
    created = 0
    for seed in seeds:
        if database.find_one(seed.user_id) is not None:
            continue
        created += database.insert(
            seed.user_id,
            seed.password,
            seed.user_name,
            seed.role,
            darkmode=seed.darkmode,
        )
        logger.info("Seeded user account %s", seed.user_id)
    return created


__all__ = [
    "SeedUser",
    "Settings",
    "apply_seed_users",
    "load_seed_users",
    "load_settings",
    "resolve_seed_path",
]
