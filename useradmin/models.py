"""Domain models for the user administration service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple


class Role(str, Enum):
    """Account roles understood by the administration screens."""

    ADMIN = "ROLE_ADMIN"
    GENERAL = "ROLE_GENERAL"

    def __str__(self) -> str:
        return self.value


class RoleOption(NamedTuple):
    """A label/value pair used to render the role selector."""

    label: str
    value: Role


ROLE_OPTIONS: Tuple[RoleOption, ...] = (
    RoleOption("Admin", Role.ADMIN),
    RoleOption("General", Role.GENERAL),
)


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account stored in the directory.

    The password hash is deliberately absent: it is written by the directory
    and never read back into a view.
    """

    user_id: str
    user_name: str
    role: Role
    darkmode: bool = False


@dataclass
class UserUpdate:
    """Profile changes applied to an existing account."""

    user_id: str
    user_name: str
    role: Role
    password: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"UserUpdate(user_id={self.user_id!r}, user_name={self.user_name!r}, "
            f"role={self.role.value!r}, password_changed={bool(self.password)})"
        )


@dataclass(frozen=True)
class Principal:
    """Identity of the signed-in caller, used for audit logging."""

    user_id: str
    name: str

    def __str__(self) -> str:
        return self.name


__all__ = ["Principal", "Role", "RoleOption", "ROLE_OPTIONS", "UserRecord", "UserUpdate"]
