"""Form models and validation rules for the user administration screens.

Forms are bound leniently from the submitted request so that an invalid
submission can be rendered back to the user. Validation is a separate step that
runs the bound values through a strict pydantic schema and reports one message
per failing field.
"""

from __future__ import annotations

from typing import Dict, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import Role

USER_ID_MAX_LENGTH = 50
USER_NAME_MAX_LENGTH = 50
PASSWORD_MAX_LENGTH = 100
USER_ID_PATTERN = r"^[A-Za-z0-9_.@+-]+$"

_FIELD_MESSAGES = {
    "user_id": "User ID is required and may only contain letters, digits and . _ @ + -",
    "user_name": f"User name is required (up to {USER_NAME_MAX_LENGTH} characters).",
    "role": "Select a valid role.",
    "password": f"Password must be between 1 and {PASSWORD_MAX_LENGTH} characters.",
}


class UserEditForm(BaseModel):
    """Values shown on, and submitted from, the user detail screen."""

    user_id: str = ""
    user_name: str = ""
    role: str = ""
    password: str = Field(default="", repr=False)
    darkmode: bool = False

    @property
    def changes_password(self) -> bool:
        """A blank or whitespace-only password keeps the stored one."""
        return bool(self.password.strip())


class UserCreateForm(BaseModel):
    """Values submitted from the user creation screen."""

    user_id: str = ""
    password: str = Field(default="", repr=False)
    user_name: str = ""
    role: str = ""


class _UserInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(min_length=1, max_length=USER_ID_MAX_LENGTH, pattern=USER_ID_PATTERN)
    user_name: str = Field(min_length=1, max_length=USER_NAME_MAX_LENGTH)
    role: Role

    # Passwords are checked exactly as submitted.
    @field_validator("user_id", "user_name", "role", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class _UserUpdateInput(_UserInput):
    password: str = Field(default="", max_length=PASSWORD_MAX_LENGTH)


class _UserCreateInput(_UserInput):
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("password")
    @classmethod
    def _reject_blank_password(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("password must not be blank")
        return value


def _collect_errors(schema: Type[BaseModel], form: BaseModel) -> Dict[str, str]:
    try:
        schema.model_validate(form.model_dump())
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else "__all__"
            errors.setdefault(field, _FIELD_MESSAGES.get(field, error["msg"]))
        return errors
    return {}


def validate_edit_form(form: UserEditForm) -> Dict[str, str]:
    """Return field errors for an edit submission; empty when the form is valid."""

    return _collect_errors(_UserUpdateInput, form)


def validate_create_form(form: UserCreateForm) -> Dict[str, str]:
    """Return field errors for a create submission; empty when the form is valid."""

    return _collect_errors(_UserCreateInput, form)


__all__ = [
    "UserCreateForm",
    "UserEditForm",
    "validate_create_form",
    "validate_edit_form",
]
