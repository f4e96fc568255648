"""Request handling for the user administration screens.

The controller translates bound forms into directory calls and selects the next
view. It never touches HTTP objects: every operation returns a :class:`View`
that the web layer renders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from fastapi import status

from .database import DuplicateUserError
from .forms import UserCreateForm, UserEditForm, validate_create_form, validate_edit_form
from .models import ROLE_OPTIONS, Principal, Role, UserRecord, UserUpdate

logger = logging.getLogger("useradmin.controller")

USER_LIST_VIEW = "user/userList"
USER_DETAIL_VIEW = "user/userDetail"
USER_INSERT_VIEW = "user/userInsert"

UPDATE_SUCCEEDED = "User update succeeded."
UPDATE_FAILED = "User update failed."
CREATE_SUCCEEDED = "User create succeeded."
CREATE_FAILED = "User create failed."
DELETE_SUCCEEDED = "User delete succeeded."
DELETE_FAILED = "User delete failed."


class UserDirectory(Protocol):
    """Persistence operations the controller relies on."""

    def find_all(self) -> List[UserRecord]: ...

    def find_one(self, user_id: str) -> Optional[UserRecord]: ...

    def insert(self, user_id: str, password: str, user_name: str, role: Role | str) -> int: ...

    def update_profile(self, update: UserUpdate) -> bool: ...

    def update_profile_and_password(self, update: UserUpdate) -> bool: ...

    def delete(self, user_id: str) -> int: ...


@dataclass
class View:
    """A template name together with the attributes it is rendered with."""

    name: str
    model: Dict[str, Any] = field(default_factory=dict)
    status_code: int = status.HTTP_200_OK


class UserAdminController:
    """List, inspect, create, update and delete user accounts."""

    def __init__(self, directory: UserDirectory) -> None:
        self._directory = directory

    def list_users(
        self,
        *,
        result: Optional[str] = None,
        status_code: int = status.HTTP_200_OK,
    ) -> View:
        users = self._directory.find_all()
        return View(USER_LIST_VIEW, {"users": users, "result": result}, status_code)

    def show_detail(self, user_id: Optional[str], identity: Principal) -> View:
        if not user_id:
            return self.render_detail(UserEditForm(), identity)

        logger.info("[%s] user lookup: %s", identity, user_id)
        record = self._directory.find_one(user_id)
        if record is None:
            logger.warning("[%s] user lookup found nothing: %s", identity, user_id)
            return self.list_users(
                result=f"User {user_id} not found.",
                status_code=status.HTTP_404_NOT_FOUND,
            )

        # The stored password is hashed, so the form never carries it.
        form = UserEditForm(
            user_id=record.user_id,
            user_name=record.user_name,
            role=record.role.value,
            darkmode=record.darkmode,
        )
        return self.render_detail(form, identity)

    def render_detail(
        self,
        form: UserEditForm,
        identity: Principal,
        *,
        errors: Optional[Dict[str, str]] = None,
    ) -> View:
        shown = form.model_copy(update={"password": ""})
        status_code = status.HTTP_400_BAD_REQUEST if errors else status.HTTP_200_OK
        return View(
            USER_DETAIL_VIEW,
            {
                "form": shown,
                "role_options": ROLE_OPTIONS,
                "errors": errors or {},
            },
            status_code,
        )

    def update_user(self, form: UserEditForm, identity: Principal) -> View:
        errors = validate_edit_form(form)
        if errors:
            return self.render_detail(form, identity, errors=errors)

        logger.info("[%s] user update: %r", identity, form)

        # Dark mode is never changed from this screen.
        update = UserUpdate(
            user_id=form.user_id.strip(),
            user_name=form.user_name.strip(),
            role=Role(form.role.strip()),
        )
        if form.changes_password:
            update.password = form.password
            succeeded = self._directory.update_profile_and_password(update)
        else:
            succeeded = self._directory.update_profile(update)

        if succeeded:
            logger.info("[%s] user update succeeded: %s", identity, update.user_id)
            result = UPDATE_SUCCEEDED
        else:
            logger.warning("[%s] user update failed: %s", identity, update.user_id)
            result = UPDATE_FAILED
        return self.list_users(result=result)

    def show_create_form(self) -> View:
        return self.render_create(UserCreateForm())

    def render_create(
        self,
        form: UserCreateForm,
        *,
        errors: Optional[Dict[str, str]] = None,
    ) -> View:
        shown = form.model_copy(update={"password": ""})
        status_code = status.HTTP_400_BAD_REQUEST if errors else status.HTTP_200_OK
        return View(
            USER_INSERT_VIEW,
            {
                "form": shown,
                "role_options": ROLE_OPTIONS,
                "errors": errors or {},
            },
            status_code,
        )

    def create_user(self, form: UserCreateForm, identity: Principal) -> View:
        errors = validate_create_form(form)
        if errors:
            return self.render_create(form, errors=errors)

        user_id = form.user_id.strip()
        logger.info("[%s] user create: %s", identity, user_id)

        try:
            inserted = self._directory.insert(
                user_id,
                form.password,
                form.user_name.strip(),
                Role(form.role.strip()),
            )
        except DuplicateUserError:
            inserted = 0

        if inserted:
            logger.info("[%s] user create succeeded: %s", identity, user_id)
            result = CREATE_SUCCEEDED
        else:
            logger.warning("[%s] user create failed: %s", identity, user_id)
            result = CREATE_FAILED
        return self.list_users(result=result)

    def delete_user(self, user_id: str, identity: Principal) -> View:
        deleted = self._directory.delete(user_id)
        if deleted:
            logger.info("[%s] user delete succeeded: %s", identity, user_id)
            result = DELETE_SUCCEEDED
        else:
            logger.warning("[%s] user delete failed: %s", identity, user_id)
            result = DELETE_FAILED
        return self.list_users(result=result)


__all__ = [
    "UserAdminController",
    "UserDirectory",
    "View",
    "USER_DETAIL_VIEW",
    "USER_INSERT_VIEW",
    "USER_LIST_VIEW",
]
