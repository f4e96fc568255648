"""Web interface for the user administration screens."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .controller import UserAdminController, View
from .database import Database
from .forms import UserCreateForm, UserEditForm
from .models import Principal, Role, UserRecord

logger = logging.getLogger("useradmin.web")

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

ADMIN_REQUIRED_MESSAGE = "This account does not have administrator rights."


class LoginRequired(Exception):
    """Raised when a protected page is requested without a signed-in user."""


def _template_environment() -> Jinja2Templates:
    return Jinja2Templates(directory=str(TEMPLATE_DIR))


def register_ui_routes(
    app: FastAPI,
    database: Database,
    controller: UserAdminController,
) -> None:
    """Expose the HTML administration interface on the provided FastAPI app."""

    templates = _template_environment()
    router = APIRouter(include_in_schema=False)

    def _get_current_user(request: Request) -> Optional[UserRecord]:
        user_id = request.session.get("user_id")
        if not user_id:
            return None
        user = database.find_one(str(user_id))
        if user is None:
            request.session.pop("user_id", None)
        return user

    def current_admin(request: Request) -> Principal:
        user = _get_current_user(request)
        if user is None:
            raise LoginRequired()
        if user.role is not Role.ADMIN:
            logger.warning("User %s denied access to %s", user.user_id, request.url.path)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Administrator role required",
            )
        return Principal(user_id=user.user_id, name=user.user_name)

    def _redirect(request: Request, name: str) -> RedirectResponse:
        return RedirectResponse(request.url_for(name), status_code=status.HTTP_303_SEE_OTHER)

    def _render(request: Request, view: View, principal: Optional[Principal]) -> HTMLResponse:
        context = dict(view.model)
        context["principal"] = principal
        return templates.TemplateResponse(
            request,
            f"{view.name}.html",
            context,
            status_code=view.status_code,
        )

    async def _login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
        return _redirect(request, "show_login")

    app.add_exception_handler(LoginRequired, _login_required_handler)

    @router.get("/", name="root")
    async def root(request: Request):
        user = _get_current_user(request)
        if user is None or user.role is not Role.ADMIN:
            return _redirect(request, "show_login")
        return _redirect(request, "user_list")

    @router.get("/login", response_class=HTMLResponse, name="show_login")
    async def login_form(request: Request):
        user = _get_current_user(request)
        if user is not None and user.role is Role.ADMIN:
            return _redirect(request, "user_list")
        error = request.session.pop("login_error", None)
        if user is not None:
            request.session.clear()
            error = ADMIN_REQUIRED_MESSAGE
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": error, "principal": None},
        )

    @router.post("/login", name="process_login")
    async def process_login(
        request: Request,
        user_id: str = Form(""),
        password: str = Form(""),
    ):
        user = database.authenticate_user(user_id, password) if user_id and password else None
        if user is None:
            logger.warning("Failed web login attempt for %s", user_id)
            request.session["login_error"] = "Invalid user ID or password."
            return _redirect(request, "show_login")

        request.session.clear()
        if user.role is not Role.ADMIN:
            logger.warning("User %s without administrator role tried to sign in", user.user_id)
            request.session["login_error"] = ADMIN_REQUIRED_MESSAGE
            return _redirect(request, "show_login")

        request.session["user_id"] = user.user_id
        logger.info("User %s signed in", user.user_id)
        return _redirect(request, "user_list")

    @router.get("/logout", name="logout")
    async def logout(request: Request):
        request.session.clear()
        return _redirect(request, "show_login")

    @router.get("/user/userList", response_class=HTMLResponse, name="user_list")
    async def user_list(request: Request, principal: Principal = Depends(current_admin)):
        return _render(request, controller.list_users(), principal)

    @router.get("/user/userDetail", response_class=HTMLResponse, name="user_detail_blank")
    async def user_detail_blank(request: Request, principal: Principal = Depends(current_admin)):
        return _render(request, controller.show_detail(None, principal), principal)

    @router.get("/user/userDetail/{user_id:path}", response_class=HTMLResponse, name="user_detail")
    async def user_detail(
        user_id: str,
        request: Request,
        principal: Principal = Depends(current_admin),
    ):
        return _render(request, controller.show_detail(user_id, principal), principal)

    @router.post("/user/userDetail", response_class=HTMLResponse, name="user_detail_submit")
    async def user_detail_submit(
        request: Request,
        principal: Principal = Depends(current_admin),
        update: Optional[str] = Form(None),
        delete: Optional[str] = Form(None),
        user_id: str = Form(""),
        user_name: str = Form(""),
        role: str = Form(""),
        password: str = Form(""),
        darkmode: bool = Form(False),
    ):
        if update is not None:
            form = UserEditForm(
                user_id=user_id,
                user_name=user_name,
                role=role,
                password=password,
                darkmode=darkmode,
            )
            return _render(request, controller.update_user(form, principal), principal)
        if delete is not None:
            return _render(request, controller.delete_user(user_id.strip(), principal), principal)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either 'update' or 'delete' must be submitted",
        )

    @router.get("/user/userInsert", response_class=HTMLResponse, name="user_insert")
    async def user_insert(request: Request, principal: Principal = Depends(current_admin)):
        return _render(request, controller.show_create_form(), principal)

    @router.post("/user/userInsert", response_class=HTMLResponse, name="user_insert_submit")
    async def user_insert_submit(
        request: Request,
        principal: Principal = Depends(current_admin),
        user_id: str = Form(""),
        password: str = Form(""),
        user_name: str = Form(""),
        role: str = Form(""),
    ):
        form = UserCreateForm(user_id=user_id, password=password, user_name=user_name, role=role)
        return _render(request, controller.create_user(form, principal), principal)

    app.include_router(router)


__all__ = ["LoginRequired", "register_ui_routes"]
