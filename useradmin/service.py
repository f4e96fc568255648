"""Application factory for the user administration service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import Settings, apply_seed_users, load_seed_users, load_settings
from .controller import UserAdminController
from .database import Database
from .web import register_ui_routes

logger = logging.getLogger("useradmin.service")

SESSION_COOKIE_NAME = "useradmin_session"


def create_app(
    *,
    database: Optional[Database] = None,
    session_secret: Optional[str] = None,
    seed_path: Optional[Path] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create the user administration web application."""

    settings = settings or load_settings()

    db = database or Database(settings.database_path)
    db.initialize()

    seed_file = seed_path or settings.seed_path
    if seed_file is not None:
        created = apply_seed_users(db, load_seed_users(seed_file))
        if created:
            logger.info("Created %d seed account(s) from %s", created, seed_file)

    if session_secret is None:
        session_secret = settings.session_secret
    if not session_secret:
        raise RuntimeError(
            "USERADMIN_SESSION_SECRET must be configured to use the administration interface"
        )

    if not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )

    app = FastAPI(
        title="User Administration",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_proxies)
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        https_only=settings.secure_cookies,
        same_site="lax",
        max_age=60 * 60 * 8,
    )

    controller = UserAdminController(db)
    app.state.database = db
    app.state.controller = controller

    register_ui_routes(app, db, controller)
    return app


__all__ = ["create_app"]
