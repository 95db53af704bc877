from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import Flask, g, request, session

from ..common.web import fail, json_body, json_errors, ok
from ..container import Container
from ..core.enums import SessionEvent
from ..core.exceptions import ServiceError
from .model import AuthSession

logger = logging.getLogger(__name__)

PUBLIC_ENDPOINTS = {"api_auth_login", "api_auth_register"}


def api_login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        context = g.get("session_context")
        if context is None or not context.is_authenticated:
            return fail("No autenticado", 401)
        return view(*args, **kwargs)

    return wrapper


def _request_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return session.get("token")


def _sync_cookie(event: SessionEvent, current: Optional[AuthSession]) -> None:
    if event == SessionEvent.SIGNED_OUT or current is None:
        session.pop("token", None)
    else:
        session["token"] = current.token


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service

    @app.before_request
    def load_session_context():
        context = auth.new_context()
        g.session_context = context
        if not request.path.startswith("/api/") or request.endpoint in PUBLIC_ENDPOINTS:
            return None
        try:
            auth.restore(context, _request_token())
        except ServiceError as e:
            return fail(str(e), 500)
        context.subscribe(_sync_cookie)
        return None

    @app.route("/api/auth/register", methods=["POST"], endpoint="api_auth_register")
    @json_errors
    def register_user():
        data = json_body()
        user_id = auth.sign_up(
            email=data.get("email", ""),
            nombre=data.get("nombre", ""),
            password=data.get("password", ""),
            confirm_password=data.get("confirm_password", ""),
            agree_to_terms=bool(data.get("agree_to_terms")),
        )
        return ok(201, message="Usuario registrado correctamente", id_usuario=user_id)

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_auth_login")
    @json_errors
    def login():
        data = json_body()
        context = g.session_context
        context.subscribe(_sync_cookie)
        current = auth.sign_in(
            context,
            data.get("email", ""),
            data.get("password", ""),
            remember=bool(data.get("remember")),
        )
        session.permanent = bool(data.get("remember"))
        return ok(message="Sesión iniciada", token=current.token, **current.to_public())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_auth_logout")
    @api_login_required
    @json_errors
    def logout():
        auth.sign_out(g.session_context)
        return ok(message="Sesión cerrada")

    @app.route("/api/auth/refresh", methods=["POST"], endpoint="api_auth_refresh")
    @api_login_required
    @json_errors
    def refresh():
        current = auth.refresh(g.session_context)
        return ok(token=current.token, **current.to_public())

    @app.route("/api/auth/session", methods=["GET"], endpoint="api_auth_session")
    @api_login_required
    @json_errors
    def current_session():
        return ok(**g.session_context.session.to_public())
