from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.errors import wrap_backend_errors
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import DEFAULT_REMEMBER_DAYS, DEFAULT_SESSION_HOURS, MIN_PASSWORD_LENGTH
from ..core.enums import SessionEvent
from ..core.exceptions import AuthenticationError, ValidationError
from .model import AuthSession
from .repository import SesionRepository, UsuarioRepository
from .session import SessionContext

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: registro, inicio/cierre de sesión y validación de tokens."""

    def __init__(
        self,
        usuarios: UsuarioRepository,
        sesiones: SesionRepository,
        *,
        session_hours: int = DEFAULT_SESSION_HOURS,
        remember_days: int = DEFAULT_REMEMBER_DAYS,
    ):
        self._usuarios = usuarios
        self._sesiones = sesiones
        self._session_ttl = timedelta(hours=session_hours)
        self._remember_ttl = timedelta(days=remember_days)

    def new_context(self) -> SessionContext:
        return SessionContext()

    @wrap_backend_errors("Error al registrar usuario")
    def sign_up(
        self,
        *,
        email: str,
        nombre: str,
        password: str,
        confirm_password: str,
        agree_to_terms: bool,
    ) -> int:
        email = require_non_empty(email, "Email").lower()
        nombre = require_non_empty(nombre, "Nombre")
        if "@" not in email:
            raise ValidationError("Email no es válido")
        require_min_length(password, "La contraseña", MIN_PASSWORD_LENGTH)
        if password != confirm_password:
            raise ValidationError("Las contraseñas no coinciden")
        if not agree_to_terms:
            raise ValidationError("Debe aceptar los términos y condiciones")
        if self._usuarios.get_by_email(email):
            raise ValidationError("El email ya está registrado")

        return self._usuarios.create(email=email, nombre=nombre, password_hash=generate_password_hash(password))

    @wrap_backend_errors("Error al iniciar sesión")
    def sign_in(self, context: SessionContext, email: str, password: str, *, remember: bool = False) -> AuthSession:
        email = (email or "").strip().lower()
        user = self._usuarios.get_by_email(email) if email else None
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise AuthenticationError("Email o contraseña incorrectos")

        expires_at = now_local() + (self._remember_ttl if remember else self._session_ttl)
        token = secrets.token_urlsafe(32)
        self._sesiones.create(token=token, id_usuario=user.id_usuario, expires_at=expires_at, remember=remember)

        session = AuthSession(
            token=token,
            id_usuario=user.id_usuario,
            email=user.email,
            nombre=user.nombre,
            expires_at=expires_at,
            remember=remember,
        )
        context.begin(session)
        logger.info("User %s signed in", user.email)
        return session

    @wrap_backend_errors("Error al obtener la sesión")
    def get_session(self, token: Optional[str]) -> Optional[AuthSession]:
        if not token:
            return None
        session = self._sesiones.get(token)
        if session is None:
            return None
        if session.is_expired(now_local()):
            self._sesiones.delete(token)
            return None
        return session

    def restore(self, context: SessionContext, token: Optional[str]) -> Optional[AuthSession]:
        session = self.get_session(token)
        if session is not None:
            context.begin(session, SessionEvent.RESTORED)
        return session

    @wrap_backend_errors("Error al refrescar la sesión")
    def refresh(self, context: SessionContext) -> AuthSession:
        """Extend the session by its own lifetime (SESSION_HOURS, or the remember-me days)."""
        current = self.get_session(context.token)
        if current is None:
            raise AuthenticationError("Sesión no válida o expirada")

        expires_at = now_local() + (self._remember_ttl if current.remember else self._session_ttl)
        self._sesiones.extend(current.token, expires_at=expires_at)
        session = AuthSession(
            token=current.token,
            id_usuario=current.id_usuario,
            email=current.email,
            nombre=current.nombre,
            expires_at=expires_at,
            remember=current.remember,
        )
        context.refresh(session)
        return session

    @wrap_backend_errors("Error al cerrar sesión")
    def sign_out(self, context: SessionContext) -> None:
        if context.token:
            self._sesiones.delete(context.token)
        context.end()

    @wrap_backend_errors("Error al limpiar sesiones")
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        return self._sesiones.delete_expired(now or now_local())
