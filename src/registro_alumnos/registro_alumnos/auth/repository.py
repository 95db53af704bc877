from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import AuthSession, Usuario


class UsuarioRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[Usuario]:
        raise NotImplementedError

    def create(self, *, email: str, nombre: str, password_hash: str) -> int:
        raise NotImplementedError


class SesionRepository(Protocol):
    """Sesiones persistidas. `get` devuelve la sesión aunque esté vencida."""

    def create(self, *, token: str, id_usuario: int, expires_at: datetime, remember: bool = False) -> None:
        raise NotImplementedError

    def get(self, token: str) -> Optional[AuthSession]:
        raise NotImplementedError

    def extend(self, token: str, *, expires_at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, token: str) -> bool:
        raise NotImplementedError

    def delete_expired(self, now: datetime) -> int:
        raise NotImplementedError
