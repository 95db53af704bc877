from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Usuario:
    """Operador de la consola (tabla usuario)."""

    id_usuario: int
    email: str
    nombre: str
    password_hash: str


@dataclass(frozen=True)
class AuthSession:
    token: str
    id_usuario: int
    email: str
    nombre: str
    expires_at: datetime
    remember: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_public(self) -> dict:
        return {
            "user": {"id": self.id_usuario, "email": self.email, "nombre": self.nombre},
            "expires_at": self.expires_at.isoformat(),
            "remember": self.remember,
        }
