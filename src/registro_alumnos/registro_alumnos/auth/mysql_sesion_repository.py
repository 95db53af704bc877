from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AuthSession
from .repository import SesionRepository


class MySQLSesionRepository(SesionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, token: str, id_usuario: int, expires_at: datetime, remember: bool = False) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO sesion(token, id_usuario, expires_at, remember) VALUES(%s,%s,%s,%s)",
                (token, id_usuario, expires_at, 1 if remember else 0),
            )

    def get(self, token: str) -> Optional[AuthSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.token, s.id_usuario, s.expires_at, s.remember, u.email, u.nombre
                FROM sesion s
                JOIN usuario u ON u.id_usuario = s.id_usuario
                WHERE s.token=%s
                """,
                (token,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return AuthSession(
                token=row["token"],
                id_usuario=int(row["id_usuario"]),
                email=row["email"],
                nombre=row["nombre"],
                expires_at=row["expires_at"],
                remember=bool(row.get("remember")),
            )

    def extend(self, token: str, *, expires_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE sesion SET expires_at=%s WHERE token=%s", (expires_at, token))
            return cur.rowcount > 0

    def delete(self, token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sesion WHERE token=%s", (token,))
            return cur.rowcount > 0

    def delete_expired(self, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sesion WHERE expires_at <= %s", (now,))
            return int(cur.rowcount or 0)
