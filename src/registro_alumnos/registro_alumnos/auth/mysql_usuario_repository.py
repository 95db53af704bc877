from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Usuario
from .repository import UsuarioRepository


class MySQLUsuarioRepository(UsuarioRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_email(self, email: str) -> Optional[Usuario]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id_usuario, email, nombre, password_hash FROM usuario WHERE email=%s",
                (email,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Usuario(
                id_usuario=int(row["id_usuario"]),
                email=row["email"],
                nombre=row["nombre"],
                password_hash=row["password_hash"],
            )

    def create(self, *, email: str, nombre: str, password_hash: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO usuario(email, nombre, password_hash) VALUES(%s,%s,%s)",
                (email, nombre, password_hash),
            )
            return int(cur.lastrowid)
