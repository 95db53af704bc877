from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, like_pattern
from .model import AlumnoEnGrado, Grado, GradoCount, GradoFilters
from .repository import GradoRepository


def _row_to_alumno(r: dict) -> AlumnoEnGrado:
    edad = r.get("edad_alumno")
    return AlumnoEnGrado(
        id_alumno=int(r["id_alumno"]),
        nombre_alumno=r["nombre_alumno"],
        edad_alumno=int(edad) if edad is not None else None,
        situacion_actual=r.get("situacion_actual"),
    )


def _where(filters: GradoFilters) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []
    if filters.search_term:
        clauses.append("g.nombre_grado LIKE %s")
        params.append(like_pattern(filters.search_term))
    if filters.has_students is not None:
        exists = "EXISTS (SELECT 1 FROM alumno a WHERE a.id_grado = g.id_grado)"
        clauses.append(exists if filters.has_students else f"NOT {exists}")
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLGradoRepository(GradoRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _alumnos_by_grado(cur, ids: Sequence[int]) -> dict[int, list[AlumnoEnGrado]]:
        if not ids:
            return {}
        placeholders, params = in_clause(list(ids))
        cur.execute(
            f"""
            SELECT id_alumno, nombre_alumno, edad_alumno, situacion_actual, id_grado
            FROM alumno
            WHERE id_grado IN {placeholders}
            ORDER BY nombre_alumno ASC
            """,
            params,
        )
        out: dict[int, list[AlumnoEnGrado]] = {}
        for r in fetchall(cur):
            out.setdefault(int(r["id_grado"]), []).append(_row_to_alumno(r))
        return out

    def count(self, filters: GradoFilters) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM grado g {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_page(self, filters: GradoFilters, *, offset: int, limit: int) -> Sequence[Grado]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT g.id_grado, g.nombre_grado
                FROM grado g
                {where}
                ORDER BY g.nombre_grado ASC, g.id_grado ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            rows = fetchall(cur)
            alumnos = self._alumnos_by_grado(cur, [int(r["id_grado"]) for r in rows])
            return [
                Grado(
                    id_grado=int(r["id_grado"]),
                    nombre_grado=r["nombre_grado"],
                    alumnos=tuple(alumnos.get(int(r["id_grado"]), [])),
                )
                for r in rows
            ]

    def list_all(self) -> Sequence[Grado]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id_grado, nombre_grado FROM grado ORDER BY nombre_grado ASC")
            return [Grado(id_grado=int(r["id_grado"]), nombre_grado=r["nombre_grado"]) for r in fetchall(cur)]

    def get_by_id(self, id_grado: int) -> Optional[Grado]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id_grado, nombre_grado FROM grado WHERE id_grado=%s", (int(id_grado),))
            r = fetchone(cur)
            if not r:
                return None
            alumnos = self._alumnos_by_grado(cur, [int(id_grado)])
            return Grado(
                id_grado=int(r["id_grado"]),
                nombre_grado=r["nombre_grado"],
                alumnos=tuple(alumnos.get(int(id_grado), [])),
            )

    def create(self, nombre_grado: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO grado(nombre_grado) VALUES(%s)", (nombre_grado,))
            return int(cur.lastrowid)

    def update(self, id_grado: int, nombre_grado: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE grado SET nombre_grado=%s WHERE id_grado=%s", (nombre_grado, int(id_grado)))

    def delete_if_unused(self, id_grado: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE FROM grado
                WHERE id_grado=%s
                  AND NOT EXISTS (SELECT 1 FROM alumno a WHERE a.id_grado=%s)
                """,
                (int(id_grado), int(id_grado)),
            )
            return cur.rowcount > 0

    def count_alumnos(self, id_grado: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM alumno WHERE id_grado=%s", (int(id_grado),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_alumnos(self, id_grado: int) -> Sequence[AlumnoEnGrado]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._alumnos_by_grado(cur, [int(id_grado)]).get(int(id_grado), [])

    def student_counts(self) -> Sequence[GradoCount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.id_grado, g.nombre_grado, COUNT(a.id_alumno) AS student_count
                FROM grado g
                LEFT JOIN alumno a ON a.id_grado = g.id_grado
                GROUP BY g.id_grado, g.nombre_grado
                ORDER BY g.id_grado ASC
                """
            )
            return [
                GradoCount(
                    id_grado=int(r["id_grado"]),
                    nombre_grado=r["nombre_grado"],
                    student_count=int(r["student_count"]),
                )
                for r in fetchall(cur)
            ]

    def recent(self, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id_grado, nombre_grado FROM grado ORDER BY id_grado DESC LIMIT %s", (int(limit),))
            return [{"id_grado": int(r["id_grado"]), "nombre_grado": r["nombre_grado"]} for r in fetchall(cur)]
