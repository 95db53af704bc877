from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone, in_clause, like_pattern
from ..familiares.model import Familiar
from ..familiares.mysql_familiar_repository import load_familiares
from .model import Alumno, StudentFilters
from .repository import AlumnoRepository

ALUMNO_COLUMNS = (
    "nombre_alumno",
    "edad_alumno",
    "fecha_nacimiento",
    "id_grado",
    "fecha_ingreso",
    "motivo_ingreso",
    "situacion_familiar",
    "situacion_actual",
    "id_familiar",
)

_SELECT_ALUMNO = """
    SELECT a.id_alumno, a.nombre_alumno, a.edad_alumno, a.fecha_nacimiento, a.id_grado,
           a.fecha_ingreso, a.motivo_ingreso, a.situacion_familiar, a.situacion_actual,
           a.id_familiar, g.nombre_grado
    FROM alumno a
    LEFT JOIN grado g ON g.id_grado = a.id_grado
"""

_SELECT_FAMILIAR = """
    SELECT f.id_familiar, f.nombre_familiar, f.edad_familiar, f.parentesco_familiar, f.ingreso_familiar
    FROM familiar f
"""


def _row_to_alumno(r: dict, *, familiar: Optional[Familiar] = None, familiares: Sequence[Familiar] = ()) -> Alumno:
    edad = r.get("edad_alumno")
    return Alumno(
        id_alumno=int(r["id_alumno"]),
        nombre_alumno=r["nombre_alumno"],
        edad_alumno=int(edad) if edad is not None else None,
        fecha_nacimiento=as_date(r.get("fecha_nacimiento")),
        id_grado=r.get("id_grado"),
        fecha_ingreso=as_date(r.get("fecha_ingreso")),
        motivo_ingreso=r.get("motivo_ingreso"),
        situacion_familiar=r.get("situacion_familiar"),
        situacion_actual=r.get("situacion_actual"),
        id_familiar=r.get("id_familiar"),
        nombre_grado=r.get("nombre_grado"),
        familiar=familiar,
        familiares=tuple(familiares),
    )


def _where(filters: StudentFilters) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []

    if filters.search_term:
        pattern = like_pattern(filters.search_term)
        clauses.append("(a.nombre_alumno LIKE %s OR a.situacion_actual LIKE %s)")
        params.extend([pattern, pattern])
    if filters.grado is not None:
        clauses.append("a.id_grado = %s")
        params.append(filters.grado)
    if filters.situacion_actual:
        clauses.append("a.situacion_actual = %s")
        params.append(filters.situacion_actual)
    if filters.edad_min is not None:
        clauses.append("a.edad_alumno >= %s")
        params.append(filters.edad_min)
    if filters.edad_max is not None:
        clauses.append("a.edad_alumno <= %s")
        params.append(filters.edad_max)
    if filters.fecha_ingreso_desde is not None:
        clauses.append("a.fecha_ingreso >= %s")
        params.append(filters.fecha_ingreso_desde)
    if filters.fecha_ingreso_hasta is not None:
        clauses.append("a.fecha_ingreso <= %s")
        params.append(filters.fecha_ingreso_hasta)

    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLAlumnoRepository(AlumnoRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _primary_familiares(cur, rows: Sequence[dict]) -> dict[int, Familiar]:
        ids = sorted({int(r["id_familiar"]) for r in rows if r.get("id_familiar") is not None})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        cur.execute(f"{_SELECT_FAMILIAR} WHERE f.id_familiar IN {placeholders}", params)
        return {f.id_familiar: f for f in load_familiares(cur, fetchall(cur))}

    def _with_primary(self, cur, rows: Sequence[dict]) -> list[Alumno]:
        primary = self._primary_familiares(cur, rows)
        return [
            _row_to_alumno(r, familiar=primary.get(int(r["id_familiar"])) if r.get("id_familiar") else None)
            for r in rows
        ]

    def count(self, filters: StudentFilters) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM alumno a {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_page(self, filters: StudentFilters, *, offset: int, limit: int) -> Sequence[Alumno]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT_ALUMNO}
                {where}
                ORDER BY a.fecha_ingreso DESC, a.id_alumno DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return self._with_primary(cur, fetchall(cur))

    def list_all(self, filters: StudentFilters) -> Sequence[Alumno]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_ALUMNO} {where} ORDER BY a.fecha_ingreso DESC, a.id_alumno DESC",
                tuple(params),
            )
            return self._with_primary(cur, fetchall(cur))

    def get_by_id(self, id_alumno: int) -> Optional[Alumno]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_ALUMNO} WHERE a.id_alumno=%s", (int(id_alumno),))
            row = fetchone(cur)
            if not row:
                return None

            primary = self._primary_familiares(cur, [row])
            cur.execute(
                f"""
                {_SELECT_FAMILIAR}
                JOIN alumnoxfamiliar axf ON axf.id_familiar = f.id_familiar
                WHERE axf.id_alumno=%s
                ORDER BY axf.id ASC
                """,
                (int(id_alumno),),
            )
            familiares = load_familiares(cur, fetchall(cur))
            familiar = primary.get(int(row["id_familiar"])) if row.get("id_familiar") else None
            return _row_to_alumno(row, familiar=familiar, familiares=familiares)

    @staticmethod
    def _insert_links(cur, id_alumno: int, familiares_ids: Sequence[int]) -> None:
        if not familiares_ids:
            return
        cur.executemany(
            """
            INSERT INTO alumnoxfamiliar(id_alumno, id_familiar) VALUES(%s,%s)
            ON DUPLICATE KEY UPDATE id_familiar=id_familiar
            """,
            [(int(id_alumno), int(fid)) for fid in familiares_ids],
        )

    def create_with_familiares(self, values: dict, familiares_ids: Sequence[int]) -> int:
        cols = [c for c in ALUMNO_COLUMNS if c in values]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO alumno({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                tuple(values[c] for c in cols),
            )
            new_id = int(cur.lastrowid)
            self._insert_links(cur, new_id, familiares_ids)
            return new_id

    def update_with_familiares(
        self,
        id_alumno: int,
        values: dict,
        familiares_ids: Optional[Sequence[int]] = None,
    ) -> None:
        cols = [c for c in ALUMNO_COLUMNS if c in values]
        with db_cursor(self._conn_factory) as (_, cur):
            if cols:
                cur.execute(
                    f"UPDATE alumno SET {', '.join(f'{c}=%s' for c in cols)} WHERE id_alumno=%s",
                    tuple(values[c] for c in cols) + (int(id_alumno),),
                )
            if familiares_ids is not None:
                cur.execute("DELETE FROM alumnoxfamiliar WHERE id_alumno=%s", (int(id_alumno),))
                self._insert_links(cur, id_alumno, familiares_ids)

    def delete(self, id_alumno: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM alumnoxfamiliar WHERE id_alumno=%s", (int(id_alumno),))
            cur.execute("DELETE FROM alumno WHERE id_alumno=%s", (int(id_alumno),))
            return cur.rowcount > 0

    def add_familiares(self, id_alumno: int, familiares_ids: Sequence[int]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._insert_links(cur, id_alumno, familiares_ids)

    def remove_familiares(self, id_alumno: int, familiares_ids: Optional[Sequence[int]] = None) -> int:
        sql = "DELETE FROM alumnoxfamiliar WHERE id_alumno=%s"
        params: tuple = (int(id_alumno),)
        if familiares_ids:
            placeholders, ids = in_clause([int(i) for i in familiares_ids])
            sql += f" AND id_familiar IN {placeholders}"
            params += ids
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return int(cur.rowcount)

    def list_recent(self, since: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id_alumno, nombre_alumno, fecha_ingreso
                FROM alumno
                WHERE fecha_ingreso >= %s
                ORDER BY fecha_ingreso DESC
                """,
                (since,),
            )
            return [
                {
                    "id_alumno": int(r["id_alumno"]),
                    "nombre_alumno": r["nombre_alumno"],
                    "fecha_ingreso": as_date(r["fecha_ingreso"]),
                }
                for r in fetchall(cur)
            ]

    def count_distinct_grados(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(DISTINCT id_grado) AS n FROM alumno WHERE id_grado IS NOT NULL")
            r = fetchone(cur)
            return int(r["n"]) if r else 0
