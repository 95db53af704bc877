from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause, like_pattern
from .model import AlumnoRef, Familiar, FamiliarFilters, Gasto
from .mysql_gasto_repository import fetch_gastos_by_familiar
from .repository import FamiliarRepository

FAMILIAR_COLUMNS = ("nombre_familiar", "edad_familiar", "parentesco_familiar", "ingreso_familiar")

_SELECT_FAMILIAR = """
    SELECT f.id_familiar, f.nombre_familiar, f.edad_familiar, f.parentesco_familiar, f.ingreso_familiar
    FROM familiar f
"""


def row_to_familiar(row: dict, gastos: Sequence[Gasto] = (), alumnos: Sequence[AlumnoRef] = ()) -> Familiar:
    edad = row.get("edad_familiar")
    return Familiar(
        id_familiar=int(row["id_familiar"]),
        nombre_familiar=row["nombre_familiar"],
        edad_familiar=int(edad) if edad is not None else None,
        parentesco_familiar=row.get("parentesco_familiar"),
        ingreso_familiar=as_float(row.get("ingreso_familiar")),
        gastos=tuple(gastos),
        alumnos=tuple(alumnos),
    )


def load_familiares(cur, rows: Sequence[dict]) -> list[Familiar]:
    """Map familiar rows and attach their gastos (one extra query)."""
    gastos = fetch_gastos_by_familiar(cur, [r["id_familiar"] for r in rows])
    return [row_to_familiar(r, gastos.get(int(r["id_familiar"]), [])) for r in rows]


def _where(filters: FamiliarFilters) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []

    if filters.search_term:
        pattern = like_pattern(filters.search_term)
        clauses.append("(f.nombre_familiar LIKE %s OR f.parentesco_familiar LIKE %s)")
        params.extend([pattern, pattern])
    if filters.parentesco:
        clauses.append("f.parentesco_familiar = %s")
        params.append(filters.parentesco)
    if filters.ingreso_min is not None:
        clauses.append("f.ingreso_familiar >= %s")
        params.append(filters.ingreso_min)
    if filters.ingreso_max is not None:
        clauses.append("f.ingreso_familiar <= %s")
        params.append(filters.ingreso_max)
    if filters.has_gasto is not None:
        exists = "EXISTS (SELECT 1 FROM gasto g WHERE g.id_familiar = f.id_familiar)"
        clauses.append(exists if filters.has_gasto else f"NOT {exists}")

    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLFamiliarRepository(FamiliarRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def count(self, filters: FamiliarFilters) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM familiar f {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_page(self, filters: FamiliarFilters, *, offset: int, limit: int) -> Sequence[Familiar]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT_FAMILIAR}
                {where}
                ORDER BY f.nombre_familiar ASC, f.id_familiar ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return load_familiares(cur, fetchall(cur))

    def list_all(self) -> Sequence[Familiar]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_FAMILIAR} ORDER BY f.nombre_familiar ASC")
            return load_familiares(cur, fetchall(cur))

    def get_by_id(self, id_familiar: int) -> Optional[Familiar]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_FAMILIAR} WHERE f.id_familiar=%s", (int(id_familiar),))
            row = fetchone(cur)
            if not row:
                return None
            gastos = fetch_gastos_by_familiar(cur, [id_familiar]).get(int(id_familiar), [])
            alumnos = self._alumnos(cur, int(id_familiar))
            return row_to_familiar(row, gastos, alumnos)

    def existing_ids(self, ids: Iterable[int]) -> set[int]:
        ids = sorted(set(int(i) for i in ids))
        if not ids:
            return set()
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id_familiar FROM familiar WHERE id_familiar IN {placeholders}", params)
            return {int(r["id_familiar"]) for r in fetchall(cur)}

    def create(self, values: dict) -> int:
        cols = [c for c in FAMILIAR_COLUMNS if c in values]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO familiar({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                tuple(values[c] for c in cols),
            )
            return int(cur.lastrowid)

    def update(self, id_familiar: int, values: dict) -> None:
        cols = [c for c in FAMILIAR_COLUMNS if c in values]
        if not cols:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE familiar SET {', '.join(f'{c}=%s' for c in cols)} WHERE id_familiar=%s",
                tuple(values[c] for c in cols) + (int(id_familiar),),
            )

    def delete_cascade(self, id_familiar: int) -> bool:
        fid = int(id_familiar)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id_familiar FROM familiar WHERE id_familiar=%s FOR UPDATE", (fid,))
            if not fetchone(cur):
                return False

            # Order matters: no ON DELETE CASCADE on the dependents.
            cur.execute("DELETE FROM gasto WHERE id_familiar=%s", (fid,))
            cur.execute("DELETE FROM alumnoxfamiliar WHERE id_familiar=%s", (fid,))
            cur.execute("UPDATE alumno SET id_familiar=NULL WHERE id_familiar=%s", (fid,))
            cur.execute("DELETE FROM familiar WHERE id_familiar=%s", (fid,))
            return cur.rowcount > 0

    def list_alumnos(self, id_familiar: int) -> Sequence[AlumnoRef]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._alumnos(cur, int(id_familiar))

    @staticmethod
    def _alumnos(cur, id_familiar: int) -> list[AlumnoRef]:
        cur.execute(
            """
            SELECT DISTINCT a.id_alumno, a.nombre_alumno
            FROM alumno a
            LEFT JOIN alumnoxfamiliar axf ON axf.id_alumno = a.id_alumno
            WHERE axf.id_familiar=%s OR a.id_familiar=%s
            ORDER BY a.nombre_alumno ASC
            """,
            (id_familiar, id_familiar),
        )
        return [AlumnoRef(id_alumno=int(r["id_alumno"]), nombre_alumno=r["nombre_alumno"]) for r in fetchall(cur)]

    def list_ingresos(self) -> Sequence[float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT ingreso_familiar FROM familiar WHERE ingreso_familiar IS NOT NULL")
            return [as_float(r["ingreso_familiar"]) for r in fetchall(cur)]

    def list_parentescos(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT parentesco_familiar FROM familiar WHERE parentesco_familiar IS NOT NULL")
            return [r["parentesco_familiar"] for r in fetchall(cur)]

    def count_with_gastos(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(DISTINCT id_familiar) AS n FROM gasto")
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def recent(self, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id_familiar, nombre_familiar, parentesco_familiar
                FROM familiar
                ORDER BY id_familiar DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                {
                    "id_familiar": int(r["id_familiar"]),
                    "nombre_familiar": r["nombre_familiar"],
                    "parentesco_familiar": r.get("parentesco_familiar"),
                }
                for r in fetchall(cur)
            ]
