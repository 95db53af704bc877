from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause
from .model import Gasto
from .repository import GastoRepository

GASTO_COLUMNS = ("nombre_gasto", "cantidad_gasto", "id_familiar")


def row_to_gasto(row: dict) -> Gasto:
    return Gasto(
        id_gasto=int(row["id_gasto"]),
        nombre_gasto=row["nombre_gasto"],
        cantidad_gasto=as_float(row["cantidad_gasto"]) or 0.0,
        id_familiar=int(row["id_familiar"]),
    )


def fetch_gastos_by_familiar(cur, familiar_ids: Iterable[int]) -> dict[int, list[Gasto]]:
    """Load the gastos of several familiares with one query, grouped by id_familiar."""
    ids = sorted(set(int(i) for i in familiar_ids))
    if not ids:
        return {}
    placeholders, params = in_clause(ids)
    cur.execute(
        f"""
        SELECT id_gasto, nombre_gasto, cantidad_gasto, id_familiar
        FROM gasto
        WHERE id_familiar IN {placeholders}
        ORDER BY id_gasto ASC
        """,
        params,
    )
    out: dict[int, list[Gasto]] = {}
    for r in fetchall(cur):
        gasto = row_to_gasto(r)
        out.setdefault(gasto.id_familiar, []).append(gasto)
    return out


class MySQLGastoRepository(GastoRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Gasto]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id_gasto, nombre_gasto, cantidad_gasto, id_familiar FROM gasto ORDER BY nombre_gasto ASC"
            )
            return [row_to_gasto(r) for r in fetchall(cur)]

    def list_for_familiar(self, id_familiar: int) -> Sequence[Gasto]:
        with db_cursor(self._conn_factory) as (_, cur):
            return fetch_gastos_by_familiar(cur, [id_familiar]).get(int(id_familiar), [])

    def get_by_id(self, id_gasto: int) -> Optional[Gasto]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id_gasto, nombre_gasto, cantidad_gasto, id_familiar FROM gasto WHERE id_gasto=%s",
                (int(id_gasto),),
            )
            r = fetchone(cur)
            return row_to_gasto(r) if r else None

    def create(self, values: dict) -> int:
        cols = [c for c in GASTO_COLUMNS if c in values]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO gasto({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                tuple(values[c] for c in cols),
            )
            return int(cur.lastrowid)

    def update(self, id_gasto: int, values: dict) -> None:
        cols = [c for c in GASTO_COLUMNS if c in values]
        if not cols:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE gasto SET {', '.join(f'{c}=%s' for c in cols)} WHERE id_gasto=%s",
                tuple(values[c] for c in cols) + (int(id_gasto),),
            )

    def delete(self, id_gasto: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM gasto WHERE id_gasto=%s", (int(id_gasto),))
            return cur.rowcount > 0
