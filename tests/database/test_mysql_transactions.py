from __future__ import annotations

import mysql.connector
import pytest

from src.registro_alumnos.registro_alumnos.alumnos.mysql_alumno_repository import MySQLAlumnoRepository
from src.registro_alumnos.registro_alumnos.core.exceptions import BackendError
from src.registro_alumnos.registro_alumnos.familiares.mysql_familiar_repository import MySQLFamiliarRepository
from src.registro_alumnos.registro_alumnos.grados.mysql_grado_repository import MySQLGradoRepository


def _normalize(sql: str) -> str:
    return " ".join(sql.split())


class RecordingCursor:
    def __init__(self, conn: "RecordingConnection"):
        self._conn = conn
        self.lastrowid = None
        self.rowcount = 0
        self._rows: list[dict] = []

    def _apply(self, kind: str, sql: str, params) -> None:
        sql = _normalize(sql)
        self._conn.events.append((kind, sql, params))
        result = self._conn.response_for(sql)
        if "raise" in result:
            raise result["raise"]
        self.lastrowid = result.get("lastrowid")
        self.rowcount = result.get("rowcount", 0)
        self._rows = list(result.get("rows", []))

    def execute(self, sql, params=()):
        self._apply("execute", sql, params)

    def executemany(self, sql, seq_params):
        self._apply("executemany", sql, list(seq_params))

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class RecordingConnection:
    """Connection double: records statements and transaction calls.

    `responses` maps a SQL fragment to what the statement returns (rows, rowcount,
    lastrowid) or raises. The first matching fragment wins.
    """

    def __init__(self, responses: list[tuple[str, dict]] = ()):
        self.events: list[tuple] = []
        self._responses = list(responses)

    def response_for(self, sql: str) -> dict:
        for fragment, result in self._responses:
            if fragment in sql:
                return result
        return {}

    def cursor(self, dictionary: bool = True):
        return RecordingCursor(self)

    def commit(self):
        self.events.append(("commit",))

    def rollback(self):
        self.events.append(("rollback",))

    def close(self):
        self.events.append(("close",))

    def statements(self) -> list[str]:
        return [e[1] for e in self.events if e[0] in ("execute", "executemany")]

    def transaction_calls(self) -> list[str]:
        return [e[0] for e in self.events if e[0] in ("commit", "rollback", "close")]


class RecordingFactory:
    def __init__(self, conn: RecordingConnection):
        self._conn = conn

    def connect(self):
        return self._conn


def _fk_error() -> mysql.connector.Error:
    return mysql.connector.IntegrityError(msg="Cannot add or update a child row: fk_axf_familiar", errno=1452)


def test_create_student_rolls_back_when_link_insert_fails():
    conn = RecordingConnection(
        [
            ("INSERT INTO alumno(", {"lastrowid": 7}),
            ("INSERT INTO alumnoxfamiliar", {"raise": _fk_error()}),
        ]
    )
    repo = MySQLAlumnoRepository(RecordingFactory(conn))

    with pytest.raises(BackendError) as exc:
        repo.create_with_familiares({"nombre_alumno": "Juan", "id_grado": 1}, [1, 2])

    assert "fk_axf_familiar" in str(exc.value)
    assert conn.transaction_calls() == ["rollback", "close"]
    kinds = [e[0] for e in conn.events if e[0] in ("execute", "executemany")]
    assert kinds == ["execute", "executemany"]


def test_link_insert_does_not_ignore_constraint_errors():
    conn = RecordingConnection([("INSERT INTO alumno(", {"lastrowid": 7})])
    repo = MySQLAlumnoRepository(RecordingFactory(conn))

    assert repo.create_with_familiares({"nombre_alumno": "Juan"}, [1, 2]) == 7

    link_sql = conn.statements()[1]
    assert "IGNORE" not in link_sql
    assert "ON DUPLICATE KEY UPDATE" in link_sql
    assert conn.events[1][2] == [(7, 1), (7, 2)]
    assert conn.transaction_calls() == ["commit", "close"]


def test_update_student_rolls_back_association_replace():
    conn = RecordingConnection([("INSERT INTO alumnoxfamiliar", {"raise": _fk_error()})])
    repo = MySQLAlumnoRepository(RecordingFactory(conn))

    with pytest.raises(BackendError):
        repo.update_with_familiares(3, {"situacion_actual": "Activo"}, [4])

    statements = conn.statements()
    assert statements[0].startswith("UPDATE alumno SET situacion_actual=%s")
    assert statements[1] == "DELETE FROM alumnoxfamiliar WHERE id_alumno=%s"
    assert conn.transaction_calls() == ["rollback", "close"]


def test_update_student_without_ids_keeps_links():
    conn = RecordingConnection()
    repo = MySQLAlumnoRepository(RecordingFactory(conn))

    repo.update_with_familiares(3, {"situacion_actual": "Activo"})

    assert len(conn.statements()) == 1
    assert conn.transaction_calls() == ["commit", "close"]


def test_familiar_cascade_runs_in_order_in_one_transaction():
    conn = RecordingConnection(
        [
            ("SELECT id_familiar FROM familiar", {"rows": [{"id_familiar": 5}]}),
            ("DELETE FROM familiar", {"rowcount": 1}),
        ]
    )
    repo = MySQLFamiliarRepository(RecordingFactory(conn))

    assert repo.delete_cascade(5) is True

    assert conn.statements() == [
        "SELECT id_familiar FROM familiar WHERE id_familiar=%s FOR UPDATE",
        "DELETE FROM gasto WHERE id_familiar=%s",
        "DELETE FROM alumnoxfamiliar WHERE id_familiar=%s",
        "UPDATE alumno SET id_familiar=NULL WHERE id_familiar=%s",
        "DELETE FROM familiar WHERE id_familiar=%s",
    ]
    assert conn.transaction_calls() == ["commit", "close"]


def test_familiar_cascade_rolls_back_on_failure():
    conn = RecordingConnection(
        [
            ("SELECT id_familiar FROM familiar", {"rows": [{"id_familiar": 5}]}),
            ("UPDATE alumno SET id_familiar=NULL", {"raise": mysql.connector.OperationalError(msg="Lock wait timeout")}),
        ]
    )
    repo = MySQLFamiliarRepository(RecordingFactory(conn))

    with pytest.raises(BackendError):
        repo.delete_cascade(5)

    assert not any(s.startswith("DELETE FROM familiar") for s in conn.statements())
    assert conn.transaction_calls() == ["rollback", "close"]


def test_familiar_cascade_missing_row_touches_nothing():
    repo_conn = RecordingConnection()
    repo = MySQLFamiliarRepository(RecordingFactory(repo_conn))

    assert repo.delete_cascade(5) is False
    assert len(repo_conn.statements()) == 1


def test_grado_delete_is_a_single_conditional_statement():
    conn = RecordingConnection([("DELETE FROM grado", {"rowcount": 0})])
    repo = MySQLGradoRepository(RecordingFactory(conn))

    assert repo.delete_if_unused(2) is False

    statements = conn.statements()
    assert len(statements) == 1
    assert statements[0].startswith("DELETE FROM grado WHERE id_grado=%s AND NOT EXISTS")
    assert conn.events[0][2] == (2, 2)


def test_grado_delete_reports_success():
    conn = RecordingConnection([("DELETE FROM grado", {"rowcount": 1})])

    assert MySQLGradoRepository(RecordingFactory(conn)).delete_if_unused(2) is True
