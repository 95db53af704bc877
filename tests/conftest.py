from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from src.registro_alumnos.registro_alumnos.alumnos.model import Alumno, StudentFilters
from src.registro_alumnos.registro_alumnos.alumnos.service import AlumnoService
from src.registro_alumnos.registro_alumnos.auth.model import AuthSession, Usuario
from src.registro_alumnos.registro_alumnos.auth.service import AuthService
from src.registro_alumnos.registro_alumnos.container import Container
from src.registro_alumnos.registro_alumnos.dashboard.service import DashboardService
from src.registro_alumnos.registro_alumnos.familiares.model import AlumnoRef, Familiar, FamiliarFilters, Gasto
from src.registro_alumnos.registro_alumnos.familiares.service import FamiliarService
from src.registro_alumnos.registro_alumnos.grados.model import AlumnoEnGrado, Grado, GradoCount, GradoFilters
from src.registro_alumnos.registro_alumnos.grados.service import GradoService


class InMemoryStore:
    """Rows for every table, shared by the fake repositories below."""

    def __init__(self):
        self.grados: dict[int, dict] = {}
        self.familiares: dict[int, dict] = {}
        self.gastos: dict[int, dict] = {}
        self.alumnos: dict[int, dict] = {}
        self.links: set[tuple[int, int]] = set()
        self.usuarios: dict[int, dict] = {}
        self.sesiones: dict[str, dict] = {}
        self._seq: dict[str, int] = {}

    def next_id(self, table: str) -> int:
        self._seq[table] = self._seq.get(table, 0) + 1
        return self._seq[table]


class InMemoryGastos:
    def __init__(self, store: InMemoryStore):
        self.store = store

    @staticmethod
    def _gasto(gid: int, row: dict) -> Gasto:
        return Gasto(
            id_gasto=gid,
            nombre_gasto=row["nombre_gasto"],
            cantidad_gasto=float(row["cantidad_gasto"]),
            id_familiar=row["id_familiar"],
        )

    def list_all(self) -> Sequence[Gasto]:
        return [self._gasto(gid, r) for gid, r in sorted(self.store.gastos.items())]

    def list_for_familiar(self, id_familiar: int) -> Sequence[Gasto]:
        return [g for g in self.list_all() if g.id_familiar == id_familiar]

    def get_by_id(self, id_gasto: int) -> Optional[Gasto]:
        row = self.store.gastos.get(id_gasto)
        return self._gasto(id_gasto, row) if row else None

    def create(self, values: dict) -> int:
        gid = self.store.next_id("gasto")
        self.store.gastos[gid] = dict(values)
        return gid

    def update(self, id_gasto: int, values: dict) -> None:
        if id_gasto in self.store.gastos:
            self.store.gastos[id_gasto].update(values)

    def delete(self, id_gasto: int) -> bool:
        return self.store.gastos.pop(id_gasto, None) is not None


class InMemoryFamiliares:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self._gastos = InMemoryGastos(store)

    def _familiar(self, fid: int, *, with_alumnos: bool = False) -> Familiar:
        row = self.store.familiares[fid]
        return Familiar(
            id_familiar=fid,
            nombre_familiar=row["nombre_familiar"],
            edad_familiar=row.get("edad_familiar"),
            parentesco_familiar=row.get("parentesco_familiar"),
            ingreso_familiar=row.get("ingreso_familiar"),
            gastos=tuple(self._gastos.list_for_familiar(fid)),
            alumnos=tuple(self.list_alumnos(fid)) if with_alumnos else (),
        )

    def _matches(self, fid: int, filters: FamiliarFilters) -> bool:
        row = self.store.familiares[fid]
        if filters.search_term:
            term = filters.search_term.lower()
            haystack = f"{row['nombre_familiar']} {row.get('parentesco_familiar') or ''}".lower()
            if term not in haystack:
                return False
        if filters.parentesco and row.get("parentesco_familiar") != filters.parentesco:
            return False
        ingreso = row.get("ingreso_familiar")
        if filters.ingreso_min is not None and (ingreso is None or ingreso < filters.ingreso_min):
            return False
        if filters.ingreso_max is not None and (ingreso is None or ingreso > filters.ingreso_max):
            return False
        if filters.has_gasto is not None:
            has = any(g["id_familiar"] == fid for g in self.store.gastos.values())
            if has != filters.has_gasto:
                return False
        return True

    def count(self, filters: FamiliarFilters) -> int:
        return sum(1 for fid in self.store.familiares if self._matches(fid, filters))

    def list_page(self, filters: FamiliarFilters, *, offset: int, limit: int) -> Sequence[Familiar]:
        ids = sorted((fid for fid in self.store.familiares if self._matches(fid, filters)), reverse=True)
        return [self._familiar(fid) for fid in ids[offset:offset + limit]]

    def list_all(self) -> Sequence[Familiar]:
        ids = sorted(self.store.familiares, key=lambda fid: self.store.familiares[fid]["nombre_familiar"])
        return [self._familiar(fid) for fid in ids]

    def get_by_id(self, id_familiar: int) -> Optional[Familiar]:
        if id_familiar not in self.store.familiares:
            return None
        return self._familiar(id_familiar, with_alumnos=True)

    def existing_ids(self, ids: Iterable[int]) -> set[int]:
        return {i for i in ids if i in self.store.familiares}

    def create(self, values: dict) -> int:
        fid = self.store.next_id("familiar")
        self.store.familiares[fid] = dict(values)
        return fid

    def update(self, id_familiar: int, values: dict) -> None:
        if id_familiar in self.store.familiares:
            self.store.familiares[id_familiar].update(values)

    def delete_cascade(self, id_familiar: int) -> bool:
        if id_familiar not in self.store.familiares:
            return False
        self.store.gastos = {k: v for k, v in self.store.gastos.items() if v["id_familiar"] != id_familiar}
        self.store.links = {link for link in self.store.links if link[1] != id_familiar}
        for row in self.store.alumnos.values():
            if row.get("id_familiar") == id_familiar:
                row["id_familiar"] = None
        del self.store.familiares[id_familiar]
        return True

    def list_alumnos(self, id_familiar: int) -> Sequence[AlumnoRef]:
        linked = {aid for aid, fid in self.store.links if fid == id_familiar}
        out = [
            AlumnoRef(id_alumno=aid, nombre_alumno=row["nombre_alumno"])
            for aid, row in self.store.alumnos.items()
            if aid in linked or row.get("id_familiar") == id_familiar
        ]
        return sorted(out, key=lambda a: a.nombre_alumno)

    def list_ingresos(self) -> Sequence[float]:
        return [r["ingreso_familiar"] for r in self.store.familiares.values() if r.get("ingreso_familiar") is not None]

    def list_parentescos(self) -> Sequence[str]:
        return [r.get("parentesco_familiar") for r in self.store.familiares.values() if r.get("parentesco_familiar")]

    def count_with_gastos(self) -> int:
        return len({g["id_familiar"] for g in self.store.gastos.values()})

    def recent(self, limit: int) -> Sequence[dict]:
        ids = sorted(self.store.familiares, reverse=True)[:limit]
        return [
            {
                "id_familiar": fid,
                "nombre_familiar": self.store.familiares[fid]["nombre_familiar"],
                "parentesco_familiar": self.store.familiares[fid].get("parentesco_familiar"),
            }
            for fid in ids
        ]


class InMemoryGrados:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _alumnos(self, gid: int) -> list[AlumnoEnGrado]:
        out = [
            AlumnoEnGrado(
                id_alumno=aid,
                nombre_alumno=row["nombre_alumno"],
                edad_alumno=row.get("edad_alumno"),
                situacion_actual=row.get("situacion_actual"),
            )
            for aid, row in self.store.alumnos.items()
            if row.get("id_grado") == gid
        ]
        return sorted(out, key=lambda a: a.nombre_alumno)

    def _grado(self, gid: int) -> Grado:
        return Grado(id_grado=gid, nombre_grado=self.store.grados[gid]["nombre_grado"], alumnos=tuple(self._alumnos(gid)))

    def _matches(self, gid: int, filters: GradoFilters) -> bool:
        if filters.search_term and filters.search_term.lower() not in self.store.grados[gid]["nombre_grado"].lower():
            return False
        if filters.has_students is not None and bool(self._alumnos(gid)) != filters.has_students:
            return False
        return True

    def count(self, filters: GradoFilters) -> int:
        return sum(1 for gid in self.store.grados if self._matches(gid, filters))

    def list_page(self, filters: GradoFilters, *, offset: int, limit: int) -> Sequence[Grado]:
        ids = sorted(gid for gid in self.store.grados if self._matches(gid, filters))
        return [self._grado(gid) for gid in ids[offset:offset + limit]]

    def list_all(self) -> Sequence[Grado]:
        return [self._grado(gid) for gid in sorted(self.store.grados)]

    def get_by_id(self, id_grado: int) -> Optional[Grado]:
        return self._grado(id_grado) if id_grado in self.store.grados else None

    def create(self, nombre_grado: str) -> int:
        gid = self.store.next_id("grado")
        self.store.grados[gid] = {"nombre_grado": nombre_grado}
        return gid

    def update(self, id_grado: int, nombre_grado: str) -> None:
        if id_grado in self.store.grados:
            self.store.grados[id_grado]["nombre_grado"] = nombre_grado

    def delete_if_unused(self, id_grado: int) -> bool:
        if id_grado not in self.store.grados or self._alumnos(id_grado):
            return False
        del self.store.grados[id_grado]
        return True

    def count_alumnos(self, id_grado: int) -> int:
        return len(self._alumnos(id_grado))

    def list_alumnos(self, id_grado: int) -> Sequence[AlumnoEnGrado]:
        return self._alumnos(id_grado)

    def student_counts(self) -> Sequence[GradoCount]:
        return [
            GradoCount(id_grado=gid, nombre_grado=row["nombre_grado"], student_count=len(self._alumnos(gid)))
            for gid, row in sorted(self.store.grados.items())
        ]

    def recent(self, limit: int) -> Sequence[dict]:
        ids = sorted(self.store.grados, reverse=True)[:limit]
        return [{"id_grado": gid, "nombre_grado": self.store.grados[gid]["nombre_grado"]} for gid in ids]


class InMemoryAlumnos:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self._familiares = InMemoryFamiliares(store)

    def _alumno(self, aid: int, *, detail: bool = False) -> Alumno:
        row = self.store.alumnos[aid]
        fid = row.get("id_familiar")
        grado = self.store.grados.get(row.get("id_grado"))
        familiares = ()
        if detail:
            linked = sorted(f for a, f in self.store.links if a == aid)
            familiares = tuple(self._familiares._familiar(f) for f in linked)
        return Alumno(
            id_alumno=aid,
            nombre_alumno=row["nombre_alumno"],
            edad_alumno=row.get("edad_alumno"),
            fecha_nacimiento=row.get("fecha_nacimiento"),
            id_grado=row.get("id_grado"),
            fecha_ingreso=row.get("fecha_ingreso"),
            motivo_ingreso=row.get("motivo_ingreso"),
            situacion_familiar=row.get("situacion_familiar"),
            situacion_actual=row.get("situacion_actual"),
            id_familiar=fid,
            nombre_grado=grado["nombre_grado"] if grado else None,
            familiar=self._familiares._familiar(fid) if fid in self.store.familiares else None,
            familiares=familiares,
        )

    def _matches(self, aid: int, filters: StudentFilters) -> bool:
        row = self.store.alumnos[aid]
        if filters.search_term and filters.search_term.lower() not in row["nombre_alumno"].lower():
            return False
        if filters.grado is not None and row.get("id_grado") != filters.grado:
            return False
        if filters.situacion_actual and row.get("situacion_actual") != filters.situacion_actual:
            return False
        return True

    def count(self, filters: StudentFilters) -> int:
        return sum(1 for aid in self.store.alumnos if self._matches(aid, filters))

    def list_page(self, filters: StudentFilters, *, offset: int, limit: int) -> Sequence[Alumno]:
        return list(self.list_all(filters))[offset:offset + limit]

    def list_all(self, filters: StudentFilters) -> Sequence[Alumno]:
        ids = sorted(aid for aid in self.store.alumnos if self._matches(aid, filters))
        return [self._alumno(aid) for aid in ids]

    def get_by_id(self, id_alumno: int) -> Optional[Alumno]:
        return self._alumno(id_alumno, detail=True) if id_alumno in self.store.alumnos else None

    def create_with_familiares(self, values: dict, familiares_ids: Sequence[int]) -> int:
        aid = self.store.next_id("alumno")
        self.store.alumnos[aid] = dict(values)
        self.add_familiares(aid, familiares_ids)
        return aid

    def update_with_familiares(self, id_alumno: int, values: dict, familiares_ids: Optional[Sequence[int]] = None) -> None:
        self.store.alumnos[id_alumno].update(values)
        if familiares_ids is not None:
            self.store.links = {link for link in self.store.links if link[0] != id_alumno}
            self.add_familiares(id_alumno, familiares_ids)

    def delete(self, id_alumno: int) -> bool:
        self.store.links = {link for link in self.store.links if link[0] != id_alumno}
        return self.store.alumnos.pop(id_alumno, None) is not None

    def add_familiares(self, id_alumno: int, familiares_ids: Sequence[int]) -> None:
        for fid in familiares_ids:
            self.store.links.add((id_alumno, int(fid)))

    def remove_familiares(self, id_alumno: int, familiares_ids: Optional[Sequence[int]] = None) -> int:
        doomed = {
            link
            for link in self.store.links
            if link[0] == id_alumno and (not familiares_ids or link[1] in familiares_ids)
        }
        self.store.links -= doomed
        return len(doomed)

    def list_recent(self, since: date) -> Sequence[dict]:
        rows = [
            {"id_alumno": aid, "nombre_alumno": r["nombre_alumno"], "fecha_ingreso": r.get("fecha_ingreso")}
            for aid, r in self.store.alumnos.items()
            if r.get("fecha_ingreso") and r["fecha_ingreso"] >= since
        ]
        return sorted(rows, key=lambda r: r["fecha_ingreso"], reverse=True)

    def count_distinct_grados(self) -> int:
        return len({r["id_grado"] for r in self.store.alumnos.values() if r.get("id_grado") is not None})

    def links_for(self, id_alumno: int) -> set[int]:
        return {fid for aid, fid in self.store.links if aid == id_alumno}


class InMemoryUsuarios:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_email(self, email: str) -> Optional[Usuario]:
        for uid, row in self.store.usuarios.items():
            if row["email"] == email:
                return Usuario(id_usuario=uid, email=row["email"], nombre=row["nombre"], password_hash=row["password_hash"])
        return None

    def create(self, *, email: str, nombre: str, password_hash: str) -> int:
        uid = self.store.next_id("usuario")
        self.store.usuarios[uid] = {"email": email, "nombre": nombre, "password_hash": password_hash}
        return uid


class InMemorySesiones:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, *, token: str, id_usuario: int, expires_at: datetime, remember: bool = False) -> None:
        self.store.sesiones[token] = {"id_usuario": id_usuario, "expires_at": expires_at, "remember": remember}

    def get(self, token: str) -> Optional[AuthSession]:
        row = self.store.sesiones.get(token)
        if not row:
            return None
        user = self.store.usuarios[row["id_usuario"]]
        return AuthSession(
            token=token,
            id_usuario=row["id_usuario"],
            email=user["email"],
            nombre=user["nombre"],
            expires_at=row["expires_at"],
            remember=row["remember"],
        )

    def extend(self, token: str, *, expires_at: datetime) -> bool:
        if token not in self.store.sesiones:
            return False
        self.store.sesiones[token]["expires_at"] = expires_at
        return True

    def delete(self, token: str) -> bool:
        return self.store.sesiones.pop(token, None) is not None

    def delete_expired(self, now: datetime) -> int:
        expired = [t for t, r in self.store.sesiones.items() if r["expires_at"] <= now]
        for t in expired:
            del self.store.sesiones[t]
        return len(expired)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def familiares_repo(store) -> InMemoryFamiliares:
    return InMemoryFamiliares(store)


@pytest.fixture
def gastos_repo(store) -> InMemoryGastos:
    return InMemoryGastos(store)


@pytest.fixture
def grados_repo(store) -> InMemoryGrados:
    return InMemoryGrados(store)


@pytest.fixture
def alumnos_repo(store) -> InMemoryAlumnos:
    return InMemoryAlumnos(store)


@pytest.fixture
def familiar_service(familiares_repo, gastos_repo) -> FamiliarService:
    return FamiliarService(familiares_repo, gastos_repo)


@pytest.fixture
def grado_service(grados_repo) -> GradoService:
    return GradoService(grados_repo)


@pytest.fixture
def alumno_service(alumnos_repo, familiares_repo, grados_repo) -> AlumnoService:
    return AlumnoService(alumnos_repo, familiares_repo, grados_repo)


@pytest.fixture
def auth_service(store) -> AuthService:
    return AuthService(InMemoryUsuarios(store), InMemorySesiones(store), session_hours=12)


@pytest.fixture
def demo_user(store) -> dict:
    store.usuarios[store.next_id("usuario")] = {
        "email": "demo@example.com",
        "nombre": "Demo User",
        "password_hash": generate_password_hash("password"),
    }
    return {"email": "demo@example.com", "password": "password"}


@pytest.fixture
def container(auth_service, alumno_service, familiar_service, grado_service) -> Container:
    return Container(
        auth_service=auth_service,
        alumno_service=alumno_service,
        familiar_service=familiar_service,
        grado_service=grado_service,
        dashboard_service=DashboardService(alumno_service, familiar_service, grado_service),
    )


@pytest.fixture
def app(monkeypatch, container):
    from src.registro_alumnos.registro_alumnos.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(client, demo_user) -> dict:
    resp = client.post("/api/auth/login", json=demo_user)
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}
