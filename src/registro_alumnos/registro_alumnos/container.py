from __future__ import annotations

from dataclasses import dataclass

from .alumnos.mysql_alumno_repository import MySQLAlumnoRepository
from .alumnos.service import AlumnoService
from .auth.mysql_sesion_repository import MySQLSesionRepository
from .auth.mysql_usuario_repository import MySQLUsuarioRepository
from .auth.service import AuthService
from .core.constants import DEFAULT_SESSION_HOURS
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .familiares.mysql_familiar_repository import MySQLFamiliarRepository
from .familiares.mysql_gasto_repository import MySQLGastoRepository
from .familiares.service import FamiliarService
from .grados.mysql_grado_repository import MySQLGradoRepository
from .grados.service import GradoService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    alumno_service: AlumnoService
    familiar_service: FamiliarService
    grado_service: GradoService
    dashboard_service: DashboardService


def build_container(*, db_config: dict, session_hours: int = DEFAULT_SESSION_HOURS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    usuarios_repo = MySQLUsuarioRepository(conn)
    sesiones_repo = MySQLSesionRepository(conn)
    alumnos_repo = MySQLAlumnoRepository(conn)
    familiares_repo = MySQLFamiliarRepository(conn)
    gastos_repo = MySQLGastoRepository(conn)
    grados_repo = MySQLGradoRepository(conn)

    alumno_service = AlumnoService(alumnos_repo, familiares_repo, grados_repo)
    familiar_service = FamiliarService(familiares_repo, gastos_repo)
    grado_service = GradoService(grados_repo)

    return Container(
        auth_service=AuthService(usuarios_repo, sesiones_repo, session_hours=session_hours),
        alumno_service=alumno_service,
        familiar_service=familiar_service,
        grado_service=grado_service,
        dashboard_service=DashboardService(alumno_service, familiar_service, grado_service),
    )
