from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..alumnos.model import StudentStats
from ..alumnos.service import AlumnoService
from ..familiares.model import FamiliarStats
from ..familiares.service import FamiliarService
from ..grados.model import GradoStats
from ..grados.service import GradoService


@dataclass(frozen=True)
class DashboardSummary:
    alumnos: StudentStats
    familiares: FamiliarStats
    grados: GradoStats


class DashboardService:
    def __init__(self, alumnos: AlumnoService, familiares: FamiliarService, grados: GradoService):
        self._alumnos = alumnos
        self._familiares = familiares
        self._grados = grados

    def summary(self, *, today: Optional[date] = None) -> DashboardSummary:
        return DashboardSummary(
            alumnos=self._alumnos.get_student_stats(today=today),
            familiares=self._familiares.get_familiar_stats(),
            grados=self._grados.get_grado_stats(),
        )
