from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, optional_date
from ..common.errors import wrap_backend_errors
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, optional_text, require_non_empty, unique_ids
from ..core.constants import RECENT_ENROLLMENT_DAYS, SITUACION_ACTIVO
from ..core.exceptions import NotFoundError, ValidationError
from ..familiares.model import Familiar
from ..familiares.repository import FamiliarRepository
from ..grados.repository import GradoRepository
from .model import Alumno, StudentFilters, StudentStats
from .repository import AlumnoRepository

_TEXT_FIELDS = ("motivo_ingreso", "situacion_familiar", "situacion_actual")


class AlumnoService:
    """Use cases for alumnos, including the alumno ↔ familiar association workflow.

    Student row and association rows are written by one repository call, in one
    transaction.
    """

    def __init__(self, alumnos: AlumnoRepository, familiares: FamiliarRepository, grados: GradoRepository):
        self._alumnos = alumnos
        self._familiares = familiares
        self._grados = grados

    # --- Validación -----------------------------------------------------

    def _alumno_values(self, data: Mapping[str, Any], *, partial: bool) -> dict:
        values: dict = {}
        if not partial or "nombre_alumno" in data:
            values["nombre_alumno"] = require_non_empty(data.get("nombre_alumno", ""), "Nombre del alumno")
        if "edad_alumno" in data:
            values["edad_alumno"] = optional_int(data.get("edad_alumno"), "Edad del alumno", min_value=0)
        if "fecha_nacimiento" in data:
            values["fecha_nacimiento"] = optional_date(data.get("fecha_nacimiento"), "Fecha de nacimiento")
        if "fecha_ingreso" in data:
            values["fecha_ingreso"] = optional_date(data.get("fecha_ingreso"), "Fecha de ingreso")
        for name in _TEXT_FIELDS:
            if name in data:
                values[name] = optional_text(data.get(name))

        if "id_grado" in data:
            id_grado = optional_int(data.get("id_grado"), "Grado", min_value=1)
            if id_grado is not None and self._grados.get_by_id(id_grado) is None:
                raise ValidationError("El grado seleccionado no existe")
            values["id_grado"] = id_grado

        if "id_familiar" in data:
            id_familiar = optional_int(data.get("id_familiar"), "Familiar principal", min_value=1)
            if id_familiar is not None and not self._familiares.existing_ids([id_familiar]):
                raise ValidationError("El familiar principal no existe")
            values["id_familiar"] = id_familiar

        return values

    @staticmethod
    def _id_list(raw: Any, field_name: str = "familiares_ids") -> list[int]:
        if raw is None:
            return []
        if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Iterable):
            raise ValidationError(f"{field_name} debe ser una lista")
        return unique_ids(raw, field_name)

    def _checked_familiares_ids(self, raw: Any) -> list[int]:
        ids = self._id_list(raw)
        missing = sorted(set(ids) - self._familiares.existing_ids(ids))
        if missing:
            raise ValidationError(f"Familiares inexistentes: {', '.join(str(m) for m in missing)}")
        return ids

    def _require_student(self, id_alumno: int) -> Alumno:
        alumno = self._alumnos.get_by_id(int(id_alumno))
        if alumno is None:
            raise NotFoundError("Alumno no encontrado")
        return alumno

    # --- Consultas ------------------------------------------------------

    @wrap_backend_errors("Error al obtener los alumnos")
    def get_students(self, filters: Optional[StudentFilters] = None, page: int = 1, page_size: int = 10) -> Page[Alumno]:
        filters = filters or StudentFilters()
        req = PageRequest.of(page, page_size)
        total = self._alumnos.count(filters)
        items = self._alumnos.list_page(filters, offset=req.offset, limit=req.limit)
        return Page(items=list(items), total=total, page=req.page, page_size=req.page_size)

    @wrap_backend_errors("Error al obtener el alumno")
    def get_student_by_id(self, id_alumno: int) -> Optional[Alumno]:
        return self._alumnos.get_by_id(int(id_alumno))

    @wrap_backend_errors("Error al exportar los alumnos")
    def list_for_export(self, filters: Optional[StudentFilters] = None) -> Sequence[Alumno]:
        return self._alumnos.list_all(filters or StudentFilters())

    @wrap_backend_errors("Error al obtener los familiares")
    def get_all_familiares(self) -> Sequence[Familiar]:
        return self._familiares.list_all()

    # --- Escritura y asociaciones ---------------------------------------

    @wrap_backend_errors("Error al crear el alumno")
    def create_student(self, data: Mapping[str, Any]) -> Alumno:
        values = self._alumno_values(data, partial=False)
        familiares_ids = self._checked_familiares_ids(data.get("familiares_ids"))
        if not familiares_ids:
            raise ValidationError("Debe asociar al menos un familiar al alumno")

        new_id = self._alumnos.create_with_familiares(values, familiares_ids)
        return self._require_student(new_id)

    @wrap_backend_errors("Error al actualizar el alumno")
    def update_student(self, id_alumno: int, data: Mapping[str, Any]) -> Alumno:
        """Update columns; a `familiares_ids` key (even []) replaces the whole association set."""
        aid = int(id_alumno)
        self._require_student(aid)

        values = self._alumno_values(data, partial=True)
        familiares_ids = None
        if "familiares_ids" in data:
            familiares_ids = self._checked_familiares_ids(data.get("familiares_ids"))

        self._alumnos.update_with_familiares(aid, values, familiares_ids)
        return self._require_student(aid)

    @wrap_backend_errors("Error al eliminar el alumno")
    def delete_student(self, id_alumno: int) -> None:
        if not self._alumnos.delete(int(id_alumno)):
            raise NotFoundError("Alumno no encontrado")

    @wrap_backend_errors("Error al asociar familiares al alumno")
    def associate_familiares_to_student(self, id_alumno: int, familiares_ids: Sequence[int]) -> None:
        self._require_student(id_alumno)
        ids = self._checked_familiares_ids(familiares_ids)
        if ids:
            self._alumnos.add_familiares(int(id_alumno), ids)

    def associate_student_with_familiar(self, id_alumno: int, id_familiar: int) -> None:
        self.associate_familiares_to_student(id_alumno, [id_familiar])

    @wrap_backend_errors("Error al quitar familiares del alumno")
    def remove_familiares_from_student(self, id_alumno: int, familiares_ids: Optional[Sequence[int]] = None) -> int:
        """Unlink the given familiares, or all of them when ids is None. Returns rows removed."""
        if familiares_ids is None:
            return self._alumnos.remove_familiares(int(id_alumno), None)
        ids = self._id_list(familiares_ids, "ids")
        if not ids:
            return 0
        return self._alumnos.remove_familiares(int(id_alumno), ids)

    def remove_student_familiar_association(self, id_alumno: int, id_familiar: int) -> int:
        return self.remove_familiares_from_student(id_alumno, [id_familiar])

    # --- Estadísticas ---------------------------------------------------

    @wrap_backend_errors("Error al calcular las estadísticas de alumnos")
    def get_student_stats(self, *, today: Optional[date] = None) -> StudentStats:
        today = today or now_local().date()
        recent = list(self._alumnos.list_recent(today - timedelta(days=RECENT_ENROLLMENT_DAYS)))
        return StudentStats(
            total_students=self._alumnos.count(StudentFilters()),
            active_students=self._alumnos.count(StudentFilters(situacion_actual=SITUACION_ACTIVO)),
            recent_students=len(recent),
            unique_grades=self._alumnos.count_distinct_grados(),
            recent_students_list=recent,
        )
