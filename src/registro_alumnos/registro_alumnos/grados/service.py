from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.errors import wrap_backend_errors
from ..common.numbers import round_half_up
from ..common.pagination import Page, PageRequest
from ..common.validators import require_non_empty
from ..core.constants import RECENT_ROWS_LIMIT
from ..core.exceptions import NotFoundError, ValidationError
from .model import AlumnoEnGrado, Grado, GradoFilters, GradoStats
from .repository import GradoRepository


class GradoService:
    def __init__(self, grados: GradoRepository):
        self._grados = grados

    @wrap_backend_errors("Error al obtener los grados")
    def get_grados(self, filters: Optional[GradoFilters] = None, page: int = 1, page_size: int = 10) -> Page[Grado]:
        filters = filters or GradoFilters()
        req = PageRequest.of(page, page_size)
        total = self._grados.count(filters)
        items = self._grados.list_page(filters, offset=req.offset, limit=req.limit)
        return Page(items=list(items), total=total, page=req.page, page_size=req.page_size)

    @wrap_backend_errors("Error al obtener el grado")
    def get_grado_by_id(self, id_grado: int) -> Optional[Grado]:
        return self._grados.get_by_id(int(id_grado))

    @wrap_backend_errors("Error al obtener los grados")
    def get_all_grados(self) -> Sequence[Grado]:
        return self._grados.list_all()

    @wrap_backend_errors("Error al crear el grado")
    def create_grado(self, data: Mapping[str, Any]) -> Grado:
        nombre = require_non_empty(data.get("nombre_grado", ""), "Nombre del grado")
        return self._grados.get_by_id(self._grados.create(nombre))

    @wrap_backend_errors("Error al actualizar el grado")
    def update_grado(self, id_grado: int, data: Mapping[str, Any]) -> Grado:
        gid = int(id_grado)
        if self._grados.get_by_id(gid) is None:
            raise NotFoundError("Grado no encontrado")
        if "nombre_grado" in data:
            self._grados.update(gid, require_non_empty(data.get("nombre_grado", ""), "Nombre del grado"))
        return self._grados.get_by_id(gid)

    @wrap_backend_errors("Error al eliminar el grado")
    def delete_grado(self, id_grado: int) -> None:
        """Delete a grado unless students are assigned to it.

        The delete is conditional on the grado having no students; the count is only
        read afterwards to build the refusal message.
        """
        gid = int(id_grado)
        if self._grados.delete_if_unused(gid):
            return

        count = self._grados.count_alumnos(gid)
        if count > 0:
            raise ValidationError(
                f"No se puede eliminar el grado porque tiene {count} estudiante(s) asignado(s)"
            )
        raise NotFoundError("Grado no encontrado")

    @wrap_backend_errors("Error al obtener los alumnos del grado")
    def get_students_by_grado(self, id_grado: int) -> Sequence[AlumnoEnGrado]:
        return self._grados.list_alumnos(int(id_grado))

    @wrap_backend_errors("Error al calcular las estadísticas de grados")
    def get_grado_stats(self) -> GradoStats:
        counts = list(self._grados.student_counts())
        total_grados = len(counts)
        total_students = sum(c.student_count for c in counts)
        with_students = [c for c in counts if c.student_count > 0]

        most_popular = None
        if with_students:
            # max() keeps the first of equal counts
            most_popular = max(with_students, key=lambda c: c.student_count)

        return GradoStats(
            total_grados=total_grados,
            grados_with_students=len(with_students),
            total_students_in_grados=total_students,
            average_students_per_grado=round_half_up(total_students / total_grados) if total_grados else 0,
            most_popular_grado=most_popular,
            recent_grados=list(self._grados.recent(RECENT_ROWS_LIMIT)),
        )
