from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.errors import wrap_backend_errors
from ..common.numbers import round_half_up
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_amount, optional_int, optional_text, require_amount, require_non_empty
from ..core.constants import RECENT_ROWS_LIMIT
from ..core.exceptions import NotFoundError, ValidationError
from .model import AlumnoRef, Familiar, FamiliarFilters, FamiliarStats, Gasto
from .repository import FamiliarRepository, GastoRepository


def _familiar_values(data: Mapping[str, Any], *, partial: bool) -> dict:
    values: dict = {}
    if not partial or "nombre_familiar" in data:
        values["nombre_familiar"] = require_non_empty(data.get("nombre_familiar", ""), "Nombre del familiar")
    if "edad_familiar" in data:
        values["edad_familiar"] = optional_int(data.get("edad_familiar"), "Edad del familiar", min_value=0)
    if "parentesco_familiar" in data:
        values["parentesco_familiar"] = optional_text(data.get("parentesco_familiar"))
    if "ingreso_familiar" in data:
        values["ingreso_familiar"] = optional_amount(data.get("ingreso_familiar"), "Ingreso familiar")
    return values


def _gasto_values(data: Mapping[str, Any], *, partial: bool) -> dict:
    values: dict = {}
    if not partial or "nombre_gasto" in data:
        values["nombre_gasto"] = require_non_empty(data.get("nombre_gasto", ""), "Nombre del gasto")
    if not partial or "cantidad_gasto" in data:
        values["cantidad_gasto"] = require_amount(data.get("cantidad_gasto"), "Cantidad del gasto")
    if not partial or "id_familiar" in data:
        id_familiar = optional_int(data.get("id_familiar"), "Familiar", min_value=1)
        if id_familiar is None:
            raise ValidationError("El gasto debe pertenecer a un familiar")
        values["id_familiar"] = id_familiar
    return values


class FamiliarService:
    """Use cases for familiares and their gastos."""

    def __init__(self, familiares: FamiliarRepository, gastos: GastoRepository):
        self._familiares = familiares
        self._gastos = gastos

    @wrap_backend_errors("Error al obtener los familiares")
    def get_familiares(self, filters: Optional[FamiliarFilters] = None, page: int = 1, page_size: int = 10) -> Page[Familiar]:
        filters = filters or FamiliarFilters()
        req = PageRequest.of(page, page_size)
        total = self._familiares.count(filters)
        items = self._familiares.list_page(filters, offset=req.offset, limit=req.limit)
        return Page(items=list(items), total=total, page=req.page, page_size=req.page_size)

    @wrap_backend_errors("Error al obtener el familiar")
    def get_familiar_by_id(self, id_familiar: int) -> Optional[Familiar]:
        return self._familiares.get_by_id(int(id_familiar))

    @wrap_backend_errors("Error al obtener los familiares")
    def get_all_familiares(self) -> Sequence[Familiar]:
        return self._familiares.list_all()

    @wrap_backend_errors("Error al crear el familiar")
    def create_familiar(self, data: Mapping[str, Any]) -> Familiar:
        new_id = self._familiares.create(_familiar_values(data, partial=False))
        created = self._familiares.get_by_id(new_id)
        if created is None:
            raise NotFoundError("El familiar creado no se encontró")
        return created

    @wrap_backend_errors("Error al actualizar el familiar")
    def update_familiar(self, id_familiar: int, data: Mapping[str, Any]) -> Familiar:
        fid = int(id_familiar)
        if self._familiares.get_by_id(fid) is None:
            raise NotFoundError("Familiar no encontrado")
        self._familiares.update(fid, _familiar_values(data, partial=True))
        return self._familiares.get_by_id(fid)

    @wrap_backend_errors("Error al eliminar el familiar")
    def delete_familiar(self, id_familiar: int) -> None:
        """Delete the familiar with its gastos and student links (one transaction).

        Students keep existing even if this leaves them without family members.
        """
        if not self._familiares.delete_cascade(int(id_familiar)):
            raise NotFoundError("Familiar no encontrado")

    @wrap_backend_errors("Error al obtener los alumnos del familiar")
    def get_students_by_familiar(self, id_familiar: int) -> Sequence[AlumnoRef]:
        return self._familiares.list_alumnos(int(id_familiar))

    # --- Gastos ---------------------------------------------------------

    @wrap_backend_errors("Error al obtener los gastos")
    def get_gastos(self) -> Sequence[Gasto]:
        return self._gastos.list_all()

    @wrap_backend_errors("Error al obtener los gastos")
    def get_gastos_by_familiar(self, id_familiar: int) -> Sequence[Gasto]:
        return self._gastos.list_for_familiar(int(id_familiar))

    @wrap_backend_errors("Error al crear el gasto")
    def create_gasto(self, data: Mapping[str, Any]) -> Gasto:
        values = _gasto_values(data, partial=False)
        if not self._familiares.existing_ids([values["id_familiar"]]):
            raise ValidationError("El familiar del gasto no existe")
        return self._gastos.get_by_id(self._gastos.create(values))

    @wrap_backend_errors("Error al actualizar el gasto")
    def update_gasto(self, id_gasto: int, data: Mapping[str, Any]) -> Gasto:
        gid = int(id_gasto)
        if self._gastos.get_by_id(gid) is None:
            raise NotFoundError("Gasto no encontrado")
        values = _gasto_values(data, partial=True)
        if "id_familiar" in values and not self._familiares.existing_ids([values["id_familiar"]]):
            raise ValidationError("El familiar del gasto no existe")
        self._gastos.update(gid, values)
        return self._gastos.get_by_id(gid)

    @wrap_backend_errors("Error al eliminar el gasto")
    def delete_gasto(self, id_gasto: int) -> None:
        if not self._gastos.delete(int(id_gasto)):
            raise NotFoundError("Gasto no encontrado")

    # --- Estadísticas ---------------------------------------------------

    @wrap_backend_errors("Error al calcular las estadísticas de familiares")
    def get_familiar_stats(self) -> FamiliarStats:
        total = self._familiares.count(FamiliarFilters())
        incomes = [i for i in self._familiares.list_ingresos() if i and i > 0]
        average = round_half_up(sum(incomes) / len(incomes)) if incomes else 0
        relationships = {
            p.strip().lower() for p in self._familiares.list_parentescos() if p and p.strip()
        }

        return FamiliarStats(
            total_familiares=total,
            with_income=len(incomes),
            with_expenses=self._familiares.count_with_gastos(),
            average_income=average,
            unique_relationships=len(relationships),
            recent_familiares=list(self._familiares.recent(RECENT_ROWS_LIMIT)),
        )

    @wrap_backend_errors("Error al obtener los parentescos")
    def get_unique_relationships(self) -> list[str]:
        return sorted({p.strip() for p in self._familiares.list_parentescos() if p and p.strip()})
