from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Alumno, StudentFilters


class AlumnoRepository(Protocol):
    """Interfaz del repositorio del alumno y de la tabla puente alumnoxfamiliar."""

    def count(self, filters: StudentFilters) -> int:
        raise NotImplementedError

    def list_page(self, filters: StudentFilters, *, offset: int, limit: int) -> Sequence[Alumno]:
        """Alumnos with grado name and primary familiar, newest fecha_ingreso first."""

        raise NotImplementedError

    def list_all(self, filters: StudentFilters) -> Sequence[Alumno]:
        raise NotImplementedError

    def get_by_id(self, id_alumno: int) -> Optional[Alumno]:
        """Alumno with primary familiar and every associated familiar (with gastos)."""

        raise NotImplementedError

    def create_with_familiares(self, values: dict, familiares_ids: Sequence[int]) -> int:
        """Insert the alumno and its association rows in one transaction."""

        raise NotImplementedError

    def update_with_familiares(
        self,
        id_alumno: int,
        values: dict,
        familiares_ids: Optional[Sequence[int]] = None,
    ) -> None:
        """Update columns and, when familiares_ids is not None, replace the association set.

        Both happen in one transaction.
        """

        raise NotImplementedError

    def delete(self, id_alumno: int) -> bool:
        raise NotImplementedError

    def add_familiares(self, id_alumno: int, familiares_ids: Sequence[int]) -> None:
        raise NotImplementedError

    def remove_familiares(self, id_alumno: int, familiares_ids: Optional[Sequence[int]] = None) -> int:
        raise NotImplementedError

    def list_recent(self, since: date) -> Sequence[dict]:
        raise NotImplementedError

    def count_distinct_grados(self) -> int:
        raise NotImplementedError
