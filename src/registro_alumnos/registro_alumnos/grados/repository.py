from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AlumnoEnGrado, Grado, GradoCount, GradoFilters


class GradoRepository(Protocol):
    def count(self, filters: GradoFilters) -> int:
        raise NotImplementedError

    def list_page(self, filters: GradoFilters, *, offset: int, limit: int) -> Sequence[Grado]:
        """Grados (with their students) ordered by name."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Grado]:
        raise NotImplementedError

    def get_by_id(self, id_grado: int) -> Optional[Grado]:
        raise NotImplementedError

    def create(self, nombre_grado: str) -> int:
        raise NotImplementedError

    def update(self, id_grado: int, nombre_grado: str) -> None:
        raise NotImplementedError

    def delete_if_unused(self, id_grado: int) -> bool:
        """Delete the grado only if no student references it, in a single statement.

        Returns False when nothing was deleted (missing grado or grado in use).
        """

        raise NotImplementedError

    def count_alumnos(self, id_grado: int) -> int:
        raise NotImplementedError

    def list_alumnos(self, id_grado: int) -> Sequence[AlumnoEnGrado]:
        raise NotImplementedError

    def student_counts(self) -> Sequence[GradoCount]:
        raise NotImplementedError

    def recent(self, limit: int) -> Sequence[dict]:
        raise NotImplementedError
