from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import AlumnoRef, Familiar, FamiliarFilters, Gasto


class FamiliarRepository(Protocol):
    """Interfaz del repositorio de familiares.

    Nota (DIP): el servicio depende de esta interfaz, no de MySQL.
    """

    def count(self, filters: FamiliarFilters) -> int:
        raise NotImplementedError

    def list_page(self, filters: FamiliarFilters, *, offset: int, limit: int) -> Sequence[Familiar]:
        """Familiares con gastos, ordenados por nombre ascendente."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Familiar]:
        raise NotImplementedError

    def get_by_id(self, id_familiar: int) -> Optional[Familiar]:
        """Familiar con gastos y alumnos asociados, o None."""

        raise NotImplementedError

    def existing_ids(self, ids: Iterable[int]) -> set[int]:
        raise NotImplementedError

    def create(self, values: dict) -> int:
        raise NotImplementedError

    def update(self, id_familiar: int, values: dict) -> None:
        raise NotImplementedError

    def delete_cascade(self, id_familiar: int) -> bool:
        """Delete gastos, associations and primary references, then the familiar.

        Runs as a single transaction. Returns False if the familiar did not exist.
        """

        raise NotImplementedError

    def list_alumnos(self, id_familiar: int) -> Sequence[AlumnoRef]:
        raise NotImplementedError

    def list_ingresos(self) -> Sequence[float]:
        raise NotImplementedError

    def list_parentescos(self) -> Sequence[str]:
        raise NotImplementedError

    def count_with_gastos(self) -> int:
        raise NotImplementedError

    def recent(self, limit: int) -> Sequence[dict]:
        raise NotImplementedError


class GastoRepository(Protocol):
    def list_all(self) -> Sequence[Gasto]:
        raise NotImplementedError

    def list_for_familiar(self, id_familiar: int) -> Sequence[Gasto]:
        raise NotImplementedError

    def get_by_id(self, id_gasto: int) -> Optional[Gasto]:
        raise NotImplementedError

    def create(self, values: dict) -> int:
        raise NotImplementedError

    def update(self, id_gasto: int, values: dict) -> None:
        raise NotImplementedError

    def delete(self, id_gasto: int) -> bool:
        raise NotImplementedError
