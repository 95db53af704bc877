from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..common.validators import optional_amount, optional_text


@dataclass(frozen=True)
class Gasto:
    """Gasto mensual declarado por un familiar (nombre + monto)."""

    id_gasto: int
    nombre_gasto: str
    cantidad_gasto: float
    id_familiar: int


@dataclass(frozen=True)
class AlumnoRef:
    id_alumno: int
    nombre_alumno: str


@dataclass(frozen=True)
class Familiar:
    """Entidad de dominio: Familiar.

    `gastos` viene siempre cargado; `alumnos` solo en la vista de detalle.
    """

    id_familiar: int
    nombre_familiar: str
    edad_familiar: Optional[int] = None
    parentesco_familiar: Optional[str] = None
    ingreso_familiar: Optional[float] = None
    gastos: tuple[Gasto, ...] = ()
    alumnos: tuple[AlumnoRef, ...] = ()

    @property
    def total_gastos(self) -> float:
        return sum(g.cantidad_gasto for g in self.gastos)

    def to_dict(self) -> dict:
        return {
            "id_familiar": self.id_familiar,
            "nombre_familiar": self.nombre_familiar,
            "edad_familiar": self.edad_familiar,
            "parentesco_familiar": self.parentesco_familiar,
            "ingreso_familiar": self.ingreso_familiar,
            "gastos": [
                {"id_gasto": g.id_gasto, "nombre_gasto": g.nombre_gasto, "cantidad_gasto": g.cantidad_gasto}
                for g in self.gastos
            ],
            "total_gastos": self.total_gastos,
            "alumnos": [{"id_alumno": a.id_alumno, "nombre_alumno": a.nombre_alumno} for a in self.alumnos],
        }


@dataclass(frozen=True)
class FamiliarFilters:
    search_term: Optional[str] = None
    parentesco: Optional[str] = None
    ingreso_min: Optional[float] = None
    ingreso_max: Optional[float] = None
    has_gasto: Optional[bool] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "FamiliarFilters":
        has_gasto_s = (args.get("has_gasto") or "").strip().lower()
        has_gasto: Optional[bool] = None
        if has_gasto_s in {"1", "true", "si", "yes"}:
            has_gasto = True
        elif has_gasto_s in {"0", "false", "no"}:
            has_gasto = False

        return cls(
            search_term=optional_text(args.get("search")),
            parentesco=optional_text(args.get("parentesco")),
            ingreso_min=optional_amount(args.get("ingreso_min"), "Ingreso mínimo"),
            ingreso_max=optional_amount(args.get("ingreso_max"), "Ingreso máximo"),
            has_gasto=has_gasto,
        )


@dataclass(frozen=True)
class FamiliarStats:
    total_familiares: int
    with_income: int
    with_expenses: int
    average_income: int
    unique_relationships: int
    recent_familiares: list[dict] = field(default_factory=list)
