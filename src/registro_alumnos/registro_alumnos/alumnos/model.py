from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from ..common.datetime_utils import optional_date
from ..common.validators import optional_int, optional_text
from ..familiares.model import Familiar


@dataclass(frozen=True)
class Alumno:
    """Entidad de dominio: Alumno.

    `familiar` es el familiar principal (opcional); `familiares` son los asociados por
    la tabla alumnoxfamiliar y solo se cargan en la vista de detalle.
    """

    id_alumno: int
    nombre_alumno: str
    edad_alumno: Optional[int] = None
    fecha_nacimiento: Optional[date] = None
    id_grado: Optional[int] = None
    fecha_ingreso: Optional[date] = None
    motivo_ingreso: Optional[str] = None
    situacion_familiar: Optional[str] = None
    situacion_actual: Optional[str] = None
    id_familiar: Optional[int] = None
    nombre_grado: Optional[str] = None
    familiar: Optional[Familiar] = None
    familiares: tuple[Familiar, ...] = ()

    @property
    def familiares_ids(self) -> list[int]:
        return [f.id_familiar for f in self.familiares]

    def to_dict(self) -> dict:
        return {
            "id_alumno": self.id_alumno,
            "nombre_alumno": self.nombre_alumno,
            "edad_alumno": self.edad_alumno,
            "fecha_nacimiento": self.fecha_nacimiento.isoformat() if self.fecha_nacimiento else None,
            "id_grado": self.id_grado,
            "nombre_grado": self.nombre_grado,
            "fecha_ingreso": self.fecha_ingreso.isoformat() if self.fecha_ingreso else None,
            "motivo_ingreso": self.motivo_ingreso,
            "situacion_familiar": self.situacion_familiar,
            "situacion_actual": self.situacion_actual,
            "id_familiar": self.id_familiar,
            "familiar": self.familiar.to_dict() if self.familiar else None,
            "familiares": [f.to_dict() for f in self.familiares],
            "familiares_ids": self.familiares_ids,
        }


@dataclass(frozen=True)
class StudentFilters:
    search_term: Optional[str] = None
    grado: Optional[int] = None
    situacion_actual: Optional[str] = None
    edad_min: Optional[int] = None
    edad_max: Optional[int] = None
    fecha_ingreso_desde: Optional[date] = None
    fecha_ingreso_hasta: Optional[date] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "StudentFilters":
        return cls(
            search_term=optional_text(args.get("search")),
            grado=optional_int(args.get("grado"), "Grado", min_value=1),
            situacion_actual=optional_text(args.get("situacion_actual")),
            edad_min=optional_int(args.get("edad_min"), "Edad mínima", min_value=0),
            edad_max=optional_int(args.get("edad_max"), "Edad máxima", min_value=0),
            fecha_ingreso_desde=optional_date(args.get("fecha_ingreso_desde"), "Fecha de ingreso desde"),
            fecha_ingreso_hasta=optional_date(args.get("fecha_ingreso_hasta"), "Fecha de ingreso hasta"),
        )


@dataclass(frozen=True)
class StudentStats:
    total_students: int
    active_students: int
    recent_students: int
    unique_grades: int
    recent_students_list: list[dict] = field(default_factory=list)
