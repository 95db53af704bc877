from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..common.validators import optional_text


@dataclass(frozen=True)
class AlumnoEnGrado:
    id_alumno: int
    nombre_alumno: str
    edad_alumno: Optional[int] = None
    situacion_actual: Optional[str] = None


@dataclass(frozen=True)
class Grado:
    id_grado: int
    nombre_grado: str
    alumnos: tuple[AlumnoEnGrado, ...] = ()

    @property
    def total_alumnos(self) -> int:
        return len(self.alumnos)

    def to_dict(self) -> dict:
        return {
            "id_grado": self.id_grado,
            "nombre_grado": self.nombre_grado,
            "total_alumnos": self.total_alumnos,
            "alumnos": [
                {
                    "id_alumno": a.id_alumno,
                    "nombre_alumno": a.nombre_alumno,
                    "edad_alumno": a.edad_alumno,
                    "situacion_actual": a.situacion_actual,
                }
                for a in self.alumnos
            ],
        }


@dataclass(frozen=True)
class GradoFilters:
    search_term: Optional[str] = None
    has_students: Optional[bool] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "GradoFilters":
        has_students_s = (args.get("has_students") or "").strip().lower()
        has_students: Optional[bool] = None
        if has_students_s in {"1", "true", "si", "yes"}:
            has_students = True
        elif has_students_s in {"0", "false", "no"}:
            has_students = False
        return cls(search_term=optional_text(args.get("search")), has_students=has_students)


@dataclass(frozen=True)
class GradoCount:
    id_grado: int
    nombre_grado: str
    student_count: int


@dataclass(frozen=True)
class GradoStats:
    total_grados: int
    grados_with_students: int
    total_students_in_grados: int
    average_students_per_grado: int
    most_popular_grado: Optional[GradoCount] = None
    recent_grados: list[dict] = field(default_factory=list)
