from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

from .model import Alumno

EXPORT_COLUMNS = [
    "ID",
    "Nombre",
    "Edad",
    "Fecha de nacimiento",
    "Grado",
    "Fecha de ingreso",
    "Situación actual",
    "Familiar principal",
    "Ingreso familiar",
]


def students_frame(students: Sequence[Alumno]) -> pd.DataFrame:
    rows = [
        (
            a.id_alumno,
            a.nombre_alumno,
            a.edad_alumno,
            a.fecha_nacimiento,
            a.nombre_grado or "",
            a.fecha_ingreso,
            a.situacion_actual or "",
            a.familiar.nombre_familiar if a.familiar else "",
            a.familiar.ingreso_familiar if a.familiar else None,
        )
        for a in students
    ]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    for col in ("Fecha de nacimiento", "Fecha de ingreso"):
        df[col] = pd.to_datetime(df[col]).dt.strftime("%d/%m/%Y").fillna("")
    return df


def export_students_xlsx(students: Sequence[Alumno]) -> bytes:
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        students_frame(students).to_excel(writer, index=False, sheet_name="Alumnos")
    return out.getvalue()
