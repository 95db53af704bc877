"""Ficha PDF del alumno (datos personales, académicos y familiares/financieros)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..common.datetime_utils import now_local
from ..familiares.model import Familiar
from .model import Alumno

NO_ESPECIFICADO = "No especificado"


@dataclass(frozen=True)
class FinancialSummary:
    miembros: int
    total_ingresos: float
    total_gastos: float

    @property
    def balance(self) -> float:
        return self.total_ingresos - self.total_gastos

    def to_dict(self) -> dict:
        return {
            "miembros": self.miembros,
            "total_ingresos": self.total_ingresos,
            "total_gastos": self.total_gastos,
            "balance": self.balance,
        }


def family_members(alumno: Alumno) -> list[Familiar]:
    """Primary familiar plus associated ones, each id once, primary first."""
    seen: set[int] = set()
    out: list[Familiar] = []
    candidates = ([alumno.familiar] if alumno.familiar else []) + list(alumno.familiares)
    for f in candidates:
        if f.id_familiar not in seen:
            seen.add(f.id_familiar)
            out.append(f)
    return out


def build_financial_summary(alumno: Alumno) -> FinancialSummary:
    members = family_members(alumno)
    return FinancialSummary(
        miembros=len(members),
        total_ingresos=sum(f.ingreso_familiar or 0.0 for f in members),
        total_gastos=sum(f.total_gastos for f in members),
    )


def _money(value: Optional[float]) -> str:
    if value is None:
        return NO_ESPECIFICADO
    return f"L {value:,.2f}"


def _fecha(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else NO_ESPECIFICADO


def _text(value: Optional[object]) -> str:
    return str(value) if value not in (None, "") else NO_ESPECIFICADO


def _section_table(rows: list[list[str]]) -> Table:
    table = Table(rows, colWidths=[5 * cm, 11 * cm])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#e5e7eb")),
            ]
        )
    )
    return table


def render_student_pdf(alumno: Alumno, *, generated_at: Optional[date] = None) -> bytes:
    generated_at = generated_at or now_local().date()
    styles = getSampleStyleSheet()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"Ficha - {alumno.nombre_alumno}",
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
    )

    elements: list = [
        Paragraph("Ficha del Alumno", styles["Title"]),
        Paragraph(alumno.nombre_alumno, styles["Heading3"]),
        Spacer(1, 0.4 * cm),
        Paragraph("Datos personales", styles["Heading2"]),
        _section_table(
            [
                ["Nombre", alumno.nombre_alumno],
                ["Edad", f"{alumno.edad_alumno} años" if alumno.edad_alumno is not None else NO_ESPECIFICADO],
                ["Fecha de nacimiento", _fecha(alumno.fecha_nacimiento)],
            ]
        ),
        Spacer(1, 0.4 * cm),
        Paragraph("Información académica", styles["Heading2"]),
        _section_table(
            [
                ["Grado", _text(alumno.nombre_grado)],
                ["Fecha de ingreso", _fecha(alumno.fecha_ingreso)],
                ["Motivo de ingreso", _text(alumno.motivo_ingreso)],
                ["Situación familiar", _text(alumno.situacion_familiar)],
                ["Situación actual", _text(alumno.situacion_actual)],
            ]
        ),
        Spacer(1, 0.4 * cm),
        Paragraph("Familiares", styles["Heading2"]),
    ]

    members = family_members(alumno)
    if not members:
        elements.append(Paragraph("Sin familiares registrados", styles["Italic"]))
    for f in members:
        rows = [
            ["Nombre", f.nombre_familiar],
            ["Parentesco", _text(f.parentesco_familiar)],
            ["Edad", _text(f.edad_familiar)],
            ["Ingreso mensual", _money(f.ingreso_familiar)],
        ]
        rows.extend([f"Gasto: {g.nombre_gasto}", _money(g.cantidad_gasto)] for g in f.gastos)
        elements.extend([_section_table(rows), Spacer(1, 0.3 * cm)])

    summary = build_financial_summary(alumno)
    elements.extend(
        [
            Paragraph("Resumen financiero", styles["Heading2"]),
            _section_table(
                [
                    ["Miembros", str(summary.miembros)],
                    ["Total ingresos", _money(summary.total_ingresos)],
                    ["Total gastos", _money(summary.total_gastos)],
                    ["Balance", _money(summary.balance)],
                ]
            ),
            Spacer(1, 0.6 * cm),
            Paragraph(f"Generado el {generated_at.strftime('%d/%m/%Y')}", styles["Normal"]),
        ]
    )

    doc.build(elements)
    return buffer.getvalue()
