from __future__ import annotations

import io
import re

from flask import Flask, request, send_file

from ..auth.controller import api_login_required
from ..common.datetime_utils import now_local
from ..common.web import fail, json_body, json_errors, ok, page_payload
from ..container import Container
from .export import export_students_xlsx
from .model import StudentFilters
from .report import build_financial_summary, render_student_pdf

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _slug(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_") or "alumno"


def register(app: Flask, container: Container) -> None:
    service = container.alumno_service

    @app.route("/api/alumnos", methods=["GET"], endpoint="api_alumnos_list")
    @api_login_required
    @json_errors
    def list_alumnos():
        page = service.get_students(
            StudentFilters.from_args(request.args),
            page=request.args.get("page", 1),
            page_size=request.args.get("page_size", 10),
        )
        return ok(**page_payload(page, lambda a: a.to_dict()))

    @app.route("/api/alumnos", methods=["POST"], endpoint="api_alumnos_create")
    @api_login_required
    @json_errors
    def create_alumno():
        alumno = service.create_student(json_body())
        return ok(201, message="Alumno creado correctamente", data=alumno.to_dict())

    @app.route("/api/alumnos/familiares", methods=["GET"], endpoint="api_alumnos_familiares_options")
    @api_login_required
    @json_errors
    def familiares_options():
        return ok(
            data=[
                {"id_familiar": f.id_familiar, "nombre_familiar": f.nombre_familiar, "parentesco_familiar": f.parentesco_familiar}
                for f in service.get_all_familiares()
            ]
        )

    @app.route("/api/alumnos/stats", methods=["GET"], endpoint="api_alumnos_stats")
    @api_login_required
    @json_errors
    def alumnos_stats():
        return ok(data=service.get_student_stats())

    @app.route("/api/alumnos/export", methods=["GET"], endpoint="api_alumnos_export")
    @api_login_required
    @json_errors
    def export_alumnos():
        students = service.list_for_export(StudentFilters.from_args(request.args))
        content = export_students_xlsx(students)
        filename = f"alumnos_{now_local().strftime('%Y%m%d')}.xlsx"
        return send_file(io.BytesIO(content), mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)

    @app.route("/api/alumnos/<int:id_alumno>", methods=["GET"], endpoint="api_alumnos_get")
    @api_login_required
    @json_errors
    def get_alumno(id_alumno: int):
        alumno = service.get_student_by_id(id_alumno)
        if alumno is None:
            return fail("Alumno no encontrado", 404)
        return ok(data=alumno.to_dict(), resumen_financiero=build_financial_summary(alumno).to_dict())

    @app.route("/api/alumnos/<int:id_alumno>", methods=["PUT"], endpoint="api_alumnos_update")
    @api_login_required
    @json_errors
    def update_alumno(id_alumno: int):
        alumno = service.update_student(id_alumno, json_body())
        return ok(message="Alumno actualizado correctamente", data=alumno.to_dict())

    @app.route("/api/alumnos/<int:id_alumno>", methods=["DELETE"], endpoint="api_alumnos_delete")
    @api_login_required
    @json_errors
    def delete_alumno(id_alumno: int):
        service.delete_student(id_alumno)
        return ok(message="Alumno eliminado correctamente")

    @app.route("/api/alumnos/<int:id_alumno>/familiares", methods=["POST"], endpoint="api_alumnos_add_familiares")
    @api_login_required
    @json_errors
    def add_familiares(id_alumno: int):
        service.associate_familiares_to_student(id_alumno, json_body().get("familiares_ids"))
        return ok(message="Familiares asociados correctamente")

    @app.route("/api/alumnos/<int:id_alumno>/familiares", methods=["DELETE"], endpoint="api_alumnos_remove_familiares")
    @api_login_required
    @json_errors
    def remove_familiares(id_alumno: int):
        data = request.get_json(silent=True)
        if isinstance(data, dict) and "ids" in data:
            ids = data["ids"]
        else:
            ids = request.args.getlist("ids") or None
        removed = service.remove_familiares_from_student(id_alumno, ids)
        return ok(message="Familiares desasociados correctamente", removed=removed)

    @app.route(
        "/api/alumnos/<int:id_alumno>/familiares/<int:id_familiar>",
        methods=["DELETE"],
        endpoint="api_alumnos_remove_familiar",
    )
    @api_login_required
    @json_errors
    def remove_familiar(id_alumno: int, id_familiar: int):
        removed = service.remove_student_familiar_association(id_alumno, id_familiar)
        if not removed:
            return fail("El familiar no está asociado al alumno", 404)
        return ok(message="Familiar desasociado correctamente", removed=removed)

    @app.route("/api/alumnos/<int:id_alumno>/pdf", methods=["GET"], endpoint="api_alumnos_pdf")
    @api_login_required
    @json_errors
    def alumno_pdf(id_alumno: int):
        alumno = service.get_student_by_id(id_alumno)
        if alumno is None:
            return fail("Alumno no encontrado", 404)
        content = render_student_pdf(alumno)
        return send_file(
            io.BytesIO(content),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=f"ficha_{_slug(alumno.nombre_alumno)}.pdf",
        )
