from __future__ import annotations

from flask import Flask, request

from ..auth.controller import api_login_required
from ..common.web import fail, json_body, json_errors, ok, page_payload
from ..container import Container
from .model import GradoFilters


def register(app: Flask, container: Container) -> None:
    service = container.grado_service

    @app.route("/api/grados", methods=["GET"], endpoint="api_grados_list")
    @api_login_required
    @json_errors
    def list_grados():
        page = service.get_grados(
            GradoFilters.from_args(request.args),
            page=request.args.get("page", 1),
            page_size=request.args.get("page_size", 10),
        )
        return ok(**page_payload(page, lambda g: g.to_dict()))

    @app.route("/api/grados/all", methods=["GET"], endpoint="api_grados_all")
    @api_login_required
    @json_errors
    def all_grados():
        return ok(data=[g.to_dict() for g in service.get_all_grados()])

    @app.route("/api/grados", methods=["POST"], endpoint="api_grados_create")
    @api_login_required
    @json_errors
    def create_grado():
        grado = service.create_grado(json_body())
        return ok(201, message="Grado creado correctamente", data=grado.to_dict())

    @app.route("/api/grados/stats", methods=["GET"], endpoint="api_grados_stats")
    @api_login_required
    @json_errors
    def grados_stats():
        return ok(data=service.get_grado_stats())

    @app.route("/api/grados/<int:id_grado>", methods=["GET"], endpoint="api_grados_get")
    @api_login_required
    @json_errors
    def get_grado(id_grado: int):
        grado = service.get_grado_by_id(id_grado)
        if grado is None:
            return fail("Grado no encontrado", 404)
        return ok(data=grado.to_dict())

    @app.route("/api/grados/<int:id_grado>", methods=["PUT"], endpoint="api_grados_update")
    @api_login_required
    @json_errors
    def update_grado(id_grado: int):
        grado = service.update_grado(id_grado, json_body())
        return ok(message="Grado actualizado correctamente", data=grado.to_dict())

    @app.route("/api/grados/<int:id_grado>", methods=["DELETE"], endpoint="api_grados_delete")
    @api_login_required
    @json_errors
    def delete_grado(id_grado: int):
        service.delete_grado(id_grado)
        return ok(message="Grado eliminado correctamente")

    @app.route("/api/grados/<int:id_grado>/alumnos", methods=["GET"], endpoint="api_grados_alumnos")
    @api_login_required
    @json_errors
    def grado_alumnos(id_grado: int):
        return ok(data=service.get_students_by_grado(id_grado))
