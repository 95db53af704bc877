from __future__ import annotations

from flask import Flask, request

from ..auth.controller import api_login_required
from ..common.web import fail, json_body, json_errors, ok, page_payload
from ..container import Container
from .model import FamiliarFilters


def register(app: Flask, container: Container) -> None:
    service = container.familiar_service

    @app.route("/api/familiares", methods=["GET"], endpoint="api_familiares_list")
    @api_login_required
    @json_errors
    def list_familiares():
        if request.args.get("all"):
            return ok(data=[f.to_dict() for f in service.get_all_familiares()])
        page = service.get_familiares(
            FamiliarFilters.from_args(request.args),
            page=request.args.get("page", 1),
            page_size=request.args.get("page_size", 10),
        )
        return ok(**page_payload(page, lambda f: f.to_dict()))

    @app.route("/api/familiares", methods=["POST"], endpoint="api_familiares_create")
    @api_login_required
    @json_errors
    def create_familiar():
        familiar = service.create_familiar(json_body())
        return ok(201, message="Familiar creado correctamente", data=familiar.to_dict())

    @app.route("/api/familiares/stats", methods=["GET"], endpoint="api_familiares_stats")
    @api_login_required
    @json_errors
    def familiares_stats():
        return ok(data=service.get_familiar_stats())

    @app.route("/api/familiares/parentescos", methods=["GET"], endpoint="api_familiares_parentescos")
    @api_login_required
    @json_errors
    def parentescos():
        return ok(data=service.get_unique_relationships())

    @app.route("/api/familiares/<int:id_familiar>", methods=["GET"], endpoint="api_familiares_get")
    @api_login_required
    @json_errors
    def get_familiar(id_familiar: int):
        familiar = service.get_familiar_by_id(id_familiar)
        if familiar is None:
            return fail("Familiar no encontrado", 404)
        return ok(data=familiar.to_dict())

    @app.route("/api/familiares/<int:id_familiar>", methods=["PUT"], endpoint="api_familiares_update")
    @api_login_required
    @json_errors
    def update_familiar(id_familiar: int):
        familiar = service.update_familiar(id_familiar, json_body())
        return ok(message="Familiar actualizado correctamente", data=familiar.to_dict())

    @app.route("/api/familiares/<int:id_familiar>", methods=["DELETE"], endpoint="api_familiares_delete")
    @api_login_required
    @json_errors
    def delete_familiar(id_familiar: int):
        service.delete_familiar(id_familiar)
        return ok(message="Familiar eliminado correctamente")

    @app.route("/api/familiares/<int:id_familiar>/alumnos", methods=["GET"], endpoint="api_familiares_alumnos")
    @api_login_required
    @json_errors
    def familiar_alumnos(id_familiar: int):
        return ok(data=service.get_students_by_familiar(id_familiar))

    @app.route("/api/gastos", methods=["GET"], endpoint="api_gastos_list")
    @api_login_required
    @json_errors
    def list_gastos():
        id_familiar = request.args.get("id_familiar", type=int)
        if id_familiar:
            return ok(data=service.get_gastos_by_familiar(id_familiar))
        return ok(data=service.get_gastos())

    @app.route("/api/gastos", methods=["POST"], endpoint="api_gastos_create")
    @api_login_required
    @json_errors
    def create_gasto():
        return ok(201, message="Gasto creado correctamente", data=service.create_gasto(json_body()))

    @app.route("/api/gastos/<int:id_gasto>", methods=["PUT"], endpoint="api_gastos_update")
    @api_login_required
    @json_errors
    def update_gasto(id_gasto: int):
        return ok(message="Gasto actualizado correctamente", data=service.update_gasto(id_gasto, json_body()))

    @app.route("/api/gastos/<int:id_gasto>", methods=["DELETE"], endpoint="api_gastos_delete")
    @api_login_required
    @json_errors
    def delete_gasto(id_gasto: int):
        service.delete_gasto(id_gasto)
        return ok(message="Gasto eliminado correctamente")
