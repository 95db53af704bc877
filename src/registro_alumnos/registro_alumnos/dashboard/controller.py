from __future__ import annotations

from flask import Flask

from ..auth.controller import api_login_required
from ..common.web import json_errors, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard", methods=["GET"], endpoint="api_dashboard")
    @api_login_required
    @json_errors
    def dashboard():
        return ok(data=container.dashboard_service.summary())
