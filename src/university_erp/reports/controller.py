from __future__ import annotations

from flask import Flask

from ..common.web import ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    @app.route("/api/reports/academic", methods=["GET"], endpoint="reports_academic")
    @roles_required(Role.ADMIN, Role.STAFF)
    def academic_report():
        return ok(service.build_academic_report())

    @app.route("/api/reports/financial", methods=["GET"], endpoint="reports_financial")
    @roles_required(Role.ADMIN)
    def financial_report():
        return ok(service.build_financial_report())
