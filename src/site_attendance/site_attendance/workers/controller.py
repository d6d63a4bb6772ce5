from __future__ import annotations

from flask import Flask, request, session

from ..attendance.events import LoginObserved
from ..attendance.model import record_to_dict
from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, location_from, ok
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def api_login():
        data = json_body()
        worker = container.identity_service.authenticate(data.get("name", ""), str(data.get("pin", "")))

        session["worker_id"] = worker.worker_id
        session["name"] = worker.canonical_name
        session["role"] = worker.role.value

        payload = {
            "worker": {
                "id": worker.worker_id,
                "name": worker.canonical_name,
                "role": worker.role.value,
            },
            "attendance": None,
        }
        # Only field workers are tracked; foremen and supervisors just log in.
        if worker.role == Role.WORKER:
            record = container.attendance_service.reconcile(
                LoginObserved(
                    worker_id=worker.worker_id,
                    occurred_at=container.clock.now(),
                    location=location_from(data),
                )
            )
            payload["attendance"] = record_to_dict(record)
        return ok(payload)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return ok()

    @app.route("/api/workers/signed-in", methods=["GET"], endpoint="api_signed_in_workers")
    def api_signed_in_workers():
        day_s = request.args.get("date")
        day = parse_iso_date(day_s) if day_s else None
        project = (request.args.get("project") or "").strip() or None
        workers = container.attendance_service.signed_in_workers(day, project=project)
        return ok({"workers": workers, "count": len(workers)})

    @app.route("/api/workers/<name>", methods=["GET"], endpoint="api_resolve_worker")
    def api_resolve_worker(name: str):
        worker = container.identity_service.resolve_worker(name)
        return ok({"worker": {"id": worker.worker_id, "name": worker.canonical_name, "role": worker.role.value}})
