from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, location_from, ok
from ..common.validators import require_non_empty, require_positive_int
from ..container import Container
from .events import ManualToggle, SignedIn, SignedOut
from .model import record_to_dict


def register(app: Flask, container: Container) -> None:
    def _worker_id_from(data: dict) -> int:
        """Accept either a worker id or a typed name (resolved case-insensitively)."""

        if data.get("worker_id") not in (None, ""):
            return container.identity_service.get_worker(require_positive_int(data["worker_id"], "Worker id")).worker_id
        name = data.get("worker_name") or data.get("name")
        return container.identity_service.resolve_worker(name).worker_id

    def _backfill_date(data: dict):
        if not data.get("backfill"):
            return None, False
        return parse_iso_date(require_non_empty(data.get("date"), "Date")), True

    @app.route("/api/worker/signin", methods=["POST"], endpoint="api_worker_signin")
    def api_worker_signin():
        data = json_body()
        worker_id = _worker_id_from(data)
        work_date, backfill = _backfill_date(data)
        record = container.attendance_service.reconcile(
            SignedIn(
                worker_id=worker_id,
                project=require_non_empty(data.get("project"), "Project"),
                occurred_at=container.clock.now(),
                location=location_from(data),
                work_date=work_date,
                backfill=backfill,
            )
        )
        return ok({"message": "Signed in", "attendance": record_to_dict(record)}, 201)

    @app.route("/api/worker/signout", methods=["POST"], endpoint="api_worker_signout")
    def api_worker_signout():
        data = json_body()
        worker_id = _worker_id_from(data)
        work_date, backfill = _backfill_date(data)
        record = container.attendance_service.reconcile(
            SignedOut(
                worker_id=worker_id,
                occurred_at=container.clock.now(),
                location=location_from(data),
                work_date=work_date,
                backfill=backfill,
            )
        )
        return ok({"message": "Signed out", "attendance": record_to_dict(record)})

    @app.route("/api/attendance/toggle", methods=["POST"], endpoint="api_attendance_toggle")
    def api_attendance_toggle():
        data = json_body()
        record = container.attendance_service.reconcile(
            ManualToggle(
                worker_id=_worker_id_from(data),
                work_date=parse_iso_date(require_non_empty(data.get("date"), "Date")),
                occurred_at=container.clock.now(),
            )
        )
        return ok({"attendance": record_to_dict(record)})

    @app.route("/api/attendance/vacation", methods=["POST"], endpoint="api_attendance_vacation")
    def api_attendance_vacation():
        """Mark one day (``date``) or a whole period (``start_date``..``end_date``)."""

        data = json_body()
        worker_id = _worker_id_from(data)
        notes = data.get("notes")

        if data.get("date"):
            start = end = parse_iso_date(data["date"])
        else:
            start = parse_iso_date(require_non_empty(data.get("start_date"), "Start date"))
            end = parse_iso_date(require_non_empty(data.get("end_date"), "End date"))
            container.vacation_service.create_period(worker_id=worker_id, start_date=start, end_date=end, notes=notes)

        report = container.attendance_service.mark_vacation(worker_id, start_date=start, end_date=end, notes=notes)
        return ok(
            {
                "success": report.ok,
                "attendance": [record_to_dict(r) for r in report.records],
                "days": len(report.records),
                "failed_days": {d.isoformat(): msg for d, msg in report.failures.items()},
            },
            200 if report.ok else 207,
        )

    @app.route("/api/worker/<int:worker_id>/sessions", methods=["GET"], endpoint="api_worker_sessions")
    def api_worker_sessions(worker_id: int):
        day_s = request.args.get("date")
        sessions = container.attendance_service.session_history(
            worker_id, work_date=parse_iso_date(day_s) if day_s else None
        )
        return ok({"sessions": [s.to_dict() for s in sessions], "count": len(sessions)})

    @app.route("/api/attendance/vacations", methods=["GET"], endpoint="api_attendance_vacations")
    def api_attendance_vacations():
        worker_id = require_positive_int(request.args.get("worker_id"), "Worker id")
        periods = container.vacation_service.list_for_worker(worker_id)
        return ok({"vacations": [p.to_dict() for p in periods]})

    @app.route("/api/attendance/<day>", methods=["GET"], endpoint="api_attendance_roster")
    def api_attendance_roster(day: str):
        work_date = parse_iso_date(day)
        rows = container.attendance_service.roster(work_date)
        return ok({"date": work_date.isoformat(), "attendance": [r.to_dict() for r in rows]})

    @app.route("/api/attendance/worker/<int:worker_id>", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history(worker_id: int):
        end_s = request.args.get("end")
        end = parse_iso_date(end_s) if end_s else container.clock.today()
        start_s = request.args.get("start")
        start = parse_iso_date(start_s) if start_s else end.replace(day=1)
        records = container.attendance_service.history(worker_id, start_date=start, end_date=end)
        return ok({"attendance": [record_to_dict(r) for r in records]})

    @app.route("/api/attendance/repair", methods=["POST"], endpoint="api_attendance_repair")
    def api_attendance_repair():
        data = json_body()
        day_s = data.get("date") or request.args.get("date")
        work_date = parse_iso_date(day_s) if day_s else container.clock.today()
        report = container.attendance_service.repair_from_sign_ins(work_date)
        return ok(report.to_dict())

    @app.route("/api/auto-signout", methods=["POST"], endpoint="api_auto_signout")
    def api_auto_signout():
        """Trigger for an external scheduler; closes yesterday's open sessions."""

        data = json_body()
        as_of_s = data.get("as_of") or request.args.get("as_of")
        report = container.sweep_service.sweep(parse_iso_date(as_of_s) if as_of_s else None)
        return ok({**report.to_dict(), "success": report.ok}, 200 if report.ok else 207)
