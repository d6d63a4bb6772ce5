from __future__ import annotations

from typing import Optional

from flask import Flask, request, session

from ..common.datetime_utils import parse_clock_time, parse_iso_date
from ..common.http import json_body, ok
from ..common.validators import require_non_empty, require_positive_int
from ..core.exceptions import ValidationError
from ..container import Container
from .hours import parse_break_minutes, week_number
from .service import NewTimesheet, TimesheetEdit


def register(app: Flask, container: Container) -> None:
    def _actor(data: dict, key: str) -> str:
        # Explicit reviewer name wins over the logged-in session.
        return require_non_empty(data.get(key) or session.get("name"), "Reviewer name")

    def _query_int(name: str, *, minimum: int = 1) -> Optional[int]:
        value = request.args.get(name)
        if value in (None, ""):
            return None
        try:
            n = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be an integer")
        if n < minimum:
            raise ValidationError(f"{name} must be at least {minimum}")
        return n

    @app.route("/api/timesheets", methods=["POST"], endpoint="api_timesheets_submit")
    def api_timesheets_submit():
        data = json_body()
        if data.get("worker_id") not in (None, ""):
            worker_id = require_positive_int(data["worker_id"], "Worker id")
        else:
            worker_id = container.identity_service.resolve_worker(data.get("worker_name")).worker_id

        entry = container.timesheet_service.submit(
            NewTimesheet(
                worker_id=worker_id,
                work_date=parse_iso_date(require_non_empty(data.get("date"), "Date")),
                start_time=parse_clock_time(data.get("start_time")),
                end_time=parse_clock_time(data.get("end_time")),
                break_minutes=parse_break_minutes(data.get("break_minutes")),
                project=data.get("project"),
                notes=data.get("notes"),
            )
        )
        return ok({"timesheet": entry.to_dict()}, 201)

    @app.route("/api/timesheets", methods=["GET"], endpoint="api_timesheets_list")
    def api_timesheets_list():
        entries = container.timesheet_service.list_entries(
            worker_id=_query_int("worker_id"),
            week=_query_int("week", minimum=0),
            year=_query_int("year"),
            limit=_query_int("limit") or container.timesheet_limit,
        )
        return ok({"timesheets": entries, "count": len(entries)})

    @app.route("/api/timesheets/weekly-summary", methods=["GET"], endpoint="api_timesheets_weekly_summary")
    def api_timesheets_weekly_summary():
        today = container.clock.today()
        week = _query_int("week", minimum=0)
        year = _query_int("year")
        if week is None:
            week = week_number(today)
        summary = container.timesheet_service.weekly_summary(week=week, year=year or today.year)
        return ok({"week": week, "year": year or today.year, "summary": summary})

    @app.route("/api/timesheets/<int:timesheet_id>/approve", methods=["PUT"], endpoint="api_timesheets_approve")
    def api_timesheets_approve(timesheet_id: int):
        data = json_body()
        entry = container.timesheet_service.approve(timesheet_id, approved_by=_actor(data, "approved_by"))
        return ok({"timesheet": entry.to_dict()})

    @app.route("/api/timesheets/<int:timesheet_id>/reject", methods=["PUT"], endpoint="api_timesheets_reject")
    def api_timesheets_reject(timesheet_id: int):
        data = json_body()
        entry = container.timesheet_service.reject(timesheet_id, rejected_by=_actor(data, "rejected_by"))
        return ok({"timesheet": entry.to_dict()})

    @app.route("/api/timesheets/<int:timesheet_id>/edit", methods=["PUT"], endpoint="api_timesheets_edit")
    def api_timesheets_edit(timesheet_id: int):
        data = json_body()
        changes = TimesheetEdit(
            start_time=parse_clock_time(data["start_time"]) if data.get("start_time") else None,
            end_time=parse_clock_time(data["end_time"]) if data.get("end_time") else None,
            break_minutes=parse_break_minutes(data["break_minutes"]) if "break_minutes" in data else None,
            notes=data.get("notes"),
        )
        entry = container.timesheet_service.edit(timesheet_id, changes, edited_by=_actor(data, "edited_by"))
        return ok({"timesheet": entry.to_dict()})

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["DELETE"], endpoint="api_timesheets_delete")
    def api_timesheets_delete(timesheet_id: int):
        entry = container.timesheet_service.delete(timesheet_id)
        return ok({"deleted": entry.timesheet_id})
