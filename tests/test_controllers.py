from __future__ import annotations

from datetime import datetime, time

from site_attendance.core.exceptions import StorageUnavailable

from conftest import ANA, AUGUSTO


def test_login_marks_worker_present(client, work_day):
    res = client.post("/api/auth/login", json={"name": "ana silva", "pin": "1111", "address": "Gate 3"})
    body = res.get_json()

    assert res.status_code == 200
    assert body["success"] is True
    assert body["worker"]["name"] == "Ana Silva"
    assert body["attendance"]["status"] == "present"
    assert body["attendance"]["date"] == work_day.isoformat()
    assert body["attendance"]["sign_in_address"] == "Gate 3"


def test_login_for_foreman_does_not_touch_attendance(client, attendance_store):
    res = client.post("/api/auth/login", json={"name": "Sergio Araujo", "pin": "1234"})
    assert res.status_code == 200
    assert res.get_json()["attendance"] is None
    assert attendance_store.records == {}


def test_login_errors(client):
    assert client.post("/api/auth/login", json={"name": "Nobody", "pin": "1"}).status_code == 401
    res = client.post("/api/auth/login", json={"name": "Ana Silva", "pin": "0000"})
    assert res.status_code == 401
    assert res.get_json()["message"] == "Invalid PIN"


def test_sign_in_twice_is_a_conflict(client):
    payload = {"worker_name": "Ana Silva", "project": "Tower B", "latitude": "43.6", "longitude": "-79.6"}
    first = client.post("/api/worker/signin", json=payload)
    assert first.status_code == 201
    assert first.get_json()["attendance"]["sign_in_latitude"] == 43.6

    second = client.post("/api/worker/signin", json=payload)
    body = second.get_json()
    assert second.status_code == 409
    assert body["error"] == "AlreadySignedIn"
    assert "already signed in" in body["message"]


def test_sign_out_without_session_is_404(client):
    res = client.post("/api/worker/signout", json={"worker_name": "Ana Silva"})
    assert res.status_code == 404
    assert res.get_json()["error"] == "NoActiveSignIn"


def test_unknown_worker_is_404(client):
    res = client.post("/api/worker/signin", json={"worker_name": "Nobody", "project": "P"})
    assert res.status_code == 404


def test_sign_in_then_out(client, clock, work_day):
    client.post("/api/worker/signin", json={"worker_name": "Ana Silva", "project": "Tower B"})
    listed = client.get("/api/workers/signed-in").get_json()
    assert [w["name"] for w in listed["workers"]] == ["Ana Silva"]

    clock.set(datetime.combine(work_day, time(16, 30)))
    res = client.post("/api/worker/signout", json={"worker_name": "Ana Silva", "address": "Gate 1"})
    body = res.get_json()
    assert res.status_code == 200
    assert body["attendance"]["check_out_time"].startswith(f"{work_day.isoformat()}T16:30")
    assert body["attendance"]["sign_out_address"] == "Gate 1"
    assert client.get("/api/workers/signed-in").get_json()["count"] == 0


def test_toggle_vacation_and_roster(client, work_day):
    day = work_day.isoformat()
    assert client.post("/api/attendance/toggle", json={"worker_id": ANA, "date": day}).status_code == 200
    res = client.post("/api/attendance/vacation", json={"worker_id": AUGUSTO, "date": day, "notes": "family"})
    assert res.status_code == 200
    assert res.get_json()["days"] == 1

    roster = client.get(f"/api/attendance/{day}").get_json()["attendance"]
    status = {r["worker_name"]: r["status"] for r in roster}
    assert status == {"Ana Silva": "present", "Augusto Duarte": "vacation", "Cesar Duarte": "absent"}


def test_vacation_period(client):
    res = client.post(
        "/api/attendance/vacation",
        json={"worker_name": "Ana Silva", "start_date": "2026-07-01", "end_date": "2026-07-03"},
    )
    assert res.get_json()["days"] == 3
    periods = client.get(f"/api/attendance/vacations?worker_id={ANA}").get_json()["vacations"]
    assert [(p["start_date"], p["end_date"]) for p in periods] == [("2026-07-01", "2026-07-03")]


def test_bad_date_is_400(client):
    res = client.get("/api/attendance/June-1")
    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_timesheet_flow(client, work_day):
    submitted = client.post(
        "/api/timesheets",
        json={
            "worker_name": "Ana Silva",
            "date": work_day.isoformat(),
            "start_time": "07:00",
            "end_time": "17:30",
            "break_minutes": 30,
            "project": "Tower B",
        },
    )
    assert submitted.status_code == 201
    ts = submitted.get_json()["timesheet"]
    assert ts["total_hours"] == 10.0
    assert ts["week_number"] == 22

    listed = client.get(f"/api/timesheets?worker_id={ANA}").get_json()
    assert listed["timesheets"][0]["regular_hours"] == 10.0

    approved = client.put(f"/api/timesheets/{ts['id']}/approve", json={"approved_by": "Sergio Araujo"})
    assert approved.get_json()["timesheet"]["status"] == "approved"

    again = client.put(f"/api/timesheets/{ts['id']}/reject", json={"rejected_by": "Sergio Araujo"})
    assert again.status_code == 400
    assert again.get_json()["error"] == "InvalidTransition"

    edited = client.put(f"/api/timesheets/{ts['id']}/edit", json={"end_time": "15:30", "edited_by": "Admin Supervisor"})
    assert edited.get_json()["timesheet"]["total_hours"] == 8.0
    assert edited.get_json()["timesheet"]["status"] == "approved"

    summary = client.get("/api/timesheets/weekly-summary?week=22&year=2026").get_json()["summary"]
    assert summary[0]["total_hours"] == 8.0

    assert client.delete(f"/api/timesheets/{ts['id']}").status_code == 200
    assert client.delete(f"/api/timesheets/{ts['id']}").status_code == 404


def test_timesheet_negative_hours_is_400(client, work_day):
    res = client.post(
        "/api/timesheets",
        json={"worker_id": ANA, "date": work_day.isoformat(), "start_time": "07:00", "end_time": "07:30", "break_minutes": 60},
    )
    assert res.status_code == 400
    assert res.get_json()["error"] == "InvalidTimeRange"


def test_reviewer_defaults_to_logged_in_user(client, work_day):
    ts = client.post(
        "/api/timesheets",
        json={"worker_id": ANA, "date": work_day.isoformat(), "start_time": "07:00", "end_time": "15:00"},
    ).get_json()["timesheet"]

    client.post("/api/auth/login", json={"name": "Sergio Araujo", "pin": "1234"})
    res = client.put(f"/api/timesheets/{ts['id']}/approve")
    assert res.get_json()["timesheet"]["approved_by"] == "Sergio Araujo"


def test_auto_signout_and_repair(client, clock, work_day):
    client.post("/api/worker/signin", json={"worker_name": "Ana Silva", "project": "Tower B"})
    clock.set(datetime(2026, 6, 2, 0, 5))

    res = client.post("/api/auto-signout")
    body = res.get_json()
    assert res.status_code == 200
    assert body["signed_out"] == 1
    assert client.post("/api/auto-signout").get_json()["signed_out"] == 0

    repaired = client.post("/api/attendance/repair", json={"date": work_day.isoformat()}).get_json()
    assert repaired["workers_found"] == 1
    assert repaired["attendance_updated"] == 1


def test_storage_outage_is_retryable_503(client, attendance_store):
    attendance_store.fail_for.add(ANA)
    res = client.post("/api/worker/signin", json={"worker_id": ANA, "project": "Tower B"})
    body = res.get_json()
    assert res.status_code == 503
    assert body["retryable"] is True
    assert StorageUnavailable.retryable is True


def test_worker_session_history(client, clock, work_day):
    client.post("/api/worker/signin", json={"worker_id": ANA, "project": "Tower B"})
    res = client.get(f"/api/worker/{ANA}/sessions?date={work_day.isoformat()}")
    body = res.get_json()
    assert res.status_code == 200
    assert body["count"] == 1
    assert body["sessions"][0]["project"] == "Tower B"
    assert body["sessions"][0]["ended_at"] is None
    assert client.get("/api/worker/999/sessions").status_code == 404


def test_vacation_period_span_is_capped(client):
    res = client.post(
        "/api/attendance/vacation",
        json={"worker_id": ANA, "start_date": "2026-01-01", "end_date": "2028-01-01"},
    )
    assert res.status_code == 400
    assert res.get_json()["error"] == "ValidationError"


def test_vacation_period_reports_failed_days(client, attendance_store):
    attendance_store.fail_for.add(AUGUSTO)
    res = client.post(
        "/api/attendance/vacation",
        json={"worker_id": AUGUSTO, "start_date": "2026-07-01", "end_date": "2026-07-02"},
    )
    body = res.get_json()
    assert res.status_code == 207
    assert body["success"] is False
    assert sorted(body["failed_days"]) == ["2026-07-01", "2026-07-02"]
