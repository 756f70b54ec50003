from datetime import datetime, timedelta

import pytest
from flask import Flask

from src.smart_hostel.smart_hostel.common.http import register_error_handlers
from src.smart_hostel.smart_hostel.gate import controller as gate_controller
from src.smart_hostel.smart_hostel.leaves import controller as leaves_controller
from src.smart_hostel.smart_hostel.reports import controller as reports_controller
from src.smart_hostel.smart_hostel.users import controller as users_controller


@pytest.fixture
def client(hostel):
    app = Flask(__name__)
    app.secret_key = "test-secret"
    register_error_handlers(app)
    for controller in (users_controller, leaves_controller, gate_controller, reports_controller):
        controller.register(app, hostel)
    return app.test_client()


def _login(client, email):
    resp = client.post("/api/auth/login", json={"email": email, "password": "secret1"})
    assert resp.status_code == 200
    return resp


def test_requires_login(client):
    resp = client.get("/api/leaves/mine")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Please log in to continue"}


def test_bad_login(client):
    resp = client.post("/api/auth/login", json={"email": "student.s@hostel.local", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_student_applies_and_warden_sees_it(client):
    _login(client, "student.s@hostel.local")
    start = (datetime.now() + timedelta(days=3)).replace(hour=9, minute=0, second=0, microsecond=0)

    resp = client.post(
        "/api/leaves/apply",
        json={
            "leave_type": "regular",
            "from_datetime": start.isoformat(),
            "to_datetime": (start + timedelta(hours=30)).isoformat(),
            "reason": "Family function at home",
        },
    )

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["data"]["status"] in ("AUTO_APPROVED", "PENDING", "FLAGGED")
    assert "likelihood" in body["prediction"]
    assert "component_scores" not in body["prediction"]

    mine = client.get("/api/leaves/mine").get_json()
    assert mine["count"] == 1

    leave_id = body["data"]["leave_id"]
    student_view = client.get(f"/api/leaves/{leave_id}").get_json()["data"]
    assert "decision_factors" not in student_view

    client.post("/api/auth/logout")
    _login(client, "warden.w@hostel.local")
    warden_view = client.get(f"/api/leaves/{leave_id}").get_json()["data"]
    assert "decision_factors" in warden_view


def test_apply_validation_maps_to_400(client):
    _login(client, "student.s@hostel.local")

    resp = client.post("/api/leaves/apply", json={"reason": "Trip"})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "from_datetime and to_datetime are required"


def test_student_cannot_open_reports(client):
    _login(client, "student.s@hostel.local")

    assert client.get("/api/reports/leaves").status_code == 403


def test_unknown_gate_pass_maps_to_404(client):
    _login(client, "guard.g@hostel.local")

    resp = client.post("/api/gate/exit", json={"gate_pass_id": "GP-0-UNKNOWN"})

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Invalid Gate Pass ID"


def test_leave_report_csv(client, hostel):
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 21, 9),
        end=datetime(2026, 3, 22, 18),
        created_at=datetime(2026, 3, 14, 9),
    )
    _login(client, "warden.w@hostel.local")

    resp = client.get("/api/reports/leaves?format=csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "leave-report.csv" in resp.headers["Content-Disposition"]
    text = resp.data.decode("utf-8-sig").splitlines()
    assert text[0] == "student_name,email,hostel_block,room_no,leave_type,from,to,status,risk_score,decided_by,remarks"
    assert text[1].startswith("Student S,student.s@hostel.local,Block A,A-101,REGULAR,2026-03-21 09:00")
