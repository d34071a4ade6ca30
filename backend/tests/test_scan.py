# Overview: Pytest coverage for barcode classification and the scan endpoint.

import pytest

from apple_rewards.models import User, AppleTransaction
from apple_rewards.services import scan_service
from apple_rewards.validation import PermissionDeniedError

from conftest import reload


class TestClassification:

    @pytest.mark.parametrize(
        "barcode,kind",
        [
            ("1", "student"),
            ("100001", "student"),
            ("2", "admin"),
            ("200001", "admin"),
            ("3", "assistant"),
            ("300001", "assistant"),
            ("400001", None),
            ("", None),
            ("   ", None),
            ("A123", None),
        ],
    )
    def test_prefix(self, barcode, kind):
        assert scan_service.classify_barcode(barcode) == kind

    def test_admin_may_scan_everything(self):
        for kind in ("student", "admin", "assistant"):
            scan_service.authorize_scan("admin", kind)

    @pytest.mark.parametrize("kind", ["admin", "assistant", None])
    def test_assistant_limited_to_students(self, kind):
        scan_service.authorize_scan("assistant", "student")
        with pytest.raises(PermissionDeniedError):
            scan_service.authorize_scan("assistant", kind)

    def test_unknown_role_rejected(self):
        with pytest.raises(PermissionDeniedError):
            scan_service.authorize_scan("student", "student")


class TestScanEndpoint:

    def _scan(self, client, headers, user, barcode, role=None):
        return client.post("/api/scan", headers=headers, json={
            "barcode": barcode,
            "userRole": role or user.role,
            "userId": user.id,
        })

    def test_admin_scans_student(self, client, admin, admin_headers, student):
        resp = self._scan(client, admin_headers, admin, "100001")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["type"] == "student"
        assert data["studentId"] == student.id
        assert data["name"] == "Sam Student"
        assert data["apples"] == 300

    def test_admin_scans_assistant(self, client, admin, admin_headers, assistant):
        resp = self._scan(client, admin_headers, admin, "300001")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["type"] == "assistant"
        assert data["assistantId"] == assistant.id
        assert data["apples"] == 300

    def test_admin_session_check_in(self, client, db_session, admin, admin_headers):
        resp = self._scan(client, admin_headers, admin, "200001")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["type"] == "admin"
        assert data["applesAdded"] == 150
        assert data["sessions"] == 1
        assert data["apples"] == 150

        fresh = reload(User, admin.id)
        assert fresh.apples == 150
        assert fresh.sessions_attended == 1
        txn = db_session.query(AppleTransaction).filter_by(user_id=admin.id).one()
        assert txn.admin_id == admin.id

    def test_admin_check_in_after_milestone(self, client, db_session, admin, admin_headers):
        admin.sessions_attended = 20
        db_session.commit()

        resp = self._scan(client, admin_headers, admin, "200001")
        assert resp.get_json()["applesAdded"] == 170

    def test_assistant_scans_student(self, client, assistant, assistant_headers, student):
        resp = self._scan(client, assistant_headers, assistant, "100001")
        assert resp.status_code == 200
        assert resp.get_json()["studentId"] == student.id

    def test_assistant_cannot_scan_admin_barcode(self, client, db_session, assistant, assistant_headers, admin):
        resp = self._scan(client, assistant_headers, assistant, "200001")

        assert resp.status_code == 403
        fresh = reload(User, assistant.id)
        assert fresh.apples == 300
        assert fresh.sessions_attended == 2
        assert reload(User, admin.id).apples == 0
        assert db_session.query(AppleTransaction).count() == 0

    def test_assistant_cannot_scan_assistant_barcode(self, client, assistant, assistant_headers):
        resp = self._scan(client, assistant_headers, assistant, "300001")
        assert resp.status_code == 403

    def test_unknown_prefix(self, client, admin, admin_headers):
        resp = self._scan(client, admin_headers, admin, "900001")
        assert resp.status_code == 403

    def test_student_not_found(self, client, admin, admin_headers):
        resp = self._scan(client, admin_headers, admin, "199999")
        assert resp.status_code == 404

    def test_assistant_not_found(self, client, admin, admin_headers):
        resp = self._scan(client, admin_headers, admin, "399999")
        assert resp.status_code == 404

    @pytest.mark.parametrize("missing", ["barcode", "userRole", "userId"])
    def test_missing_fields(self, client, admin, admin_headers, missing):
        body = {"barcode": "100001", "userRole": "admin", "userId": admin.id}
        body.pop(missing)
        resp = client.post("/api/scan", headers=admin_headers, json=body)
        assert resp.status_code == 400

    def test_declared_user_must_match_session(self, client, admin, admin_headers, assistant):
        resp = client.post("/api/scan", headers=admin_headers, json={
            "barcode": "100001",
            "userRole": "admin",
            "userId": assistant.id,
        })
        assert resp.status_code == 403

    def test_assistant_cannot_claim_admin_role(self, client, db_session, assistant, assistant_headers):
        resp = self._scan(client, assistant_headers, assistant, "200001", role="admin")
        assert resp.status_code == 403
        assert reload(User, assistant.id).sessions_attended == 2
