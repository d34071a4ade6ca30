# Overview: Pytest coverage for dashboard projections.

from apple_rewards.models import LoyaltyBonus, Student


class TestAdminRoster:

    def test_assistants_sorted_with_total(self, client, admin_headers, assistant, other_assistant):
        resp = client.get("/api/dashboard/Alice%20Admin?role=admin", headers=admin_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["isAdmin"] is True
        assert data["viewType"] == "assistants"
        assert [a["name"] for a in data["assistants"]] == ["Cara Assistant", "Bob Assistant"]
        assert data["totalApples"] == 1200

        cara = data["assistants"][0]
        assert cara["sessions"] == 6
        assert cara["currentSessionValue"] == 150
        assert cara["milestonesReached"] == 0
        assert cara["bonusCount"] == 0
        assert cara["loyaltyHistory"] == []

    def test_role_defaults_to_admin_roster(self, client, admin_headers, assistant):
        resp = client.get("/api/dashboard/Alice%20Admin", headers=admin_headers)
        assert resp.get_json()["viewType"] == "assistants"

    def test_students_view(self, client, db_session, admin_headers, student):
        db_session.add(Student(name="Rich Student", barcode="100002", apples=1000))
        db_session.commit()

        resp = client.get("/api/dashboard/Alice%20Admin?role=admin&viewType=students", headers=admin_headers)

        data = resp.get_json()
        assert data["viewType"] == "students"
        assert [s["name"] for s in data["students"]] == ["Rich Student", "Sam Student"]
        assert data["totalApples"] == 1300

    def test_unknown_view_type(self, client, admin_headers):
        resp = client.get("/api/dashboard/Alice%20Admin?role=admin&viewType=teachers", headers=admin_headers)
        assert resp.status_code == 400

    def test_roster_needs_admin(self, client, assistant_headers):
        resp = client.get("/api/dashboard/Bob%20Assistant?role=admin", headers=assistant_headers)
        assert resp.status_code == 403


class TestSingleDashboard:

    def test_assistant_own_dashboard(self, client, db_session, assistant, assistant_headers):
        assistant.sessions_attended = 25
        db_session.add(LoyaltyBonus(user_id=assistant.id, bonus_type="session_4", bonus_apples=50))
        db_session.commit()

        resp = client.get("/api/dashboard/Bob%20Assistant?role=assistant", headers=assistant_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["isAdmin"] is False
        assert data["name"] == "Bob Assistant"
        assert data["apples"] == 300
        assert data["sessions"] == 25
        assert data["currentSessionValue"] == 170
        assert data["milestonesReached"] == 1
        assert data["nextMilestoneAt"] == 40
        assert data["sessionsUntilNextMilestone"] == 15
        assert data["nextSessionValue"] == 190
        assert data["bonusCount"] == 1
        assert data["loyaltyHistory"][0]["bonus_type"] == "session_4"
        assert data["recentTransactions"] == []

    def test_transactions_listed_newest_first(self, client, admin, admin_headers, assistant):
        for amount in (10, 20):
            client.post(f"/api/assistants/{assistant.id}/add-apples", headers=admin_headers, json={"apples": amount})

        resp = client.get("/api/dashboard/Bob%20Assistant?role=assistant", headers=admin_headers)
        txns = resp.get_json()["recentTransactions"]
        assert [t["apples_added"] for t in txns] == [20, 10]

    def test_admin_self_view(self, client, admin_headers):
        resp = client.get("/api/dashboard/Alice%20Admin?role=admin&viewType=self", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Alice Admin"

    def test_student_dashboard(self, client, admin_headers, student):
        resp = client.get("/api/dashboard/Sam%20Student?role=student", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["apples"] == 300

    def test_assistant_cannot_view_others(self, client, assistant_headers, other_assistant):
        resp = client.get("/api/dashboard/Cara%20Assistant?role=assistant", headers=assistant_headers)
        assert resp.status_code == 403

    def test_unknown_name(self, client, admin_headers, assistant):
        resp = client.get("/api/dashboard/Nobody?role=assistant", headers=admin_headers)
        assert resp.status_code == 404
        assert "name" not in resp.get_json()

    def test_name_role_mismatch(self, client, admin_headers, assistant):
        resp = client.get("/api/dashboard/Bob%20Assistant?role=student", headers=admin_headers)
        assert resp.status_code == 404

    def test_unknown_role(self, client, admin_headers, assistant):
        resp = client.get("/api/dashboard/Bob%20Assistant?role=teacher", headers=admin_headers)
        assert resp.status_code == 404
