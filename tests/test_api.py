"""
HTTP API: sessions, equipment, crit walks, error mapping.
"""
import jwt

from critwalk.services.auth import COOKIE_NAME, decode_access_token


def _equipment(client, name="Chiller 3"):
    response = client.post("/api/equipment", json={"name": name, "location": "Roof"})
    assert response.status_code == 201
    return response.json()["id"]


# ── Sessions ──────────────────────────────────────────────────────────────────

class TestSessions:
    def test_health(self, anonymous_client):
        assert anonymous_client.get("/health").json()["status"] == "healthy"

    def test_session_cookie(self, anonymous_client):
        response = anonymous_client.post("/auth/session", data={"name": "Dana", "role": "manager"})
        assert response.status_code == 200
        payload = decode_access_token(response.cookies[COOKIE_NAME])
        assert payload["name"] == "Dana"
        assert payload["role"] == "manager"

    def test_unknown_role_rejected(self, anonymous_client):
        response = anonymous_client.post("/auth/session", data={"name": "Dana", "role": "owner"})
        assert response.status_code == 422

    def test_me(self, technician_client):
        body = technician_client.get("/auth/me").json()
        assert body == {"name": "Sam", "role": "technician", "role_display_name": "技術員"}

    def test_requires_login(self, anonymous_client):
        assert anonymous_client.get("/api/equipment").status_code == 401

    def test_tampered_token_rejected(self, anonymous_client):
        token = jwt.encode({"name": "Dana", "role": "manager"}, "not-the-secret", algorithm="HS256")
        anonymous_client.cookies.set(COOKIE_NAME, token)
        assert anonymous_client.get("/api/equipment").status_code == 401


# ── Equipment ─────────────────────────────────────────────────────────────────

class TestEquipmentApi:
    def test_create_and_list(self, manager_client):
        equipment_id = _equipment(manager_client)
        listing = manager_client.get("/api/equipment").json()
        assert listing[0]["id"] == equipment_id
        assert listing[0]["status"]["status"] == "never"

    def test_technician_cannot_create(self, technician_client):
        assert technician_client.post("/api/equipment", json={"name": "Pump"}).status_code == 403

    def test_validation_maps_to_422(self, manager_client):
        assert manager_client.post("/api/equipment", json={"name": " "}).status_code == 422

    def test_missing_maps_to_404(self, manager_client):
        response = manager_client.get("/api/equipment/999")
        assert response.status_code == 404
        assert "999" in response.json()["detail"]

    def test_patch_and_delete(self, manager_client):
        equipment_id = _equipment(manager_client)
        patched = manager_client.patch(f"/api/equipment/{equipment_id}", json={"category": "HVAC"}).json()
        assert patched["category"] == "HVAC"
        assert patched["location"] == "Roof"

        assert manager_client.delete(f"/api/equipment/{equipment_id}").json() == {"success": True}
        assert manager_client.get("/api/equipment").json() == []


# ── Crit walks ────────────────────────────────────────────────────────────────

class TestCritWalkApi:
    def test_create_with_photos(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        response = technician_client.post(
            f"/api/equipment/{equipment_id}/critwalks",
            data={"notes": "All good"},
            files=[
                ("photos", ("one.jpg", b"1", "image/jpeg")),
                ("photos", ("two.jpg", b"2", "image/jpeg")),
            ],
        )
        assert response.status_code == 201
        crit_walk_id = response.json()["id"]

        body = technician_client.get(f"/api/equipment/{equipment_id}/critwalks/{crit_walk_id}").json()
        assert body["notes"] == "All good"
        assert body["technician_name"] == "Sam"
        assert len(body["photos"]) == 2

        status = technician_client.get(f"/api/equipment/{equipment_id}/status").json()
        assert status["total_walks_completed"] == 1
        assert status["last_crit_walk_by"] == "Sam"
        assert status["status"] == "green"

    def test_failure_without_work_order(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        response = technician_client.post(
            f"/api/equipment/{equipment_id}/critwalks", data={"has_failure": "true"}
        )
        assert response.status_code == 422

    def test_flag_resolve_flow(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        crit_walk_id = technician_client.post(
            f"/api/equipment/{equipment_id}/critwalks",
            data={"has_failure": "true", "work_order_number": "WO-1"},
        ).json()["id"]

        failures = technician_client.get("/api/failures").json()
        assert [f["id"] for f in failures] == [crit_walk_id]

        resolve_url = f"/api/equipment/{equipment_id}/critwalks/{crit_walk_id}/resolve"
        assert technician_client.post(resolve_url).status_code == 403

        resolved = manager_client.post(resolve_url).json()
        assert resolved["failure_resolved_by"] == "Dana"
        assert manager_client.post(resolve_url).status_code == 422

        status = manager_client.get(f"/api/equipment/{equipment_id}/status").json()
        assert status["active_failure_count"] == 0
        assert status["has_active_failure"] is False

    def test_edit_failure_details(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        crit_walk_id = technician_client.post(f"/api/equipment/{equipment_id}/critwalks").json()["id"]

        response = manager_client.patch(
            f"/api/equipment/{equipment_id}/critwalks/{crit_walk_id}/failure",
            json={"has_failure": True, "work_order_number": "WO-5"},
        )
        assert response.status_code == 200
        assert response.json()["work_order_number"] == "WO-5"

        status = manager_client.get(f"/api/equipment/{equipment_id}/status").json()
        assert status["active_failure_count"] == 1

    def test_comments(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        crit_walk_id = technician_client.post(f"/api/equipment/{equipment_id}/critwalks").json()["id"]

        response = manager_client.post(
            f"/api/equipment/{equipment_id}/critwalks/{crit_walk_id}/comments", json={"text": "Looks fine"}
        )
        assert response.status_code == 201
        assert response.json()["created_by"] == "Dana"

        history = technician_client.get(f"/api/equipment/{equipment_id}/critwalks").json()
        assert history[0]["comments"][0]["text"] == "Looks fine"

    def test_partial_upload_maps_to_207(self, api, make_failing_store, manager_client, technician_client):
        from critwalk.services.storage import get_blob_store

        api.dependency_overrides[get_blob_store] = lambda: make_failing_store(fail_indexes={0})
        equipment_id = _equipment(manager_client)
        response = technician_client.post(
            f"/api/equipment/{equipment_id}/critwalks",
            files=[
                ("photos", ("one.jpg", b"1", "image/jpeg")),
                ("photos", ("two.jpg", b"2", "image/jpeg")),
            ],
        )
        assert response.status_code == 207
        body = response.json()
        assert len(body["failed"]) == 1
        assert len(body["uploaded"]) == 1

        crit_walk = technician_client.get(f"/api/equipment/{equipment_id}/critwalks/{body['id']}").json()
        assert len(crit_walk["photos"]) == 1


# ── Assignments & admin ───────────────────────────────────────────────────────

class TestAssignmentAndAdminApi:
    def test_assignment_round_trip(self, manager_client, technician_client):
        equipment_id = _equipment(manager_client)
        assignment = manager_client.post(
            "/api/assignments", json={"equipment_id": equipment_id, "technician_name": "Sam"}
        ).json()

        mine = technician_client.get("/api/assignments/mine").json()
        assert [a["id"] for a in mine] == [assignment["id"]]

        technician_client.post(
            f"/api/equipment/{equipment_id}/critwalks", data={"assignment_id": str(assignment["id"])}
        )
        assert technician_client.get("/api/assignments/mine").json() == []
        assert manager_client.get("/api/assignments").json()[0]["status"] == "completed"

    def test_cleanup_endpoint_manager_only(self, manager_client, technician_client):
        assert technician_client.post("/api/admin/cleanup").status_code == 403
        assert manager_client.post("/api/admin/cleanup").json() == {"crit_walks": 0, "photos": 0, "errors": 0}
