from conftest import auth_headers, signup


def create_patient(client, headers, **overrides):
    body = {"name": "Bob", "age": 61, "icd11": "BA00", "disease": "Hypertension"}
    body.update(overrides)
    response = client.post("/api/patients", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestDoctorPatients:
    def test_create_and_list(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        assert patient["createdBy"] == api_clinic.d1["user"]["id"]
        assert patient["ownershipState"] == "held_by_doctor"
        assert patient["assignedAt"] is None
        assert patient["diagnosis"] == []

        listed = client.get("/api/patients", headers=api_clinic.d1_headers).json()["patients"]
        assert [p["id"] for p in listed] == [patient["id"]]
        assert client.get("/api/patients", headers=api_clinic.d2_headers).json()["patients"] == []

    def test_create_requires_icd11(self, client, api_clinic):
        response = client.post("/api/patients", headers=api_clinic.d1_headers, json={"name": "Bob", "age": 61})
        assert response.status_code == 400
        assert response.json() == {"error": "name, age and icd11 required"}

    def test_invalid_body_is_400(self, client, api_clinic):
        response = client.post(
            "/api/patients", headers=api_clinic.d1_headers, json={"name": "Bob", "age": "sixty", "icd11": "BA00"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid request"
        assert body["details"]

    def test_get_patient(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        response = client.get(f"/api/patients/{patient['id']}", headers=api_clinic.d1_headers)
        assert response.json()["patient"]["name"] == "Bob"
        missing = client.get("/api/patients/missing", headers=api_clinic.d1_headers)
        assert missing.status_code == 404

    def test_update_and_delete_by_owner(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        url = f"/api/patients/{patient['id']}"

        response = client.put(url, headers=api_clinic.d1_headers, json={"age": 62})
        assert response.status_code == 200
        assert response.json()["age"] == 62

        assert client.put(url, headers=api_clinic.d1_headers, json={}).status_code == 400
        assert client.delete(url, headers=api_clinic.d1_headers).json() == {"ok": True}
        assert client.get(url, headers=api_clinic.d1_headers).status_code == 404

    def test_update_keeps_zero_and_rejects_blank_name(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        url = f"/api/patients/{patient['id']}"

        response = client.put(url, headers=api_clinic.d1_headers, json={"age": 0})
        assert response.status_code == 200
        assert response.json()["age"] == 0

        response = client.put(url, headers=api_clinic.d1_headers, json={"name": "  "})
        assert response.status_code == 400
        assert response.json() == {"error": "name cannot be empty"}
        assert client.get(url, headers=api_clinic.d1_headers).json()["patient"]["name"] == "Bob"

    def test_non_owner_cannot_modify(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        url = f"/api/patients/{patient['id']}"
        assert client.put(url, headers=api_clinic.d2_headers, json={"age": 1}).status_code == 403
        assert client.delete(url, headers=api_clinic.d2_headers).status_code == 403


class TestDiagnosisEndpoints:
    def test_add_and_list_diagnosis(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        url = f"/api/patients/{patient['id']}/diagnosis"

        response = client.post(url, headers=api_clinic.d1_headers, json={"notes": "stable", "icd11": "BA00"})
        assert response.status_code == 201
        body = response.json()
        assert body["diagnosis"]["notes"] == "stable"
        assert body["diagnosis"]["createdBy"] == api_clinic.d1["user"]["id"]
        assert body["sideEffectWarnings"] == []

        client.post(url, headers=api_clinic.d1_headers, json={"notes": "follow-up"})
        entries = client.get(url, headers=api_clinic.d1_headers).json()["diagnosis"]
        assert [e["notes"] for e in entries] == ["stable", "follow-up"]

    def test_blank_notes_rejected(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        url = f"/api/patients/{patient['id']}/diagnosis"
        response = client.post(url, headers=api_clinic.d1_headers, json={"notes": "   "})
        assert response.status_code == 400
        assert response.json() == {"error": "notes (text diagnosis) required"}
        assert client.get(url, headers=api_clinic.d1_headers).json()["diagnosis"] == []

    def test_non_owner_forbidden(self, client, api_clinic):
        patient = create_patient(client, api_clinic.d1_headers)
        response = client.post(
            f"/api/patients/{patient['id']}/diagnosis", headers=api_clinic.d2_headers, json={"notes": "x"}
        )
        assert response.status_code == 403

    def test_missing_patient(self, client, api_clinic):
        response = client.post("/api/patients/missing/diagnosis", headers=api_clinic.d1_headers, json={"notes": "x"})
        assert response.status_code == 404

    def test_authored_diagnoses(self, client, api_clinic):
        first = create_patient(client, api_clinic.d1_headers, name="Bob")
        second = create_patient(client, api_clinic.d1_headers, name="Carol")
        client.post(f"/api/patients/{first['id']}/diagnosis", headers=api_clinic.d1_headers, json={"notes": "a"})
        client.post(f"/api/patients/{second['id']}/diagnosis", headers=api_clinic.d1_headers, json={"notes": "b"})

        entries = client.get("/api/patients/diagnosis", headers=api_clinic.d1_headers).json()["diagnosis"]
        assert [(e["patientName"], e["notes"]) for e in entries] == [("Carol", "b"), ("Bob", "a")]
        assert entries[0]["patientId"] == second["id"]
        assert entries[0]["patient"]["name"] == "Carol"

    def test_requires_token(self, client):
        assert client.post("/api/patients/p1/diagnosis", json={"notes": "x"}).status_code == 401
