import json

import pytest


@pytest.mark.services
class TestServiceCatalog:
    """Service catalog CRUD with partial updates."""

    def test_create_service(self, client, auth_headers):
        response = client.post(
            "/api/servicos",
            json={"name": "Gel Polish", "description": "Gel polish application", "price": 50, "duration": 45},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["name"] == "Gel Polish"
        assert data["price"] == 50.0
        assert isinstance(data["price"], float)
        assert data["duration"] == 45

    @pytest.mark.parametrize(
        "body",
        [
            {"price": 10, "duration": 30},
            {"name": "Nail Art", "price": -1, "duration": 30},
            {"name": "Nail Art", "price": 10, "duration": 0},
            {"name": "Nail Art", "price": "ten", "duration": 30},
            {"name": "Nail Art", "price": 10, "duration": 12.5},
        ],
    )
    def test_create_service_validation(self, client, auth_headers, body):
        response = client.post("/api/servicos", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert json.loads(response.data)["status"] == "error"

    def test_partial_patch_keeps_other_fields(self, client, auth_headers, sample_service):
        response = client.patch(
            f"/api/servicos/{sample_service['id']}",
            json={"price": 40},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["price"] == 40.0
        assert data["name"] == "Manicure"
        assert data["duration"] == 45

    def test_empty_patch_rejected(self, client, auth_headers, sample_service):
        response = client.patch(f"/api/servicos/{sample_service['id']}", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert json.loads(response.data)["message"] == "No fields to update"

    def test_patch_missing_service(self, client, auth_headers):
        response = client.patch("/api/servicos/77", json={"price": 1}, headers=auth_headers)

        assert response.status_code == 404

    def test_other_user_cannot_see_service(self, client, other_headers, sample_service):
        assert client.get(f"/api/servicos/{sample_service['id']}", headers=other_headers).status_code == 404
        assert json.loads(client.get("/api/servicos", headers=other_headers).data) == []

    def test_delete_service_cascades_appointments(self, client, auth_headers, sample_service, make_appointment):
        appointment = make_appointment()

        response = client.delete(f"/api/servicos/{sample_service['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert client.get(f"/api/agendamentos/{appointment['id']}", headers=auth_headers).status_code == 404

    def test_delete_service_untags_open_appointments(self, client, auth_headers, sample_service, make_appointment, dispatcher):
        pending = make_appointment()
        make_appointment(status="done")

        response = client.delete(f"/api/servicos/{sample_service['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert dispatcher.untags == [(pending["id"], pending["user_id"])]

    def test_delete_service_survives_dispatcher_failure(self, client, auth_headers, sample_service, make_appointment, dispatcher):
        make_appointment()
        dispatcher.fail = True

        response = client.delete(f"/api/servicos/{sample_service['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert client.get(f"/api/servicos/{sample_service['id']}", headers=auth_headers).status_code == 404

    @pytest.mark.parametrize("raw_price", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_price_rejected(self, client, auth_headers, raw_price):
        response = client.post(
            "/api/servicos",
            data='{"name": "Nail Art", "price": %s, "duration": 30}' % raw_price,
            content_type="application/json",
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert json.loads(response.data)["status"] == "error"

    def test_oversized_duration_rejected(self, client, auth_headers):
        response = client.post(
            "/api/servicos",
            json={"name": "Nail Art", "price": 10, "duration": 2**70},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_oversized_price_rejected(self, client, auth_headers):
        response = client.post(
            "/api/servicos",
            json={"name": "Nail Art", "price": 10**400, "duration": 30},
            headers=auth_headers,
        )

        assert response.status_code == 400


@pytest.mark.services
class TestServiceIsolation:
    """Another user's service ids behave like missing ones."""

    def test_patch_other_users_service(self, client, auth_headers, other_headers, sample_service):
        response = client.patch(
            f"/api/servicos/{sample_service['id']}",
            json={"price": 1},
            headers=other_headers,
        )

        assert response.status_code == 404
        own = json.loads(client.get(f"/api/servicos/{sample_service['id']}", headers=auth_headers).data)
        assert own["price"] == 35.0

    def test_delete_other_users_service(self, client, auth_headers, other_headers, sample_service):
        response = client.delete(f"/api/servicos/{sample_service['id']}", headers=other_headers)

        assert response.status_code == 404
        assert client.get(f"/api/servicos/{sample_service['id']}", headers=auth_headers).status_code == 200
