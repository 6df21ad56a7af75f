import json
from datetime import datetime

import pytest

from studio.scheduler import scan_inactive_clients
from studio.services.inactivity import find_inactive_clients, run_inactivity_scan

NOW = datetime(2030, 3, 1, 12, 0, 0)


def _inactive_names(app, **kwargs):
    with app.app_context():
        return [c.name for c in find_inactive_clients(now=NOW, **kwargs)]


@pytest.mark.inactivity
class TestFindInactiveClients:
    """Clients whose last completed visit is older than the window."""

    def test_done_31_days_ago_is_inactive(self, app, make_appointment):
        make_appointment(status="done", date_time="2030-01-29T12:00:00Z")

        assert _inactive_names(app) == ["Maria"]

    def test_done_29_days_ago_is_active(self, app, make_appointment):
        make_appointment(status="done", date_time="2030-01-31T12:00:00Z")

        assert _inactive_names(app) == []

    def test_client_without_history_is_skipped(self, app, sample_client):
        assert _inactive_names(app) == []

    def test_only_open_appointments_counts_as_inactive(self, app, make_appointment):
        # Booked but never completed within the window
        make_appointment(status="pending", date_time="2030-02-20T12:00:00Z")

        assert _inactive_names(app) == ["Maria"]

    def test_recent_done_wins_over_old_done(self, app, make_appointment):
        make_appointment(status="done", date_time="2029-06-01T12:00:00Z")
        make_appointment(status="done", date_time="2030-02-25T12:00:00Z")

        assert _inactive_names(app) == []

    def test_default_now_is_current_utc_time(self, app, make_appointment):
        make_appointment(status="done", date_time="2000-01-01T12:00:00Z")

        with app.app_context():
            names = [c.name for c in find_inactive_clients()]

        assert names == ["Maria"]

    def test_window_is_configurable(self, app, make_appointment):
        make_appointment(status="done", date_time="2030-02-20T12:00:00Z")

        assert _inactive_names(app, window_days=7) == ["Maria"]
        assert _inactive_names(app, window_days=30) == []

    def test_scans_every_studio_user(self, app, client, other_headers, make_appointment):
        make_appointment(status="done", date_time="2029-12-01T12:00:00Z")
        joana = json.loads(
            client.post("/api/clientes", json={"name": "Joana", "phone": "2"}, headers=other_headers).data
        )
        service = json.loads(
            client.post("/api/servicos", json={"name": "Pedicure", "price": 40, "duration": 50}, headers=other_headers).data
        )
        client.post(
            "/api/agendamentos",
            json={
                "client_id": joana["id"],
                "service_id": service["id"],
                "date_time": "2029-11-01T12:00:00Z",
                "status": "done",
            },
            headers=other_headers,
        )

        assert sorted(_inactive_names(app)) == ["Joana", "Maria"]


@pytest.mark.inactivity
class TestInactivityScan:
    """The scan notifies once per inactive client."""

    def test_run_scan_notifies_each_client(self, app, make_appointment, dispatcher):
        make_appointment(status="done", date_time="2029-12-01T12:00:00Z")

        with app.app_context():
            count = run_inactivity_scan(dispatcher, now=NOW)

        assert count == 1
        assert len(dispatcher.broadcasts) == 1
        assert "Maria" in dispatcher.broadcasts[0][1]

    def test_scheduler_job_body(self, app, make_appointment, dispatcher):
        make_appointment(status="done", date_time="2000-01-01T12:00:00Z")

        scan_inactive_clients(app)

        assert len(dispatcher.broadcasts) == 1

    def test_scheduler_job_logs_failures(self, app, make_appointment, dispatcher, monkeypatch, caplog):
        make_appointment(status="done", date_time="2000-01-01T12:00:00Z")

        def broken(name):
            raise RuntimeError("push service down")

        monkeypatch.setattr(dispatcher, "send_inactive_client_notification", broken)

        scan_inactive_clients(app)

        assert "Error in inactive clients check" in caplog.text
