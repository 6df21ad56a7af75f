import pytest
from sqlalchemy import func, select

from studio.cli import DEFAULT_SERVICES
from studio.extensions import db
from studio.models import Service


@pytest.mark.cli
class TestCommands:
    """flask init-db / seed-services / scan-inactive-clients."""

    def test_init_db(self, runner):
        result = runner.invoke(args=["init-db"])

        assert result.exit_code == 0
        assert "Database initialized" in result.output

    def test_seed_services(self, app, runner, auth_headers):
        result = runner.invoke(args=["seed-services", "A@x.com"])

        assert result.exit_code == 0
        with app.app_context():
            assert db.session.scalar(select(func.count(Service.id))) == len(DEFAULT_SERVICES)

    def test_seed_services_skips_existing_catalog(self, app, runner, sample_service):
        result = runner.invoke(args=["seed-services", "a@x.com"])

        assert result.exit_code == 0
        assert "nothing seeded" in result.output
        with app.app_context():
            assert db.session.scalar(select(func.count(Service.id))) == 1

    def test_seed_services_unknown_user(self, runner):
        result = runner.invoke(args=["seed-services", "ghost@x.com"])

        assert result.exit_code != 0
        assert "No user with email" in result.output

    def test_scan_inactive_clients(self, runner, make_appointment, dispatcher):
        make_appointment(status="done", date_time="2000-01-01T12:00:00Z")

        result = runner.invoke(args=["scan-inactive-clients"])

        assert result.exit_code == 0
        assert "Notified 1 inactive client(s)" in result.output
        assert len(dispatcher.broadcasts) == 1
