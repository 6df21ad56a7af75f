import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import func, select

from .extensions import db
from .models import Base, Service, User
from .services.inactivity import run_inactivity_scan
from .services.notification_service import get_dispatcher

# name, description, price, duration (minutes)
DEFAULT_SERVICES = [
    ("Basic Manicure", "Basic manicure with polish", 35.0, 45),
    ("French Manicure", "Manicure with French tips", 45.0, 60),
    ("Basic Pedicure", "Basic pedicure with polish", 40.0, 50),
    ("Full Pedicure", "Pedicure with hydration and massage", 55.0, 75),
    ("Nail Extensions", "Gel or acrylic extensions", 80.0, 120),
    ("Nail Strengthening", "Protective strengthening treatment", 60.0, 60),
    ("Gel Polish", "Gel polish application", 50.0, 45),
    ("Nail Art", "Hand-painted nail decoration", 70.0, 90),
]


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create every table that does not exist yet."""
    Base.metadata.create_all(bind=db.engine)
    click.echo("Database initialized")


@click.command("seed-services")
@click.argument("email")
@with_appcontext
def seed_services_command(email):
    """Add the default service catalog for the user with EMAIL."""
    user = db.session.scalar(select(User).where(User.email == email.strip().lower()))
    if user is None:
        raise click.ClickException(f"No user with email {email}")

    existing = db.session.scalar(
        select(func.count(Service.id)).where(Service.user_id == user.id)
    )
    if existing:
        click.echo(f"User already has {existing} service(s); nothing seeded")
        return

    for name, description, price, duration in DEFAULT_SERVICES:
        db.session.add(
            Service(
                user_id=user.id,
                name=name,
                description=description,
                price=price,
                duration=duration,
            )
        )
    db.session.commit()
    click.echo(f"Seeded {len(DEFAULT_SERVICES)} services for {user.email}")


@click.command("scan-inactive-clients")
@with_appcontext
def scan_inactive_clients_command():
    """Run the inactive clients check once, right now."""
    count = run_inactivity_scan(
        get_dispatcher(), window_days=current_app.config["INACTIVITY_WINDOW_DAYS"]
    )
    click.echo(f"Notified {count} inactive client(s)")


def register_commands(app):
    for command in (init_db_command, seed_services_command, scan_inactive_clients_command):
        app.cli.add_command(command)
