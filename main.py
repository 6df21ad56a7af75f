import logging
import os
from pathlib import Path

from flask import Flask
from flask_cors import CORS
from flasgger import Swagger

from studio.config import get_config
from studio.extensions import db
from studio.models import Base
from studio.errors import register_error_handlers
from studio.cli import register_commands
from studio.scheduler import init_scheduler
from studio.services.notification_service import NotificationDispatcher
from studio.swagger_config import SWAGGER_CONFIG, SWAGGER_TEMPLATE
from studio.routes.auth import auth_bp
from studio.routes.push import push_bp
from studio.api.clients.clients import clients_bp
from studio.api.catalog.services import services_bp
from studio.api.catalog.products import products_bp
from studio.api.booking.appointments import appointments_bp
from studio.api.reports.reports import reports_bp


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_name=None, overrides=None, notifier=None):
    """Build the Flask app.

    ``overrides`` is applied on top of the config class; ``notifier`` replaces
    the notification dispatcher built from config (tests pass a recorder).
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app)

    if not app.config.get("SECRET_KEY"):
        # No default key outside development and testing
        raise RuntimeError("SECRET_KEY environment variable is required in production")

    db_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if db_uri.startswith("sqlite:///"):
        Path(db_uri[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    CORS(app)
    db.init_app(app)

    host = os.environ.get("API_HOST", "127.0.0.1:5000")
    swagger_template = SWAGGER_TEMPLATE.copy()
    swagger_template["host"] = host
    Swagger(app, config=SWAGGER_CONFIG, template=swagger_template)

    app.extensions["notifications"] = notifier or NotificationDispatcher.from_config(app.config)

    blueprints = [
        auth_bp,
        clients_bp,
        services_bp,
        products_bp,
        appointments_bp,
        reports_bp,
        push_bp,
    ]
    for bp in blueprints:
        app.register_blueprint(bp)

    register_error_handlers(app)
    register_commands(app)

    with app.app_context():
        Base.metadata.create_all(bind=db.engine)

    @app.route("/")
    def home():
        return {"status": "ok", "message": "Backend is running!"}, 200

    if app.config.get("SCHEDULER_ENABLED"):
        init_scheduler(app)

    app.logger.info("App created (%d routes)", len(list(app.url_map.iter_rules())))
    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(
        host="0.0.0.0", port=port, debug=os.environ.get("FLASK_ENV") == "development"
    )
