import os
import sys
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# In case pytest is running, only .env.test is read
if "pytest" in sys.modules or os.environ.get("TESTING") == "True":
    test_env_path = BASE_DIR / "tests" / ".env.test"
    if test_env_path.exists():
        load_dotenv(test_env_path, override=True)
else:
    load_dotenv()

INSTANCE_DIR = Path(os.environ.get("STUDIO_DATA_DIR", BASE_DIR / "instance"))


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{INSTANCE_DIR / 'studio.sqlite'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get("SECRET_KEY")

    TESTING = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Auth
    TOKEN_TTL_DAYS = _int_env("TOKEN_TTL_DAYS", 30)

    # Loyalty / inactivity rules
    LOYALTY_POINTS_PER_VISIT = _int_env("LOYALTY_POINTS_PER_VISIT", 10)
    INACTIVITY_WINDOW_DAYS = _int_env("INACTIVITY_WINDOW_DAYS", 30)
    INACTIVITY_SCAN_HOUR = _int_env("INACTIVITY_SCAN_HOUR", 10)
    SCHEDULER_ENABLED = _bool_env("SCHEDULER_ENABLED", True)

    # OneSignal (optional, absence switches to log-only delivery)
    ONESIGNAL_APP_ID = os.environ.get("ONESIGNAL_APP_ID", "")
    ONESIGNAL_API_KEY = os.environ.get("ONESIGNAL_API_KEY", "")

    # Web Push
    VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY", "")
    VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY", "")
    VAPID_SUBJECT = os.environ.get("VAPID_SUBJECT", "mailto:you@example.com")
    VAPID_FILE = os.environ.get("VAPID_FILE", str(INSTANCE_DIR / "vapid.json"))
    SUBSCRIPTIONS_FILE = os.environ.get(
        "SUBSCRIPTIONS_FILE", str(INSTANCE_DIR / "subs.json")
    )


class DevelopmentConfig(Config):
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SCHEDULER_ENABLED = False
    ONESIGNAL_APP_ID = ""
    ONESIGNAL_API_KEY = ""


class ProductionConfig(Config):
    pass


CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None = None):
    """Pick the config class for ``name`` (defaults to ``FLASK_ENV``)."""
    name = name or os.environ.get("FLASK_ENV") or "production"
    try:
        return CONFIGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown environment {name!r}, expected one of {sorted(CONFIGS)}"
        )
