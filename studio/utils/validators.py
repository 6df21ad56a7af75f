"""
Request payload parsing.

Every ``parse_*`` helper takes the decoded JSON body and returns a typed
payload, raising ``ValidationError`` with a readable message on bad input.
Patch payloads remember which keys the caller actually sent so the
persistence layer can build an ``UPDATE`` with only those columns.
"""

import math
import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Optional

from ..errors import ValidationError
from ..models import APPOINTMENT_STATUSES

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
MIN_PASSWORD_LENGTH = 6
# Largest value an SQLite INTEGER column can hold; also caps prices
MAX_INTEGER = 2**63 - 1


def require_json(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _required_str(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    value = value.strip()
    # Empty strings from the forms mean "no value"
    return value or None


def _number(data: dict, key: str, label: str, minimum, integer=False):
    value = data.get(key)
    # bool is an int subclass; reject it explicitly
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{label} must be a finite number")
    if integer and isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{label} must be a whole number")
    if value < minimum:
        raise ValidationError(f"{label} must be at least {minimum}")
    if value > MAX_INTEGER:
        raise ValidationError(f"{label} is too large")
    return int(value) if integer else float(value)


def _id(data: dict, key: str, label: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{label} must be a positive integer")
    if value > MAX_INTEGER:
        raise ValidationError(f"{label} is too large")
    return value


def _optional_email(data: dict, key: str = "email") -> Optional[str]:
    value = _optional_str(data, key)
    if value is not None and not EMAIL_RE.match(value):
        raise ValidationError("Invalid email address")
    return value


def _optional_color(data: dict, key: str = "color_hex") -> Optional[str]:
    value = _optional_str(data, key)
    if value is not None and not HEX_COLOR_RE.match(value):
        raise ValidationError("color_hex must look like #RRGGBB")
    return value


def parse_datetime(value) -> datetime:
    """Parse an ISO 8601 timestamp into a naive UTC datetime."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("date_time is required (ISO 8601)")
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid date_time: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() + "Z"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@dataclass
class Credentials:
    email: str
    password: str


def parse_registration(data) -> Credentials:
    data = require_json(data)
    email = _required_str(data, "email", "Email")
    password = data.get("password")
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return Credentials(email=email.lower(), password=password)


def parse_login(data) -> Credentials:
    data = require_json(data)
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        raise ValidationError("Email and password required")
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Email and password must be strings")
    return Credentials(email=email.strip().lower(), password=password)


# ---------------------------------------------------------------------------
# Patch structures
# ---------------------------------------------------------------------------


@dataclass
class Patch:
    """Base for partial updates; ``provided`` lists the keys that were sent."""

    provided: set = field(default_factory=set, repr=False)

    def as_values(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "provided" and f.name in self.provided
        }

    def is_empty(self) -> bool:
        return not self.as_values()


@dataclass
class ClientPayload:
    name: str
    phone: str
    email: Optional[str] = None
    instagram: Optional[str] = None
    allergies: Optional[str] = None
    preferences: Optional[str] = None


def parse_client(data) -> ClientPayload:
    """Client create/replace. Points are never accepted from the caller."""
    data = require_json(data)
    return ClientPayload(
        name=_required_str(data, "name", "Name"),
        phone=_required_str(data, "phone", "Phone"),
        email=_optional_email(data),
        instagram=_optional_str(data, "instagram"),
        allergies=_optional_str(data, "allergies"),
        preferences=_optional_str(data, "preferences"),
    )


@dataclass
class ServicePatch(Patch):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = None


def parse_service(data, partial: bool = False) -> ServicePatch:
    data = require_json(data)
    patch = ServicePatch()
    if not partial or "name" in data:
        patch.name = _required_str(data, "name", "Name")
        patch.provided.add("name")
    if not partial or "description" in data:
        patch.description = _optional_str(data, "description")
        patch.provided.add("description")
    if not partial or "price" in data:
        patch.price = _number(data, "price", "Price", 0)
        patch.provided.add("price")
    if not partial or "duration" in data:
        patch.duration = _number(data, "duration", "Duration", 1, integer=True)
        patch.provided.add("duration")
    return patch


@dataclass
class ProductPatch(Patch):
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    color_hex: Optional[str] = None
    quantity: Optional[int] = None
    min_quantity: Optional[int] = None


def parse_product(data, partial: bool = False) -> ProductPatch:
    data = require_json(data)
    patch = ProductPatch()
    if not partial or "name" in data:
        patch.name = _required_str(data, "name", "Name")
        patch.provided.add("name")
    if not partial or "brand" in data:
        patch.brand = _optional_str(data, "brand")
        patch.provided.add("brand")
    if not partial or "category" in data:
        patch.category = _required_str(data, "category", "Category")
        patch.provided.add("category")
    if not partial or "color_hex" in data:
        patch.color_hex = _optional_color(data)
        patch.provided.add("color_hex")
    # quantity and min_quantity default to 0 on create
    for key, label in (("quantity", "Quantity"), ("min_quantity", "Minimum quantity")):
        if key in data:
            setattr(patch, key, _number(data, key, label, 0, integer=True))
            patch.provided.add(key)
        elif not partial:
            setattr(patch, key, 0)
            patch.provided.add(key)
    return patch


@dataclass
class AppointmentPayload:
    client_id: int
    service_id: int
    date_time: datetime
    status: str = "pending"
    notes: Optional[str] = None


def parse_appointment(data) -> AppointmentPayload:
    """Appointment create/replace; a missing status means ``pending``."""
    data = require_json(data)
    status = data.get("status")
    if status is None:
        status = "pending"
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(
            f"Invalid status {status!r}, expected one of {', '.join(APPOINTMENT_STATUSES)}"
        )
    return AppointmentPayload(
        client_id=_id(data, "client_id", "client_id"),
        service_id=_id(data, "service_id", "service_id"),
        date_time=parse_datetime(data.get("date_time")),
        status=status,
        notes=_optional_str(data, "notes"),
    )


@dataclass
class PushSubscription:
    endpoint: str
    p256dh: str
    auth: str

    def to_dict(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


def parse_subscription(data) -> PushSubscription:
    data = require_json(data)
    endpoint = data.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ValidationError("Invalid subscription: missing endpoint")
    keys = data.get("keys")
    if not isinstance(keys, dict):
        raise ValidationError("Invalid subscription: missing keys")
    p256dh = keys.get("p256dh")
    auth = keys.get("auth")
    if not isinstance(p256dh, str) or not p256dh or not isinstance(auth, str) or not auth:
        raise ValidationError("Invalid subscription: keys.p256dh and keys.auth are required")
    return PushSubscription(endpoint=endpoint.strip(), p256dh=p256dh, auth=auth)
