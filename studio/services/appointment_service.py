"""Appointment lifecycle: status changes, loyalty points and reminder tags.

Every status is reachable from every other one; the only rules are the side
effects:

- entering ``done`` from any other status awards the client loyalty points
- ``done``/``cancelled`` drop the reminder tag, any other status (re)sets it

The row update and the point award are committed together. The update is
guarded on the status read beforehand, so two racing requests cannot both
see "not done yet" and award twice.
"""

import logging
from typing import List, Optional

from flask import current_app
from sqlalchemy import select, update

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import CLOSED_STATUSES, Appointment, Client, Service
from ..utils.ownership import get_owned
from ..utils.validators import AppointmentPayload
from .notification_service import get_dispatcher

logger = logging.getLogger(__name__)


def _check_references(user_id: int, payload: AppointmentPayload) -> None:
    if get_owned(Client, payload.client_id, user_id) is None:
        raise NotFoundError("Client not found")
    if get_owned(Service, payload.service_id, user_id) is None:
        raise NotFoundError("Service not found")


def _sync_reminder(appointment_id: int, payload: AppointmentPayload, user_id: int) -> None:
    dispatcher = get_dispatcher()
    try:
        if payload.status in CLOSED_STATUSES:
            dispatcher.untag_appointment_reminder(appointment_id, user_id)
        else:
            dispatcher.tag_appointment_reminder(appointment_id, payload.date_time, user_id)
    except Exception:
        logger.exception("Reminder update failed for appointment %s", appointment_id)


def list_appointments(user_id: int, client_id: Optional[int] = None) -> List[Appointment]:
    stmt = select(Appointment).where(Appointment.user_id == user_id)
    if client_id is not None:
        stmt = stmt.where(Appointment.client_id == client_id)
    stmt = stmt.order_by(Appointment.date_time.desc())
    return list(db.session.scalars(stmt).all())


def get_appointment(user_id: int, appointment_id: int) -> Appointment:
    appointment = get_owned(Appointment, appointment_id, user_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


def create_appointment(user_id: int, payload: AppointmentPayload) -> Appointment:
    _check_references(user_id, payload)

    appointment = Appointment(
        user_id=user_id,
        client_id=payload.client_id,
        service_id=payload.service_id,
        date_time=payload.date_time,
        status=payload.status,
        notes=payload.notes,
    )
    db.session.add(appointment)
    db.session.commit()

    if payload.status not in CLOSED_STATUSES:
        _sync_reminder(appointment.id, payload, user_id)
    return appointment


def update_appointment(
    user_id: int, appointment_id: int, payload: AppointmentPayload
) -> Appointment:
    """Overwrite every field of the appointment and apply the side effects."""
    previous = get_appointment(user_id, appointment_id)
    previous_status = previous.status
    _check_references(user_id, payload)

    result = db.session.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.user_id == user_id,
            Appointment.status == previous_status,
        )
        .values(
            client_id=payload.client_id,
            service_id=payload.service_id,
            date_time=payload.date_time,
            status=payload.status,
            notes=payload.notes,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise ConflictError(
            "Appointment was changed by another request, reload and try again"
        )

    if previous_status != "done" and payload.status == "done":
        award = current_app.config["LOYALTY_POINTS_PER_VISIT"]
        db.session.execute(
            update(Client)
            .where(Client.id == payload.client_id, Client.user_id == user_id)
            .values(points=Client.points + award)
            .execution_options(synchronize_session=False)
        )
        logger.info("Awarded %s loyalty points to client %s", award, payload.client_id)

    db.session.commit()

    _sync_reminder(appointment_id, payload, user_id)
    return get_appointment(user_id, appointment_id)


def delete_appointment(user_id: int, appointment_id: int) -> None:
    appointment = get_appointment(user_id, appointment_id)
    try:
        get_dispatcher().untag_appointment_reminder(appointment_id, user_id)
    except Exception:
        logger.exception("Reminder removal failed for appointment %s", appointment_id)
    db.session.delete(appointment)
    db.session.commit()
