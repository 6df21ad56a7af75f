# Service catalog (name, price, duration)
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ...errors import NotFoundError, StudioError, ValidationError, error_response
from ...extensions import db
from ...models import CLOSED_STATUSES, Appointment, Service
from ...services.notification_service import get_dispatcher
from ...utils.ownership import get_owned
from ...utils.serializers import serialize_service
from ...utils.tokens import token_required
from ...utils.validators import parse_service

services_bp = Blueprint("services", __name__, url_prefix="/api/servicos")


def _get_service_or_404(service_id):
    service = get_owned(Service, service_id, g.user_id)
    if service is None:
        raise NotFoundError("Service not found")
    return service


@services_bp.route("", methods=["GET"])
@token_required
def list_services():
    try:
        services = db.session.scalars(
            select(Service).where(Service.user_id == g.user_id).order_by(Service.name)
        ).all()
        return jsonify([serialize_service(s) for s in services])

    except Exception as e:
        current_app.logger.exception("Error fetching services")
        return jsonify({"status": "error", "message": "Failed to fetch services", "details": str(e)}), 500


@services_bp.route("/<int:service_id>", methods=["GET"])
@token_required
def get_service(service_id):
    try:
        return jsonify(serialize_service(_get_service_or_404(service_id)))

    except StudioError as e:
        return error_response(e)


@services_bp.route("", methods=["POST"])
@token_required
def create_service():
    """
    Create a catalog service
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - price
            - duration
          properties:
            name:
              type: string
              example: Manicure
            description:
              type: string
            price:
              type: number
              example: 35.0
            duration:
              type: integer
              description: minutes
              example: 45
    responses:
      201:
        description: Service created
      400:
        description: Validation error
    """
    try:
        patch = parse_service(request.get_json(silent=True))
        service = Service(user_id=g.user_id, **patch.as_values())
        db.session.add(service)
        db.session.commit()
        return jsonify(serialize_service(service)), 201

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating service")
        return jsonify({"status": "error", "message": "Failed to create service", "details": str(e)}), 500


@services_bp.route("/<int:service_id>", methods=["PATCH"])
@token_required
def update_service(service_id):
    """Partial update: only the keys present in the body are written."""
    try:
        patch = parse_service(request.get_json(silent=True), partial=True)
        _get_service_or_404(service_id)
        if patch.is_empty():
            raise ValidationError("No fields to update")

        db.session.execute(
            update(Service)
            .where(Service.id == service_id, Service.user_id == g.user_id)
            .values(**patch.as_values())
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

        return jsonify(serialize_service(_get_service_or_404(service_id)))

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error updating service {service_id}")
        return jsonify({"status": "error", "message": "Failed to update service", "details": str(e)}), 500


@services_bp.route("/<int:service_id>", methods=["DELETE"])
@token_required
def delete_service(service_id):
    try:
        service = _get_service_or_404(service_id)

        open_ids = db.session.scalars(
            select(Appointment.id).where(
                Appointment.service_id == service.id,
                Appointment.status.not_in(CLOSED_STATUSES),
            )
        ).all()

        db.session.delete(service)
        db.session.commit()

        # Appointments booked for this service went with it through the cascade
        dispatcher = get_dispatcher()
        for appointment_id in open_ids:
            try:
                dispatcher.untag_appointment_reminder(appointment_id, g.user_id)
            except Exception:
                current_app.logger.exception(f"Reminder removal failed for appointment {appointment_id}")

        return "", 204

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error deleting service {service_id}")
        return jsonify({"status": "error", "message": "Failed to delete service", "details": str(e)}), 500
