# Book, edit, complete, cancel and delete appointments
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from ...errors import StudioError, error_response
from ...extensions import db
from ...services import appointment_service
from ...utils.serializers import serialize_appointment
from ...utils.tokens import token_required
from ...utils.validators import parse_appointment

appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/agendamentos")


@appointments_bp.route("", methods=["GET"])
@token_required
def list_appointments():
    """
    List every appointment of the studio, newest first
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Appointments with the client and service embedded
    """
    try:
        appointments = appointment_service.list_appointments(g.user_id)
        return jsonify([serialize_appointment(a, with_details=True) for a in appointments])

    except Exception as e:
        current_app.logger.exception("Error fetching appointments")
        return jsonify({"status": "error", "message": "Failed to fetch appointments", "details": str(e)}), 500


@appointments_bp.route("/<int:appointment_id>", methods=["GET"])
@token_required
def get_appointment(appointment_id):
    try:
        appointment = appointment_service.get_appointment(g.user_id, appointment_id)
        return jsonify(serialize_appointment(appointment, with_details=True))

    except StudioError as e:
        return error_response(e)


@appointments_bp.route("", methods=["POST"])
@token_required
def create_appointment():
    """
    Book an appointment
    ---
    tags:
      - Appointments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - client_id
            - service_id
            - date_time
          properties:
            client_id:
              type: integer
            service_id:
              type: integer
            date_time:
              type: string
              format: date-time
              example: "2026-11-03T14:00:00Z"
            status:
              type: string
              enum: [pending, confirmed, done, cancelled]
              default: pending
            notes:
              type: string
    responses:
      201:
        description: Appointment created
      400:
        description: Validation error
      404:
        description: Client or service not found
    """
    try:
        payload = parse_appointment(request.get_json(silent=True))
        appointment = appointment_service.create_appointment(g.user_id, payload)
        return jsonify(serialize_appointment(appointment)), 201

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating appointment")
        return jsonify({"status": "error", "message": "Failed to create appointment", "details": str(e)}), 500


@appointments_bp.route("/<int:appointment_id>", methods=["PATCH"])
@token_required
def update_appointment(appointment_id):
    """
    Replace an appointment (all fields) and apply status side effects
    ---
    tags:
      - Appointments
    description: >
      The body is the same as for creation; omitted notes are cleared and an
      omitted status becomes pending. Moving into "done" awards the client
      loyalty points once.
    responses:
      200:
        description: Updated appointment
      400:
        description: Validation error
      404:
        description: Appointment, client or service not found
      409:
        description: Status changed concurrently
    """
    try:
        payload = parse_appointment(request.get_json(silent=True))
        appointment = appointment_service.update_appointment(
            g.user_id, appointment_id, payload
        )
        return jsonify(serialize_appointment(appointment))

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error updating appointment {appointment_id}")
        return jsonify({"status": "error", "message": "Failed to update appointment", "details": str(e)}), 500


@appointments_bp.route("/<int:appointment_id>", methods=["DELETE"])
@token_required
def delete_appointment(appointment_id):
    try:
        appointment_service.delete_appointment(g.user_id, appointment_id)
        return "", 204

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error deleting appointment {appointment_id}")
        return jsonify({"status": "error", "message": "Failed to delete appointment", "details": str(e)}), 500
