# Client records and their appointment history
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ...errors import NotFoundError, StudioError, error_response
from ...extensions import db
from ...models import CLOSED_STATUSES, Appointment, Client
from ...services.appointment_service import list_appointments
from ...services.notification_service import get_dispatcher
from ...utils.ownership import get_owned
from ...utils.serializers import serialize_appointment, serialize_client
from ...utils.tokens import token_required
from ...utils.validators import parse_client

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clientes")


def _get_client_or_404(client_id):
    client = get_owned(Client, client_id, g.user_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


@clients_bp.route("", methods=["GET"])
@token_required
def list_clients():
    """
    List the studio's clients, ordered by name
    ---
    tags:
      - Clients
    responses:
      200:
        description: Array of clients
    """
    try:
        clients = db.session.scalars(
            select(Client).where(Client.user_id == g.user_id).order_by(Client.name)
        ).all()
        return jsonify([serialize_client(c) for c in clients])

    except Exception as e:
        current_app.logger.exception("Error fetching clients")
        return jsonify({"status": "error", "message": "Failed to fetch clients", "details": str(e)}), 500


@clients_bp.route("/<int:client_id>", methods=["GET"])
@token_required
def get_client(client_id):
    try:
        return jsonify(serialize_client(_get_client_or_404(client_id)))

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        current_app.logger.exception(f"Error fetching client {client_id}")
        return jsonify({"status": "error", "message": "Failed to fetch client", "details": str(e)}), 500


@clients_bp.route("/<int:client_id>/agendamentos", methods=["GET"])
@token_required
def get_client_appointments(client_id):
    """
    GET /api/clientes/<client_id>/agendamentos
    Purpose: Appointment history of one client, newest first, with the
             client and service embedded in every item.
    """
    try:
        _get_client_or_404(client_id)
        appointments = list_appointments(g.user_id, client_id=client_id)
        return jsonify([serialize_appointment(a, with_details=True) for a in appointments])

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        current_app.logger.exception(f"Error fetching appointments of client {client_id}")
        return jsonify({"status": "error", "message": "Failed to fetch client appointments", "details": str(e)}), 500


@clients_bp.route("", methods=["POST"])
@token_required
def create_client():
    """
    Create a client
    ---
    tags:
      - Clients
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - phone
          properties:
            name:
              type: string
              example: Maria
            phone:
              type: string
              example: "11999999999"
            email:
              type: string
            instagram:
              type: string
            allergies:
              type: string
            preferences:
              type: string
    responses:
      201:
        description: Client created with 0 points
      400:
        description: Validation error
    """
    try:
        data = parse_client(request.get_json(silent=True))
        client = Client(
            user_id=g.user_id,
            name=data.name,
            phone=data.phone,
            email=data.email,
            instagram=data.instagram,
            allergies=data.allergies,
            preferences=data.preferences,
            points=0,
        )
        db.session.add(client)
        db.session.commit()
        return jsonify(serialize_client(client)), 201

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating client")
        return jsonify({"status": "error", "message": "Failed to create client", "details": str(e)}), 500


@clients_bp.route("/<int:client_id>", methods=["PATCH"])
@token_required
def update_client(client_id):
    # Full replace: optional fields left out of the body are cleared.
    # Points are not editable here.
    try:
        data = parse_client(request.get_json(silent=True))
        client = _get_client_or_404(client_id)

        client.name = data.name
        client.phone = data.phone
        client.email = data.email
        client.instagram = data.instagram
        client.allergies = data.allergies
        client.preferences = data.preferences
        db.session.commit()

        return jsonify(serialize_client(client))

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error updating client {client_id}")
        return jsonify({"status": "error", "message": "Failed to update client", "details": str(e)}), 500


@clients_bp.route("/<int:client_id>", methods=["DELETE"])
@token_required
def delete_client(client_id):
    try:
        client = _get_client_or_404(client_id)

        open_ids = db.session.scalars(
            select(Appointment.id).where(
                Appointment.client_id == client.id,
                Appointment.status.not_in(CLOSED_STATUSES),
            )
        ).all()

        db.session.delete(client)
        db.session.commit()

        # Appointments went with the client through the cascade
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
        current_app.logger.exception(f"Error deleting client {client_id}")
        return jsonify({"status": "error", "message": "Failed to delete client", "details": str(e)}), 500
