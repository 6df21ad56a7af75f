from flask import Blueprint, current_app, jsonify, request

from ..errors import StudioError, error_response
from ..services.notification_service import get_dispatcher
from ..utils.tokens import token_required
from ..utils.validators import parse_subscription

push_bp = Blueprint("push", __name__, url_prefix="/api")


@push_bp.route("/vapid-public-key", methods=["GET"])
def get_vapid_public_key():
    """
    Public VAPID key for the browser's PushManager.subscribe()
    ---
    tags:
      - Notifications
    security: []
    responses:
      200:
        description: The url-safe base64 public key
    """
    try:
        return jsonify({"publicKey": get_dispatcher().public_key})

    except Exception as e:
        current_app.logger.exception("Error loading VAPID keys")
        return jsonify({"status": "error", "message": "Failed to load push key", "details": str(e)}), 500


@push_bp.route("/subscribe", methods=["POST"])
def subscribe():
    """
    Register a Web Push subscription
    ---
    tags:
      - Notifications
    security: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - endpoint
            - keys
          properties:
            endpoint:
              type: string
            keys:
              type: object
              properties:
                p256dh:
                  type: string
                auth:
                  type: string
    responses:
      201:
        description: Subscription stored (or already known)
      400:
        description: Missing endpoint or keys
    """
    try:
        subscription = parse_subscription(request.get_json(silent=True))
        created = get_dispatcher().register_subscription(subscription)
        return jsonify({"status": "success", "created": created}), 201

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        current_app.logger.exception("Error saving push subscription")
        return jsonify({"status": "error", "message": "Failed to save subscription", "details": str(e)}), 500


@push_bp.route("/notifications/test", methods=["POST"])
@token_required
def send_test_notification():
    """Broadcast a test message to every subscriber and report per-endpoint results."""
    try:
        data = request.get_json(silent=True) or {}
        title = data.get("title") or "Test notification"
        body = data.get("body") or "Push notifications are working."
        results = get_dispatcher().broadcast(title, body)
        return jsonify({
            "status": "success",
            "sent": sum(1 for r in results if r["ok"]),
            "failed": sum(1 for r in results if not r["ok"]),
            "results": results,
        }), 200

    except Exception as e:
        current_app.logger.exception("Error sending test notification")
        return jsonify({"status": "error", "message": "Failed to send test notification", "details": str(e)}), 500
