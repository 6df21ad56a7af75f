"""Error types raised by the service layer and rendered by the HTTP handlers."""

from flask import jsonify


class StudioError(Exception):
    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"status": "error", "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(StudioError):
    status_code = 400


class AuthError(StudioError):
    status_code = 401


class NotFoundError(StudioError):
    status_code = 404


class ConflictError(StudioError):
    status_code = 409


def error_response(error: StudioError):
    return jsonify(error.to_dict()), error.status_code


def register_error_handlers(app):
    """JSON bodies for errors that never reach a handler's own try/except."""

    app.register_error_handler(StudioError, error_response)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"status": "error", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"status": "error", "message": "Method not allowed"}), 405
