import datetime
from functools import wraps

import jwt
from flask import current_app, g, jsonify, request

ALGORITHM = "HS256"


def generate_token(user_id: int) -> str:
    payload = {
        "user_id": user_id,
        "exp": datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(days=current_app.config["TOKEN_TTL_DAYS"]),
    }
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm=ALGORITHM)


def decode_token(token: str) -> int:
    """Return the user id inside ``token``; raises the PyJWT errors as-is."""
    payload = jwt.decode(
        token, current_app.config["SECRET_KEY"], algorithms=[ALGORITHM]
    )
    user_id = payload.get("user_id")
    if not isinstance(user_id, int):
        raise jwt.InvalidTokenError("Token carries no user id")
    return user_id


def token_required(view):
    """Reject the request with 401 unless it carries a valid bearer token.

    The authenticated user id is exposed as ``g.user_id``.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return jsonify({"status": "error", "message": "Token not provided"}), 401

        token = auth_header[7:].strip()
        try:
            g.user_id = decode_token(token)
        # ExpiredSignatureError subclasses InvalidTokenError, so it goes first
        except jwt.ExpiredSignatureError:
            return jsonify({"status": "error", "message": "Token expired"}), 401
        except jwt.InvalidTokenError:
            return jsonify({"status": "error", "message": "Invalid token"}), 401

        return view(*args, **kwargs)

    return wrapper
