from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import bcrypt

from ..errors import AuthError, StudioError, error_response
from ..extensions import db
from ..models import User
from ..utils.serializers import serialize_user
from ..utils.tokens import generate_token, token_required
from ..utils.validators import parse_login, parse_registration

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/register", methods=["POST"])
def register_user():
    """
    Register a studio user
    ---
    tags:
      - Authentication
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email:
              type: string
              example: a@x.com
            password:
              type: string
              example: secret1
    responses:
      201:
        description: User created, token returned
      400:
        description: Invalid input or email already in use
    """
    try:
        creds = parse_registration(request.get_json(silent=True))

        existing = db.session.scalar(select(User).where(User.email == creds.email))
        if existing:
            return jsonify({"status": "error", "message": "Email already in use"}), 400

        hashed_pw = bcrypt.hashpw(creds.password.encode("utf-8"), bcrypt.gensalt())
        user = User(email=creds.email, password_hash=hashed_pw.decode("utf-8"))
        db.session.add(user)
        db.session.commit()

        return jsonify({"token": generate_token(user.id), "user": serialize_user(user)}), 201

    except StudioError as e:
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({
            "status": "error",
            "message": "Database integrity error",
            "details": str(e.orig),
        }), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error registering user")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e),
        }), 500


@auth_bp.route("/login", methods=["POST"])
def login_user():
    """
    Log in and receive a bearer token
    ---
    tags:
      - Authentication
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Token issued
      400:
        description: Email or password missing
      401:
        description: Invalid credentials
    """
    try:
        creds = parse_login(request.get_json(silent=True))

        user = db.session.scalar(select(User).where(User.email == creds.email))
        if not user or not user.password_hash:
            raise AuthError("Invalid email or password")

        if not bcrypt.checkpw(
            creds.password.encode("utf-8"), user.password_hash.encode("utf-8")
        ):
            raise AuthError("Invalid email or password")

        return jsonify({"token": generate_token(user.id), "user": serialize_user(user)}), 200

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        current_app.logger.exception("Error logging in")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e),
        }), 500


@auth_bp.route("/me", methods=["GET"])
@token_required
def get_current_user():
    try:
        user = db.session.get(User, g.user_id)
        if not user:
            return jsonify({"status": "error", "message": "User not found"}), 404
        return jsonify({"user": serialize_user(user)}), 200

    except Exception as e:
        current_app.logger.exception("Error fetching user")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e),
        }), 500
