# putting/routes/auth_routes.py

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required

from ..errors import ValidationError
from ..services.factory import get_services

auth_bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 6


def _token_response(user, status):
    token = create_access_token(identity=str(user.id))
    return jsonify({"token": token, "user": user.to_dict()}), status


@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Body: {"email", "username", "password", "display_name"?, "gender"?}

    The account starts with zeroed aggregates and default weekly goals.
    """
    data = request.get_json(silent=True) or {}
    store = get_services().store

    email = (data.get("email") or "").strip().lower()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""  # passwords are taken verbatim

    errors = []
    if not email or not username or not password:
        errors.append("email, username and password are required")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if email and store.find_user(email=email):
        errors.append("email already in use")
    if username and store.find_user(username=username):
        errors.append("username already in use")
    if errors:
        raise ValidationError(errors)

    user, _ = get_services().progression.initialize_user(
        {
            "email": email,
            "username": username,
            "password": password,
            "display_name": data.get("display_name") or username,
            "gender": data.get("gender"),
        }
    )
    return _token_response(user, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    """Body: {"identifier" | "email" | "username": ..., "password": ...}"""
    data = request.get_json(silent=True) or {}

    identifier = (data.get("identifier") or data.get("email") or data.get("username") or "").strip()
    password = data.get("password") or ""
    if not identifier or not password:
        raise ValidationError("identifier and password are required")

    services = get_services()
    user = services.store.find_login(identifier)
    if user is None or not user.check_password(password):
        current_app.logger.info("login failed for %r", identifier)
        return jsonify({"message": "invalid credentials"}), 401

    # refreshes last_login and resyncs the record counters
    user, _ = services.progression.initialize_user({"email": user.email})
    return _token_response(user, 200)


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user = get_services().store.require_user(int(get_jwt_identity()))
    return jsonify({"user": user.to_dict()}), 200
