from flask import Blueprint, jsonify, make_response, request
from flask_jwt_extended import jwt_required

from occasio.exceptions import InvalidOperationError, MissingFieldsError
from occasio.services import UserService
from occasio.utils.auth import get_current_user

user_bp = Blueprint("user", __name__)


@user_bp.route("/signup", methods=["POST"])
def sign_up():
    user_data = request.get_json(silent=True)
    if not user_data:
        raise InvalidOperationError("No data provided")

    result = UserService.sign_up(user_data)
    return make_response(jsonify(result), 201)


@user_bp.route("/signin", methods=["POST"])
def sign_in():
    user_data = request.get_json(silent=True)
    if not user_data:
        raise InvalidOperationError("No data provided")

    required_fields = ["email", "password"]
    missing_fields = [field for field in required_fields if not user_data.get(field)]
    if missing_fields:
        raise MissingFieldsError(missing_fields)

    result = UserService.sign_in(user_data["email"], user_data["password"])
    return make_response(jsonify(result), 200)


@user_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user_profile():
    return jsonify({"user": get_current_user().to_dict()})


@user_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = request.get_json(silent=True) or {}
    if not data.get("email"):
        raise MissingFieldsError(["email"])

    result = UserService.forgot_password(data["email"])
    return make_response(jsonify(result), 200)


@user_bp.route("/verify-reset-token", methods=["POST"])
def verify_reset_token():
    data = request.get_json(silent=True) or {}
    if not data.get("token"):
        raise MissingFieldsError(["token"])

    return make_response(jsonify(UserService.verify_reset_token(data["token"])), 200)


@user_bp.route("/reset-password", methods=["POST", "PATCH"])
@user_bp.route("/reset-password/<token>", methods=["POST", "PATCH"])
def reset_password(token=None):
    data = request.get_json(silent=True) or {}
    token = token or data.get("token")
    missing_fields = [
        field for field, value in (("token", token), ("password", data.get("password"))) if not value
    ]
    if missing_fields:
        raise MissingFieldsError(missing_fields)

    result = UserService.reset_password(token, data["password"])
    return make_response(jsonify(result), 200)
