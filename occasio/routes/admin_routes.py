from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from occasio.services import UserService
from occasio.utils.auth import admin_required, get_current_user

admin_bp = Blueprint("admin", __name__)


def _parse_bool(value):
    if value is None or value == "":
        return None
    return value.lower() in ["true", "1", "t"]


@admin_bp.route("/check", methods=["GET"])
@jwt_required()
def check_admin():
    """Check if current user is an admin"""
    user = get_current_user()
    if not user.is_admin:
        return jsonify({"is_admin": False}), 403
    return jsonify({"is_admin": True})


@admin_bp.route("/users", methods=["GET"])
@admin_required
def get_all_users():
    """Get all users (admin only)"""
    users = UserService.get_all_users(
        search=request.args.get("search"),
        role=request.args.get("role") or None,
        is_active=_parse_bool(request.args.get("is_active")),
    )
    return jsonify({"users": [user.to_dict() for user in users]})


@admin_bp.route("/users", methods=["POST"])
@admin_required
def create_user():
    data = request.get_json(silent=True) or {}
    user = UserService.create_user(data)
    return jsonify({"message": "User created successfully", "user": user.to_dict()}), 201


@admin_bp.route("/users/<int:user_id>", methods=["PATCH", "PUT"])
@admin_required
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    user = UserService.update_user(user_id, data)
    return jsonify({"message": "User updated successfully", "user": user.to_dict()})


@admin_bp.route("/users/<int:user_id>/archive", methods=["PATCH"])
@admin_required
def archive_user(user_id):
    return jsonify(UserService.set_active(user_id, False))


@admin_bp.route("/users/<int:user_id>/restore", methods=["PATCH"])
@admin_required
def restore_user(user_id):
    return jsonify(UserService.set_active(user_id, True))
