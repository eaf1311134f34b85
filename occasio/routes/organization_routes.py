from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from occasio.exceptions import InvalidOperationError, MissingFieldsError
from occasio.services import OrganizationService
from occasio.utils.auth import admin_required, ensure_self_or_admin, get_current_user

organization_bp = Blueprint("organization", __name__)


@organization_bp.route("", methods=["POST"])
@jwt_required()
def create_organization():
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    organization = OrganizationService.create_organization(user.id, data)
    return (
        jsonify(
            {
                "message": "Organization created and pending approval",
                "organization": organization.to_dict(),
            }
        ),
        201,
    )


@organization_bp.route("", methods=["GET"])
@jwt_required()
def get_organizations():
    organizations = OrganizationService.get_all_organizations(
        status=request.args.get("status"), search=request.args.get("search")
    )
    return jsonify({"organizations": [o.to_dict() for o in organizations]})


@organization_bp.route("/pending", methods=["GET"])
@admin_required
def get_pending_organizations():
    organizations = OrganizationService.get_pending_organizations()
    return jsonify({"organizations": [o.to_dict() for o in organizations]})


@organization_bp.route("/user/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user_organizations(user_id):
    user = get_current_user()
    user_id = ensure_self_or_admin(user, user_id)
    organizations = OrganizationService.get_user_organizations(user_id)
    return jsonify({"organizations": [o.to_dict() for o in organizations]})


@organization_bp.route("/<int:organization_id>", methods=["GET"])
@jwt_required()
def get_organization(organization_id):
    organization = OrganizationService.get_organization(organization_id)
    return jsonify({"organization": organization.to_dict(include_members=True)})


@organization_bp.route("/<int:organization_id>/verify", methods=["PATCH"])
@admin_required
def verify_organization(organization_id):
    admin = get_current_user()
    data = request.get_json(silent=True) or {}
    if "approved" not in data:
        raise MissingFieldsError(["approved"])

    approved = data["approved"]
    if not isinstance(approved, bool):
        raise InvalidOperationError("approved must be true or false")

    organization = OrganizationService.verify_organization(
        organization_id, admin.id, approved, data.get("rejection_reason")
    )
    message = "Organization approved successfully" if approved else "Organization rejected"
    return jsonify({"message": message, "organization": organization.to_dict()})


@organization_bp.route("/<int:organization_id>", methods=["PATCH", "PUT"])
@jwt_required()
def update_organization(organization_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    organization = OrganizationService.update_organization(organization_id, user.id, data)
    return jsonify(
        {
            "message": "Organization updated successfully",
            "organization": organization.to_dict(),
        }
    )


@organization_bp.route("/<int:organization_id>", methods=["DELETE"])
@admin_required
def delete_organization(organization_id):
    OrganizationService.delete_organization(organization_id)
    return jsonify({"message": "Organization deleted successfully"})
