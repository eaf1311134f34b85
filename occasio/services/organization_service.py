from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError

from occasio.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    MissingFieldsError,
    NotFoundError,
)
from occasio.models import Organization
from occasio.models.enums import OrganizationStatus
from occasio.extensions import db
from occasio.repositories import OrganizationRepository, OrganizationUserRepository
from occasio.utils.file_upload import delete_file, store_image

LOGO_SUBDIR = "organizations"


class OrganizationService:
    @staticmethod
    def get_organization_or_404(organization_id: int) -> Organization:
        organization = OrganizationRepository.find_by_id(organization_id)
        if not organization:
            raise NotFoundError("Organization not found")
        return organization

    @staticmethod
    def create_organization(user_id: int, data: dict) -> Organization:
        """Register an organization; it stays pending until an admin reviews it."""
        name = (data.get("name") or "").strip()
        if not name:
            raise MissingFieldsError(["name"])

        if OrganizationRepository.find_by_name(name):
            raise ConflictError("Organization name already exists")

        attrs = {
            field: data.get(field)
            for field in Organization.EDITABLE_FIELDS
            if field not in ("name", "logo")
        }
        attrs.update(
            {
                "name": name,
                "logo": store_image(data.get("logo"), subdir=LOGO_SUBDIR),
                "status": OrganizationStatus.PENDING,
            }
        )

        try:
            organization = OrganizationRepository.create_with_primary_member(attrs, user_id)
        except IntegrityError as e:
            # Another request took the name between the check and the insert
            db.session.rollback()
            current_app.logger.warning(f"Integrity error creating organization '{name}': {str(e)}")
            raise ConflictError("Organization name already exists")

        current_app.logger.info(
            f"Organization {organization.id} '{name}' created by user {user_id}, pending review"
        )
        return organization

    @staticmethod
    def verify_organization(
        organization_id: int, admin_id: int, approved: bool, rejection_reason=None
    ) -> Organization:
        """
        Approve or reject a pending organization.

        Records who reviewed it and when. The rejection reason is only stored
        when rejecting. Reviewed organizations cannot be reviewed again.
        """
        organization = OrganizationService.get_organization_or_404(organization_id)

        if organization.status != OrganizationStatus.PENDING:
            raise InvalidOperationError(
                f"Organization has already been {organization.status.value}"
            )

        attrs = {
            "status": OrganizationStatus.APPROVED if approved else OrganizationStatus.REJECTED,
            "verified_at": datetime.now(timezone.utc),
            "verified_by": admin_id,
        }
        if not approved and rejection_reason:
            attrs["rejection_reason"] = rejection_reason

        organization = OrganizationRepository.update(organization, attrs)
        current_app.logger.info(
            f"Organization {organization_id} {organization.status.value} by admin {admin_id}"
        )
        return organization

    @staticmethod
    def update_organization(organization_id: int, user_id: int, updates: dict) -> Organization:
        membership = OrganizationUserRepository.find_membership(organization_id, user_id)
        if not membership:
            raise ForbiddenError("You are not authorized to update this organization")

        organization = OrganizationService.get_organization_or_404(organization_id)

        if not organization.is_approved:
            raise InvalidOperationError("Organization must be approved before updating")

        # Review fields can only change through verification
        allowed_updates = {
            key: value
            for key, value in updates.items()
            if key in Organization.EDITABLE_FIELDS
            and key not in Organization.PROTECTED_FIELDS
        }

        if "name" in allowed_updates:
            name = (allowed_updates["name"] or "").strip()
            if not name:
                raise InvalidOperationError("Organization name cannot be empty")
            other = OrganizationRepository.find_by_name(name)
            if other and other.id != organization.id:
                raise ConflictError("Organization name already exists")
            allowed_updates["name"] = name
        if allowed_updates.get("logo"):
            allowed_updates["logo"] = store_image(allowed_updates["logo"], subdir=LOGO_SUBDIR)

        previous_logo = organization.logo
        organization = OrganizationRepository.update(organization, allowed_updates)
        if "logo" in allowed_updates and previous_logo != organization.logo:
            delete_file(previous_logo)
        return organization

    @staticmethod
    def get_organization(organization_id: int) -> Organization:
        return OrganizationService.get_organization_or_404(organization_id)

    @staticmethod
    def get_user_organizations(user_id: int):
        return [m.organization for m in OrganizationUserRepository.find_by_user(user_id)]

    @staticmethod
    def get_pending_organizations():
        return OrganizationRepository.find_pending()

    @staticmethod
    def get_all_organizations(status=None, search=None):
        if status:
            try:
                status = OrganizationStatus(status)
            except ValueError:
                raise InvalidOperationError(f"Invalid status value: {status}")
        return OrganizationRepository.find_all(status=status, search=search)

    @staticmethod
    def delete_organization(organization_id: int):
        organization = OrganizationService.get_organization_or_404(organization_id)
        OrganizationRepository.delete(organization)
        current_app.logger.info(f"Organization {organization_id} deleted")
