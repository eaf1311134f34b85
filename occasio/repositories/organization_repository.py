from sqlalchemy import or_
from typing import List, Optional
from occasio.extensions import db
from occasio.models import Organization, OrganizationUser
from occasio.models.enums import OrganizationStatus


class OrganizationRepository:
    @staticmethod
    def find_by_id(organization_id: int) -> Optional[Organization]:
        return db.session.get(Organization, organization_id)

    @staticmethod
    def find_by_name(name: str) -> Optional[Organization]:
        return Organization.query.filter_by(name=name).first()

    @staticmethod
    def find_all(
        status: Optional[OrganizationStatus] = None, search: Optional[str] = None
    ) -> List[Organization]:
        query = Organization.query
        if status:
            query = query.filter(Organization.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Organization.name.ilike(pattern),
                    Organization.description.ilike(pattern),
                    Organization.email.ilike(pattern),
                )
            )
        return query.order_by(Organization.created_at.desc(), Organization.id.desc()).all()

    @staticmethod
    def find_pending() -> List[Organization]:
        return (
            Organization.query.filter_by(status=OrganizationStatus.PENDING)
            .order_by(Organization.created_at.asc(), Organization.id.asc())
            .all()
        )

    @staticmethod
    def create_with_primary_member(attrs: dict, user_id: int) -> Organization:
        organization = Organization(**attrs)
        db.session.add(organization)
        db.session.flush()
        db.session.add(
            OrganizationUser(
                organization_id=organization.id, user_id=user_id, is_primary=True
            )
        )
        db.session.commit()
        return organization

    @staticmethod
    def update(organization: Organization, attrs: dict) -> Organization:
        for key, value in attrs.items():
            if hasattr(organization, key):
                setattr(organization, key, value)
        db.session.commit()
        return organization

    @staticmethod
    def delete(organization: Organization):
        db.session.delete(organization)
        db.session.commit()


class OrganizationUserRepository:
    @staticmethod
    def find_membership(organization_id: int, user_id: int) -> Optional[OrganizationUser]:
        return OrganizationUser.query.filter_by(
            organization_id=organization_id, user_id=user_id
        ).first()

    @staticmethod
    def find_by_user(user_id: int) -> List[OrganizationUser]:
        return OrganizationUser.query.filter_by(user_id=user_id).all()
