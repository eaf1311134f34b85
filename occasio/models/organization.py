from occasio.extensions import db
from occasio.utils.file_upload import image_url
from .enums import OrganizationStatus


class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    website = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    logo = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.Enum(OrganizationStatus),
        nullable=False,
        default=OrganizationStatus.PENDING,
    )
    rejection_reason = db.Column(db.Text, nullable=True)
    verified_at = db.Column(db.TIMESTAMP(timezone=True), nullable=True)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    members = db.relationship(
        "OrganizationUser",
        back_populates="organization",
        cascade="all, delete-orphan",
        lazy=True,
    )

    # Fields an organization member may never change through a profile update.
    PROTECTED_FIELDS = ("id", "status", "verified_at", "verified_by", "rejection_reason")
    EDITABLE_FIELDS = ("name", "description", "website", "email", "phone", "address", "logo")

    @property
    def is_approved(self):
        return self.status == OrganizationStatus.APPROVED

    def to_dict(self, include_members=False):
        result = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "website": self.website,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "logo": image_url(self.logo),
            "status": self.status.value if self.status else None,
            "rejection_reason": self.rejection_reason,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "verified_by": self.verified_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_members:
            result["members"] = [member.to_dict() for member in self.members]
        return result

    def __repr__(self):
        return f"<Organization id={self.id} name='{self.name}' status={self.status}>"
