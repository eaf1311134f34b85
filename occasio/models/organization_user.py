from occasio.extensions import db


class OrganizationUser(db.Model):
    __tablename__ = "organization_users"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    organization = db.relationship("Organization", back_populates="members")
    user = db.relationship("User")

    # A user can only be a member of an organization once
    __table_args__ = (
        db.UniqueConstraint(
            "organization_id", "user_id", name="uq_organization_user"
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "is_primary": self.is_primary,
            "user": {"email": self.user.email} if self.user else None,
        }

    def __repr__(self):
        return f"<OrganizationUser organization_id={self.organization_id} user_id={self.user_id}>"
