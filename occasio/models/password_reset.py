from datetime import datetime, timezone

from occasio.extensions import db


def utc_now() -> datetime:
    """Naive UTC, the form reset expiry times are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PasswordReset(db.Model):
    __tablename__ = "password_resets"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    token = db.Column(db.String(128), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    def is_expired(self, now=None) -> bool:
        return (now or utc_now()) > self.expires_at

    def __repr__(self):
        return (
            f"PasswordReset("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"expires_at={self.expires_at}, "
            f"is_used={self.is_used}"
            f")"
        )
