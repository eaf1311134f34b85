from typing import Optional
from occasio.extensions import db
from occasio.models import PasswordReset


class PasswordResetRepository:
    @staticmethod
    def create(email: str, token: str, expires_at) -> PasswordReset:
        """Store a new token; earlier unused tokens for the email stop working."""
        PasswordReset.query.filter_by(email=email, is_used=False).update(
            {PasswordReset.is_used: True}, synchronize_session=False
        )
        reset = PasswordReset(email=email, token=token, expires_at=expires_at, is_used=False)
        db.session.add(reset)
        db.session.commit()
        return reset

    @staticmethod
    def find_unused(token: str) -> Optional[PasswordReset]:
        return PasswordReset.query.filter_by(token=token, is_used=False).first()

    @staticmethod
    def mark_used(reset: PasswordReset) -> PasswordReset:
        reset.is_used = True
        db.session.commit()
        return reset
