from sqlalchemy import or_
from typing import List, Optional
from occasio.extensions import db
from occasio.models import User
from occasio.models.enums import UserRole


class UserRepository:
    @staticmethod
    def sign_up(user):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def find_by_email(email):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def find_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def find_all(
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
    ) -> List[User]:
        query = User.query
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def update(user: User, attrs: dict) -> User:
        for key, value in attrs.items():
            if hasattr(user, key):
                setattr(user, key, value)
        db.session.commit()
        return user
