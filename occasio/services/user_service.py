from datetime import datetime, timedelta
import logging
import secrets

from flask import current_app
from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash, generate_password_hash

from occasio.exceptions import (
    ConflictError,
    InvalidOperationError,
    MissingFieldsError,
    NotFoundError,
    UnauthorizedError,
)
from occasio.models import User
from occasio.models.enums import UserRole
from occasio.models.password_reset import utc_now
from occasio.repositories import PasswordResetRepository, UserRepository
from occasio.utils.email import send_password_reset_email

logger = logging.getLogger(__name__)


def _parse_birthday(value):
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidOperationError("Invalid birthday, expected YYYY-MM-DD")


def _parse_role(value):
    if value is None:
        return None
    try:
        return UserRole(value)
    except ValueError:
        raise InvalidOperationError(f"Invalid role: {value}")


class UserService:
    @staticmethod
    def _create_user(user_data, role=UserRole.USER) -> User:
        required_fields = ["email", "password", "first_name", "last_name"]
        missing = [f for f in required_fields if not user_data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        if UserRepository.find_by_email(user_data["email"]):
            logger.warning(f"Signup attempt with existing email: {user_data['email']}")
            raise ConflictError("An account with this email address already exists.")

        user = User(
            email=user_data["email"],
            password=generate_password_hash(user_data["password"]),
            first_name=user_data["first_name"],
            last_name=user_data["last_name"],
            gender=user_data.get("gender"),
            birthday=_parse_birthday(user_data.get("birthday")),
            role=role,
            is_active=True,
        )
        return UserRepository.sign_up(user)

    @staticmethod
    def sign_up(user_data):
        created_user = UserService._create_user(user_data)

        access_token = create_access_token(identity=str(created_user.id))
        logger.info(f"User created successfully: {created_user.email}")

        return {"token": access_token, "user": created_user.to_dict()}

    @staticmethod
    def sign_in(email, password):
        user = UserRepository.find_by_email(email)
        if not user:
            logger.warning(f"Login attempt with non-existent email: {email}")
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            logger.warning(f"Login attempt on archived account: {email}")
            raise UnauthorizedError("Your account has been archived. Please contact support.")

        if not check_password_hash(user.password, password):
            logger.warning(f"Failed login attempt for user: {email}")
            raise UnauthorizedError("Invalid email or password")

        access_token = create_access_token(identity=str(user.id))
        logger.info(f"User logged in successfully: {email}")

        return {"token": access_token, "user": user.to_dict()}

    @staticmethod
    def get_all_users(search=None, role=None, is_active=None):
        return UserRepository.find_all(
            search=search, role=_parse_role(role), is_active=is_active
        )

    @staticmethod
    def create_user(user_data) -> User:
        """Create an account on behalf of an admin, optionally with a role."""
        role = _parse_role(user_data.get("role")) or UserRole.USER
        user = UserService._create_user(user_data, role=role)
        logger.info(f"User {user.email} created by admin with role {role.value}")
        return user

    @staticmethod
    def update_user(user_id: int, data: dict) -> User:
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        updates = {}
        email = data.get("email")
        if email and email != user.email:
            if UserRepository.find_by_email(email):
                raise ConflictError("An account with this email address already exists.")
            updates["email"] = email
        if data.get("password"):
            updates["password"] = generate_password_hash(data["password"])
        if data.get("role"):
            updates["role"] = _parse_role(data["role"])
        for field in ("first_name", "last_name", "gender"):
            if field in data:
                updates[field] = data[field] or None
        if "birthday" in data:
            updates["birthday"] = _parse_birthday(data["birthday"])

        return UserRepository.update(user, updates)

    @staticmethod
    def set_active(user_id: int, is_active: bool) -> dict:
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        UserRepository.update(user, {"is_active": is_active})
        action = "restored" if is_active else "archived"
        logger.info(f"User {user.email} {action}")
        return {"success": True, "message": f"User {action} successfully"}

    @staticmethod
    def forgot_password(email):
        """Issue a reset token and email it.

        The response is the same whether or not the account exists.
        """
        response = {
            "message": "If an account with that email exists, a password reset link has been sent."
        }

        user = UserRepository.find_by_email(email)
        if not user or not user.is_active:
            logger.warning(f"Password reset requested for unknown or archived email: {email}")
            return response

        minutes = current_app.config.get("PASSWORD_RESET_TOKEN_MINUTES", 30)
        token = secrets.token_urlsafe(32)
        PasswordResetRepository.create(user.email, token, utc_now() + timedelta(minutes=minutes))
        send_password_reset_email(user, token)
        logger.info(f"Password reset token issued for {user.email}")

        if current_app.testing:
            response["reset_token"] = token
        return response

    @staticmethod
    def _get_valid_reset(token):
        reset = PasswordResetRepository.find_unused(token) if token else None
        if not reset:
            raise InvalidOperationError("Invalid or expired reset token")

        if reset.is_expired():
            PasswordResetRepository.mark_used(reset)
            raise InvalidOperationError("Reset token has expired. Please request a new one.")
        return reset

    @staticmethod
    def verify_reset_token(token):
        reset = UserService._get_valid_reset(token)
        return {"valid": True, "email": reset.email}

    @staticmethod
    def reset_password(token, new_password):
        if not new_password:
            raise MissingFieldsError(["password"])

        reset = UserService._get_valid_reset(token)
        user = UserRepository.find_by_email(reset.email)
        if not user or not user.is_active:
            PasswordResetRepository.mark_used(reset)
            raise InvalidOperationError("Invalid or expired reset token")

        UserRepository.update(user, {"password": generate_password_hash(new_password)})
        PasswordResetRepository.mark_used(reset)
        logger.info(f"Password reset completed for {user.email}")

        return {"message": "Your password has been reset successfully."}
