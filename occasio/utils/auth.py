from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from occasio.exceptions import ForbiddenError, UnauthorizedError
from occasio.repositories import UserRepository


def current_user_id() -> int:
    return int(get_jwt_identity())


def get_current_user():
    """Return the active user behind the request's access token."""
    user = UserRepository.find_by_id(current_user_id())
    if not user:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError("Your account has been archived. Please contact support.")
    return user


def ensure_self_or_admin(user, user_id) -> int:
    """The acting user may only speak for themselves unless they are an admin."""
    if user_id is None:
        return user.id
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise ForbiddenError("Invalid user id")
    if user_id != user.id and not user.is_admin:
        raise ForbiddenError("You can only act on your own behalf")
    return user_id


def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        user = get_current_user()
        if not user.is_admin:
            raise ForbiddenError("Admin privileges required")
        return fn(*args, **kwargs)

    return wrapper
