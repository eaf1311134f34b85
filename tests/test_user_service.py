from datetime import timedelta

import pytest

from occasio.exceptions import (
    ConflictError,
    InvalidOperationError,
    MissingFieldsError,
    NotFoundError,
    UnauthorizedError,
)
from occasio.models.enums import UserRole
from occasio.models import PasswordReset
from occasio.models.password_reset import utc_now
from occasio.services import UserService

SIGNUP = {
    "email": "new@example.com",
    "password": "s3cret-pass",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "birthday": "1990-12-10",
}


def test_sign_up_returns_token(app):
    result = UserService.sign_up(dict(SIGNUP))

    assert result["token"]
    assert result["user"]["email"] == "new@example.com"
    assert result["user"]["role"] == "user"
    assert result["user"]["birthday"] == "1990-12-10"
    assert "password" not in result["user"]


def test_sign_up_duplicate_email(app):
    UserService.sign_up(dict(SIGNUP))

    with pytest.raises(ConflictError):
        UserService.sign_up(dict(SIGNUP))


def test_sign_up_missing_fields(app):
    with pytest.raises(MissingFieldsError) as excinfo:
        UserService.sign_up({"email": "x@example.com"})

    assert set(excinfo.value.fields) == {"password", "first_name", "last_name"}


def test_sign_in(app):
    UserService.sign_up(dict(SIGNUP))

    result = UserService.sign_in("new@example.com", "s3cret-pass")
    assert result["user"]["email"] == "new@example.com"


@pytest.mark.parametrize(
    "email, password",
    [("new@example.com", "wrong"), ("nobody@example.com", "s3cret-pass")],
)
def test_sign_in_bad_credentials(app, email, password):
    UserService.sign_up(dict(SIGNUP))

    with pytest.raises(UnauthorizedError, match="Invalid email or password"):
        UserService.sign_in(email, password)


def test_sign_in_archived(make_user):
    make_user(email="gone@example.com", is_active=False)

    with pytest.raises(UnauthorizedError, match="archived"):
        UserService.sign_in("gone@example.com", "password123")


def test_admin_create_user_with_role(app):
    user = UserService.create_user(dict(SIGNUP, role="admin"))
    assert user.role == UserRole.ADMIN


def test_admin_create_user_bad_role(app):
    with pytest.raises(InvalidOperationError):
        UserService.create_user(dict(SIGNUP, role="superhero"))


def test_update_user(make_user):
    user = make_user()

    updated = UserService.update_user(user.id, {"first_name": "Grace", "role": "admin"})

    assert updated.first_name == "Grace"
    assert updated.is_admin


def test_update_user_email_conflict(make_user):
    make_user(email="taken@example.com")
    user = make_user()

    with pytest.raises(ConflictError):
        UserService.update_user(user.id, {"email": "taken@example.com"})


def test_update_missing_user(app):
    with pytest.raises(NotFoundError):
        UserService.update_user(999, {"first_name": "Nobody"})


def test_archive_and_restore(make_user):
    user = make_user()

    assert UserService.set_active(user.id, False)["message"] == "User archived successfully"
    assert not user.is_active
    assert UserService.set_active(user.id, True)["message"] == "User restored successfully"
    assert user.is_active


def test_filter_users(make_user, admin):
    make_user(email="carol@example.com")
    make_user(email="dave@example.com", is_active=False)

    assert [u.email for u in UserService.get_all_users(search="carol")] == ["carol@example.com"]
    assert [u.email for u in UserService.get_all_users(role="admin")] == ["admin@example.com"]
    assert "dave@example.com" not in [u.email for u in UserService.get_all_users(is_active=True)]


def test_forgot_password_unknown_email(app):
    result = UserService.forgot_password("nobody@example.com")

    assert result == {
        "message": "If an account with that email exists, a password reset link has been sent."
    }
    assert PasswordReset.query.count() == 0


def test_forgot_password_issues_token(make_user):
    user = make_user(email="reset@example.com")

    result = UserService.forgot_password("reset@example.com")

    assert result["reset_token"]
    assert UserService.verify_reset_token(result["reset_token"]) == {
        "valid": True,
        "email": user.email,
    }


def test_new_reset_request_replaces_earlier_token(make_user):
    make_user(email="reset@example.com")
    first = UserService.forgot_password("reset@example.com")["reset_token"]
    second = UserService.forgot_password("reset@example.com")["reset_token"]

    with pytest.raises(InvalidOperationError, match="Invalid or expired"):
        UserService.verify_reset_token(first)
    assert UserService.verify_reset_token(second)["valid"] is True


def test_archived_user_gets_no_token(make_user):
    make_user(email="gone@example.com", is_active=False)

    assert "reset_token" not in UserService.forgot_password("gone@example.com")


def test_reset_password(make_user):
    make_user(email="reset@example.com", password="old-password")
    token = UserService.forgot_password("reset@example.com")["reset_token"]

    result = UserService.reset_password(token, "new-password")

    assert result == {"message": "Your password has been reset successfully."}
    assert UserService.sign_in("reset@example.com", "new-password")["token"]
    with pytest.raises(UnauthorizedError):
        UserService.sign_in("reset@example.com", "old-password")


def test_reset_token_is_single_use(make_user):
    make_user(email="reset@example.com")
    token = UserService.forgot_password("reset@example.com")["reset_token"]
    UserService.reset_password(token, "new-password")

    with pytest.raises(InvalidOperationError, match="Invalid or expired"):
        UserService.reset_password(token, "another-password")


def test_expired_reset_token(make_user, db):
    make_user(email="reset@example.com")
    token = UserService.forgot_password("reset@example.com")["reset_token"]
    reset = PasswordReset.query.filter_by(token=token).one()
    reset.expires_at = utc_now() - timedelta(minutes=1)
    db.session.commit()

    with pytest.raises(InvalidOperationError, match="has expired"):
        UserService.verify_reset_token(token)
    assert reset.is_used is True
    with pytest.raises(InvalidOperationError, match="Invalid or expired"):
        UserService.reset_password(token, "new-password")


def test_reset_password_requires_password(make_user):
    make_user(email="reset@example.com")
    token = UserService.forgot_password("reset@example.com")["reset_token"]

    with pytest.raises(MissingFieldsError):
        UserService.reset_password(token, "")
