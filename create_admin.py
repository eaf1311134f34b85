import os

from werkzeug.security import generate_password_hash

from occasio import create_app
from occasio.extensions import db
from occasio.models import User
from occasio.models.enums import UserRole


def create_admin_user(email, password, update=False):
    app = create_app()
    with app.app_context():
        admin = User.query.filter_by(email=email).first()
        if not admin:
            admin = User(
                email=email,
                password=generate_password_hash(password),
                role=UserRole.ADMIN,
                first_name="Admin",
                last_name="User",
                is_active=True,
            )
            db.session.add(admin)
            db.session.commit()
            app.logger.info(f"Admin user {email} created")
        elif update:
            admin.password = generate_password_hash(password)
            admin.role = UserRole.ADMIN
            admin.is_active = True
            db.session.commit()
            app.logger.info(f"Admin user {email} updated")
        else:
            app.logger.info(f"Admin user {email} already exists")


if __name__ == "__main__":
    create_admin_user(
        os.getenv("ADMIN_EMAIL", "admin@example.com"),
        os.getenv("ADMIN_PASSWORD", "admin123"),
        update=True,
    )
