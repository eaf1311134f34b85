"""
Test configuration and fixtures.

Provides:
- Flask app on an in-memory SQLite database, rebuilt for each test
- Factories for users, organizations, events and registrations
- JWT headers for authenticated requests
- A fixed clock for everything that depends on event status
"""
from datetime import date, datetime

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from occasio import create_app
from occasio.extensions import db as _db
from occasio.models import Event, EventAttendee, Organization, OrganizationUser, User
from occasio.models.enums import (
    AttendeeStatus,
    EventStatus,
    OrganizationStatus,
    UserRole,
)
from occasio.services import event_status

# All clock-dependent tests run at noon on this day
FIXED_NOW = datetime(2030, 6, 15, 12, 0)
TODAY = FIXED_NOW.date()


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "RATELIMIT_ENABLED": False,
            "EVENT_STATUS_WRITE_BACK": False,
            "EVENT_TIMEZONE": None,
            "EVENT_DEFAULT_DURATION_HOURS": 2,
            "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
            "MAIL_SERVER": None,
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        }
    )
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    monkeypatch.setattr(event_status, "local_now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(email=None, role=UserRole.USER, password="password123", is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password=generate_password_hash(password),
            first_name="Test",
            last_name=f"User{counter['n']}",
            role=role,
            is_active=is_active,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_organization(app):
    counter = {"n": 0}

    def _make_organization(member=None, status=OrganizationStatus.APPROVED, name=None):
        counter["n"] += 1
        organization = Organization(
            name=name or f"Organization {counter['n']}",
            description="Community events",
            status=status,
        )
        _db.session.add(organization)
        _db.session.flush()
        if member is not None:
            _db.session.add(
                OrganizationUser(
                    organization_id=organization.id, user_id=member.id, is_primary=True
                )
            )
        _db.session.commit()
        return organization

    return _make_organization


@pytest.fixture
def make_event(app):
    def _make_event(
        organizer=None,
        organization=None,
        event_date=None,
        start_time="18:00",
        end_time=None,
        max_attendees=None,
        status=EventStatus.UPCOMING,
        title="Summer Meetup",
    ):
        event = Event(
            title=title,
            description="An evening of talks",
            event_date=event_date or date(2030, 6, 20),
            start_time=start_time,
            end_time=end_time,
            location="Main Hall",
            category="Community",
            max_attendees=max_attendees,
            status=status,
            organizer_id=organizer.id if organizer is not None and organization is None else None,
            organization_id=organization.id if organization is not None else None,
        )
        _db.session.add(event)
        _db.session.commit()
        return event

    return _make_event


@pytest.fixture
def make_registration(app):
    def _make_registration(event, user, status=AttendeeStatus.REGISTERED, ticket_code=None):
        registration = EventAttendee(
            event_id=event.id,
            user_id=user.id,
            status=status,
            ticket_code=ticket_code,
            qr_code="data:image/png;base64,AAAA" if ticket_code else None,
        )
        _db.session.add(registration)
        _db.session.commit()
        return registration

    return _make_registration


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def organizer(make_user):
    return make_user(email="organizer@example.com")


@pytest.fixture
def attendee(make_user):
    return make_user(email="attendee@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def ongoing_event(make_event, organizer):
    # 11:00 start with the default two hour window covers FIXED_NOW
    return make_event(organizer=organizer, event_date=TODAY, start_time="11:00")
