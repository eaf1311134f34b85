from occasio.models.user import User
from occasio.models.organization import Organization
from occasio.models.organization_user import OrganizationUser
from occasio.models.event import Event
from occasio.models.event_attendee import EventAttendee
from occasio.models.password_reset import PasswordReset
from occasio.models.owner import IndividualOwner, OrganizationOwner, Owner
from occasio.models.enums import (
    EventStatus,
    AttendeeStatus,
    OrganizationStatus,
    UserRole,
)
