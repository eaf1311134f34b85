from occasio.repositories.user_repository import UserRepository
from occasio.repositories.event_repository import EventRepository
from occasio.repositories.event_attendee_repository import EventAttendeeRepository
from occasio.repositories.organization_repository import (
    OrganizationRepository,
    OrganizationUserRepository,
)
from occasio.repositories.password_reset_repository import PasswordResetRepository
