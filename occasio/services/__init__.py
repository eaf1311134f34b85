from occasio.services.user_service import UserService
from occasio.services.event_service import EventService
from occasio.services.attendee_service import AttendeeService
from occasio.services.organization_service import OrganizationService
