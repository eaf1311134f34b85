from enum import Enum


class EventStatus(Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendeeStatus(Enum):
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    # Defined for a check-out step that no workflow performs yet.
    ATTENDED = "attended"


class OrganizationStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


ACTIVE_ATTENDEE_STATUSES = [
    AttendeeStatus.REGISTERED,
    AttendeeStatus.CONFIRMED,
    AttendeeStatus.ATTENDED,
]
TICKET_HOLDER_STATUSES = [AttendeeStatus.REGISTERED, AttendeeStatus.CONFIRMED]
