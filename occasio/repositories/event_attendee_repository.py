from typing import List, Optional
from occasio.extensions import db
from occasio.models import Event, EventAttendee
from occasio.models.enums import ACTIVE_ATTENDEE_STATUSES, AttendeeStatus


class EventAttendeeRepository:
    @staticmethod
    def find_by_event_and_user(event_id: int, user_id: int) -> Optional[EventAttendee]:
        """Find an attendee registration by event_id and user_id"""
        return EventAttendee.query.filter_by(event_id=event_id, user_id=user_id).first()

    @staticmethod
    def find_by_ticket_code(ticket_code: str) -> Optional[EventAttendee]:
        return EventAttendee.query.filter_by(ticket_code=ticket_code).first()

    @staticmethod
    def count_active_by_event(event_id: int) -> int:
        """Count registrations for an event that have not been cancelled."""
        return (
            EventAttendee.query.filter(EventAttendee.event_id == event_id)
            .filter(EventAttendee.status.in_(ACTIVE_ATTENDEE_STATUSES))
            .count()
        )

    @staticmethod
    def find_by_event_and_status(
        event_id: int, statuses: List[AttendeeStatus]
    ) -> List[EventAttendee]:
        return (
            EventAttendee.query.filter(EventAttendee.event_id == event_id)
            .filter(EventAttendee.status.in_(statuses))
            .all()
        )

    @staticmethod
    def find_by_user_and_status(
        user_id: int, statuses: List[AttendeeStatus]
    ) -> List[EventAttendee]:
        return (
            EventAttendee.query.filter(EventAttendee.user_id == user_id)
            .filter(EventAttendee.status.in_(statuses))
            .order_by(EventAttendee.registered_at.desc(), EventAttendee.id.desc())
            .all()
        )

    @staticmethod
    def paginate_joined_by(user_id: int, page: int, limit: int, status=None):
        query = (
            db.session.query(EventAttendee)
            .join(Event, EventAttendee.event_id == Event.id)
            .filter(
                EventAttendee.user_id == user_id,
                EventAttendee.status != AttendeeStatus.CANCELLED,
            )
        )
        if status:
            query = query.filter(Event.status == status)
        query = query.order_by(Event.event_date.desc())
        total = query.count()
        attendees = query.offset((page - 1) * limit).limit(limit).all()
        return attendees, total

    @staticmethod
    def register_for_event(attrs):
        event_attendee = EventAttendee(**attrs)
        db.session.add(event_attendee)
        db.session.commit()
        return event_attendee

    @staticmethod
    def save(registration: EventAttendee) -> EventAttendee:
        db.session.add(registration)
        db.session.commit()
        return registration

    @staticmethod
    def update_registration_status(
        registration: EventAttendee, new_status: AttendeeStatus
    ) -> EventAttendee:
        registration.status = new_status
        return EventAttendeeRepository.save(registration)
