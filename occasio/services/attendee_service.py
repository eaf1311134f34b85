from flask import current_app
from sqlalchemy.exc import IntegrityError

from occasio.extensions import db
from occasio.exceptions import (
    AlreadyRegisteredError,
    ConflictError,
    EventFullError,
    InvalidOperationError,
    NotFoundError,
)
from occasio.models.enums import AttendeeStatus, EventStatus, TICKET_HOLDER_STATUSES
from occasio.repositories import (
    EventAttendeeRepository,
    EventRepository,
    UserRepository,
)
from occasio.services import event_status
from occasio.utils.file_upload import image_url
from occasio.utils.email import send_join_confirmation_email
from occasio.utils.ticket import issue_ticket, is_valid_ticket_code

# Attempts at inserting a registration before giving up on ticket collisions
TICKET_ISSUE_ATTEMPTS = 3

VERIFICATION_MESSAGES = {
    EventStatus.UPCOMING: (
        "This event has not started yet. QR code verification is only allowed during the event."
    ),
    EventStatus.COMPLETED: (
        "This event has already completed. QR code verification is only allowed during the event."
    ),
    EventStatus.CANCELLED: "This event has been cancelled. QR code is no longer valid.",
}


class AttendeeService:
    @staticmethod
    def join_event(event_id: int, user_id: int) -> dict:
        current_app.logger.info(f"Join attempt: user {user_id} for event {event_id}")

        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")

        if event.organizer_id is not None and event.organizer_id == user_id:
            raise InvalidOperationError("You cannot join your own event")

        status = event_status.resolve_event_status(event)
        if status == EventStatus.CANCELLED:
            raise InvalidOperationError("This event has been cancelled")
        if status == EventStatus.COMPLETED:
            raise InvalidOperationError("This event has already ended")

        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        existing = EventAttendeeRepository.find_by_event_and_user(event_id, user_id)
        if existing and existing.status != AttendeeStatus.CANCELLED:
            current_app.logger.warning(f"User {user_id} already registered for event {event_id}")
            raise AlreadyRegisteredError()

        # Not serialized against concurrent joins; see DESIGN.md
        if event.max_attendees:
            attendee_count = EventAttendeeRepository.count_active_by_event(event_id)
            current_app.logger.info(
                f"Capacity check for event {event_id}: {attendee_count}/{event.max_attendees}"
            )
            if attendee_count >= event.max_attendees:
                raise EventFullError()

        for attempt in range(1, TICKET_ISSUE_ATTEMPTS + 1):
            existing = EventAttendeeRepository.find_by_event_and_user(event_id, user_id)
            if existing and existing.status != AttendeeStatus.CANCELLED:
                raise AlreadyRegisteredError()
            try:
                attendee, message = AttendeeService._register(event_id, user_id, existing)
                break
            except IntegrityError as e:
                db.session.rollback()
                current_app.logger.warning(
                    f"Integrity error registering user {user_id} for event {event_id} "
                    f"(attempt {attempt}/{TICKET_ISSUE_ATTEMPTS}): {str(e)}"
                )
        else:
            raise ConflictError("Could not issue a unique ticket. Please try again.")

        try:
            send_join_confirmation_email(user, event, attendee.ticket_code)
        except Exception as e:
            current_app.logger.error(
                f"Failed to send join confirmation to user {user_id} for event {event_id}: {str(e)}",
                exc_info=True,
            )

        current_app.logger.info(
            f"User {user_id} registered for event {event_id} with ticket {attendee.ticket_code}"
        )
        return {
            "message": message,
            "ticket": {
                "ticket_code": attendee.ticket_code,
                "qr_code": attendee.qr_code,
            },
        }

    @staticmethod
    def _register(event_id: int, user_id: int, existing):
        if existing:
            existing.status = AttendeeStatus.REGISTERED
            # A ticket, once issued, stays with its registration
            if not existing.has_ticket:
                existing.ticket_code, existing.qr_code = issue_ticket(event_id, user_id)
            return EventAttendeeRepository.save(existing), "Successfully re-joined the event"

        ticket_code, qr_code = issue_ticket(event_id, user_id)
        attendee = EventAttendeeRepository.register_for_event(
            {
                "event_id": event_id,
                "user_id": user_id,
                "status": AttendeeStatus.REGISTERED,
                "ticket_code": ticket_code,
                "qr_code": qr_code,
            }
        )
        return attendee, "Successfully joined the event"

    @staticmethod
    def leave_event(event_id: int, user_id: int) -> dict:
        registration = EventAttendeeRepository.find_by_event_and_user(event_id, user_id)
        if not registration:
            raise NotFoundError("You are not registered for this event")

        if registration.status == AttendeeStatus.CANCELLED:
            raise InvalidOperationError("You have already left this event")

        # Ticket fields are kept for history
        EventAttendeeRepository.update_registration_status(
            registration, AttendeeStatus.CANCELLED
        )
        current_app.logger.info(f"User {user_id} left event {event_id}")
        return {"message": "Successfully left the event"}

    @staticmethod
    def get_user_ticket(event_id: int, user_id: int) -> dict:
        attendee = EventAttendeeRepository.find_by_event_and_user(event_id, user_id)
        if not attendee:
            raise NotFoundError("You are not registered for this event")

        if attendee.status == AttendeeStatus.CANCELLED:
            raise InvalidOperationError("Your registration has been cancelled for this event")

        if not attendee.has_ticket:
            raise NotFoundError("Ticket not found for this registration")

        event = attendee.event
        status = event_status.resolve_event_status(event)
        if status == EventStatus.COMPLETED:
            raise NotFoundError("This event has completed. Tickets are no longer available.")

        return {
            "ticket_code": attendee.ticket_code,
            "qr_code": attendee.qr_code,
            "event_id": event.id,
            "event_title": event.title,
            "event_date": event.event_date.isoformat(),
            "event_time": event.start_time,
            "location": event.location,
            "status": attendee.status.value,
            "registered_at": (
                attendee.registered_at.isoformat() if attendee.registered_at else None
            ),
        }

    @staticmethod
    def get_user_tickets(user_id: int) -> list:
        attendees = EventAttendeeRepository.find_by_user_and_status(
            user_id, TICKET_HOLDER_STATUSES
        )

        tickets = []
        for attendee in attendees:
            if not attendee.has_ticket:
                continue
            event = attendee.event
            status = event_status.resolve_event_status(event)
            # Tickets are only visible until the event ends
            if status == EventStatus.COMPLETED:
                continue
            tickets.append(
                {
                    "event_id": event.id,
                    "ticket_code": attendee.ticket_code,
                    "qr_code": attendee.qr_code,
                    "event_title": event.title,
                    "event_description": event.description,
                    "event_date": event.event_date.isoformat(),
                    "event_time": event.start_time,
                    "end_time": event.end_time,
                    "location": event.location,
                    "category": event.category,
                    "image": image_url(event.image),
                    "status": status.value,
                    "attendee_status": attendee.status.value,
                    "registered_at": (
                        attendee.registered_at.isoformat() if attendee.registered_at else None
                    ),
                }
            )
        return tickets

    @staticmethod
    def verify_attendee(event_id: int, ticket_code: str) -> dict:
        """
        Check a ticket in at the door.

        Only possible while the event is ongoing. A registered attendee becomes
        confirmed; verifying an already confirmed ticket again succeeds without
        further change.
        """
        ticket_code = (ticket_code or "").strip()
        if not is_valid_ticket_code(ticket_code):
            raise NotFoundError("Ticket not found or invalid")

        attendee = EventAttendeeRepository.find_by_ticket_code(ticket_code)
        if not attendee:
            raise NotFoundError("Ticket not found or invalid")

        if attendee.event_id != event_id:
            current_app.logger.warning(
                f"Ticket {ticket_code} of event {attendee.event_id} presented at event {event_id}"
            )
            raise InvalidOperationError("Ticket does not belong to this event")

        if attendee.status == AttendeeStatus.CANCELLED:
            raise InvalidOperationError("This ticket has been cancelled")

        status = event_status.resolve_event_status(attendee.event)
        if status != EventStatus.ONGOING:
            raise InvalidOperationError(
                VERIFICATION_MESSAGES.get(
                    status,
                    "QR code verification is only allowed when the event is ongoing.",
                )
            )

        if attendee.status == AttendeeStatus.REGISTERED:
            attendee = EventAttendeeRepository.update_registration_status(
                attendee, AttendeeStatus.CONFIRMED
            )
            current_app.logger.info(f"Attendee {attendee.id} checked in to event {event_id}")

        return {"attendee": attendee.to_public_dict()}
