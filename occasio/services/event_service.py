import math
from datetime import date, datetime
from typing import Optional

from flask import current_app

from occasio.exceptions import (
    ForbiddenError,
    InvalidOperationError,
    MissingFieldsError,
    NotFoundError,
)
from occasio.models import Event, IndividualOwner, OrganizationOwner
from occasio.models.enums import EventStatus, TICKET_HOLDER_STATUSES
from occasio.models.owner import owner_columns
from occasio.repositories import (
    EventAttendeeRepository,
    EventRepository,
    OrganizationRepository,
    OrganizationUserRepository,
)
from occasio.services import event_status
from occasio.utils.email import email_configured, send_event_reminder_email
from occasio.utils.file_upload import delete_file, store_image

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def parse_event_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        text = str(value).strip()
        if "T" in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidOperationError("Invalid date format for event_date, expected YYYY-MM-DD")


def parse_time_field(field: str, value) -> str:
    try:
        parsed = event_status.parse_wall_clock(value)
    except (ValueError, AttributeError):
        raise InvalidOperationError(f"Invalid time format for {field}, expected HH:MM")
    return parsed.strftime("%H:%M")


def parse_max_attendees(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        max_attendees = int(value)
    except (TypeError, ValueError):
        raise InvalidOperationError("Invalid format for max_attendees, must be an integer")
    if max_attendees < 1:
        raise InvalidOperationError("max_attendees must be at least 1")
    return max_attendees


def parse_status_filter(value) -> Optional[EventStatus]:
    if not value:
        return None
    try:
        return EventStatus(value)
    except ValueError:
        raise InvalidOperationError(f"Invalid status value: {value}")


def parse_pagination(page, limit):
    try:
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        raise InvalidOperationError("page and limit must be integers")
    return page, limit


def pagination_dict(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def is_event_manager(event: Event, user) -> bool:
    """Admins, the individual organizer, or members of the owning organization."""
    if user is None:
        return False
    if user.is_admin:
        return True
    owner = event.owner
    if isinstance(owner, IndividualOwner):
        return owner.user_id == user.id
    return (
        OrganizationUserRepository.find_membership(owner.organization_id, user.id)
        is not None
    )


class EventService:
    @staticmethod
    def format_event(event: Event, include_attendees: bool = False) -> dict:
        status = event_status.resolve_event_status(event)
        return event.to_dict(status=status, include_attendees=include_attendees)

    @staticmethod
    def get_event_or_404(event_id: int) -> Event:
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    def resolve_owner(data: dict, user):
        organization_id = data.get("organization_id")
        if not organization_id:
            return IndividualOwner(user.id)

        organization = OrganizationRepository.find_by_id(organization_id)
        if not organization:
            raise NotFoundError("Organization not found")
        membership = OrganizationUserRepository.find_membership(organization.id, user.id)
        if not membership and not user.is_admin:
            raise ForbiddenError("You are not a member of this organization")
        return OrganizationOwner(organization.id)

    @staticmethod
    def create_event(data: dict, user) -> dict:
        required_fields = [
            "title",
            "description",
            "event_date",
            "start_time",
            "location",
            "category",
        ]
        missing = [f for f in required_fields if data.get(f) in (None, "")]
        if missing:
            raise MissingFieldsError(missing)

        owner = EventService.resolve_owner(data, user)
        end_time = data.get("end_time")

        attrs = {
            "title": data["title"],
            "description": data["description"],
            "event_date": parse_event_date(data["event_date"]),
            "start_time": parse_time_field("start_time", data["start_time"]),
            "end_time": parse_time_field("end_time", end_time) if end_time else None,
            "location": data["location"],
            "category": data["category"],
            "image": store_image(data.get("image")),
            "max_attendees": parse_max_attendees(data.get("max_attendees")),
            "status": EventStatus.UPCOMING,
        }
        attrs.update(owner_columns(owner))

        event = EventRepository.create_event(attrs)
        current_app.logger.info(f"Event {event.id} created by user {user.id} for owner {owner}")
        return EventService.format_event(event)

    @staticmethod
    def update_event(event_id: int, data: dict, user) -> dict:
        event = EventService.get_event_or_404(event_id)

        if not is_event_manager(event, user):
            raise InvalidOperationError("You do not have permission to update this event")

        current_status = event_status.calculate_event_status(event)
        if current_status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
            raise InvalidOperationError("Cannot update a completed or cancelled event")

        update_data = {}
        for field in ["title", "description", "location", "category"]:
            if field in data and data[field] is not None:
                if data[field] == "":
                    raise InvalidOperationError(f"{field} cannot be empty")
                update_data[field] = data[field]
        if "event_date" in data and data["event_date"]:
            update_data["event_date"] = parse_event_date(data["event_date"])
        if "start_time" in data and data["start_time"]:
            update_data["start_time"] = parse_time_field("start_time", data["start_time"])
        if "end_time" in data:
            update_data["end_time"] = (
                parse_time_field("end_time", data["end_time"]) if data["end_time"] else None
            )
        if "max_attendees" in data:
            update_data["max_attendees"] = parse_max_attendees(data["max_attendees"])
        if "image" in data:
            # An empty string removes the banner
            update_data["image"] = store_image(data["image"]) if data["image"] else None

        if not update_data:
            return EventService.format_event(event)

        previous_image = event.image
        event = EventRepository.update_event(event, update_data)
        if "image" in update_data and previous_image != event.image:
            delete_file(previous_image)

        # Date or time may have moved the event into another phase
        new_status = event_status.calculate_event_status(event)
        if new_status != event.status and event.status != EventStatus.CANCELLED:
            event = EventRepository.update_event(event, {"status": new_status})

        current_app.logger.info(f"Event {event_id} updated by user {user.id}: {sorted(update_data)}")
        return EventService.format_event(event)

    @staticmethod
    def cancel_event(event_id: int, user) -> dict:
        event = EventService.get_event_or_404(event_id)

        if not is_event_manager(event, user):
            raise InvalidOperationError("You do not have permission to cancel this event")

        current_status = event_status.calculate_event_status(event)
        if current_status == EventStatus.CANCELLED:
            raise InvalidOperationError("This event has already been cancelled")
        if current_status == EventStatus.COMPLETED:
            raise InvalidOperationError("Cannot cancel a completed event")

        event = EventRepository.update_event(event, {"status": EventStatus.CANCELLED})
        current_app.logger.info(f"Event {event_id} cancelled by user {user.id}")
        return EventService.format_event(event)

    @staticmethod
    def delete_event(event_id: int, user) -> dict:
        event = EventService.get_event_or_404(event_id)

        if not is_event_manager(event, user):
            raise InvalidOperationError("You can only delete your own events")

        image = event.image
        # Attendee rows go with the event (cascade)
        EventRepository.delete_event(event)
        delete_file(image)
        current_app.logger.info(f"Event {event_id} deleted by user {user.id}")
        return {"message": "Event deleted successfully"}

    @staticmethod
    def get_events(page=1, limit=DEFAULT_PAGE_SIZE, status=None) -> dict:
        page, limit = parse_pagination(page, limit)
        events, total = EventRepository.paginate_events(
            page, limit, parse_status_filter(status)
        )
        return {
            "events": [EventService.format_event(event) for event in events],
            "pagination": pagination_dict(page, limit, total),
        }

    @staticmethod
    def get_event(event_id: int) -> dict:
        event = EventService.get_event_or_404(event_id)
        return EventService.format_event(event, include_attendees=True)

    @staticmethod
    def get_user_events(user_id: int, type="joined", status=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
        page, limit = parse_pagination(page, limit)
        status = parse_status_filter(status)

        if type == "organized":
            events, total = EventRepository.paginate_organized_by(user_id, page, limit, status)
            items = [
                {**EventService.format_event(event), "type": "organized"}
                for event in events
            ]
        elif type == "joined":
            attendees, total = EventAttendeeRepository.paginate_joined_by(
                user_id, page, limit, status
            )
            items = [
                {
                    **EventService.format_event(attendee.event),
                    "type": "joined",
                    "registered_at": (
                        attendee.registered_at.isoformat() if attendee.registered_at else None
                    ),
                    "attendee_status": attendee.status.value,
                }
                for attendee in attendees
            ]
        else:
            raise InvalidOperationError("type must be either 'joined' or 'organized'")

        return {"events": items, "pagination": pagination_dict(page, limit, total)}

    @staticmethod
    def notify_attendees(event_id: int, user) -> dict:
        event = EventService.get_event_or_404(event_id)

        if not is_event_manager(event, user):
            raise InvalidOperationError("You do not have permission to notify attendees of this event")

        if not email_configured():
            raise InvalidOperationError("Email service is not configured")

        attendees = EventAttendeeRepository.find_by_event_and_status(
            event_id, TICKET_HOLDER_STATUSES
        )
        if not attendees:
            raise InvalidOperationError("No attendees to notify")

        notified = 0
        for attendee in attendees:
            try:
                if send_event_reminder_email(attendee, event):
                    notified += 1
            except Exception as e:
                current_app.logger.error(
                    f"Failed to send reminder to attendee {attendee.id} of event {event_id}: {str(e)}",
                    exc_info=True,
                )

        current_app.logger.info(f"Sent {notified}/{len(attendees)} reminders for event {event_id}")
        return {"message": "Email notifications sent successfully", "notified": notified}
