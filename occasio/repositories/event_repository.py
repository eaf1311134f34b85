from typing import Optional
from occasio.extensions import db
from occasio.models import Event, EventStatus


class EventRepository:
    @staticmethod
    def get_events(status: Optional[EventStatus] = None):
        query = Event.query
        if status:
            query = query.filter(Event.status == status)
        return query

    @staticmethod
    def paginate_events(page: int, limit: int, status: Optional[EventStatus] = None):
        query = EventRepository.get_events(status).order_by(
            Event.event_date.asc(), Event.start_time.asc()
        )
        total = query.count()
        events = query.offset((page - 1) * limit).limit(limit).all()
        return events, total

    @staticmethod
    def paginate_organized_by(
        user_id: int, page: int, limit: int, status: Optional[EventStatus] = None
    ):
        query = Event.query.filter(Event.organizer_id == user_id)
        if status:
            query = query.filter(Event.status == status)
        query = query.order_by(Event.event_date.desc())
        total = query.count()
        events = query.offset((page - 1) * limit).limit(limit).all()
        return events, total

    @staticmethod
    def get_event(event_id: int) -> Event:
        return db.session.get(Event, event_id)

    @staticmethod
    def create_event(attrs):
        event = Event(**attrs)
        db.session.add(event)
        db.session.commit()
        return event

    @staticmethod
    def update_event(event: Event, attrs: dict):
        for key, value in attrs.items():
            if hasattr(event, key):
                setattr(event, key, value)
        db.session.commit()
        return event

    @staticmethod
    def update_status(event_id: int, status: EventStatus) -> int:
        """Write the cached status without loading the row."""
        updated = (
            Event.query.filter(Event.id == event_id)
            .filter(Event.status != EventStatus.CANCELLED)
            .update({Event.status: status}, synchronize_session=False)
        )
        db.session.commit()
        return updated

    @staticmethod
    def delete_event(event: Event):
        db.session.delete(event)
        db.session.commit()
