from occasio.extensions import db
from occasio.utils.file_upload import image_url
from .enums import EventStatus, AttendeeStatus
from .owner import IndividualOwner, OrganizationOwner


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    event_date = db.Column(db.Date, nullable=False)
    # Wall-clock "HH:MM" strings, interpreted in EVENT_TIMEZONE.
    start_time = db.Column(db.String(8), nullable=False)
    end_time = db.Column(db.String(8), nullable=True)
    location = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    image = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.Enum(EventStatus), nullable=False, default=EventStatus.UPCOMING
    )
    max_attendees = db.Column(db.Integer, nullable=True)
    organizer_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
    )
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    organizer = db.relationship("User", foreign_keys=[organizer_id])
    organization = db.relationship(
        "Organization",
        backref=db.backref("events", lazy=True, cascade="all, delete-orphan"),
    )
    attendees = db.relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __table_args__ = (
        db.CheckConstraint(
            "(organizer_id IS NULL) <> (organization_id IS NULL)",
            name="ck_events_single_owner",
        ),
    )

    @property
    def owner(self):
        if self.organization_id is not None:
            return OrganizationOwner(self.organization_id)
        return IndividualOwner(self.organizer_id)

    @property
    def active_attendees(self):
        return [a for a in self.attendees if a.status != AttendeeStatus.CANCELLED]

    def organizer_name(self):
        if self.organization is not None:
            return self.organization.name
        if self.organizer is not None:
            return self.organizer.display_name()
        return "Unknown Organizer"

    def to_dict(self, status=None, include_attendees=False):
        """Serialize the event; ``status`` is the computed status when known."""
        status = status or self.status
        result = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "event_date": self.event_date.isoformat() if self.event_date else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "location": self.location,
            "category": self.category,
            "image": image_url(self.image),
            "status": status.value if status else None,
            "attendees": len(self.active_attendees),
            "max_attendees": self.max_attendees,
            "organizer_id": self.organizer_id,
            "organizer_name": self.organizer_name(),
            "organizer_email": self.organizer.email if self.organizer else None,
            "organization_id": self.organization_id,
            "organization_name": self.organization.name if self.organization else None,
            "organization_logo": image_url(self.organization.logo) if self.organization else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_attendees:
            result["attendee_list"] = [
                attendee.to_public_dict() for attendee in self.active_attendees
            ]
        return result

    def __repr__(self):
        return (
            f"Event("
            f"id={self.id}, "
            f"title='{self.title}', "
            f"event_date={self.event_date}, "
            f"start_time='{self.start_time}', "
            f"end_time='{self.end_time}', "
            f"status={self.status}"
            f")"
        )
