from occasio.extensions import db
from .enums import AttendeeStatus


class EventAttendee(db.Model):
    __tablename__ = "event_attendees"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status = db.Column(
        db.Enum(AttendeeStatus), nullable=False, default=AttendeeStatus.REGISTERED
    )
    ticket_code = db.Column(db.String(64), unique=True, nullable=True)
    qr_code = db.Column(db.Text, nullable=True)
    registered_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    event = db.relationship("Event", back_populates="attendees")
    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )

    @property
    def has_ticket(self):
        return bool(self.ticket_code and self.qr_code)

    def to_public_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status.value if self.status else None,
            "registered_at": (
                self.registered_at.isoformat() if self.registered_at else None
            ),
            "user": {"email": self.user.email} if self.user else None,
        }

    def __repr__(self):
        return (
            f"EventAttendee("
            f"id={self.id}, "
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"status={self.status}, "
            f"ticket_code={self.ticket_code}, "
            f"registered_at={self.registered_at}"
            f")"
        )
