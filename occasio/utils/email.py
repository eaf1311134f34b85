from flask import current_app, render_template
from flask_mail import Message, Mail
from threading import Thread
from datetime import datetime

mail = Mail()

SENDER_NAME = "Occasio"


def send_async_email(app, msg):
    with app.app_context():
        try:
            mail.send(msg)
        except Exception as e:
            app.logger.error(f"Failed to send email: {e}", exc_info=True)


def email_configured(app=None) -> bool:
    app = app or current_app
    return bool(app.config.get("MAIL_SERVER"))


def _sender(app):
    return (
        SENDER_NAME,
        app.config.get("MAIL_DEFAULT_SENDER") or app.config.get("MAIL_USERNAME"),
    )


def _dispatch(app, msg, label):
    # If in testing mode, log the email instead of sending it
    if app.testing:
        app.logger.info(f"--- MOCK {label} EMAIL ---")
        app.logger.info(f"To: {', '.join(msg.recipients)}")
        app.logger.info(f"Subject: {msg.subject}")
        app.logger.info(f"--- END MOCK {label} EMAIL ---")
        return

    Thread(target=send_async_email, args=(app, msg)).start()


def send_join_confirmation_email(user, event, ticket_code) -> bool:
    """Send the registration confirmation with the ticket code.

    Returns False when the message was skipped.
    """
    app = current_app._get_current_object()

    if not email_configured(app) or not user or not user.email:
        app.logger.warning(
            "Email service not configured or user email not available, "
            f"skipping confirmation for event {event.id}"
        )
        return False

    event_link = f"{app.config.get('CLIENT_URL')}/event/{event.id}"
    msg = Message(
        f"Registration Confirmed: {event.title}",
        sender=_sender(app),
        recipients=[user.email],
    )
    msg.html = render_template(
        "email/join_confirmation.html",
        user_name=user.full_name or "there",
        event=event,
        event_date=event.event_date.strftime("%A, %B %d, %Y"),
        event_link=event_link,
        ticket_code=ticket_code,
        current_year=datetime.utcnow().year,
    )

    _dispatch(app, msg, "JOIN CONFIRMATION")
    return True


def send_event_reminder_email(attendee, event) -> bool:
    """Send a reminder about ``event`` to one registered attendee."""
    app = current_app._get_current_object()

    if not email_configured(app) or not attendee.user or not attendee.user.email:
        return False

    msg = Message(
        f"Event Reminder: {event.title}",
        sender=_sender(app),
        recipients=[attendee.user.email],
    )
    msg.html = render_template(
        "email/event_reminder.html",
        event=event,
        event_date=event.event_date.strftime("%A, %B %d, %Y"),
        organizer_name=event.organization.name if event.organization else "Event Organizer",
        attendee_status=attendee.status.value.capitalize(),
        current_year=datetime.utcnow().year,
    )

    _dispatch(app, msg, "EVENT REMINDER")
    return True


def send_password_reset_email(user, token) -> bool:
    app = current_app._get_current_object()

    if not email_configured(app):
        app.logger.warning(f"Email service not configured, skipping password reset for {user.email}")
        return False

    reset_url = f"{app.config.get('CLIENT_URL')}/reset-password/{token}"
    msg = Message(
        "Password Reset Request",
        sender=_sender(app),
        recipients=[user.email],
    )
    msg.html = render_template(
        "email/reset_password.html",
        user=user,
        reset_url=reset_url,
        expires_minutes=app.config.get("PASSWORD_RESET_TOKEN_MINUTES", 30),
        current_year=datetime.utcnow().year,
    )

    _dispatch(app, msg, "PASSWORD RESET")
    return True
