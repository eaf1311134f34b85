from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from occasio.exceptions import ForbiddenError, MissingFieldsError
from occasio.services import AttendeeService, EventService
from occasio.services.event_service import is_event_manager
from occasio.utils.auth import ensure_self_or_admin, get_current_user

event_bp = Blueprint("event", __name__)


@event_bp.route("/events", methods=["GET"])
@jwt_required()
def get_all_events():
    get_current_user()
    result = EventService.get_events(
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 10),
        status=request.args.get("status"),
    )
    return jsonify(result)


@event_bp.route("/events", methods=["POST"])
@jwt_required()
def create_event():
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    event = EventService.create_event(data, user)
    return jsonify({"message": "Event created successfully", "event": event}), 201


@event_bp.route("/events/<int:event_id>", methods=["GET"])
@jwt_required()
def get_event(event_id):
    get_current_user()
    return jsonify({"event": EventService.get_event(event_id)})


@event_bp.route("/events/<int:event_id>", methods=["PATCH", "PUT"])
@jwt_required()
def update_event(event_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    event = EventService.update_event(event_id, data, user)
    return jsonify({"message": "Event updated successfully", "event": event})


@event_bp.route("/events/<int:event_id>", methods=["DELETE"])
@jwt_required()
def delete_event(event_id):
    user = get_current_user()
    return jsonify(EventService.delete_event(event_id, user))


@event_bp.route("/events/<int:event_id>/cancel", methods=["POST"])
@jwt_required()
def cancel_event(event_id):
    user = get_current_user()
    event = EventService.cancel_event(event_id, user)
    return jsonify({"message": "Event cancelled successfully", "event": event})


@event_bp.route("/events/user/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user_events(user_id):
    user = get_current_user()
    user_id = ensure_self_or_admin(user, user_id)
    result = EventService.get_user_events(
        user_id,
        type=request.args.get("type", "joined"),
        status=request.args.get("status"),
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 10),
    )
    return jsonify(result)


@event_bp.route("/events/<int:event_id>/join", methods=["POST"])
@jwt_required()
def join_event(event_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    user_id = ensure_self_or_admin(user, data.get("user_id"))
    return jsonify(AttendeeService.join_event(event_id, user_id)), 201


@event_bp.route("/events/<int:event_id>/leave", methods=["POST"])
@jwt_required()
def leave_event(event_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    user_id = ensure_self_or_admin(user, data.get("user_id"))
    return jsonify(AttendeeService.leave_event(event_id, user_id))


@event_bp.route("/events/<int:event_id>/ticket/<int:user_id>", methods=["GET"])
@jwt_required()
def get_ticket(event_id, user_id):
    user = get_current_user()
    user_id = ensure_self_or_admin(user, user_id)
    return jsonify({"ticket": AttendeeService.get_user_ticket(event_id, user_id)})


@event_bp.route("/events/tickets/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user_tickets(user_id):
    user = get_current_user()
    user_id = ensure_self_or_admin(user, user_id)
    return jsonify({"tickets": AttendeeService.get_user_tickets(user_id)})


@event_bp.route("/events/<int:event_id>/verify-attendee", methods=["POST"])
@jwt_required()
def verify_attendee(event_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    if not data.get("ticket_code"):
        raise MissingFieldsError(["ticket_code"])

    event = EventService.get_event_or_404(event_id)
    if not is_event_manager(event, user):
        current_app.logger.warning(
            f"User {user.id} attempted to verify tickets for event {event_id}"
        )
        raise ForbiddenError("Only the event organizer can verify attendees")

    result = AttendeeService.verify_attendee(event_id, data["ticket_code"])
    return jsonify({"message": "Attendee verified successfully", **result})


@event_bp.route("/events/<int:event_id>/notify-attendees", methods=["POST"])
@jwt_required()
def notify_attendees(event_id):
    user = get_current_user()
    return jsonify(EventService.notify_attendees(event_id, user))
