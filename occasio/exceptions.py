class OccasioError(Exception):
    """Base class for business-rule failures raised by the service layer.

    Every subclass carries the HTTP status code the API answers with; the
    error handler registered in ``create_app`` performs the mapping.
    """

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message}


class NotFoundError(OccasioError):
    status_code = 404
    default_message = "Resource not found"


class InvalidOperationError(OccasioError):
    status_code = 400
    default_message = "Operation not allowed"


class EventFullError(InvalidOperationError):
    default_message = "This event is full"


class ConflictError(OccasioError):
    status_code = 409
    default_message = "Resource already exists"


class AlreadyRegisteredError(ConflictError):
    default_message = "You have already joined this event"


class ForbiddenError(OccasioError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class UnauthorizedError(OccasioError):
    status_code = 401
    default_message = "Invalid email or password"


class MissingFieldsError(OccasioError):
    status_code = 400

    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.fields = fields

    def to_dict(self):
        return {"error": self.message, "missing_fields": self.fields}


class EncodingError(Exception):
    """Raised when a ticket code cannot be rendered as a QR image."""
