class ApiError(Exception):
    """Base error raised by services and mapped to a JSON response by the app."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid data"
