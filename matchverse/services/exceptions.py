class ServiceError(Exception):
    """Error raised by service functions and rendered by the API."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed input or a broken business rule."""

    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class AuthorizationError(ValidationError):
    """The acting user is not part of the match."""

    status_code = 403


class InsufficientPointsError(ServiceError):
    """A ranking update would leave a user with negative points."""

    status_code = 400
