"""
Domain error taxonomy.

Services raise these; the API layer turns them into JSON responses
(see ``tablebook.main``). Business-rule rejections are expected outcomes and
are never logged as errors.
"""


class TableBookError(Exception):
    """Base class for errors that carry a user-facing message"""

    code = "error"
    status_code = 400
    headers = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TableBookError):
    """Malformed input the caller can correct"""

    code = "validation_error"
    status_code = 400


class AuthenticationError(TableBookError):
    """Missing, malformed or revoked credentials"""

    code = "unauthorized"
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(TableBookError):
    code = "not_found"
    status_code = 404


class ForbiddenError(TableBookError):
    code = "forbidden"
    status_code = 403


class UnavailableError(TableBookError):
    """No free table of sufficient capacity at the requested slot"""

    code = "unavailable"
    status_code = 409


class OutOfHoursError(TableBookError):
    """Requested time falls outside the restaurant's operating hours"""

    code = "out_of_hours"
    status_code = 422


class ConflictError(TableBookError):
    """Lost a booking race to a concurrent reservation; safe to retry once"""

    code = "conflict"
    status_code = 409


class InvalidTransitionError(TableBookError):
    code = "invalid_transition"
    status_code = 409
