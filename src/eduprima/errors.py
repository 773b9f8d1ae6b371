"""Error taxonomy shared by the auth layer, services and API.

Learn: Services raise these typed errors; main.py registers one FastAPI
exception handler that turns any EduprimaError into the dashboard's
response envelope {"success": false, "message": ...} with the error's
status code. Nothing here is retried automatically.
"""


class EduprimaError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(EduprimaError):
    """No resolvable principal for the request."""

    status_code = 401
    default_message = "Unauthorized"


class Forbidden(EduprimaError):
    """The principal's role does not cover the requested resource."""

    status_code = 403
    default_message = "Forbidden"


class ValidationError(EduprimaError):
    """Missing or malformed required input."""

    status_code = 400
    default_message = "Invalid request"


class NotFound(EduprimaError):
    status_code = 404
    default_message = "Not found"


class StorageError(EduprimaError):
    """Record store failure other than a plain "not found"."""

    status_code = 500
    default_message = "Storage failure"


class MalformedSessionData(Exception):
    """Session evidence could not be parsed into a principal.

    Never surfaced to callers: the resolver logs it and treats the
    source as absent.
    """
