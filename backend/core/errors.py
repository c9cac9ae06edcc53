"""Error kinds raised by the service layer.

Services never raise HTTP errors; ``backend.main`` maps each kind below to a
response status.
"""


class ServiceError(Exception):
    """Base class for recoverable service failures."""

    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    default_message = 'Invalid request.'


class PastDateError(ValidationError):
    default_message = 'Event date cannot be in the past'


class InvalidTimeRangeError(ValidationError):
    default_message = 'End time must be after start time'


class EventPassedError(ValidationError):
    default_message = 'Cannot RSVP to past events'


class NotFoundError(ServiceError):
    default_message = 'Resource not found'


class ConflictError(ServiceError):
    default_message = 'Resource already exists'


class ResourceUnavailableError(ServiceError):
    default_message = 'Database unavailable. Verify DATABASE_URL and database credentials.'
